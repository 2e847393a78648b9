"""
Read-only analytics queries for the admin analytics page.

Visitor telemetry is not collected yet, so the shipped provider serves fixed
placeholder figures. A telemetry-backed provider only has to implement
`AnalyticsProvider` and be returned from `get_analytics_provider`.
"""
from typing import List, Protocol

from app.schemas import AnalyticsResponse, CountryShare, DeviceShare, OverviewStat, TopPage


class AnalyticsProvider(Protocol):
    async def fetch_overview_stats(self) -> List[OverviewStat]: ...

    async def fetch_top_pages(self) -> List[TopPage]: ...

    async def fetch_device_breakdown(self) -> List[DeviceShare]: ...

    async def fetch_top_countries(self) -> List[CountryShare]: ...


class StaticAnalyticsProvider:
    """Placeholder figures shown until real telemetry storage exists."""

    async def fetch_overview_stats(self) -> List[OverviewStat]:
        return [
            OverviewStat(title="Total Visitors", value="12,847", change="+23%", trend="up"),
            OverviewStat(title="Page Views", value="45,231", change="+18%", trend="up"),
            OverviewStat(title="Photo Views", value="89,654", change="+31%", trend="up"),
            OverviewStat(title="Contact Inquiries", value="156", change="-5%", trend="down"),
        ]

    async def fetch_top_pages(self) -> List[TopPage]:
        return [
            TopPage(page="Gallery", views=15420, percentage=34),
            TopPage(page="Portfolio", views=8930, percentage=20),
            TopPage(page="Home", views=7650, percentage=17),
            TopPage(page="Blog", views=5440, percentage=12),
            TopPage(page="Contact", views=4120, percentage=9),
        ]

    async def fetch_device_breakdown(self) -> List[DeviceShare]:
        return [
            DeviceShare(device="Desktop", percentage=45),
            DeviceShare(device="Mobile", percentage=42),
            DeviceShare(device="Tablet", percentage=13),
        ]

    async def fetch_top_countries(self) -> List[CountryShare]:
        return [
            CountryShare(country="United States", visitors=3420, percentage=27),
            CountryShare(country="United Kingdom", visitors=2180, percentage=17),
            CountryShare(country="Canada", visitors=1890, percentage=15),
            CountryShare(country="Australia", visitors=1340, percentage=10),
            CountryShare(country="Germany", visitors=980, percentage=8),
        ]


def get_analytics_provider() -> AnalyticsProvider:
    """FastAPI dependency returning the active analytics provider."""
    return StaticAnalyticsProvider()


async def build_analytics_report(provider: AnalyticsProvider) -> AnalyticsResponse:
    return AnalyticsResponse(
        overview=await provider.fetch_overview_stats(),
        top_pages=await provider.fetch_top_pages(),
        devices=await provider.fetch_device_breakdown(),
        countries=await provider.fetch_top_countries(),
    )
