"""
EPİAŞ transparency platform client for generation, price and consumption.

Every call acquires a fresh ticket, then issues an authenticated GET with
an explicit timeout. Results are returned in the raw upstream shape; the
persistence layer maps them onto column names.
"""

import httpx
from typing import List, Dict, Any, Optional, Union
from datetime import date, datetime

from core.config import settings
from core.exceptions import UpstreamFetchError
from ingestion.auth import TicketProvider
import logging

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

REALTIME_GENERATION_PATH = "/dashboard/realtime-generation"
HISTORICAL_GENERATION_PATH = "/generation/data/realtime-generation"
PRICE_PATH = "/markets/dam/data/mcp"
CONSUMPTION_PATH = "/consumption/data/realtime-consumption"


def as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class MarketDataClient:
    """
    Fetch electricity market series.

    Operations:
    - fetch_realtime_generation(): today's generation, no parameters
    - fetch_historical_generation(start, end): YYYY-MM-DD range
    - fetch_price(start, end): market clearing price (PTF)
    - fetch_consumption(start, end): real-time consumption
    """

    def __init__(
        self,
        ticket_provider: TicketProvider,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        utc_offset: Optional[str] = None
    ):
        self.ticket_provider = ticket_provider
        self.base_url = (base_url or settings.EPIAS_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.EPIAS_TIMEOUT
        self.utc_offset = utc_offset or settings.MARKET_UTC_OFFSET

    def format_timestamp(self, value: DateLike) -> str:
        """Extended upstream form: 2024-01-01T00:00:00+03:00"""
        return f"{as_date(value).isoformat()}T00:00:00{self.utc_offset}"

    async def fetch_realtime_generation(self) -> List[Dict[str, Any]]:
        return await self._get("realtime_generation", REALTIME_GENERATION_PATH)

    async def fetch_historical_generation(self, start_date: DateLike, end_date: DateLike) -> List[Dict[str, Any]]:
        start, end = as_date(start_date), as_date(end_date)
        return await self._get(
            "historical_generation",
            HISTORICAL_GENERATION_PATH,
            params={"startDate": start.isoformat(), "endDate": end.isoformat()},
            start_date=start,
            end_date=end
        )

    async def fetch_price(self, start_date: DateLike, end_date: DateLike) -> List[Dict[str, Any]]:
        start, end = as_date(start_date), as_date(end_date)
        return await self._get(
            "price",
            PRICE_PATH,
            params={"startDate": self.format_timestamp(start), "endDate": self.format_timestamp(end)},
            start_date=start,
            end_date=end
        )

    async def fetch_consumption(self, start_date: DateLike, end_date: DateLike) -> List[Dict[str, Any]]:
        start, end = as_date(start_date), as_date(end_date)
        return await self._get(
            "consumption",
            CONSUMPTION_PATH,
            params={"startDate": self.format_timestamp(start), "endDate": self.format_timestamp(end)},
            start_date=start,
            end_date=end
        )

    async def _get(
        self,
        kind: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """
        Authenticated GET returning the `items` array.

        Raises:
            AuthError: ticket could not be acquired
            UpstreamFetchError: network error or non-2xx response
        """
        ticket = await self.ticket_provider.acquire_ticket()
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    url,
                    headers={"TGT": ticket, "Accept": "application/json"},
                    params=params
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"EPİAŞ {kind} request failed with status {e.response.status_code}")
            raise UpstreamFetchError(
                f"Failed to fetch {kind} data",
                kind=kind,
                start_date=start_date,
                end_date=end_date,
                context={
                    "api_url": url,
                    "status_code": e.response.status_code,
                    "response_body": e.response.text[:500]  # Truncate
                },
                original_exception=e
            )
        except httpx.HTTPError as e:
            logger.error(f"EPİAŞ {kind} request error: {str(e)}")
            raise UpstreamFetchError(
                f"Failed to fetch {kind} data",
                kind=kind,
                start_date=start_date,
                end_date=end_date,
                context={"api_url": url},
                original_exception=e
            )
        except ValueError as e:
            raise UpstreamFetchError(
                f"Invalid JSON in {kind} response",
                kind=kind,
                start_date=start_date,
                end_date=end_date,
                context={"api_url": url},
                original_exception=e
            )

        items = data.get("items") if isinstance(data, dict) else None
        items = items or []
        if start_date is not None:
            logger.info(f"EPİAŞ {kind} fetched: {start_date} to {end_date} - {len(items)} records")
        else:
            logger.info(f"EPİAŞ {kind} fetched: {len(items)} records")
        return items
