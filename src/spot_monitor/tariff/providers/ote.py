"""OTE (Czech electricity market operator) day-ahead price feed.

Public SOAP service, no authentication. ``GetDamPricePeriodE`` returns one
``Item`` per period with ``Date``, ``PeriodIndex`` (1-24) and ``Price``
in EUR/MWh.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import date

import httpx

from spot_monitor.config.schema import PriceProviderConfig
from spot_monitor.errors import FeedMalformed, FeedUnavailable
from spot_monitor.tariff.base import PriceFeed, PriceSample

logger = logging.getLogger(__name__)

SOAP_ACTION = "GetDamPricePeriodE"

_QUERY_TEMPLATE = """<?xml version="1.0" encoding="UTF-8" ?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" xmlns:pub="http://www.ote-cr.cz/schema/service/public">
    <soapenv:Header/>
    <soapenv:Body>
        <pub:GetDamPricePeriodE>
            <pub:StartDate>{start}</pub:StartDate>
            <pub:EndDate>{end}</pub:EndDate>
            <pub:PeriodResolution>PT60M</pub:PeriodResolution>
        </pub:GetDamPricePeriodE>
    </soapenv:Body>
</soapenv:Envelope>"""


def build_query(start: date, end: date) -> str:
    return _QUERY_TEMPLATE.format(start=start.isoformat(), end=end.isoformat())


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class OTEPriceFeed(PriceFeed):
    """OTE public data service price feed."""

    name = "ote"

    def __init__(self, config: PriceProviderConfig) -> None:
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.timeout_seconds)

    async def fetch_daily_prices(self, day: date) -> list[PriceSample]:
        """Fetch one day's hourly prices. Empty list if not yet published."""
        body = build_query(day, day)
        try:
            resp = await self._client.post(
                self._config.url,
                content=body.encode("utf-8"),
                headers={
                    "Content-Type": "application/soap+xml; charset=utf-8",
                    "SOAPAction": SOAP_ACTION,
                },
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedUnavailable(f"OTE request failed: {e}") from e

        samples = [s for s in self.parse_response(resp.text) if s.day == day]
        logger.debug("OTE returned %d samples for %s", len(samples), day)
        return samples

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def parse_response(xml_text: str) -> list[PriceSample]:
        """Parse a GetDamPricePeriodE SOAP response into samples.

        Items missing a field or carrying unparsable values are skipped.
        A SOAP fault or a document that is not XML raises FeedMalformed.
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise FeedMalformed(f"OTE response is not valid XML: {e}") from e

        for element in root.iter():
            if _local_name(element.tag) == "Fault":
                reason = " ".join(t.strip() for t in element.itertext() if t.strip())
                raise FeedMalformed(f"OTE SOAP fault: {reason}")

        samples: list[PriceSample] = []
        for item in root.iter():
            if _local_name(item.tag) != "Item":
                continue
            fields = {_local_name(child.tag): (child.text or "").strip() for child in item}
            try:
                samples.append(
                    PriceSample(
                        day=date.fromisoformat(fields["Date"][:10]),
                        hour=int(fields["PeriodIndex"]) - 1,  # OTE periods are 1-24
                        price_eur=float(fields["Price"]),
                    )
                )
            except (KeyError, ValueError) as e:
                logger.warning("Skipping malformed OTE item %s: %s", fields, e)
        return samples
