"""Parser for ``sofia xmlstatus gateway`` replies."""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional

from freeswitch_exporter.core.exceptions import GatewayStatusParseError
from freeswitch_exporter.models import GatewayRecord, GatewayStatus, GatewayStatusReport

logger = logging.getLogger(__name__)

ROOT_TAG = "gateways"
GATEWAY_TAG = "gateway"

# The body arrives already decoded, so any declared charset is ignored.
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

_COUNTER_FIELDS = {
    "ping_timestamp": "ping",
    "uptime_usec": "uptime-usec",
    "calls_in": "calls-in",
    "calls_out": "calls-out",
    "failed_calls_in": "failed-calls-in",
    "failed_calls_out": "failed-calls-out",
}


class GatewayStatusParser:
    """Turns the XML gateway listing into a :class:`GatewayStatusReport`.

    Decoding is all-or-nothing: a single bad gateway element rejects the
    whole reply so callers never publish half a poll. Gateways without a
    name cannot be labelled and are skipped.
    """

    def parse(self, body: str) -> GatewayStatusReport:
        root = self._parse_root(body)
        records = []
        for position, element in enumerate(root.findall(GATEWAY_TAG), start=1):
            name = self._text(element, "name").strip()
            if not name:
                logger.warning("Skipping gateway #%d without a name", position)
                continue
            records.append(self._parse_gateway(element, name))
        return GatewayStatusReport(gateways=tuple(records))

    def _parse_root(self, body: str) -> ET.Element:
        text = _XML_DECLARATION.sub("", body or "", count=1)
        if not text.strip():
            raise GatewayStatusParseError("empty gateway status reply")
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise GatewayStatusParseError(f"XML syntax error: {exc}") from exc
        if root.tag != ROOT_TAG:
            raise GatewayStatusParseError(
                f"expected element type <{ROOT_TAG}> but have <{root.tag}>"
            )
        return root

    def _parse_gateway(self, element: ET.Element, name: str) -> GatewayRecord:
        values = {
            field_name: self._normalize_uint(element, tag, gateway=name)
            for field_name, tag in _COUNTER_FIELDS.items()
        }
        return GatewayRecord(
            name=name,
            proxy=self._text(element, "proxy").strip(),
            ping_time=self._normalize_float(element, "pingtime", gateway=name),
            status=GatewayStatus.from_text(self._text(element, "status")),
            **values,
        )

    @staticmethod
    def _text(element: ET.Element, tag: str) -> str:
        child: Optional[ET.Element] = element.find(tag)
        if child is None or child.text is None:
            return ""
        return child.text

    def _normalize_uint(self, element: ET.Element, tag: str, *, gateway: str) -> int:
        raw = self._text(element, tag).strip()
        if not raw:
            return 0
        try:
            value = int(raw, 10)
        except ValueError:
            raise GatewayStatusParseError(
                f"gateway {gateway!r}: invalid <{tag}> value {raw!r}"
            ) from None
        if value < 0:
            raise GatewayStatusParseError(f"gateway {gateway!r}: negative <{tag}> value {raw!r}")
        return value

    def _normalize_float(self, element: ET.Element, tag: str, *, gateway: str) -> float:
        raw = self._text(element, tag).strip()
        if not raw:
            return 0.0
        try:
            value = float(raw)
        except ValueError:
            raise GatewayStatusParseError(
                f"gateway {gateway!r}: invalid <{tag}> value {raw!r}"
            ) from None
        return value
