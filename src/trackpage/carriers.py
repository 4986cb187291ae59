"""Tracking-number to carrier classification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote

from .models import CarrierInfo

UNKNOWN_CARRIER_NAME = "Carrier"
UNKNOWN_CARRIER_CODE = "UNKNOWN"
FALLBACK_URL_TEMPLATE = "https://www.google.com/search?q=track+package+{number}"

USPS_PREFIXES = ("94", "93", "92", "91", "90", "82", "81", "80", "70", "23", "13", "03", "04")


@dataclass(frozen=True)
class CarrierRule:
    """A carrier and the tracking-number shape that identifies it."""

    code: str
    name: str
    pattern: re.Pattern[str]
    url_template: str

    def matches(self, tracking_number: str) -> bool:
        return self.pattern.fullmatch(tracking_number) is not None

    def describe(self, tracking_number: str) -> CarrierInfo:
        return CarrierInfo(
            carrier=self.name,
            carrier_code=self.code,
            tracking_url=self.url_template.format(number=quote(tracking_number, safe="")),
        )


# Order matters: the numeric-only FedEx and DHL shapes would shadow USPS
# numbers if tested first.
CARRIER_RULES: tuple[CarrierRule, ...] = (
    CarrierRule(
        code="UPS",
        name="UPS",
        pattern=re.compile(r"1Z[0-9A-Z]{16}"),
        url_template="https://www.ups.com/track?track=yes&trackNums={number}",
    ),
    CarrierRule(
        code="USPS",
        name="USPS",
        pattern=re.compile(rf"(?:{'|'.join(USPS_PREFIXES)})\d{{18,20}}"),
        url_template="https://tools.usps.com/go/TrackConfirmAction?tLabels={number}",
    ),
    CarrierRule(
        code="FedEx",
        name="FedEx",
        pattern=re.compile(r"\d{12}|\d{14}|\d{15}|\d{20}|\d{22}"),
        url_template="https://www.fedex.com/fedextrack/?tracknumber={number}",
    ),
    CarrierRule(
        code="DHL",
        name="DHL",
        pattern=re.compile(r"\d{10,11}"),
        url_template="https://www.dhl.com/us-en/home/tracking.html?tracking-id={number}",
    ),
    CarrierRule(
        code="Amazon",
        name="Amazon Logistics",
        pattern=re.compile(r"TBA\d{12}"),
        url_template="https://track.amazon.com/tracking/{number}",
    ),
)


def classify(tracking_number: str, rules: tuple[CarrierRule, ...] = CARRIER_RULES) -> CarrierInfo:
    """
    Identify the carrier for a tracking number.

    Rules are tried in order and the first match wins. A number no rule
    recognizes is not an error: it gets the generic carrier with a web
    search link.

    Args:
        tracking_number: Any string; surrounding whitespace is ignored.
        rules: Ordered carrier rules (defaults to CARRIER_RULES).

    Returns:
        CarrierInfo for the first matching carrier, or the fallback.
    """
    number = (tracking_number or "").strip()
    for rule in rules:
        if rule.matches(number):
            return rule.describe(number)

    return CarrierInfo(
        carrier=UNKNOWN_CARRIER_NAME,
        carrier_code=UNKNOWN_CARRIER_CODE,
        tracking_url=FALLBACK_URL_TEMPLATE.format(number=quote(number, safe="")),
    )
