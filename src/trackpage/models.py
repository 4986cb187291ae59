"""Data models for trackpage."""

from dataclasses import dataclass, field
from typing import Any
import secrets

from .utils import _utc_now


def _generate_page_id() -> str:
    """Generate a new status page ID (16 hex characters)."""
    return secrets.token_hex(8)


# Models read from the commerce backend


@dataclass
class Fulfillment:
    """A physical shipment attempt tied to an order."""

    status: str | None = None
    shipment_status: str | None = None
    tracking_number: str | None = None
    tracking_numbers: list[str] = field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def primary_tracking_number(self) -> str | None:
        """The first tracking number this fulfillment exposes, if any."""
        if self.tracking_number:
            return self.tracking_number
        for number in self.tracking_numbers:
            if number:
                return number
        return None

    @property
    def is_delivered(self) -> bool:
        return self.status == "success" and self.shipment_status == "delivered"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "shipment_status": self.shipment_status,
            "tracking_number": self.tracking_number,
            "tracking_numbers": list(self.tracking_numbers),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Fulfillment":
        return cls(
            status=data.get("status"),
            shipment_status=data.get("shipment_status"),
            tracking_number=data.get("tracking_number"),
            tracking_numbers=list(data.get("tracking_numbers") or []),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class ShippingAddress:
    name: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    province: str = ""
    province_code: str = ""
    country: str = ""
    zip: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "province": self.province,
            "provinceCode": self.province_code,
            "country": self.country,
            "zip": self.zip,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ShippingAddress":
        data = data or {}
        return cls(
            name=data.get("name") or "",
            address1=data.get("address1") or "",
            address2=data.get("address2") or "",
            city=data.get("city") or "",
            province=data.get("province") or "",
            province_code=data.get("provinceCode") or data.get("province_code") or "",
            country=data.get("country") or "",
            zip=data.get("zip") or "",
        )


@dataclass
class Order:
    """An order as fetched from the commerce backend (read-only)."""

    id: int | str
    order_number: str
    created_at: str
    fulfillment_status: str | None = None
    financial_status: str | None = None
    is_delivered: bool = False
    delivery_date: str | None = None
    shipping_address: ShippingAddress = field(default_factory=ShippingAddress)
    customer_first_name: str = ""
    customer_last_name: str = ""
    customer_email: str = ""
    fulfillments: list[Fulfillment] = field(default_factory=list)

    @property
    def customer_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}".strip()

    @property
    def destination(self) -> str:
        addr = self.shipping_address
        return f"{addr.city}, {addr.province_code} {addr.zip}".strip()


@dataclass
class ReplacementTrackingMetafield:
    """Custom order metadata carrying a reshipment's tracking number."""

    value: str
    updated_at: str


# Models produced by trackpage


@dataclass
class CarrierInfo:
    """Carrier identity and public tracking link for a tracking number."""

    carrier: str
    carrier_code: str
    tracking_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "carrier": self.carrier,
            "carrierCode": self.carrier_code,
            "trackingUrl": self.tracking_url,
        }


@dataclass
class TrackingEvent:
    """A single entry of a synthesized shipment timeline."""

    status: str
    location: str
    date: str  # display string, e.g. "Mon, Jan 6, 2025"
    time: str  # display string, e.g. "9:05 AM"
    completed: bool = True
    current: bool = False
    is_delivered: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "completed": self.completed,
            "current": self.current,
            "isDelivered": self.is_delivered,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackingEvent":
        return cls(
            status=data["status"],
            location=data.get("location") or "",
            date=data.get("date", ""),
            time=data.get("time", ""),
            completed=data.get("completed", True),
            current=data.get("current", False),
            is_delivered=data.get("isDelivered", False),
        )


@dataclass
class StatusPage:
    """A shareable status page for one order and tracking number."""

    id: str
    customer_name: str
    order_number: str
    tracking_number: str
    carrier: CarrierInfo
    destination: str
    shipping_address: ShippingAddress
    fulfillment_status: str | None
    is_delivered: bool
    delivery_date: str | None
    events: list[TrackingEvent]
    custom_pickup_date: str | None = None
    is_replacement_tracking: bool = False
    replacement_tracking_date: str | None = None
    saved: bool = False
    saved_at: str | None = None
    created_at: str = field(default_factory=_utc_now)
    last_updated: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "customerName": self.customer_name,
            "orderNumber": self.order_number,
            "trackingNumber": self.tracking_number,
            **self.carrier.to_dict(),
            "destination": self.destination,
            "shippingAddress": self.shipping_address.to_dict(),
            "fulfillmentStatus": self.fulfillment_status,
            "isDelivered": self.is_delivered,
            "deliveryDate": self.delivery_date,
            "events": [e.to_dict() for e in self.events],
            "customPickupDate": self.custom_pickup_date,
            "isReplacementTracking": self.is_replacement_tracking,
            "replacementTrackingDate": self.replacement_tracking_date,
            "createdAt": self.created_at,
            "lastUpdated": self.last_updated,
            "saved": self.saved,
        }
        if self.saved_at is not None:
            result["savedAt"] = self.saved_at
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusPage":
        return cls(
            id=data["id"],
            customer_name=data.get("customerName", ""),
            order_number=data["orderNumber"],
            tracking_number=data["trackingNumber"],
            carrier=CarrierInfo(
                carrier=data.get("carrier", ""),
                carrier_code=data.get("carrierCode", ""),
                tracking_url=data.get("trackingUrl", ""),
            ),
            destination=data.get("destination", ""),
            shipping_address=ShippingAddress.from_dict(data.get("shippingAddress")),
            fulfillment_status=data.get("fulfillmentStatus"),
            is_delivered=data.get("isDelivered", False),
            delivery_date=data.get("deliveryDate"),
            events=[TrackingEvent.from_dict(e) for e in data.get("events", [])],
            custom_pickup_date=data.get("customPickupDate"),
            is_replacement_tracking=data.get("isReplacementTracking", False),
            replacement_tracking_date=data.get("replacementTrackingDate"),
            saved=data.get("saved", False),
            saved_at=data.get("savedAt"),
            created_at=data.get("createdAt", ""),
            last_updated=data.get("lastUpdated", ""),
        )
