"""Shopify Admin API gateway for orders and replacement-tracking metafields."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from .errors import ConfigurationError, OrderNotFoundError, UpstreamError
from .models import Fulfillment, Order, ReplacementTrackingMetafield, ShippingAddress

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)


class OrderGateway(Protocol):
    """What the status page service needs from the commerce backend."""

    def fetch_order(self, order_number: str) -> Order:
        ...

    def fetch_replacement_tracking(self, order_id: int | str) -> ReplacementTrackingMetafield | None:
        ...


def order_from_payload(data: dict[str, Any]) -> Order:
    """Convert a Shopify order resource into an Order."""
    fulfillments = [Fulfillment.from_dict(f) for f in data.get("fulfillments") or []]

    is_delivered = False
    delivery_date = None
    for fulfillment in fulfillments:
        if fulfillment.is_delivered:
            is_delivered = True
            delivery_date = fulfillment.updated_at
            break

    customer = data.get("customer") or {}
    return Order(
        id=data["id"],
        order_number=data.get("name") or str(data.get("order_number", "")),
        created_at=data["created_at"],
        fulfillment_status=data.get("fulfillment_status"),
        financial_status=data.get("financial_status"),
        is_delivered=is_delivered,
        delivery_date=delivery_date,
        shipping_address=ShippingAddress.from_dict(data.get("shipping_address")),
        customer_first_name=customer.get("first_name") or "",
        customer_last_name=customer.get("last_name") or "",
        customer_email=customer.get("email") or "",
        fulfillments=fulfillments,
    )


class ShopifyGateway:
    """Synchronous client for the Shopify Admin REST API."""

    def __init__(
        self,
        shop_domain: str | None,
        access_token: str | None,
        api_version: str = "2024-01",
        timeout: float = 30.0,
        metafield_namespace: str = "custom",
        metafield_key: str = "replacement_tracking",
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize ShopifyGateway.

        Args:
            shop_domain: Shop host, e.g. "example.myshopify.com".
            access_token: Admin API access token.
            api_version: Admin API version segment.
            timeout: Per-request timeout in seconds.
            metafield_namespace: Namespace of the replacement-tracking metafield.
            metafield_key: Key of the replacement-tracking metafield.
            transport: Override HTTP transport (for testing).
        """
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version
        self.metafield_namespace = metafield_namespace
        self.metafield_key = metafield_key
        self._client = httpx.Client(
            base_url=f"https://{shop_domain or 'unconfigured.invalid'}/admin/api/{api_version}",
            headers={
                "X-Shopify-Access-Token": access_token or "",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.BaseTransport | None = None) -> "ShopifyGateway":
        return cls(
            shop_domain=settings.shopify_shop_domain,
            access_token=settings.shopify_access_token,
            api_version=settings.shopify_api_version,
            timeout=settings.shopify_timeout,
            metafield_namespace=settings.metafield_namespace,
            metafield_key=settings.metafield_key,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.shop_domain and self.access_token)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ShopifyGateway":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any], operation: str) -> dict[str, Any]:
        if not self.configured:
            raise ConfigurationError("SHOPIFY_SHOP_DOMAIN/SHOPIFY_ACCESS_TOKEN", "not set")

        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Shopify API error during {operation}: {e.response.status_code}")
            raise UpstreamError(operation, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Shopify request failed during {operation}: {e}")
            raise UpstreamError(operation, str(e) or type(e).__name__)
        except ValueError as e:
            logger.error(f"Shopify returned invalid JSON during {operation}: {e}")
            raise UpstreamError(operation, "invalid JSON response")

    def fetch_order(self, order_number: str) -> Order:
        """
        Look up an order by its human order number.

        Searches for "#1001" first and falls back to "1001".

        Raises:
            OrderNotFoundError: If neither search returns an order.
            UpstreamError: If the backend request fails.
        """
        clean = order_number.strip().lstrip("#")
        for name in (f"#{clean}", clean):
            data = self._get(
                "/orders.json", {"name": name, "status": "any"}, "fetch order"
            )
            orders = data.get("orders") or []
            if orders:
                return order_from_payload(orders[0])

        raise OrderNotFoundError(order_number)

    def fetch_replacement_tracking(self, order_id: int | str) -> ReplacementTrackingMetafield | None:
        """
        Get the order's replacement-tracking metafield, if it has one.

        Raises:
            UpstreamError: If the backend request fails.
        """
        data = self._get(
            f"/orders/{order_id}/metafields.json",
            {"namespace": self.metafield_namespace, "key": self.metafield_key},
            "fetch metafields",
        )
        for metafield in data.get("metafields") or []:
            if (
                metafield.get("namespace") == self.metafield_namespace
                and metafield.get("key") == self.metafield_key
                and metafield.get("value")
            ):
                return ReplacementTrackingMetafield(
                    value=str(metafield["value"]).strip(),
                    updated_at=metafield.get("updated_at") or metafield.get("created_at") or "",
                )
        return None
