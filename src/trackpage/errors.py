"""Custom exceptions for trackpage."""


class TrackpageError(Exception):
    """Base exception for all trackpage errors."""

    pass


class ValidationError(TrackpageError):
    """Raised when caller input is rejected before any page is generated."""

    pass


class MissingFieldError(ValidationError):
    """Raised when a required request field is empty."""

    def __init__(self, *fields: str):
        self.fields = fields
        super().__init__(f"Missing required fields: {' and '.join(fields)}")


class InvalidTimestampError(ValidationError):
    """Raised when a timestamp string cannot be parsed."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid timestamp for {field}: {value!r}")


class InvalidPickupDateError(ValidationError):
    """Raised when a custom pickup date is chronologically absurd."""

    def __init__(self, pickup_date: str, reason: str):
        self.pickup_date = pickup_date
        self.reason = reason
        super().__init__(f"Invalid pickup date {pickup_date}: {reason}")


class TrackingNumberMismatchError(ValidationError):
    """Raised when a tracking number belongs to neither shipment of an order."""

    def __init__(self, tracking_number: str, order_number: str | None = None):
        self.tracking_number = tracking_number
        self.order_number = order_number
        msg = f"Tracking number {tracking_number} does not match this order"
        if order_number:
            msg = f"Tracking number {tracking_number} does not match order {order_number}"
        super().__init__(msg)


class OrderNotFoundError(TrackpageError):
    """Raised when the commerce backend has no order with the given number."""

    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"Order not found: {order_number}")


class StatusPageNotFoundError(TrackpageError):
    """Raised when a page ID is in neither the cache nor the durable store."""

    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"Status page not found or already expired: {page_id}")


class UpstreamError(TrackpageError):
    """Raised when the commerce backend fails or times out."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Commerce backend request failed ({operation}): {reason}")


class ConfigurationError(TrackpageError):
    """Raised when settings or static tables are malformed or missing."""

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for {setting}: {reason}")


class PageStoreError(TrackpageError):
    """Raised when the durable page store cannot be read or written."""

    def __init__(self, page_id: str, reason: str):
        self.page_id = page_id
        self.reason = reason
        super().__init__(f"Page store operation failed for {page_id}: {reason}")
