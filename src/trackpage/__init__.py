"""trackpage: shareable order-tracking status pages."""

__version__ = "0.1.0"
