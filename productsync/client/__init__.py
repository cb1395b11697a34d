"""Product REST API client module."""

from .client import ProductAPIError, ProductClient

__all__ = ["ProductClient", "ProductAPIError"]
