"""SportShop API client package."""

from storefront.api.client import ShopApiClient

__all__ = ["ShopApiClient"]
