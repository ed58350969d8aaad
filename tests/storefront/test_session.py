"""Tests for the storefront session context."""

import pytest
from storefront.config import ApiSettings
from storefront.errors import ValidationError
from storefront.session import StorefrontSession


class TestSession:
    async def test_new_session_has_no_customer(self, session):
        assert not session.signed_in
        assert session.cart.cart_id is None
        with pytest.raises(ValidationError):
            session.orders

    async def test_sign_in_opens_customer_cart(self, session):
        await session.sign_in("cust-001")

        assert session.signed_in
        assert session.cart.customer_id == "cust-001"
        assert session.orders.customer_id == "cust-001"

    async def test_sign_in_reuses_existing_cart(self, session):
        await session.sign_in("cust-001")
        first = session.cart.cart_id

        session.sign_out()
        await session.sign_in("cust-001")

        assert session.cart.cart_id == first

    async def test_sign_out_drops_local_state(self, session):
        await session.sign_in("cust-001")
        session.cart.shipping_method = "express"

        session.sign_out()

        assert not session.signed_in
        assert session.cart.cart_id is None
        assert session.cart.shipping_method.value == "standard"
        with pytest.raises(ValidationError):
            session.orders

    async def test_context_manager_closes_client(self, settings, transport):
        async with StorefrontSession(settings, transport=transport) as session:
            pass

        assert session.api._client.is_closed


class TestSettings:
    def test_defaults(self):
        settings = ApiSettings.from_env({})

        assert settings.base_url == "http://localhost:8000"
        assert settings.timeout == 10.0

    def test_from_environment(self):
        settings = ApiSettings.from_env(
            {"SPORTSHOP_API_URL": "https://shop.example.com/api/", "SPORTSHOP_API_TIMEOUT": "2.5"}
        )

        assert settings.base_url == "https://shop.example.com/api"
        assert settings.timeout == 2.5
