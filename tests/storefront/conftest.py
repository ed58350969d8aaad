import asyncio

import httpx
import pytest
from commerce.api import (
    cart_router,
    coupon_router,
    order_router,
    register_exception_handlers,
    review_router,
)
from fastapi import FastAPI
from storefront.checkout import ShippingAddress
from storefront.config import ApiSettings
from storefront.session import StorefrontSession


@pytest.fixture(autouse=True)
def _ctx(commerce_context):
    yield


class _LostResponse:
    def __init__(self, exc):
        self.exc = exc


class ShopTransport(httpx.AsyncBaseTransport):
    """ASGI transport in front of the Commerce API that records every request.

    Failures and slow responses can be queued for upcoming requests:

    * ``fail(exc_or_response)`` makes the next request raise the exception or
      answer with the given ``httpx.Response`` without reaching the app;
    * ``lose_response(exc)`` lets the next request reach the app, then raises
      ``exc`` in place of its response;
    * ``slow(method, path_suffix, seconds)`` holds back the response of the
      next matching request after the app has handled it.
    """

    def __init__(self, app):
        self._inner = httpx.ASGITransport(app=app)
        self.log = []
        self._failures = []
        self._slow = []

    @property
    def requests(self):
        return [(method, path) for phase, method, path in self.log if phase == "start"]

    def fail(self, failure):
        self._failures.append(failure)

    def lose_response(self, exc):
        self._failures.append(_LostResponse(exc))

    def slow(self, method, path_suffix, seconds):
        self._slow.append((method, path_suffix, seconds))

    def _delay_for(self, request):
        for index, (method, suffix, seconds) in enumerate(self._slow):
            if request.method == method and request.url.path.endswith(suffix):
                del self._slow[index]
                return seconds
        return 0

    async def handle_async_request(self, request):
        self.log.append(("start", request.method, request.url.path))

        if self._failures:
            failure = self._failures.pop(0)
            if isinstance(failure, _LostResponse):
                await self._inner.handle_async_request(request)
                failure = failure.exc
            self.log.append(("end", request.method, request.url.path))
            if isinstance(failure, Exception):
                raise failure
            return failure

        delay = self._delay_for(request)
        response = await self._inner.handle_async_request(request)
        if delay:
            await asyncio.sleep(delay)

        self.log.append(("end", request.method, request.url.path))
        return response


@pytest.fixture()
def app():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(coupon_router)
    app.include_router(review_router)
    return app


@pytest.fixture()
def transport(app):
    return ShopTransport(app)


@pytest.fixture()
def settings():
    return ApiSettings(base_url="http://testserver", timeout=5.0)


@pytest.fixture()
async def session(settings, transport):
    async with StorefrontSession(settings, transport=transport) as session:
        yield session


@pytest.fixture()
async def signed_in(session):
    await session.sign_in("cust-001")
    return session


@pytest.fixture()
def address():
    return ShippingAddress(full_name="Jane Runner", phone="0900000000", street="1 Track Lane", city="Hanoi")
