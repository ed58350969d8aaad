import pytest


@pytest.fixture(autouse=True)
def _ctx(commerce_context):
    yield
