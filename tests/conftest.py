"""Shared fixtures: a fresh mock service per test."""

import pytest

from mockpay.common.config import MockSettings
from mockpay.engine.context import MockContext
from mockpay.engine.service import MockPaymentService


@pytest.fixture
def context():
    return MockContext(MockSettings())


@pytest.fixture
def service(context):
    return MockPaymentService(context)


@pytest.fixture
def card_token(service):
    """Factory for fresh single-use card tokens."""

    def _make(**attrs):
        return service.generate_source_token(attrs)

    return _make
