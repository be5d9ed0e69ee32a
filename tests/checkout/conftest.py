import pytest
from protean.integrations.pytest import DomainFixture

from checkout.payment.processor import reset_processor, set_processor
from checkout.payment.processor.fake_adapter import FakePaymentProcessor
from checkout.referral.registry import reset_registry, set_registry
from checkout.referral.registry.fake_adapter import FakeReferralRegistry


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def registry():
    """A fresh fake referral registry for every test."""
    fake = FakeReferralRegistry()
    set_registry(fake)
    yield fake
    reset_registry()


@pytest.fixture(autouse=True)
def processor():
    """A fresh fake payment processor for every test."""
    fake = FakePaymentProcessor()
    set_processor(fake)
    yield fake
    reset_processor()
