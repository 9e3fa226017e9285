"""Shared fixtures: in-memory store and notifier so tests run without Firestore or SMTP."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.services.errors import DeliveryUnavailable, StoreUnavailable
from app.services.intake import IntakeService, get_intake_service
from app.services.pricing import Rates
from app.services.receipts import ReceiptConfig, ReceiptRenderer


FIXED_NOW = datetime(2026, 10, 18, 15, 30, 12, tzinfo=timezone.utc)
FIXED_ID = "ORD-20261018-153012-ABC123"
PORTAL_URL = "https://pay.example-district.revtrak.net/bangles/"


# ---------- Fakes ----------

class FakeStore:
    def __init__(self, fail: bool = False):
        self.rows: list[dict] = []
        self.calls = 0
        self.fail = fail

    def append(self, record):
        self.calls += 1
        if self.fail:
            raise StoreUnavailable("sheet offline: quota exceeded for project 1234")
        self.rows.append(record)


class FakeNotifier:
    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[dict] = []
        self.fail_for = fail_for or set()

    def send(self, to, subject, text_body, markup_body):
        if "*" in self.fail_for or to in self.fail_for:
            raise DeliveryUnavailable(f"smtp refused {to}")
        self.sent.append(
            {"to": to, "subject": subject, "text": text_body, "markup": markup_body}
        )


# ---------- Fixtures ----------

@pytest.fixture()
def rates():
    return Rates(
        premium_packaging_fee=Decimal("20.00"),
        home_delivery_fee=Decimal("5.00"),
        promo_discount_rate=Decimal("0.10"),
    )


@pytest.fixture()
def receipt_config():
    return ReceiptConfig(
        shop_name="Bangle Shop",
        venmo_handle="@Bangle-Shop",
        revtrak_url=PORTAL_URL,
        revtrak_forward_to="treasurer@example.org",
        pickup_location="the front office",
    )


@pytest.fixture()
def renderer(receipt_config):
    return ReceiptRenderer(receipt_config)


@pytest.fixture()
def store():
    return FakeStore()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def make_service(rates, renderer):
    def _make(store, notifier, shop_copy_to=None):
        return IntakeService(
            store=store,
            notifier=notifier,
            renderer=renderer,
            rates=rates,
            shop_copy_to=shop_copy_to,
            clock=lambda: FIXED_NOW,
            id_factory=lambda now: FIXED_ID,
        )
    return _make


@pytest.fixture()
def service(make_service, store, notifier):
    return make_service(store, notifier)


@pytest.fixture()
def submission():
    """The storefront's shape of a checkout post."""
    return {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "cart": [
            {"name": "Bangle Bracelets", "quantity": 2, "totalPrice": 26.00,
             "customization": "gold, initials AL"},
        ],
        "appliedPromo": False,
        "selectedPackaging": "standard",
        "selectedShipping": "central",
        "paymentMethod": "cash",
    }


@pytest.fixture()
def client(service):
    """FastAPI TestClient (sync) with the intake service swapped for fakes."""
    from fastapi.testclient import TestClient
    from app.main import app

    app.dependency_overrides[get_intake_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_intake_service, None)
