"""IntakeService orchestration: validate -> price -> store -> notify."""
from __future__ import annotations

from app.services.intake import IntakeService
from app.services.receipts import ReceiptConfig, ReceiptRenderer

from tests.conftest import FIXED_ID, FakeNotifier, FakeStore


def test_happy_path(service, store, notifier, submission):
    result = service.submit(submission)
    assert result.status_code == 200
    assert result.ok
    env = result.envelope
    assert env["orderId"] == FIXED_ID
    assert env["total"] == "26.00"
    assert env["emailSent"] is True
    assert "warning" not in env
    assert env["paymentInstructions"]["method"] == "cash"

    assert len(store.rows) == 1
    assert store.rows[0]["orderId"] == FIXED_ID
    assert store.rows[0]["total"] == "26.00"

    [mail] = notifier.sent
    assert mail["to"] == "ada@example.com"
    assert FIXED_ID in mail["subject"]
    assert "Total: $26.00" in mail["text"]
    assert "<html>" in mail["markup"]


def test_missing_email_never_touches_the_store(service, store, notifier, submission):
    del submission["email"]
    result = service.submit(submission)
    assert result.status_code == 400
    assert result.envelope == {
        "success": False, "error": "email is required", "code": "validation_error",
    }
    assert store.calls == 0
    assert notifier.sent == []


def test_store_failure_is_fatal_and_sends_nothing(make_service, notifier, submission):
    store = FakeStore(fail=True)
    result = make_service(store, notifier).submit(submission)
    assert result.status_code == 500
    assert result.envelope["success"] is False
    assert result.envelope["code"] == "store_unavailable"
    # collaborator detail stays in the log
    assert "quota" not in result.envelope["error"]
    assert notifier.sent == []


def test_mail_failure_still_succeeds(make_service, store, submission):
    notifier = FakeNotifier(fail_for={"*"})
    result = make_service(store, notifier).submit(submission)
    assert result.status_code == 200
    assert result.envelope["success"] is True
    assert result.envelope["orderId"] == FIXED_ID
    assert result.envelope["emailSent"] is False
    assert "warning" in result.envelope
    assert len(store.rows) == 1


def test_shop_copy(make_service, store, notifier, submission):
    make_service(store, notifier, shop_copy_to="shop@example.com").submit(submission)
    assert [m["to"] for m in notifier.sent] == ["ada@example.com", "shop@example.com"]
    assert notifier.sent[1]["subject"].startswith("[New order] ")


def test_shop_copy_failure_does_not_flag_customer_email(make_service, store, submission):
    notifier = FakeNotifier(fail_for={"shop@example.com"})
    result = make_service(store, notifier, shop_copy_to="shop@example.com").submit(submission)
    assert result.envelope["emailSent"] is True
    assert [m["to"] for m in notifier.sent] == ["ada@example.com"]


def test_unexpected_error_is_generic(make_service, notifier, submission):
    class BrokenStore:
        def append(self, record):
            raise KeyError("secret internal detail")

    result = make_service(BrokenStore(), notifier).submit(submission)
    assert result.status_code == 500
    assert result.envelope["code"] == "internal_error"
    assert "secret" not in result.envelope["error"]


def test_revtrak_returns_total_and_instructions(service, submission):
    submission.update(paymentMethod="revtrak", selectedPackaging="premium",
                      selectedShipping="home", appliedPromo=True)
    env = service.submit(submission).envelope
    assert env["total"] == "48.40"
    ins = env["paymentInstructions"]
    assert ins["method"] == "revtrak"
    assert ins["url"].startswith("https://")
    assert any("48.40" in step for step in ins["steps"])
    assert any(FIXED_ID in step for step in ins["steps"])


def test_quote_has_no_side_effects(service, store, notifier, submission):
    submission.update(selectedPackaging="premium", selectedShipping="home", appliedPromo=True)
    quote = service.quote(submission)
    assert quote["subtotal"] == "26.00"
    assert quote["discount"] == "2.60"
    assert quote["total"] == "48.40"
    assert quote["lines"] == [{"name": "Bangle Bracelets", "quantity": 2, "lineTotal": "26.00"}]
    assert store.calls == 0
    assert notifier.sent == []


def test_unexpected_mail_error_after_store_still_succeeds(make_service, store, submission):
    class CrashingNotifier:
        def send(self, to, subject, text_body, markup_body):
            raise UnicodeEncodeError("ascii", to, 3, 4, "ordinal not in range(128)")

    submission["email"] = "josé@example.com"
    result = make_service(store, CrashingNotifier()).submit(submission)
    assert result.status_code == 200
    assert result.envelope["success"] is True
    assert result.envelope["emailSent"] is False
    assert len(store.rows) == 1


def test_render_error_after_store_still_succeeds(rates, store, notifier, submission):
    class BrokenRenderer(ReceiptRenderer):
        def render_markup(self, priced):
            raise RuntimeError("template blew up")

    service = IntakeService(
        store=store,
        notifier=notifier,
        renderer=BrokenRenderer(ReceiptConfig("Shop", "@shop", "https://pay.example/", "a@b.c")),
        rates=rates,
    )
    result = service.submit(submission)
    assert result.status_code == 200
    assert result.envelope["emailSent"] is False
    assert len(store.rows) == 1
    assert notifier.sent == []


def test_oversized_amount_is_a_validation_error(service, store, submission):
    submission["cart"][0]["totalPrice"] = 1e30
    result = service.submit(submission)
    assert result.status_code == 400
    assert result.envelope["code"] == "validation_error"
    assert store.calls == 0
