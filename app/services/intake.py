# app/services/intake.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from ..settings import settings
from .errors import DeliveryUnavailable, IntakeError, InternalError, ValidationError
from .firestore import FirestoreOrderStore, OrderStore
from .mailer import Notifier, SmtpNotifier
from .money import plain
from .orders import new_order_id, normalize, order_record
from .pricing import PricedOrder, Rates, price
from .receipts import ReceiptConfig, ReceiptRenderer

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    PRICED = "priced"
    STORED = "stored"
    NOTIFIED = "notified"
    COMPLETED = "completed"


@dataclass(frozen=True)
class IntakeResult:
    status_code: int
    envelope: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return bool(self.envelope.get("success"))


def failure(err: IntakeError) -> IntakeResult:
    return IntakeResult(
        status_code=err.status_code,
        envelope={"success": False, "error": err.public_message, "code": err.code},
    )


class IntakeService:
    """
    One checkout submission, start to finish:

        received -> validated -> priced -> stored -> notified -> completed

    Validation and store failures abort the request. A mail failure does
    not: the order row already exists, so the caller still gets success with
    ``emailSent: false``.
    """

    def __init__(
        self,
        store: OrderStore,
        notifier: Notifier,
        renderer: ReceiptRenderer,
        rates: Rates,
        shop_copy_to: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[datetime], str]] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.renderer = renderer
        self.rates = rates
        self.shop_copy_to = shop_copy_to
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._new_id = id_factory or new_order_id

    # --- public -------------------------------------------------------------

    def submit(self, raw: Any) -> IntakeResult:
        stage = Stage.RECEIVED
        try:
            now = self._clock()
            order = normalize(raw, order_id=self._new_id(now), created_at=now)
            stage = Stage.VALIDATED

            priced = price(order, self.rates)
            stage = Stage.PRICED
            logger.info("order %s priced: total=%s method=%s",
                        order.order_id, plain(priced.total), order.payment_method.value)

            self.store.append(order_record(priced))
            stage = Stage.STORED
            logger.info("order %s stored", order.order_id)

            email_sent = self._notify(priced)
            stage = Stage.NOTIFIED

            return self._completed(priced, email_sent)
        except ValidationError as e:
            logger.info("submission rejected: %s", e)
            return failure(e)
        except IntakeError as e:
            logger.error("intake failed at stage %s: %s", stage.value, e)
            return failure(e)
        except Exception:
            logger.exception("unexpected error at stage %s", stage.value)
            return failure(InternalError())

    def quote(self, raw: Any) -> Dict[str, Any]:
        """Price a submission without storing or mailing anything."""
        order = normalize(raw, order_id="QUOTE", created_at=self._clock())
        priced = price(order, self.rates)
        return {
            **priced.breakdown(),
            "lines": [
                {"name": it.name, "quantity": it.quantity, "lineTotal": plain(it.line_total)}
                for it in order.items
            ],
        }

    # --- steps ----------------------------------------------------------------

    def _notify(self, priced: PricedOrder) -> bool:
        # The row is already stored: from here on nothing may fail the request.
        order = priced.order
        try:
            subject = self.renderer.subject(priced)
            text = self.renderer.render_text(priced)
            markup = self.renderer.render_markup(priced)
        except Exception:
            logger.exception("order %s: receipt could not be rendered", order.order_id)
            return False

        sent = self._send(order.order_id, order.customer.email, subject, text, markup)
        if sent:
            logger.info("order %s receipt sent to customer", order.order_id)

        if self.shop_copy_to:
            self._send(order.order_id, self.shop_copy_to, f"[New order] {subject}", text, markup)
        return sent

    def _send(self, order_id: str, to: str, subject: str, text: str, markup: str) -> bool:
        try:
            self.notifier.send(to, subject, text, markup)
        except DeliveryUnavailable as e:
            logger.warning("order %s: mail to %s not sent: %s", order_id, to, e)
            return False
        except Exception:
            logger.exception("order %s: unexpected error mailing %s", order_id, to)
            return False
        return True

    def _completed(self, priced: PricedOrder, email_sent: bool) -> IntakeResult:
        order = priced.order
        envelope: Dict[str, Any] = {
            "success": True,
            "orderId": order.order_id,
            "total": plain(priced.total),
            "paymentMethod": order.payment_method.value,
            "paymentInstructions": self.renderer.instructions(priced).as_dict(),
            "emailSent": email_sent,
        }
        if not email_sent:
            envelope["warning"] = (
                "Your order was received, but the confirmation email could not be sent."
            )
        logger.info("order %s %s (emailSent=%s)", order.order_id, Stage.COMPLETED.value, email_sent)
        return IntakeResult(status_code=200, envelope=envelope)


@lru_cache
def get_intake_service() -> IntakeService:
    """FastAPI dependency: the service wired from settings."""
    return IntakeService(
        store=FirestoreOrderStore(settings.orders_collection),
        notifier=SmtpNotifier.from_settings(settings),
        renderer=ReceiptRenderer(ReceiptConfig.from_settings(settings)),
        rates=Rates.from_settings(settings),
        shop_copy_to=settings.order_notify_email,
    )
