# app/services/receipts.py
"""
Receipt rendering: a plain-text body and an HTML body for the same priced
order, plus the payment instructions that close both.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from html import escape
from typing import Any, Dict, List, Optional, Tuple

from .money import fmt_money, fmt_rate, plain
from .orders import PackagingTier, PaymentMethod, ShippingMethod
from .pricing import PricedOrder


@dataclass(frozen=True)
class ReceiptConfig:
    shop_name: str
    venmo_handle: str
    revtrak_url: str
    revtrak_forward_to: str
    pickup_location: str = "the central pickup table"

    @classmethod
    def from_settings(cls, s) -> "ReceiptConfig":
        return cls(
            shop_name=s.shop_name,
            venmo_handle=s.venmo_handle,
            revtrak_url=s.revtrak_url,
            revtrak_forward_to=s.revtrak_forward_to,
            pickup_location=s.pickup_location,
        )


@dataclass(frozen=True)
class Instructions:
    method: PaymentMethod
    summary: str
    steps: Tuple[str, ...] = field(default_factory=tuple)
    url: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method.value,
            "summary": self.summary,
            "steps": list(self.steps),
            "url": self.url,
        }


# --- Payment instructions -----------------------------------------------------

class PaymentInstructions(ABC):
    # One subclass per PaymentMethod; registered in _INSTRUCTIONS below.

    method: PaymentMethod

    @abstractmethod
    def build(self, priced: PricedOrder, config: ReceiptConfig) -> Instructions:
        pass


class CashInstructions(PaymentInstructions):
    method = PaymentMethod.CASH

    def build(self, priced, config):
        return Instructions(
            method=self.method,
            summary=f"Pay {fmt_money(priced.total)} in cash when you pick up your order.",
            steps=("Payment is collected in person. Please bring exact change if you can.",),
        )


class VenmoInstructions(PaymentInstructions):
    method = PaymentMethod.VENMO

    def build(self, priced, config):
        oid = priced.order.order_id
        return Instructions(
            method=self.method,
            summary=f"Send {fmt_money(priced.total)} on Venmo to {config.venmo_handle}.",
            steps=(
                f"Pay {config.venmo_handle} on Venmo.",
                f"Put your order number {oid} in the payment note.",
            ),
        )


class RevTrakInstructions(PaymentInstructions):
    method = PaymentMethod.REVTRAK

    def build(self, priced, config):
        oid = priced.order.order_id
        return Instructions(
            method=self.method,
            summary=f"Pay {fmt_money(priced.total)} through the RevTrak web store.",
            steps=(
                f"Open {config.revtrak_url}",
                f"Enter the amount {plain(priced.total)} exactly.",
                f"Forward your RevTrak receipt to {config.revtrak_forward_to} "
                f"with order number {oid} in the message.",
            ),
            url=config.revtrak_url,
        )


_INSTRUCTIONS: Dict[PaymentMethod, PaymentInstructions] = {
    s.method: s for s in (CashInstructions(), VenmoInstructions(), RevTrakInstructions())
}

_missing = set(PaymentMethod) - set(_INSTRUCTIONS)
if _missing:
    raise RuntimeError(f"no payment instructions for: {sorted(m.value for m in _missing)}")


# --- Renderer -----------------------------------------------------------------

def _item_label(name: str, customization: Optional[str]) -> str:
    return f"{name} ({customization})" if customization else name


def _adjustments(priced: PricedOrder) -> List[Tuple[str, str]]:
    """Surcharge/discount lines that apply; zero amounts are left out entirely."""
    rows: List[Tuple[str, str]] = []
    if priced.packaging_surcharge:
        rows.append(("Premium packaging", fmt_money(priced.packaging_surcharge)))
    if priced.shipping_surcharge:
        rows.append(("Home delivery", fmt_money(priced.shipping_surcharge)))
    if priced.discount:
        rate = fmt_rate(priced.rates.promo_discount_rate)
        rows.append((f"Promo discount ({rate})", fmt_money(-priced.discount)))
    return rows


class ReceiptRenderer:
    def __init__(self, config: ReceiptConfig):
        self.config = config

    def instructions(self, priced: PricedOrder) -> Instructions:
        return _INSTRUCTIONS[priced.order.payment_method].build(priced, self.config)

    def subject(self, priced: PricedOrder) -> str:
        return f"{self.config.shop_name} order {priced.order.order_id}"

    def _fulfilment(self, priced: PricedOrder) -> Tuple[str, List[str]]:
        o = priced.order
        if o.shipping_method is ShippingMethod.HOME:
            return "Home delivery to:", o.address.lines() if o.address else ["(no address given)"]
        return f"Pickup at {self.config.pickup_location}", []

    def render_text(self, priced: PricedOrder) -> str:
        o = priced.order
        c = o.customer
        out: List[str] = []

        greeting = f"Thank you for your order, {c.name}!" if c.name else "Thank you for your order!"
        out += [greeting, "", f"Order number: {o.order_id}",
                f"Placed: {o.created_at:%Y-%m-%d %H:%M} UTC", ""]

        out.append("Items:")
        for it in o.items:
            label = _item_label(it.name, it.customization)
            out.append(f"  {label} x{it.quantity}  {fmt_money(it.line_total)}")
        out.append("")
        out.append(f"Subtotal: {fmt_money(priced.subtotal)}")
        for label, amount in _adjustments(priced):
            out.append(f"{label}: {amount}")
        out.append(f"Total: {fmt_money(priced.total)}")
        out.append("")

        packaging = "Premium" if o.packaging_tier is PackagingTier.PREMIUM else "Standard"
        out.append(f"Packaging: {packaging}")
        heading, addr_lines = self._fulfilment(priced)
        out.append(heading)
        out += [f"  {line}" for line in addr_lines]
        if c.phone:
            out.append(f"Phone: {c.phone}")
        if o.notes:
            out.append(f"Notes: {o.notes}")
        out.append("")

        ins = self.instructions(priced)
        out.append("How to pay")
        out.append(ins.summary)
        out += [f"  {n}. {step}" for n, step in enumerate(ins.steps, start=1)]
        out.append("")
        out.append(f"- {self.config.shop_name}")
        return "\n".join(out) + "\n"

    def render_markup(self, priced: PricedOrder) -> str:
        o = priced.order
        c = o.customer
        e = escape  # escapes & < > " ' (quote=True is the default)

        rows = []
        for it in o.items:
            label = e(it.name)
            if it.customization:
                label += f'<br><small style="color:#666">{e(it.customization)}</small>'
            rows.append(
                f"<tr><td>{label}</td>"
                f'<td style="text-align:center">{it.quantity}</td>'
                f'<td style="text-align:right">{e(fmt_money(it.line_total))}</td></tr>'
            )

        totals = [("Subtotal", fmt_money(priced.subtotal))] + _adjustments(priced)
        total_rows = [
            f'<tr><td colspan="2">{e(label)}</td>'
            f'<td style="text-align:right">{e(amount)}</td></tr>'
            for label, amount in totals
        ]
        total_rows.append(
            f'<tr><td colspan="2"><strong>Total</strong></td>'
            f'<td style="text-align:right"><strong>{e(fmt_money(priced.total))}</strong></td></tr>'
        )

        greeting = f"Thank you for your order, {e(c.name)}!" if c.name else "Thank you for your order!"
        heading, addr_lines = self._fulfilment(priced)
        details = [f"<p><strong>{e(heading)}</strong>"]
        if addr_lines:
            details.append("<br>" + "<br>".join(e(line) for line in addr_lines))
        details.append("</p>")
        packaging = "Premium" if o.packaging_tier is PackagingTier.PREMIUM else "Standard"
        details.append(f"<p>Packaging: {packaging}</p>")
        if c.phone:
            details.append(f"<p>Phone: {e(c.phone)}</p>")
        if o.notes:
            details.append(f"<p>Notes: {e(o.notes)}</p>")

        ins = self.instructions(priced)
        steps = "".join(f"<li>{self._step_markup(step, ins)}</li>" for step in ins.steps)

        return (
            "<html><body style=\"font-family:Arial,sans-serif;color:#222\">"
            f"<h2>{greeting}</h2>"
            f"<p>Order number: <strong>{e(o.order_id)}</strong><br>"
            f"Placed: {o.created_at:%Y-%m-%d %H:%M} UTC</p>"
            '<table cellpadding="6" style="border-collapse:collapse;min-width:320px">'
            "<tr><th style=\"text-align:left\">Item</th><th>Qty</th>"
            "<th style=\"text-align:right\">Amount</th></tr>"
            + "".join(rows) + "".join(total_rows) +
            "</table>"
            + "".join(details) +
            f"<h3>How to pay</h3><p>{e(ins.summary)}</p><ol>{steps}</ol>"
            f"<p>{e(self.config.shop_name)}</p>"
            "</body></html>"
        )

    @staticmethod
    def _step_markup(step: str, ins: Instructions) -> str:
        # the portal URL becomes a link, everything else is plain escaped text
        if ins.url and ins.url in step:
            before, _, after = step.partition(ins.url)
            link = f'<a href="{escape(ins.url)}">{escape(ins.url)}</a>'
            return escape(before) + link + escape(after)
        return escape(step)
