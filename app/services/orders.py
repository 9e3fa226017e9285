# app/services/orders.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .errors import ValidationError
from .money import plain, to_money

if TYPE_CHECKING:
    from .pricing import PricedOrder


class PackagingTier(str, Enum):
    STANDARD = "standard"
    PREMIUM = "premium"


class ShippingMethod(str, Enum):
    CENTRAL = "central"   # pickup at the central location
    HOME = "home"


class PaymentMethod(str, Enum):
    CASH = "cash"
    VENMO = "venmo"
    REVTRAK = "revtrak"


_SHIPPING_ALIASES = {"pickup": ShippingMethod.CENTRAL}

# per cart line; keeps every sum well inside the decimal context
MAX_QUANTITY = 1000
MAX_LINE_AMOUNT = Decimal("100000.00")


@dataclass(frozen=True)
class Customer:
    name: str
    email: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class Address:
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

    def lines(self) -> List[str]:
        """Postal lines, skipping empty parts: street, unit, 'City, ST 12345', country."""
        out = [p for p in (self.line1, self.line2) if p]
        locality = ", ".join(p for p in (self.city, self.state) if p)
        if self.zip:
            locality = f"{locality} {self.zip}".strip()
        if locality:
            out.append(locality)
        if self.country:
            out.append(self.country)
        return out

    def one_line(self) -> str:
        return ", ".join(self.lines())


@dataclass(frozen=True)
class CartItem:
    name: str
    quantity: int
    line_total: Decimal
    unit_price: Optional[Decimal] = None
    customization: Optional[str] = None


@dataclass(frozen=True)
class Order:
    order_id: str
    created_at: datetime
    customer: Customer
    items: Tuple[CartItem, ...]
    packaging_tier: PackagingTier
    shipping_method: ShippingMethod
    payment_method: PaymentMethod
    promo_applied: bool = False
    address: Optional[Address] = None
    notes: Optional[str] = None


# --- ID -----------------------------------------------------------------------

def new_order_id(now: Optional[datetime] = None) -> str:
    """
    ORD-YYYYMMDD-HHMMSS-XXXXXX. The random suffix keeps two orders placed in
    the same second apart.
    """
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d-%H%M%S}-{uuid.uuid4().hex[:6].upper()}"


# --- Field helpers ------------------------------------------------------------

def _first(raw: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key present (and not None) in raw."""
    for k in keys:
        v = raw.get(k)
        if v is not None:
            return v
    return None


def _text(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        v = str(v)
    if not isinstance(v, str):
        return None
    v = v.strip()
    return v or None


def _flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in ("true", "1", "yes", "y", "on")
    if isinstance(v, (int, float)):
        return v != 0
    return False


def _choice(v: Any, enum_cls, field: str, default=None, aliases=None):
    if v is None or (isinstance(v, str) and not v.strip()):
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    key = str(v).strip().lower()
    if aliases and key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from None


def _quantity(v: Any, idx: int) -> int:
    if v is None or v == "":
        return 1
    if isinstance(v, bool):
        raise ValidationError(f"item {idx}: quantity must be a positive whole number")
    try:
        q = Decimal(str(v).strip())
    except ArithmeticError:
        raise ValidationError(f"item {idx}: quantity must be a positive whole number") from None
    if not q.is_finite() or q != q.to_integral_value() or q < 1:
        raise ValidationError(f"item {idx}: quantity must be a positive whole number")
    if q > MAX_QUANTITY:
        raise ValidationError(f"item {idx}: quantity cannot exceed {MAX_QUANTITY}")
    return int(q)


def _amount(v: Any, idx: int, label: str) -> Optional[Decimal]:
    if v is None or v == "":
        return None
    try:
        amt = to_money(v)
    except ValueError:
        raise ValidationError(f"item {idx}: {label} is not a valid amount") from None
    if amt < 0:
        raise ValidationError(f"item {idx}: {label} cannot be negative")
    if amt > MAX_LINE_AMOUNT:
        raise ValidationError(f"item {idx}: {label} is too large")
    return amt


def _item(raw: Any, idx: int) -> CartItem:
    if not isinstance(raw, dict):
        raise ValidationError(f"item {idx} must be an object")
    name = _text(raw.get("name"))
    if not name:
        raise ValidationError(f"item {idx}: name is required")
    qty = _quantity(_first(raw, "quantity", "qty"), idx)

    line_total = _amount(_first(raw, "totalPrice", "lineTotal"), idx, "totalPrice")
    unit = _amount(_first(raw, "price", "unitPrice"), idx, "price")
    if line_total is None:
        if unit is None:
            raise ValidationError(f"item {idx}: a price or totalPrice is required")
        line_total = to_money(unit * qty)
        if line_total > MAX_LINE_AMOUNT:
            raise ValidationError(f"item {idx}: line total is too large")

    return CartItem(
        name=name,
        quantity=qty,
        line_total=line_total,
        unit_price=unit,
        customization=_text(raw.get("customization")),
    )


def _address(raw: Any) -> Optional[Address]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return Address(line1=_text(raw)) if _text(raw) else None
    if not isinstance(raw, dict):
        return None
    addr = Address(
        line1=_text(raw.get("line1")),
        line2=_text(raw.get("line2")),
        city=_text(raw.get("city")),
        state=_text(raw.get("state")),
        zip=_text(_first(raw, "zip", "postalCode")),
        country=_text(raw.get("country")),
    )
    return addr if addr.lines() else None


# --- Normalizer ---------------------------------------------------------------

def normalize(
    raw: Any,
    *,
    order_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Order:
    """
    Turn a raw checkout submission into an Order.

    Accepts the storefront spelling (cart, appliedPromo, selectedPackaging,
    selectedShipping) and the canonical one (items, promoApplied,
    packagingTier, shippingMethod). Unknown keys are ignored.
    Line totals are always derived here; the client's subtotal is never read.
    """
    if not isinstance(raw, dict):
        raise ValidationError("submission must be a JSON object")

    items_raw = _first(raw, "items", "cart")
    if not isinstance(items_raw, list) or not items_raw:
        raise ValidationError("cart must contain at least one item")
    items = tuple(_item(it, i) for i, it in enumerate(items_raw, start=1))

    email = _text(raw.get("email"))
    if not email:
        raise ValidationError("email is required")

    payment = _choice(raw.get("paymentMethod"), PaymentMethod, "paymentMethod")
    packaging = _choice(
        _first(raw, "packagingTier", "selectedPackaging"),
        PackagingTier, "packagingTier", default=PackagingTier.STANDARD,
    )
    shipping = _choice(
        _first(raw, "shippingMethod", "selectedShipping"),
        ShippingMethod, "shippingMethod", default=ShippingMethod.CENTRAL,
        aliases=_SHIPPING_ALIASES,
    )

    created_at = created_at or datetime.now(timezone.utc)
    return Order(
        order_id=order_id or new_order_id(created_at),
        created_at=created_at,
        customer=Customer(
            name=_text(raw.get("name")) or "",
            email=email,
            phone=_text(raw.get("phone")),
        ),
        items=items,
        packaging_tier=packaging,
        shipping_method=shipping,
        payment_method=payment,
        promo_applied=_flag(_first(raw, "promoApplied", "appliedPromo")),
        address=_address(raw.get("address")),
        notes=_text(raw.get("notes")),
    )


# --- Row shape ----------------------------------------------------------------

def _item_summary(it: CartItem) -> str:
    s = f"{it.name} x{it.quantity}"
    if it.customization:
        s += f" ({it.customization})"
    return f"{s} = {plain(it.line_total)}"


def order_record(priced: "PricedOrder") -> Dict[str, Any]:
    """Flat row written to the order store, one column per field."""
    o = priced.order
    return {
        "orderId": o.order_id,
        "createdAt": o.created_at.isoformat(),
        "name": o.customer.name,
        "email": o.customer.email,
        "phone": o.customer.phone,
        "address": o.address.one_line() if o.address else None,
        "items": "; ".join(_item_summary(it) for it in o.items),
        "lines": [
            {
                "name": it.name,
                "quantity": it.quantity,
                "unitPrice": plain(it.unit_price) if it.unit_price is not None else None,
                "lineTotal": plain(it.line_total),
                "customization": it.customization,
            }
            for it in o.items
        ],
        "packagingTier": o.packaging_tier.value,
        "shippingMethod": o.shipping_method.value,
        "paymentMethod": o.payment_method.value,
        "promoApplied": o.promo_applied,
        "notes": o.notes,
        **priced.breakdown(),
    }
