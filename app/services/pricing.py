# app/services/pricing.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from .money import ZERO, plain, q2, to_money
from .orders import Order, PackagingTier, ShippingMethod


@dataclass(frozen=True)
class Rates:
    # premium_packaging_fee / home_delivery_fee are flat amounts,
    # promo_discount_rate is a fraction of the subtotal (0.10 = 10% off)
    premium_packaging_fee: Decimal
    home_delivery_fee: Decimal
    promo_discount_rate: Decimal

    def __post_init__(self):
        if self.premium_packaging_fee < 0 or self.home_delivery_fee < 0:
            raise ValueError("surcharges cannot be negative")
        if not (0 <= self.promo_discount_rate <= 1):
            raise ValueError("promo_discount_rate must be between 0 and 1")

    @classmethod
    def from_settings(cls, s) -> "Rates":
        return cls(
            premium_packaging_fee=to_money(s.premium_packaging_fee),
            home_delivery_fee=to_money(s.home_delivery_fee),
            promo_discount_rate=Decimal(str(s.promo_discount_rate)),
        )

    def as_dict(self) -> Dict[str, str]:
        return {
            "premiumPackagingFee": plain(self.premium_packaging_fee),
            "homeDeliveryFee": plain(self.home_delivery_fee),
            "promoDiscountRate": str(self.promo_discount_rate),
        }


@dataclass(frozen=True)
class PricedOrder:
    order: Order
    rates: Rates
    subtotal: Decimal
    packaging_surcharge: Decimal
    shipping_surcharge: Decimal
    discount: Decimal
    total: Decimal

    def breakdown(self) -> Dict[str, str]:
        return {
            "subtotal": plain(self.subtotal),
            "packagingSurcharge": plain(self.packaging_surcharge),
            "shippingSurcharge": plain(self.shipping_surcharge),
            "discount": plain(self.discount),
            "total": plain(self.total),
        }


def price(order: Order, rates: Rates) -> PricedOrder:
    """
    Server-side price for an order.

    Rounds twice: once when the line totals are summed into the subtotal,
    once on the final total. The discount is rounded on its own so the
    displayed lines always add up to the displayed total.
    """
    subtotal = q2(sum((it.line_total for it in order.items), ZERO))

    packaging = (
        q2(rates.premium_packaging_fee)
        if order.packaging_tier is PackagingTier.PREMIUM else ZERO
    )
    shipping = (
        q2(rates.home_delivery_fee)
        if order.shipping_method is ShippingMethod.HOME else ZERO
    )
    discount = q2(subtotal * rates.promo_discount_rate) if order.promo_applied else ZERO

    # rate <= 1 and non-negative lines keep this >= 0
    total = q2(subtotal - discount + packaging + shipping)

    return PricedOrder(
        order=order,
        rates=rates,
        subtotal=subtotal,
        packaging_surcharge=packaging,
        shipping_surcharge=shipping,
        discount=discount,
        total=total,
    )
