# app/schemas/orders.py
from typing import List, Optional
from pydantic import BaseModel

class PaymentInstructionsOut(BaseModel):
    method: str
    summary: str
    steps: List[str]
    url: Optional[str] = None

class IntakeOut(BaseModel):
    success: bool = True
    orderId: str
    total: str
    paymentMethod: str
    paymentInstructions: PaymentInstructionsOut
    emailSent: bool
    # present only when emailSent is false
    warning: Optional[str] = None

class ErrorOut(BaseModel):
    success: bool = False
    error: str
    code: str

class QuoteLineOut(BaseModel):
    name: str
    quantity: int
    lineTotal: str

class QuoteOut(BaseModel):
    subtotal: str
    packagingSurcharge: str
    shippingSurcharge: str
    discount: str
    total: str
    lines: List[QuoteLineOut]

class PricingOut(BaseModel):
    premiumPackagingFee: str
    homeDeliveryFee: str
    promoDiscountRate: str
