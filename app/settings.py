# app/settings.py
from __future__ import annotations
from decimal import Decimal
from typing import List, Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os

def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    # try JSON first
    try:
        parsed = json.loads(s)
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    except ValueError:
        pass
    # fallback: comma separated
    return [p.strip() for p in s.split(",") if p.strip()]

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",   # ignore unknown env keys instead of raising
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=8000,        validation_alias=AliasChoices("API_PORT",))
    cors_origins_raw: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))

    # --- Firebase (order rows) ---
    firebase_project_id: str = Field(
        default="checkout-intake",
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID",)
    )
    google_application_credentials: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS",)
    )
    orders_collection: str = Field(
        default="orders", validation_alias=AliasChoices("ORDERS_COLLECTION",)
    )

    # --- Mail ---
    smtp_host: Optional[str] = Field(default=None, validation_alias=AliasChoices("SMTP_HOST",))
    smtp_port: int = Field(default=587, validation_alias=AliasChoices("SMTP_PORT",))
    smtp_user: Optional[str] = Field(default=None, validation_alias=AliasChoices("SMTP_USER",))
    smtp_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SMTP_PASSWORD",)
    )
    smtp_starttls: bool = Field(default=True, validation_alias=AliasChoices("SMTP_STARTTLS",))
    smtp_timeout: float = Field(default=15.0, validation_alias=AliasChoices("SMTP_TIMEOUT",))
    # accept either EMAIL_FROM or MAIL_FROM
    email_from: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("EMAIL_FROM", "MAIL_FROM")
    )
    # shop inbox that gets a copy of every receipt (optional)
    order_notify_email: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ORDER_NOTIFY_EMAIL",)
    )

    # --- Pricing ---
    premium_packaging_fee: Decimal = Field(
        default=Decimal("20.00"), ge=0,
        validation_alias=AliasChoices("PREMIUM_PACKAGING_FEE",)
    )
    home_delivery_fee: Decimal = Field(
        default=Decimal("5.00"), ge=0,
        validation_alias=AliasChoices("HOME_DELIVERY_FEE",)
    )
    promo_discount_rate: Decimal = Field(
        default=Decimal("0.10"), ge=0, le=1,
        validation_alias=AliasChoices("PROMO_DISCOUNT_RATE",)
    )

    # --- Receipt / payment instructions ---
    shop_name: str = Field(default="Bangle Shop", validation_alias=AliasChoices("SHOP_NAME",))
    venmo_handle: str = Field(default="@bangle-shop", validation_alias=AliasChoices("VENMO_HANDLE",))
    revtrak_url: str = Field(
        default="https://example.revtrak.net/",
        validation_alias=AliasChoices("REVTRAK_URL",)
    )
    revtrak_forward_to: str = Field(
        default="orders@example.com",
        validation_alias=AliasChoices("REVTRAK_FORWARD_TO",)
    )
    pickup_location: str = Field(
        default="the central pickup table",
        validation_alias=AliasChoices("PICKUP_LOCATION",)
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)

# singleton
settings = Settings()

# Make sure GOOGLE_APPLICATION_CREDENTIALS is exported for firebase_admin
if settings.google_application_credentials:
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.google_application_credentials
