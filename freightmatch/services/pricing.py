"""
Commission arithmetic.

The commission rate lives in the single AdminSettings row; handlers get it
as a PricingConfig through `get_pricing_config` and pass it explicitly to
the functions below.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from fastapi import Depends
from sqlalchemy.orm import Session

from freightmatch.core.config import settings
from freightmatch.db.base import get_db
from freightmatch.db.models.admin_settings import AdminSettings

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PricingConfig:
    commission_rate: Decimal  # percent, e.g. Decimal("10")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise along
    return Decimal(str(value))


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value) -> str:
    """Two-decimal string: 1100 -> "1100.00"."""
    return str(quantize(value))


def commission_amount(offer_amount, config: PricingConfig) -> Decimal:
    return quantize(to_decimal(offer_amount) * config.commission_rate / HUNDRED)


def client_amount(offer_amount, config: PricingConfig) -> Decimal:
    """What the client pays for an offer: offer * (1 + rate/100)."""
    amount = to_decimal(offer_amount)
    return quantize(amount + amount * config.commission_rate / HUNDRED)


def qualify_split(transporter_amount, platform_fee) -> tuple[Decimal, Decimal, Decimal]:
    """Coordinator price split -> (transporter_amount, platform_fee, client_total)."""
    transporter = quantize(transporter_amount)
    fee = quantize(platform_fee)
    return transporter, fee, transporter + fee


def get_admin_settings(db: Session) -> AdminSettings:
    """Return the settings row, creating it from the configured default on first use."""
    row = db.query(AdminSettings).first()
    if row is None:
        row = AdminSettings(commission_percentage=to_decimal(settings.DEFAULT_COMMISSION_PERCENTAGE))
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def get_pricing_config(db: Session = Depends(get_db)) -> PricingConfig:
    row = get_admin_settings(db)
    return PricingConfig(commission_rate=to_decimal(row.commission_percentage))
