"""Admin-editable system settings."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class SystemSettings(BaseModel):
    """Pricing and switches stored in the single settings row."""

    model_config = ConfigDict(from_attributes=True)

    id: int = 1
    base_fare: Decimal = Field(default=Decimal("5.00"), ge=0)
    price_per_mile: Decimal = Field(default=Decimal("1.50"), ge=0)
    price_per_minute: Decimal = Field(default=Decimal("0.50"), ge=0)
    maintenance_mode: bool = False
    enable_notifications: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PricingUpdate(BaseModel):
    base_fare: Decimal = Field(ge=0)
    price_per_mile: Decimal = Field(ge=0)
    price_per_minute: Decimal = Field(ge=0)


class SystemSwitchesUpdate(BaseModel):
    maintenance_mode: bool
    enable_notifications: bool
