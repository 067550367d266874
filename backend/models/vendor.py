from pydantic import ConfigDict
from typing import Optional

from models.base import CamelModel


class VendorProfileUpdate(CamelModel):
    # opening hours, notification and privacy preferences pass through as-is
    model_config = ConfigDict(extra="allow")

    business_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    cuisine: Optional[str] = None
    description: Optional[str] = None


class VendorStatusUpdate(CamelModel):
    status: str
    is_verified: Optional[bool] = None
