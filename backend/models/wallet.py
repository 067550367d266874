from pydantic import Field
from typing import Optional

from models.base import CamelModel


class WithdrawalRequest(CamelModel):
    """Shared by vendor and platform withdrawals; bank fields are optional for the platform."""

    amount: Optional[float] = Field(None, allow_inf_nan=False)
    password: Optional[str] = None
    bank_code: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None
