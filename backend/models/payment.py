from typing import Optional

from models.base import CamelModel


class PaymentInitialize(CamelModel):
    order_id: Optional[str] = None
    email: Optional[str] = None
    # ignored: the stored order amount is charged
    amount: Optional[float] = None


class PaymentVerify(CamelModel):
    reference: Optional[str] = None
