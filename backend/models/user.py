from pydantic import EmailStr, Field
from typing import Optional, Literal

from models.base import CamelModel


class SignupRequest(CamelModel):
    email: EmailStr
    password: str
    role: Literal["vendor", "customer"] = "vendor"

    business_name: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    cuisine: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminCredentials(CamelModel):
    email: str
    password: str = ""
