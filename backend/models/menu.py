from pydantic import Field
from typing import List, Optional

from models.base import CamelModel


class MenuItemCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., gt=0)
    category: str = "Main Course"
    image: Optional[str] = None
    ingredients: List[str] = []
    dietary_tags: List[str] = []
    preparation_time: int = Field(15, ge=0)
    is_available: bool = True


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = None
    image: Optional[str] = None
    ingredients: Optional[List[str]] = None
    dietary_tags: Optional[List[str]] = None
    preparation_time: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
