from pydantic import BaseModel, Field
from typing import Optional


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: int = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    discount: int = Field(0, ge=0, le=100)
    description: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[int] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    discount: Optional[int] = Field(None, ge=0, le=100)
    description: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
