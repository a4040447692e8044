from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    CUSTOMER_SELLER = "customer+seller"
    ADMIN = "admin"

    @property
    def can_sell(self) -> bool:
        return self in (Role.SELLER, Role.CUSTOMER_SELLER)

    @classmethod
    def from_roles(cls, roles) -> "Role":
        """Collapse a stored roles list into the single role carried by a token."""
        roles = set(roles or [])
        if cls.ADMIN.value in roles:
            return cls.ADMIN
        if {cls.CUSTOMER.value, cls.SELLER.value} <= roles:
            return cls.CUSTOMER_SELLER
        if cls.SELLER.value in roles:
            return cls.SELLER
        if cls.CUSTOMER.value in roles:
            return cls.CUSTOMER
        raise ValueError("User has no assignable role")


class StoreStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class StoreInfo(BaseModel):
    store_name: str = Field(..., min_length=1)
    full_address: str = ""
    nik: str = ""
    photo_path: Optional[str] = None


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    store_info: Optional[StoreInfo] = None


class StoreInfoPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    store_name: Optional[str] = Field(None, min_length=1)
    full_address: Optional[str] = None
    nik: Optional[str] = None
    photo_path: Optional[str] = None


class UserPatch(BaseModel):
    """Fields the generic user update may write, with the same rules as registration."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    store_info: Optional[StoreInfo] = None
    suspended: Optional[bool] = None
    store_status: Optional[StoreStatus] = None


class ProfileUpdate(BaseModel):
    username: str


class StoreStatusUpdate(BaseModel):
    status: StoreStatus


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    reset_token: str


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    reset_token: str
    new_password: str = Field(..., min_length=6)
