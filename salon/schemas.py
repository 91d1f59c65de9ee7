import enum
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator
from pydantic.config import ConfigDict

from .utils import sanitize_text


class OrderStatus(str, enum.Enum):
    PROCESSING = "Processing"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class AppointmentStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


def _required_text(v: str) -> str:
    v = sanitize_text(v)
    if not v:
        raise ValueError("must not be blank")
    return v


def _optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return sanitize_text(v) or None


# -------------------- Auth --------------------

class SignupIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=40)
    password: str = Field(..., min_length=1)

    @field_validator("name")
    def name_not_blank(cls, v: str):
        return _required_text(v)

    @field_validator("email")
    def normalise_email(cls, v: str):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email")
        return v

    @field_validator("phone")
    def clean_phone(cls, v: Optional[str]):
        return _optional_text(v)


class LoginIn(BaseModel):
    email: str
    password: str

    @field_validator("email")
    def normalise_email(cls, v: str):
        return v.strip().lower()


class AdminLoginIn(BaseModel):
    username: str
    password: str


# -------------------- Catalog --------------------

class ProductRead(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    price: Decimal
    description: Optional[str] = None
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ServiceRead(BaseModel):
    id: int
    name: str
    category: str
    price: Decimal
    duration_min: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class ServiceIn(BaseModel):
    name: str = Field(..., max_length=160)
    category: str = Field(..., max_length=80)
    price: Decimal = Field(..., ge=Decimal("0"))
    duration_min: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    @field_validator("name", "category")
    def not_blank(cls, v: str):
        return _required_text(v)

    @field_validator("description")
    def clean_description(cls, v: Optional[str]):
        return _optional_text(v)

    @field_validator("duration_min")
    def zero_means_unset(cls, v: Optional[int]):
        return v or None


class TeamMemberRead(BaseModel):
    id: int
    name: str
    role: Optional[str] = None
    specialization: Optional[str] = None
    experience_years: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# -------------------- Cart --------------------

class CartAddIn(BaseModel):
    product_id: PositiveInt
    qty: PositiveInt = 1


class CartUpdateIn(BaseModel):
    product_id: PositiveInt
    # zero or negative removes the line
    qty: int


class CartRemoveIn(BaseModel):
    product_id: PositiveInt


class CartLine(BaseModel):
    product_id: int
    name: str
    price: Decimal
    qty: int
    image_url: Optional[str] = None


# -------------------- Orders --------------------

class CheckoutIn(BaseModel):
    customer_name: str = Field(..., max_length=120)
    phone: str = Field(..., max_length=40)
    email: Optional[str] = Field(default=None, max_length=255)
    address: str

    @field_validator("customer_name", "phone", "address")
    def not_blank(cls, v: str):
        return _required_text(v)

    @field_validator("email")
    def blank_email_is_none(cls, v: Optional[str]):
        v = _optional_text(v)
        return v.lower() if v else None


class OrderPlaced(BaseModel):
    ok: bool = True
    orderId: int
    status: OrderStatus


class OrderItemRead(BaseModel):
    product_id: int
    qty: int
    price_each: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderStatusRead(BaseModel):
    id: int
    status: str
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    user_id: int
    customer_name: str
    phone: str
    email: Optional[str] = None
    address: str
    total_amount: Decimal
    status: str
    payment_screenshot: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetail(OrderRead):
    items: list[OrderItemRead] = []


class StatusUpdate(BaseModel):
    # validated against the target's own state set by the crud layer
    status: str


# -------------------- Appointments --------------------

class AppointmentIn(BaseModel):
    client_name: str = Field(..., max_length=120)
    phone: str = Field(..., max_length=40)
    email: Optional[str] = Field(default=None, max_length=255)
    service_id: PositiveInt
    appt_date: date
    appt_time: time
    notes: Optional[str] = None

    @field_validator("client_name", "phone")
    def not_blank(cls, v: str):
        return _required_text(v)

    @field_validator("email", "notes")
    def clean_optional(cls, v: Optional[str]):
        return _optional_text(v)


class AppointmentRead(BaseModel):
    id: int
    client_name: str
    phone: str
    email: Optional[str] = None
    service_id: int
    service_name: str
    service_category: str
    appt_date: date
    appt_time: time
    notes: Optional[str] = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
