"""
Pydantic schemas for the backend REST API.

These mirror the components of the backend's OpenAPI document. Unknown
response fields are ignored so backend additions never break page rendering.
"""
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Schema(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ============================================================
# Catalog
# ============================================================

class ProductSchema(Schema):
    id: int
    name: str
    slug: str = ""
    description: str = ""
    category: str = ""
    price: Optional[Decimal] = None
    price_type: Literal["fixed", "quote"] = "fixed"
    images: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    specs: Dict[str, str] = Field(default_factory=dict)
    rating: Optional[float] = None
    reviews: int = 0

    @property
    def is_quote(self) -> bool:
        return self.price_type == "quote"


# ============================================================
# Orders & payments
# ============================================================

class AddressSchema(Schema):
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    pincode: str


class SavedAddressSchema(AddressSchema):
    id: int
    address_type: str = "shipping"
    is_default: bool = False


class OrderItemSchema(Schema):
    product_id: int
    quantity: int = Field(ge=1)


class OrderCreateSchema(Schema):
    first_name: str
    last_name: str
    email: str
    phone: str
    company_name: Optional[str] = None
    gstin: Optional[str] = None
    billing_address: AddressSchema
    shipping_address: AddressSchema
    items: List[OrderItemSchema]
    save_info: bool = False


class OrderInitSchema(Schema):
    order_id: int
    razorpay_order_id: str
    amount: Decimal
    currency: str = "INR"
    key_id: str


class PaymentVerifySchema(Schema):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


# ============================================================
# Quotes
# ============================================================

class QuoteInputSchema(Schema):
    product_id: int
    email: str
    phone: str
    quantity: int = Field(default=1, ge=1)
    message: str = ""


class QuoteSuccessSchema(Schema):
    id: Optional[int] = None
    message: str = ""


# ============================================================
# Users & tokens
# ============================================================

class UserOutSchema(Schema):
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    company_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserRegisterSchema(Schema):
    email: str
    password: str
    first_name: str
    last_name: str = ""
    company_name: Optional[str] = None


class AuthResponseSchema(Schema):
    access: str
    refresh: str
    user: UserOutSchema


class TokenObtainPairInputSchema(Schema):
    email: str
    password: str


class TokenObtainPairOutputSchema(Schema):
    access: str
    refresh: str


class TokenRefreshInputSchema(Schema):
    refresh: str


class TokenRefreshOutputSchema(Schema):
    access: str
    refresh: Optional[str] = None


class TokenVerifyInputSchema(Schema):
    token: str
