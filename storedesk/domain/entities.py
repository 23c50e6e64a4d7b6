from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# --- Enums / Literals ---
RoleType = Literal["customer", "staff", "admin", "manager"]
StaffRoleType = Literal["staff", "admin", "manager"]
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled", "refunded"]
PaymentMethod = Literal["Transfer", "Card"]
PaymentStatus = Literal["pending", "completed", "failed"]
RefundStatus = Literal["pending", "processed", "rejected"]
CustomerStatus = Literal["active", "inactive", "pending"]

# Roles whose registration grants an immediate session
SELF_ACTIVATING_ROLES: frozenset[str] = frozenset({"customer"})


class WireModel(BaseModel):
    """Base for records exchanged with the dashboard API (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def _record_id() -> Any:
    # Server documents use "_id", the profile endpoint uses "id"
    return Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")


# --- User & Auth ---

class Avatar(WireModel):
    public_id: str | None = None
    url: str | None = None


class UserProfile(WireModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"), serialization_alias="id")
    username: str = ""
    email: str
    role: RoleType
    full_name: str = Field(default="", alias="fullname")
    phone_number: str = Field(default="", alias="phoneNumber")
    avatar: Avatar | None = None


class RegistrationData(WireModel):
    username: str
    email: str
    password: str
    role: RoleType
    full_name: str = Field(default="", alias="fullname")
    phone_number: str = Field(default="", alias="phoneNumber")
    avatar: Avatar | None = None

    @property
    def self_activating(self) -> bool:
        return self.role in SELF_ACTIVATING_ROLES


# --- Collections ---

class Pagination(WireModel):
    current_page: int = Field(default=1, alias="currentPage")
    total_pages: int = Field(default=1, alias="totalPages")
    total_items: int = Field(default=0, alias="totalItems")


class ShippingAddress(WireModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", alias="zipCode")
    country: str = ""


class Customer(WireModel):
    id: str = _record_id()
    full_name: str = Field(default="", alias="fullname")
    email: str
    phone_number: str = Field(default="", alias="phoneNumber")
    role: Literal["customer"] = "customer"
    date_joined: datetime | None = Field(default=None, alias="dateJoined")
    orders: list[str] = Field(default_factory=list)
    shipping_address: ShippingAddress | None = Field(default=None, alias="shippingAddress")
    status: CustomerStatus = "active"
    avatar: Avatar | None = None


class StaffUser(WireModel):
    id: str = _record_id()
    username: str = ""
    full_name: str = Field(default="", alias="fullname")
    email: str
    phone_number: str = Field(default="", alias="phoneNumber")
    role: StaffRoleType
    status: str = "active"
    date_joined: datetime | None = Field(default=None, alias="dateJoined")
    avatar: str | None = None


# --- Orders ---

class OrderItem(WireModel):
    product: str
    name: str
    price: float
    quantity: int
    variant: str | None = None


class OrderCustomer(WireModel):
    id: str = _record_id()
    full_name: str = Field(default="", alias="fullname")
    email: str


class Refund(WireModel):
    amount: float
    status: RefundStatus
    reason: str | None = None


class Order(WireModel):
    id: str = _record_id()
    invoice_number: str = Field(alias="invoiceNumber")
    customer: OrderCustomer
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float = Field(alias="totalAmount")
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    tracking_number: str | None = Field(default=None, alias="trackingNumber")
    status: OrderStatus = "pending"
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    payment_status: PaymentStatus = Field(default="pending", alias="paymentStatus")
    payment_intent_id: str | None = Field(default=None, alias="paymentIntentId")
    refund: Refund | None = None
    order_time: datetime | None = Field(default=None, alias="orderTime")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class OrderDraft(WireModel):
    items: list[OrderItem]
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    payment_intent_id: str | None = Field(default=None, alias="paymentIntentId")


# --- Products ---

class ProductImage(WireModel):
    public_id: str
    url: str


class ProductVariant(WireModel):
    type: str
    value: str
    additional_price: float = Field(default=0, alias="additionalPrice")


class ProductRatings(WireModel):
    average: float = 0
    count: int = 0


class Product(WireModel):
    id: str = _record_id()
    name: str
    category: str = ""
    price: float
    stock: int = 0
    published: bool = False
    discount: float | None = None
    discounted_price: float | None = Field(default=None, alias="discountedPrice")
    description: str = ""
    sku: str = ""
    images: list[ProductImage] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    ratings: ProductRatings = Field(default_factory=ProductRatings)
    published_date: datetime | None = Field(default=None, alias="publishedDate")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


# --- Store settings ---

class StoreSettings(WireModel):
    id: str | None = Field(
        default=None, validation_alias=AliasChoices("_id", "id"), serialization_alias="_id"
    )
    store_name: str = Field(default="", alias="storeName")
    store_email: str = Field(default="", alias="storeEmail")
    store_contact: str = Field(default="", alias="storeContact")
    store_address: ShippingAddress = Field(default_factory=ShippingAddress, alias="storeAddress")
    number_of_images_per_product: int = Field(default=4, alias="numberOfImagesPerProduct")
    allow_auto_translation: bool = Field(default=False, alias="allowAutoTranslation")
    default_language: str = Field(default="en", alias="defaultLanguage")
    default_date_format: str = Field(default="dd/mm/yyyy", alias="defaultDateFormat")
    enable_newsletter: bool = Field(default=True, alias="enableNewsletter")
