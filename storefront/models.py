"""Records handled by the stores and services."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _now():
    return datetime.now(timezone.utc)


class RoleType(str, enum.Enum):
    """Kinds of role an actor can hold within a merchant."""

    ADMIN = "admin"
    MERCHANT = "merchant"
    EMPLOYEE = "employee"


class DiscountType(str, enum.Enum):
    """How a merchant discount's value is applied."""

    PERCENTAGE = "percentage"
    FLAT = "flat"


@dataclass(frozen=True)
class Actor:
    id: uuid.UUID
    merchant_id: uuid.UUID
    email: str
    password_hash: str
    first_name: str
    last_name: str
    is_active: bool = True
    last_login: datetime | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ActorProfile:
    uid: uuid.UUID
    merchant_id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    is_active: bool = True
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class NewActor:
    merchant_id: uuid.UUID
    full_name: str
    email: str
    password: str


@dataclass(frozen=True)
class LoginActor:
    merchant_id: uuid.UUID
    email: str
    password: str


@dataclass(frozen=True)
class NewActorSession:
    refresh_token_id: uuid.UUID
    merchant_id: uuid.UUID
    actor_id: uuid.UUID
    refresh_token: str
    user_agent: str
    client_ip: str
    refresh_token_expires_at: datetime


@dataclass(frozen=True)
class Session:
    id: uuid.UUID
    merchant_id: uuid.UUID
    actor_id: uuid.UUID
    refresh_token: str
    user_agent: str
    client_ip: str
    expires_at: datetime
    is_blocked: bool = False
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class Role:
    id: uuid.UUID
    merchant_id: uuid.UUID
    role_type: RoleType


@dataclass(frozen=True)
class ActorRole:
    merchant_id: uuid.UUID
    actor_id: uuid.UUID
    role_id: uuid.UUID
    assigned_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class AuthUser:
    """The authenticated caller as carried by a request."""

    merchant_id: uuid.UUID
    email: str


@dataclass(frozen=True)
class Branch:
    id: uuid.UUID
    merchant_id: uuid.UUID
    name: str
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class Cart:
    id: uuid.UUID
    merchant_id: uuid.UUID
    branch_id: uuid.UUID
    actor_id: uuid.UUID | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class CartItem:
    id: uuid.UUID
    cart_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    addon_ids: tuple[uuid.UUID, ...] = ()
    applied_discount_id: uuid.UUID | None = None
    applied_discount_amount: float = 0.0


@dataclass(frozen=True)
class ProductCategory:
    id: uuid.UUID
    merchant_id: uuid.UUID
    name: str
    description: str | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class Product:
    id: uuid.UUID
    merchant_id: uuid.UUID
    category_id: uuid.UUID
    name: str
    description: str | None = None
    base_price: float = 0.0
    image_url: str | None = None
    track_inventory: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ProductDetail(Product):
    """A product together with its category's name."""

    category_name: str = ""


@dataclass(frozen=True)
class ProductAddon:
    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    price: float
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ProductInventory:
    id: uuid.UUID
    product_id: uuid.UUID
    branch_id: uuid.UUID
    quantity: int
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class InventoryItem:
    product_id: uuid.UUID
    product_name: str
    quantity: int


@dataclass(frozen=True)
class MerchantDiscount:
    id: uuid.UUID
    merchant_id: uuid.UUID
    discount_type: DiscountType
    value: float
    description: str | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    product_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    created_at: datetime = field(default_factory=_now)

    def is_active(self, now):
        """Whether ``now`` falls inside the discount's validity window."""
        if self.valid_from is not None and now < self.valid_from:
            return False
        if self.valid_to is not None and now > self.valid_to:
            return False
        return True

    def priority_for(self, product_id, category_id):
        """Return (priority, matches): product scope 1, category scope 2, merchant-wide 3."""
        if self.product_id is not None:
            return 1, self.product_id == product_id
        if self.category_id is not None:
            return 2, self.category_id == category_id
        return 3, True


@dataclass(frozen=True)
class ItemDetail:
    item: CartItem
    product: Product
    addons: tuple[ProductAddon, ...] = ()
    discount: MerchantDiscount | None = None


@dataclass(frozen=True)
class CartDetail:
    cart: Cart
    items: tuple[ItemDetail, ...] = ()