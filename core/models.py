"""Domain entities and the application-state holder.

Entities are immutable dataclasses; every change produces a new instance and
the owning collection is replaced as a whole. Serialized field names follow the
camelCase keys of the browser build so backups can move between the two.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from core.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_EXPENSE_CATEGORY,
    DEFAULT_PRODUCT_CATEGORY,
    DEFAULT_SHOP_NAME,
    LOCAL_TZ,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaymentMethod(str, Enum):
    CASH = "Dinheiro"
    CARD_TERMINAL = "TPA"
    BANK_TRANSFER = "Transferência"
    MOBILE_WALLET_EXPRESS = "Multicaixa Express"


class SaleStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    REFUNDED = "refunded"


def local_now() -> datetime:
    """Current time in the shop's timezone."""
    return datetime.now(LOCAL_TZ)


def new_id(existing: Iterable[str] = ()) -> str:
    """Short uppercase identifier, unique within `existing`."""
    taken = set(existing)
    while True:
        candidate = uuid.uuid4().hex[:6].upper()
        if candidate not in taken:
            return candidate


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)


def _require(data: Any, *keys: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    for key in keys:
        if data.get(key) in (None, ""):
            raise ValueError(f"missing field: {key}")
    return data


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float = 0.0
    cost: float = 0.0
    stock: int = 0
    manage_stock: bool = False
    category: str = DEFAULT_PRODUCT_CATEGORY
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "cost": self.cost,
            "stock": self.stock,
            "manageStock": self.manage_stock,
            "category": self.category,
        }
        if self.image:
            data["image"] = self.image
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Product":
        data = _require(data, "id", "name")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            price=_as_float(data.get("price")),
            cost=_as_float(data.get("cost")),
            stock=_as_int(data.get("stock")),
            manage_stock=_as_bool(data.get("manageStock", False)),
            category=_as_str(data.get("category"), DEFAULT_PRODUCT_CATEGORY) or DEFAULT_PRODUCT_CATEGORY,
            image=_optional_str(data.get("image")),
        )


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    phone: str = ""
    total_spent: float = 0.0
    last_visit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "totalSpent": self.total_spent,
        }
        if self.last_visit:
            data["lastVisit"] = self.last_visit
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Customer":
        data = _require(data, "id", "name")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            phone=_as_str(data.get("phone")),
            total_spent=max(0.0, _as_float(data.get("totalSpent"))),
            last_visit=_optional_str(data.get("lastVisit")),
        )


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    name: str
    price: float
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SaleItem":
        data = _require(data, "productId")
        return cls(
            product_id=str(data["productId"]),
            name=_as_str(data.get("name")),
            price=_as_float(data.get("price")),
            quantity=_as_int(data.get("quantity"), 1),
        )


@dataclass(frozen=True)
class Sale:
    id: str
    date: str
    items: Tuple[SaleItem, ...]
    total: float
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: SaleStatus = SaleStatus.COMPLETED
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    refunded_at: Optional[str] = None
    refund_reason: Optional[str] = None

    @property
    def is_refunded(self) -> bool:
        return self.status == SaleStatus.REFUNDED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "paymentMethod": self.payment_method.value,
            "status": self.status.value,
        }
        optional = {
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "refundedAt": self.refunded_at,
            "refundReason": self.refund_reason,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Sale":
        data = _require(data, "id", "date")
        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise TypeError("sale items must be a list")
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            items=tuple(SaleItem.from_dict(item) for item in raw_items),
            total=_as_float(data.get("total")),
            payment_method=PaymentMethod(data.get("paymentMethod") or PaymentMethod.CASH.value),
            status=SaleStatus(data.get("status") or SaleStatus.COMPLETED.value),
            customer_id=_optional_str(data.get("customerId")),
            customer_name=_optional_str(data.get("customerName")),
            refunded_at=_optional_str(data.get("refundedAt")),
            refund_reason=_optional_str(data.get("refundReason")),
        )


@dataclass(frozen=True)
class Expense:
    id: str
    date: str
    description: str
    amount: float
    category: str = DEFAULT_EXPENSE_CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Expense":
        data = _require(data, "id", "date")
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            description=_as_str(data.get("description")),
            amount=_as_float(data.get("amount")),
            category=_as_str(data.get("category")) or DEFAULT_EXPENSE_CATEGORY,
        )


@dataclass(frozen=True)
class ShopConfig:
    name: str = DEFAULT_SHOP_NAME
    phone: str = ""
    address: str = ""
    nif: str = ""
    currency: str = DEFAULT_CURRENCY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "nif": self.nif,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ShopConfig":
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return cls(
            name=_as_str(data.get("name")) or DEFAULT_SHOP_NAME,
            phone=_as_str(data.get("phone")),
            address=_as_str(data.get("address")),
            nif=_as_str(data.get("nif")),
            currency=_as_str(data.get("currency")) or DEFAULT_CURRENCY,
        )


@dataclass(frozen=True)
class Session:
    company_name: str
    last_login: str
    token: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "companyName": self.company_name,
            "lastLogin": self.last_login,
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Session":
        data = _require(data, "companyName", "token")
        return cls(
            company_name=str(data["companyName"]),
            last_login=_as_str(data.get("lastLogin")),
            token=str(data["token"]),
        )


def collection_from_list(raw: Any, factory: Callable[[Any], T], label: str) -> List[T]:
    """Build a collection, dropping records that cannot be understood."""
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Ignoring %s snapshot: expected a list, got %s", label, type(raw).__name__)
        return []
    items: List[T] = []
    for entry in raw:
        try:
            items.append(factory(entry))
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("Skipping malformed %s record %r: %s", label, entry, e)
    return items


@dataclass
class AppState:
    """Single owner of every collection for the running session."""

    products: List[Product] = field(default_factory=list)
    customers: List[Customer] = field(default_factory=list)
    sales: List[Sale] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    shop_config: ShopConfig = field(default_factory=ShopConfig)
    session: Optional[Session] = None

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_customer(self, customer_id: Optional[str]) -> Optional[Customer]:
        if not customer_id:
            return None
        return next((c for c in self.customers if c.id == customer_id), None)

    def find_sale(self, sale_id: str) -> Optional[Sale]:
        return next((s for s in self.sales if s.id == sale_id), None)
