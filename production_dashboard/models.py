"""
Record types held by the store.

Each record converts to and from the camelCase dict shape used in the
local cache and by the remote sheet endpoint.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any

from .dates import normalise_date

logger = logging.getLogger(__name__)


def safe_int(val: Any, default: int | None = 0) -> int | None:
    """Coerce a sheet cell to int, returning `default` for blanks/garbage.

    Sheets hand numbers back as ints, floats or strings depending on the
    cell format, so "120", 120.0 and 120 all map to 120.
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return default
    try:
        return int(float(val))
    except (ValueError, TypeError, OverflowError):
        # OverflowError: "1e999" / Infinity cells
        logger.warning("Could not parse integer value: %r", val)
        return default


def _optional_str(val: Any) -> str | None:
    if val is None:
        return None
    s = str(val)
    return s or None


@dataclass
class ProductionEntry:
    id: str
    date: str
    category: str
    process: str
    product_name: str
    plan_quantity: int = 0
    actual_quantity: int = 0
    batch_no: str | None = None
    manpower: int | None = None
    last_updated_by: str = ""
    updated_at: str = ""

    @property
    def is_plan_only(self) -> bool:
        return self.actual_quantity == 0

    @property
    def month(self) -> str:
        return self.date[:7]

    def updated(self, **changes) -> "ProductionEntry":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict) -> "ProductionEntry":
        return cls(
            id=str(data.get("id", "")),
            date=normalise_date(str(data.get("date", ""))),
            category=str(data.get("category", "")),
            process=str(data.get("process", "")),
            product_name=str(data.get("productName", "")),
            plan_quantity=safe_int(data.get("planQuantity")),
            actual_quantity=safe_int(data.get("actualQuantity")),
            batch_no=_optional_str(data.get("batchNo")),
            manpower=safe_int(data.get("manpower"), default=None),
            last_updated_by=str(data.get("lastUpdatedBy") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "category": self.category,
            "process": self.process,
            "productName": self.product_name,
            "planQuantity": self.plan_quantity,
            "actualQuantity": self.actual_quantity,
            "batchNo": self.batch_no,
            "manpower": self.manpower,
            "lastUpdatedBy": self.last_updated_by,
            "updatedAt": self.updated_at,
        }


@dataclass
class OffDay:
    date: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "OffDay":
        return cls(
            date=normalise_date(str(data.get("date", ""))),
            description=str(data.get("description") or ""),
        )

    def to_dict(self) -> dict:
        return {"date": self.date, "description": self.description}


@dataclass
class User:
    id: str
    name: str
    username: str
    email: str
    role: str
    password: str = field(default="", repr=False)

    def has_role(self, roles) -> bool:
        return self.role in roles

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            username=str(data.get("username") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "operator"),
            password=str(data.get("password") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "password": self.password,
        }


@dataclass
class ActivityLog:
    id: str
    user_id: str
    user_name: str
    action: str
    details: str
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict) -> "ActivityLog":
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("userId", "")),
            user_name=str(data.get("userName") or ""),
            action=str(data.get("action") or ""),
            details=str(data.get("details") or ""),
            timestamp=str(data.get("timestamp") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "action": self.action,
            "details": self.details,
            "timestamp": self.timestamp,
        }


def new_id() -> str:
    return uuid.uuid4().hex
