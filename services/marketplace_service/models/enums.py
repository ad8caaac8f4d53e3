"""Enum definitions for marketplace models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class MarketStatus(str, enum.Enum):
    UPPER = "UPPER"
    DOWN = "DOWN"


class AuthStatus(str, enum.Enum):
    TOBEAUDITED = "TOBEAUDITED"
    PASS = "PASS"
    REFUSED = "REFUSED"


class MemberRole(str, enum.Enum):
    MEMBER = "MEMBER"
    SELLER = "SELLER"


class StoreStatus(str, enum.Enum):
    APPLYING = "APPLYING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    REFUSED = "REFUSED"


class OrderStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PayStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"


class PaymentType(str, enum.Enum):
    ORDER = "ORDER"
    STORE_FEE = "STORE_FEE"


class EvaluationGrade(str, enum.Enum):
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    BAD = "BAD"


class EvaluationStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class AuditEntityType(str, enum.Enum):
    CATEGORY = "category"
    BRAND = "brand"
    SPECIFICATION = "specification"
    GOODS = "goods"
    STORE = "store"
    MEMBER = "member"
    ORDER = "order"
    EVALUATION = "evaluation"
