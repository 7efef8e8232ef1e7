"""Enumerated values stored in the shop database."""

from decimal import Decimal
from enum import Enum


class ProductStatus(str, Enum):
    AVAILABLE = "available"
    OUT_OF_STOCK = "out_of_stock"


# Filter value accepted by the product list for inactive products
DISCONTINUED = "discontinued"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    TRANSFER = "transfer"
    POINTS = "points"


class BillingStatus(str, Enum):
    NOT_INVOICED = "not_invoiced"
    INVOICED = "invoiced"


class InvoiceStatus(str, Enum):
    ISSUED = "issued"
    VOID = "void"
    PAID = "paid"


class LoyaltyTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class PointsReason(str, Enum):
    ORDER_COMPLETED = "order_completed"
    POINTS_REDEMPTION = "points_redemption"


class StaffRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


# Highest threshold first; a customer gets the first tier whose floor they reach
TIER_THRESHOLDS = (
    (200, LoyaltyTier.PLATINUM),
    (100, LoyaltyTier.GOLD),
    (50, LoyaltyTier.SILVER),
    (0, LoyaltyTier.BRONZE),
)

# One loyalty point per this many currency units of an order total
POINTS_PER_CURRENCY = Decimal("5")

ACTIVE_ORDER_STATUSES = (OrderStatus.PENDING.value, OrderStatus.PREPARING.value)

ORDER_TRANSITIONS = {
    OrderStatus.PENDING.value: {
        OrderStatus.PREPARING.value,
        OrderStatus.COMPLETED.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.PREPARING.value: {
        OrderStatus.COMPLETED.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.COMPLETED.value: set(),
    OrderStatus.CANCELLED.value: set(),
}

INVOICE_NUMBER_PREFIX = "F-"
INVOICE_NUMBER_DIGITS = 6

PLACEHOLDER_IMAGE_MARKERS = ("placeholder", "/placeholder.svg")
