"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


# Statuses that hold a room for availability purposes
ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN})

TERMINAL_BOOKING_STATUSES = frozenset({BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED})


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"
    WALLET = "wallet"


class PaymentKind(str, Enum):
    ADVANCE = "advance"
    PAYMENT = "payment"
    SETTLEMENT = "settlement"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class RoomCategory(str, Enum):
    LUXURY = "luxury"
    EXECUTIVE = "executive"
    FAMILY = "family"
    STANDARD = "standard"


class ViewType(str, Enum):
    MOUNTAIN = "mountain"
    CITY = "city"
    GARDEN = "garden"
    POOL = "pool"


class DateRangeFilter(str, Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this_week"
    NEXT_WEEK = "next_week"
    THIS_MONTH = "this_month"
