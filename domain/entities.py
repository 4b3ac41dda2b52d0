"""Domain Entities - Aggregates"""
import random
import string
import time
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timedelta
from typing import Optional, List, Tuple
from decimal import Decimal

from domain.enums import (
    BookingStatus, PaymentStatus, PaymentMethod, PaymentKind, RoomStatus, RoomCategory, ViewType,
    ACTIVE_BOOKING_STATUSES, TERMINAL_BOOKING_STATUSES,
)
from domain.exceptions import (
    InvalidDateRangeError, InvalidAmountError, ExceedsBalanceError, InvalidTransitionError,
)
from domain.value_objects import DateRange, GuestCount, to_money, ZERO


# Status edits allowed through a plain update; check-in/out have their own operations
EDITABLE_STATUS_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.PENDING, BookingStatus.CANCELLED},
    BookingStatus.CHECKED_IN: set(),
    BookingStatus.CHECKED_OUT: set(),
    BookingStatus.CANCELLED: set(),
}


class RoomType(BaseModel):
    """RoomType Catalog Entity"""

    room_type_id: UUID = Field(default_factory=uuid4)
    name: str
    code: str
    category: RoomCategory
    description: Optional[str] = None
    max_occupancy: int = Field(ge=1)
    base_price: Decimal = Field(ge=0)
    extra_person_price: Optional[Decimal] = None
    amenities: List[str] = []
    view_type: ViewType = ViewType.CITY
    smoking_allowed: bool = False
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    def can_accommodate(self, guests: int) -> bool:
        return self.is_active and self.max_occupancy >= guests

    def reprice(
        self,
        base_price: Optional[Decimal] = None,
        extra_person_price: Optional[Decimal] = None,
        amenities: Optional[List[str]] = None
    ) -> None:
        """Edit price or amenities; existing bookings keep their own rate"""
        if base_price is not None:
            if base_price < 0:
                raise ValueError("Base price cannot be negative")
            self.base_price = to_money(base_price)
        if extra_person_price is not None:
            self.extra_person_price = to_money(extra_person_price)
        if amenities is not None:
            # de-duplicated, first occurrence wins
            self.amenities = list(dict.fromkeys(amenities))
        self.modified_at = datetime.utcnow()


class Room(BaseModel):
    """Room Entity - a physical unit of a room type"""

    room_id: UUID = Field(default_factory=uuid4)
    room_number: str
    room_type_id: UUID
    floor: int
    status: RoomStatus = RoomStatus.AVAILABLE
    notes: Optional[str] = None
    image_url: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    def is_bookable(self) -> bool:
        """Rooms offered by availability search"""
        return self.status in (RoomStatus.AVAILABLE, RoomStatus.RESERVED)

    def set_status(self, status: RoomStatus) -> None:
        self.status = status
        self.modified_at = datetime.utcnow()


class Guest(BaseModel):
    """Guest directory entry"""

    guest_id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    id_number: Optional[str] = None
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match on name, email or phone"""
        needle = needle.lower()
        return any(
            needle in value.lower()
            for value in (self.name, self.email, self.phone or "")
        )


class PaymentEvent(BaseModel):
    """Immutable record of funds applied toward a booking"""

    payment_id: UUID = Field(default_factory=uuid4)
    booking_id: UUID
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH
    kind: PaymentKind = PaymentKind.PAYMENT
    transaction_id: Optional[str] = None
    processed_by: str
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        frozen = True


class CheckInRecord(BaseModel):
    actual_check_in: datetime
    room_key_number: Optional[str] = None
    processed_by: str
    notes: Optional[str] = None


class CheckOutRecord(BaseModel):
    actual_check_out: datetime
    actual_nights: int
    extra_charges: Decimal
    settlement_method: PaymentMethod
    processed_by: str
    notes: Optional[str] = None


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    booking_number: str

    # References
    guest_id: UUID
    room_id: UUID

    # Value Objects
    date_range: DateRange
    guest_count: GuestCount

    # Ledger
    total_nights: int
    room_rate: Decimal
    extra_charges: Decimal = ZERO
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    outstanding_amount: Decimal

    # Enums/Status
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING

    special_requests: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None

    check_in_record: Optional[CheckInRecord] = None
    check_out_record: Optional[CheckOutRecord] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: str = "SYSTEM"
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest_id: UUID,
        room_id: UUID,
        date_range: DateRange,
        guest_count: GuestCount,
        room_rate: Decimal,
        total_amount: Optional[Decimal] = None,
        status: BookingStatus = BookingStatus.PENDING,
        special_requests: Optional[str] = None,
        notes: Optional[str] = None,
        source: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> "Booking":
        """Create new booking with a fresh ledger"""
        if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise InvalidTransitionError(
                f"A new booking cannot start in {status.value} status"
            )
        if room_rate < 0:
            raise ValueError("Room rate cannot be negative")

        nights = Booking._validate_nights(date_range)
        room_rate = to_money(room_rate)
        if total_amount is None:
            total_amount = room_rate * nights
        elif total_amount < 0:
            raise ValueError("Total amount cannot be negative")
        total_amount = to_money(total_amount)

        booking = Booking(
            booking_number=Booking._generate_booking_number(),
            guest_id=guest_id,
            room_id=room_id,
            date_range=date_range,
            guest_count=guest_count,
            total_nights=nights,
            room_rate=room_rate,
            total_amount=total_amount,
            paid_amount=ZERO,
            outstanding_amount=total_amount,
            status=status,
            payment_status=PaymentStatus.PENDING,
            special_requests=special_requests,
            notes=notes,
            source=source,
            created_by=created_by
        )
        booking._recalculate_balance()
        return booking

    # ==================== QUERY METHODS ====================
    @property
    def check_in_date(self) -> date:
        return self.date_range.check_in

    @property
    def check_out_date(self) -> date:
        return self.date_range.check_out

    def is_active(self) -> bool:
        """Whether this booking holds its room against other bookings"""
        return self.status in ACTIVE_BOOKING_STATUSES

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    def conflicts_with(self, room_id: UUID, check_in: date, check_out: date) -> bool:
        return (
            self.is_active()
            and self.room_id == room_id
            and self.date_range.overlaps(check_in, check_out)
        )

    def nightly_rate(self) -> Decimal:
        """Effective per-night price, honouring an overridden total"""
        return self.total_amount / (self.total_nights or 1)

    # ==================== MODIFICATION METHODS ====================
    def reschedule(
        self,
        new_check_in: Optional[date] = None,
        new_check_out: Optional[date] = None,
        new_room_rate: Optional[Decimal] = None
    ) -> None:
        """Change dates and/or rate, recomputing nights and amounts together"""
        self._ensure_open("change dates or rate of")

        check_in = new_check_in or self.check_in_date
        check_out = new_check_out or self.check_out_date
        room_rate = self.room_rate if new_room_rate is None else to_money(new_room_rate)
        if room_rate < 0:
            raise ValueError("Room rate cannot be negative")

        date_range = DateRange(check_in=check_in, check_out=check_out)
        nights = Booking._validate_nights(date_range)

        # validated; now apply
        self.date_range = date_range
        self.total_nights = nights
        self.room_rate = room_rate
        self.total_amount = to_money(room_rate * nights)
        self._recalculate_balance()
        self._touch()

    def move_to_room(self, room_id: UUID) -> None:
        self._ensure_open("move")
        self.room_id = room_id
        self._touch()

    def change_guest_count(self, guest_count: GuestCount) -> None:
        self.guest_count = guest_count
        self._touch()

    def change_status(self, new_status: BookingStatus) -> None:
        """Status edit through a plain update (confirm, unconfirm, cancel)"""
        if new_status == self.status:
            return
        if new_status not in EDITABLE_STATUS_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot change booking status from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self._touch()

    def annotate(
        self,
        special_requests: Optional[str] = None,
        notes: Optional[str] = None,
        source: Optional[str] = None
    ) -> None:
        if special_requests is not None:
            self.special_requests = special_requests
        if notes is not None:
            self.notes = notes
        if source is not None:
            self.source = source
        self._touch()

    # ==================== LEDGER METHODS ====================
    def record_payment(self, amount: Decimal) -> None:
        """Credit a payment; amounts must be positive and within the balance"""
        if self.status == BookingStatus.CANCELLED:
            raise InvalidTransitionError("Cannot take payments on a cancelled booking")
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError()
        if amount > self.outstanding_amount:
            raise ExceedsBalanceError()

        self.paid_amount = to_money(self.paid_amount + amount)
        self._recalculate_balance()
        self._touch()

    # ==================== STATE TRANSITION METHODS ====================
    def check_in(
        self,
        actual_check_in: datetime,
        processed_by: str,
        room_key_number: Optional[str] = None,
        notes: Optional[str] = None
    ) -> None:
        """Mark guest as checked in"""
        if self.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise InvalidTransitionError(
                f"Cannot check in with status {self.status.value}"
            )

        self.check_in_record = CheckInRecord(
            actual_check_in=actual_check_in,
            room_key_number=room_key_number,
            processed_by=processed_by,
            notes=notes
        )
        self.status = BookingStatus.CHECKED_IN
        self._touch()

    def check_out(
        self,
        actual_check_out: datetime,
        actual_nights: int,
        extra_charges: Decimal,
        settlement_method: PaymentMethod,
        processed_by: str,
        notes: Optional[str] = None
    ) -> Tuple[Decimal, Decimal]:
        """Finalize the stay; returns (final_amount, balance_due)"""
        if self.status != BookingStatus.CHECKED_IN:
            raise InvalidTransitionError(
                f"Cannot check out with status {self.status.value}"
            )
        if actual_nights < 1:
            raise InvalidDateRangeError("A stay must last at least one night")
        if extra_charges < 0:
            raise ValueError("Extra charges cannot be negative")

        extra_charges = to_money(extra_charges)
        final_amount = to_money(self.nightly_rate() * actual_nights + extra_charges)
        balance_due = final_amount - self.paid_amount

        self.date_range = DateRange(
            check_in=self.check_in_date,
            check_out=self.check_in_date + timedelta(days=actual_nights)
        )
        self.total_nights = actual_nights
        self.extra_charges = extra_charges
        self.total_amount = final_amount
        self._recalculate_balance()

        self.check_out_record = CheckOutRecord(
            actual_check_out=actual_check_out,
            actual_nights=actual_nights,
            extra_charges=extra_charges,
            settlement_method=settlement_method,
            processed_by=processed_by,
            notes=notes
        )
        self.status = BookingStatus.CHECKED_OUT
        self._touch()

        return final_amount, balance_due

    def ensure_deletable(self) -> None:
        if self.status == BookingStatus.CHECKED_IN:
            raise InvalidTransitionError("Cannot delete a checked-in booking")

    # ==================== PRIVATE METHODS ====================
    @staticmethod
    def _validate_nights(date_range: DateRange) -> int:
        nights = date_range.nights()
        if nights <= 0:
            raise InvalidDateRangeError()
        return nights

    @staticmethod
    def _generate_booking_number() -> str:
        """Generate human-readable booking number: BKG-<epoch ms>-<suffix>"""
        suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=5))
        return f"BKG-{int(time.time() * 1000)}-{suffix}"

    def _ensure_open(self, action: str) -> None:
        if self.is_terminal():
            raise InvalidTransitionError(
                f"Cannot {action} a booking with status {self.status.value}"
            )

    def _recalculate_balance(self) -> None:
        self.outstanding_amount = max(ZERO, to_money(self.total_amount - self.paid_amount))
        if self.outstanding_amount == 0:
            self.payment_status = PaymentStatus.PAID
        elif 0 < self.paid_amount < self.total_amount:
            self.payment_status = PaymentStatus.PARTIAL
        else:
            self.payment_status = PaymentStatus.PENDING

    def _touch(self) -> None:
        self.modified_at = datetime.utcnow()
