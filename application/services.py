"""Application Services - Business use cases"""
import logging
import math
from uuid import UUID
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, NamedTuple, Tuple, Dict

from domain.repositories import (
    BookingRepository, PaymentRepository, RoomTypeRepository, RoomRepository, GuestRepository,
)
from domain.entities import Booking, Room, RoomType, Guest, PaymentEvent
from domain.enums import (
    BookingStatus, PaymentStatus, PaymentMethod, PaymentKind, RoomStatus, RoomCategory, ViewType,
    DateRangeFilter,
)
from domain.exceptions import (
    RoomUnavailableError, InvalidDateRangeError, InvalidTransitionError, DuplicateEntityError,
    EntityNotFoundError,
)
from domain.value_objects import DateRange, GuestCount, to_money, ZERO

logger = logging.getLogger(__name__)


def _as_naive_utc(moment: Optional[datetime]) -> datetime:
    """Timestamps are stored as naive UTC"""
    if moment is None:
        return datetime.utcnow()
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def resolve_date_range(date_range: DateRangeFilter, today: date) -> Tuple[date, date]:
    """Inclusive [start, end] check-in window for a listing filter; weeks start on Sunday"""
    if date_range == DateRangeFilter.TODAY:
        return today, today
    if date_range == DateRangeFilter.TOMORROW:
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow

    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    if date_range == DateRangeFilter.THIS_WEEK:
        return week_start, week_start + timedelta(days=6)
    if date_range == DateRangeFilter.NEXT_WEEK:
        return week_start + timedelta(days=7), week_start + timedelta(days=13)

    # this_month
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    return month_start, next_month - timedelta(days=1)


class BookingDetails(NamedTuple):
    booking: Booking
    guest: Optional[Guest]
    room: Optional[Room]
    room_type: Optional[RoomType]


class BookingStats(NamedTuple):
    total_bookings: int
    confirmed_bookings: int
    checked_in_bookings: int
    revenue: Decimal
    avg_booking_value: Decimal


class BookingPage(NamedTuple):
    items: List[Booking]
    page: int
    limit: int
    total: int
    total_pages: int
    stats: BookingStats


class CheckOutResult(NamedTuple):
    booking: Booking
    final_amount: Decimal
    balance_due: Decimal


class RoomCatalogService:
    """Service for RoomType and Room catalog use cases"""

    def __init__(self,
                 room_type_repo: RoomTypeRepository,
                 room_repo: RoomRepository,
                 booking_repo: BookingRepository):
        self.room_type_repo = room_type_repo
        self.room_repo = room_repo
        self.booking_repo = booking_repo

    # ==================== ROOM TYPES ====================
    async def create_room_type(
        self,
        name: str,
        code: str,
        category: RoomCategory,
        max_occupancy: int,
        base_price: Decimal,
        description: Optional[str] = None,
        extra_person_price: Optional[Decimal] = None,
        amenities: Optional[List[str]] = None,
        view_type: ViewType = ViewType.CITY,
        smoking_allowed: bool = False,
        is_active: bool = True
    ) -> RoomType:
        """Create room type with a unique code"""
        if await self.room_type_repo.find_by_code(code):
            raise DuplicateEntityError(f"Room type code {code} is already in use")

        room_type = RoomType(
            name=name,
            code=code,
            category=category,
            description=description,
            max_occupancy=max_occupancy,
            base_price=to_money(base_price),
            extra_person_price=to_money(extra_person_price) if extra_person_price is not None else None,
            amenities=list(dict.fromkeys(amenities or [])),
            view_type=view_type,
            smoking_allowed=smoking_allowed,
            is_active=is_active
        )
        saved = await self.room_type_repo.save(room_type)
        logger.info("Room type %s created", saved.code)
        return saved

    async def get_room_type(self, room_type_id: UUID) -> Optional[RoomType]:
        return await self.room_type_repo.find_by_id(room_type_id)

    async def list_room_types(
        self,
        category: Optional[RoomCategory] = None,
        is_active: Optional[bool] = None
    ) -> List[RoomType]:
        """Room types sorted by name"""
        room_types = await self.room_type_repo.find_all()
        if category is not None:
            room_types = [rt for rt in room_types if rt.category == category]
        if is_active is not None:
            room_types = [rt for rt in room_types if rt.is_active == is_active]
        return sorted(room_types, key=lambda rt: rt.name)

    async def update_room_type(
        self,
        room_type_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[RoomCategory] = None,
        max_occupancy: Optional[int] = None,
        base_price: Optional[Decimal] = None,
        extra_person_price: Optional[Decimal] = None,
        amenities: Optional[List[str]] = None,
        view_type: Optional[ViewType] = None,
        smoking_allowed: Optional[bool] = None,
        is_active: Optional[bool] = None
    ) -> Optional[RoomType]:
        """Edit a room type; bookings already made keep their own rate"""
        room_type = await self.room_type_repo.find_by_id(room_type_id)
        if not room_type:
            return None

        room_type.reprice(base_price, extra_person_price, amenities)
        if name is not None:
            room_type.name = name
        if description is not None:
            room_type.description = description
        if category is not None:
            room_type.category = category
        if max_occupancy is not None:
            if max_occupancy < 1:
                raise ValueError("Maximum occupancy must be at least 1")
            room_type.max_occupancy = max_occupancy
        if view_type is not None:
            room_type.view_type = view_type
        if smoking_allowed is not None:
            room_type.smoking_allowed = smoking_allowed
        if is_active is not None:
            room_type.is_active = is_active

        return await self.room_type_repo.update(room_type)

    # ==================== ROOMS ====================
    async def create_room(
        self,
        room_number: str,
        room_type_id: UUID,
        floor: int,
        status: RoomStatus = RoomStatus.AVAILABLE,
        notes: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> Room:
        """Create room with a unique number and an existing room type"""
        if await self.room_repo.find_by_number(room_number):
            raise DuplicateEntityError(f"Room number {room_number} already exists")
        if not await self.room_type_repo.find_by_id(room_type_id):
            raise EntityNotFoundError("Room type", room_type_id)

        room = Room(
            room_number=room_number,
            room_type_id=room_type_id,
            floor=floor,
            status=status,
            notes=notes,
            image_url=image_url or None
        )
        saved = await self.room_repo.save(room)
        logger.info("Room %s created on floor %s", saved.room_number, saved.floor)
        return saved

    async def get_room(self, room_id: UUID) -> Optional[Room]:
        return await self.room_repo.find_by_id(room_id)

    async def get_room_with_type(self, room_id: UUID) -> Optional[Tuple[Room, Optional[RoomType]]]:
        room = await self.room_repo.find_by_id(room_id)
        if not room:
            return None
        return room, await self.room_type_repo.find_by_id(room.room_type_id)

    async def list_rooms(
        self,
        search: Optional[str] = None,
        status: Optional[RoomStatus] = None,
        floor: Optional[int] = None,
        room_type_id: Optional[UUID] = None
    ) -> List[Tuple[Room, Optional[RoomType]]]:
        """Rooms sorted by floor then room number, with their room type"""
        rooms = await self.room_repo.find_all()
        if search:
            needle = search.lower()
            rooms = [r for r in rooms if needle in r.room_number.lower()]
        if status is not None:
            rooms = [r for r in rooms if r.status == status]
        if floor is not None:
            rooms = [r for r in rooms if r.floor == floor]
        if room_type_id is not None:
            rooms = [r for r in rooms if r.room_type_id == room_type_id]

        room_types = {rt.room_type_id: rt for rt in await self.room_type_repo.find_all()}
        rooms.sort(key=lambda r: (r.floor, r.room_number))
        return [(r, room_types.get(r.room_type_id)) for r in rooms]

    async def update_room(
        self,
        room_id: UUID,
        room_number: Optional[str] = None,
        room_type_id: Optional[UUID] = None,
        floor: Optional[int] = None,
        status: Optional[RoomStatus] = None,
        notes: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> Optional[Room]:
        room = await self.room_repo.find_by_id(room_id)
        if not room:
            return None

        if room_number is not None and room_number != room.room_number:
            if await self.room_repo.find_by_number(room_number):
                raise DuplicateEntityError(f"Room number {room_number} already exists")
            room.room_number = room_number
        if room_type_id is not None and room_type_id != room.room_type_id:
            if not await self.room_type_repo.find_by_id(room_type_id):
                raise EntityNotFoundError("Room type", room_type_id)
            room.room_type_id = room_type_id
        if floor is not None:
            room.floor = floor
        if notes is not None:
            room.notes = notes
        if image_url is not None:
            room.image_url = image_url or None
        if status is not None:
            room.set_status(status)
        else:
            room.modified_at = datetime.utcnow()

        return await self.room_repo.update(room)

    async def set_room_status(self, room_id: UUID, status: RoomStatus) -> Optional[Room]:
        room = await self.room_repo.find_by_id(room_id)
        if not room:
            return None
        room.set_status(status)
        return await self.room_repo.update(room)

    async def delete_room(self, room_id: UUID) -> bool:
        """Delete room unless an active booking still references it"""
        room = await self.room_repo.find_by_id(room_id)
        if not room:
            return False
        if await self.booking_repo.exists_active_for_room(room_id):
            raise InvalidTransitionError("Cannot delete a room with active bookings")
        deleted = await self.room_repo.delete(room_id)
        logger.info("Room %s deleted", room.room_number)
        return deleted


class GuestService:
    """Service for the guest directory"""

    def __init__(self, repository: GuestRepository, booking_repo: BookingRepository):
        self.repository = repository
        self.booking_repo = booking_repo

    async def create_guest(
        self,
        name: str,
        email: str,
        phone: Optional[str] = None,
        nationality: Optional[str] = None,
        id_number: Optional[str] = None
    ) -> Guest:
        """Create guest with unique email and phone"""
        await self._ensure_unique(email, phone)
        guest = Guest(
            name=name,
            email=email,
            phone=phone or None,
            nationality=nationality,
            id_number=id_number
        )
        return await self.repository.save(guest)

    async def get_guest(self, guest_id: UUID) -> Optional[Guest]:
        return await self.repository.find_by_id(guest_id)

    async def list_guests(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Guest], int]:
        """Guests matching the filters, newest first; returns (page items, total)"""
        guests = await self.repository.find_all()
        if search:
            guests = [g for g in guests if g.matches(search)]
        if is_active is not None:
            guests = [g for g in guests if g.is_active == is_active]
        guests.sort(key=lambda g: g.created_at, reverse=True)
        skip = (page - 1) * limit
        return guests[skip:skip + limit], len(guests)

    async def update_guest(
        self,
        guest_id: UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        nationality: Optional[str] = None,
        id_number: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> Optional[Guest]:
        guest = await self.repository.find_by_id(guest_id)
        if not guest:
            return None

        new_email = email if email is not None and email.lower() != guest.email.lower() else None
        new_phone = phone if phone and phone != guest.phone else None
        await self._ensure_unique(new_email, new_phone)

        if name is not None:
            guest.name = name
        if email is not None:
            guest.email = email
        if phone is not None:
            guest.phone = phone or None
        if nationality is not None:
            guest.nationality = nationality
        if id_number is not None:
            guest.id_number = id_number
        if is_active is not None:
            guest.is_active = is_active
        guest.modified_at = datetime.utcnow()

        return await self.repository.update(guest)

    async def delete_guest(self, guest_id: UUID) -> bool:
        """Delete guest unless a confirmed or checked-in booking belongs to them"""
        guest = await self.repository.find_by_id(guest_id)
        if not guest:
            return False
        if await self.booking_repo.exists_active_for_guest(guest_id):
            raise InvalidTransitionError("Cannot delete a guest with active bookings")
        deleted = await self.repository.delete(guest_id)
        logger.info("Guest %s deleted", guest.email)
        return deleted

    async def _ensure_unique(self, email: Optional[str], phone: Optional[str]) -> None:
        if email and await self.repository.find_by_email(email):
            raise DuplicateEntityError("A guest with this email already exists")
        if phone and await self.repository.find_by_phone(phone):
            raise DuplicateEntityError("A guest with this phone number already exists")


class AvailabilityService:
    """Availability Checker - room/date conflict detection"""

    def __init__(self,
                 booking_repo: BookingRepository,
                 room_repo: Optional[RoomRepository] = None,
                 room_type_repo: Optional[RoomTypeRepository] = None):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.room_type_repo = room_type_repo

    async def has_conflict(
        self,
        room_id: UUID,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> bool:
        """Whether an active booking on the room overlaps [check_in, check_out)

        Storage errors propagate; availability is never assumed.
        """
        conflicts = await self.booking_repo.find_active_overlapping(
            room_id, check_in, check_out, exclude_booking_id
        )
        if conflicts:
            logger.info(
                "Room %s unavailable %s..%s, overlaps %s",
                room_id, check_in, check_out, conflicts[0].booking_number
            )
        return bool(conflicts)

    async def find_available_rooms(
        self,
        check_in: date,
        check_out: date,
        guests: int = 1
    ) -> List[Tuple[Room, RoomType]]:
        """Bookable rooms that fit the party and have no conflicting stay"""
        DateRange.of(check_in, check_out)

        room_types = {rt.room_type_id: rt for rt in await self.room_type_repo.find_all()}
        available = []
        for room in await self.room_repo.find_all():
            room_type = room_types.get(room.room_type_id)
            if not room.is_bookable() or room_type is None or not room_type.can_accommodate(guests):
                continue
            if await self.has_conflict(room.room_id, check_in, check_out):
                continue
            available.append((room, room_type))

        available.sort(key=lambda pair: (pair[0].floor, pair[0].room_number))
        return available


class PaymentLedger:
    """Payment Ledger - applies payment events to booking balances"""

    def __init__(self, booking_repo: BookingRepository, payment_repo: PaymentRepository):
        self.booking_repo = booking_repo
        self.payment_repo = payment_repo

    def credit(
        self,
        booking: Booking,
        amount: Decimal,
        method: PaymentMethod,
        processed_by: str,
        kind: PaymentKind = PaymentKind.PAYMENT,
        transaction_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> PaymentEvent:
        """Apply a payment to a loaded booking; the caller persists both"""
        booking.record_payment(amount)
        return PaymentEvent(
            booking_id=booking.booking_id,
            amount=to_money(amount),
            method=method,
            kind=kind,
            transaction_id=transaction_id,
            processed_by=processed_by,
            notes=notes
        )

    async def record(self, event: PaymentEvent) -> PaymentEvent:
        """Append to the audit log once the booking write succeeded"""
        return await self.payment_repo.append(event)

    async def apply_payment(
        self,
        booking_id: UUID,
        amount: Decimal,
        method: PaymentMethod,
        processed_by: str,
        transaction_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Optional[Tuple[Booking, PaymentEvent]]:
        """Record a payment against a booking's outstanding balance"""
        booking = await self.booking_repo.find_by_id(booking_id)
        if not booking:
            return None

        kind = PaymentKind.SETTLEMENT if booking.status == BookingStatus.CHECKED_OUT else PaymentKind.PAYMENT
        event = self.credit(booking, amount, method, processed_by, kind, transaction_id, notes)
        saved = await self.booking_repo.update(booking)
        await self.record(event)

        logger.info(
            "Payment of %s (%s) applied to booking %s, outstanding %s",
            event.amount, event.method.value, saved.booking_number, saved.outstanding_amount
        )
        return saved, event

    async def list_payments(self, booking_id: UUID) -> Optional[List[PaymentEvent]]:
        """Payment history of a booking, oldest first"""
        if not await self.booking_repo.find_by_id(booking_id):
            return None
        events = await self.payment_repo.find_by_booking(booking_id)
        return sorted(events, key=lambda e: e.created_at)


class BookingService:
    """Booking Lifecycle Manager"""

    def __init__(self,
                 repository: BookingRepository,
                 room_repo: RoomRepository,
                 guest_repo: GuestRepository,
                 availability: AvailabilityService,
                 ledger: PaymentLedger):
        self.repository = repository
        self.room_repo = room_repo
        self.guest_repo = guest_repo
        self.availability = availability
        self.ledger = ledger

    async def create_booking(
        self,
        guest_id: UUID,
        room_id: UUID,
        check_in: date,
        check_out: date,
        adults: int,
        room_rate: Decimal,
        children: int = 0,
        infants: int = 0,
        total_nights: Optional[int] = None,
        total_amount: Optional[Decimal] = None,
        status: BookingStatus = BookingStatus.PENDING,
        source: Optional[str] = None,
        special_requests: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> Booking:
        """Create new booking after validation and availability check"""
        date_range = DateRange.of(check_in, check_out)
        if total_nights is not None and total_nights != date_range.nights():
            raise InvalidDateRangeError(
                f"Total nights {total_nights} does not match the {date_range.nights()} nights between the dates"
            )
        guest_count = GuestCount(adults=adults, children=children, infants=infants)

        if not await self.guest_repo.find_by_id(guest_id):
            raise EntityNotFoundError("Guest", guest_id)
        if not await self.room_repo.find_by_id(room_id):
            raise EntityNotFoundError("Room", room_id)

        booking = Booking.create(
            guest_id=guest_id,
            room_id=room_id,
            date_range=date_range,
            guest_count=guest_count,
            room_rate=room_rate,
            total_amount=total_amount,
            status=status,
            special_requests=special_requests,
            notes=notes,
            source=source,
            created_by=created_by
        )

        if await self.availability.has_conflict(room_id, check_in, check_out):
            raise RoomUnavailableError()

        saved = await self.repository.save(booking)
        logger.info(
            "Booking %s created for room %s (%s..%s, %s nights, total %s)",
            saved.booking_number, room_id, check_in, check_out, saved.total_nights, saved.total_amount
        )
        return saved

    async def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        """Get booking by ID"""
        return await self.repository.find_by_id(booking_id)

    async def update_booking(
        self,
        booking_id: UUID,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        room_rate: Optional[Decimal] = None,
        room_id: Optional[UUID] = None,
        adults: Optional[int] = None,
        children: Optional[int] = None,
        infants: Optional[int] = None,
        status: Optional[BookingStatus] = None,
        special_requests: Optional[str] = None,
        notes: Optional[str] = None,
        source: Optional[str] = None
    ) -> Optional[Booking]:
        """Apply a partial update; every rule is checked before anything is written"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        was_active = booking.is_active()
        original_room = booking.room_id
        original_range = booking.date_range

        if room_id is not None and room_id != booking.room_id:
            if not await self.room_repo.find_by_id(room_id):
                raise EntityNotFoundError("Room", room_id)
            booking.move_to_room(room_id)

        if check_in is not None or check_out is not None or room_rate is not None:
            booking.reschedule(check_in, check_out, room_rate)

        if adults is not None or children is not None or infants is not None:
            current = booking.guest_count
            booking.change_guest_count(GuestCount(
                adults=current.adults if adults is None else adults,
                children=current.children if children is None else children,
                infants=current.infants if infants is None else infants
            ))

        if status is not None:
            booking.change_status(status)

        booking.annotate(special_requests, notes, source)

        schedule_changed = booking.room_id != original_room or booking.date_range != original_range
        becomes_active = booking.is_active() and not was_active
        if (schedule_changed and not booking.is_terminal()) or becomes_active:
            if await self.availability.has_conflict(
                booking.room_id, booking.check_in_date, booking.check_out_date,
                exclude_booking_id=booking.booking_id
            ):
                raise RoomUnavailableError()

        saved = await self.repository.update(booking)
        logger.info("Booking %s updated (status %s)", saved.booking_number, saved.status.value)

        if saved.status == BookingStatus.CHECKED_IN and saved.room_id != original_room:
            await self._set_room_status(original_room, RoomStatus.CLEANING)
            await self._set_room_status(saved.room_id, RoomStatus.OCCUPIED)
        return saved

    async def delete_booking(self, booking_id: UUID) -> bool:
        """Delete booking unless the guest is checked in"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return False
        booking.ensure_deletable()
        deleted = await self.repository.delete(booking_id)
        logger.info("Booking %s deleted", booking.booking_number)
        return deleted

    async def check_in_guest(
        self,
        booking_id: UUID,
        processed_by: str,
        actual_check_in: Optional[datetime] = None,
        room_key_number: Optional[str] = None,
        notes: Optional[str] = None,
        collect_payment: bool = False,
        advance_amount: Optional[Decimal] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH
    ) -> Optional[Booking]:
        """Check in guest, optionally taking an advance payment"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        if booking.status == BookingStatus.PENDING and await self.availability.has_conflict(
            booking.room_id, booking.check_in_date, booking.check_out_date,
            exclude_booking_id=booking.booking_id
        ):
            raise RoomUnavailableError()

        booking.check_in(
            actual_check_in=_as_naive_utc(actual_check_in),
            processed_by=processed_by,
            room_key_number=room_key_number,
            notes=notes
        )

        event = None
        if collect_payment and advance_amount is not None and advance_amount > 0:
            # the advance is capped at the balance rather than rejected
            amount = min(to_money(advance_amount), booking.outstanding_amount)
            if amount > 0:
                event = self.ledger.credit(
                    booking, amount, payment_method, processed_by,
                    kind=PaymentKind.ADVANCE, notes="Advance payment at check-in"
                )

        saved = await self.repository.update(booking)
        if event:
            await self.ledger.record(event)

        await self._set_room_status(saved.room_id, RoomStatus.OCCUPIED)
        logger.info(
            "Booking %s checked in by %s (advance %s)",
            saved.booking_number, processed_by, event.amount if event else ZERO
        )
        return saved

    async def check_out_guest(
        self,
        booking_id: UUID,
        processed_by: str,
        actual_check_out: Optional[datetime] = None,
        actual_nights: Optional[int] = None,
        extra_charges: Decimal = ZERO,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: Optional[str] = None,
        room_status_after: RoomStatus = RoomStatus.CLEANING
    ) -> Optional[CheckOutResult]:
        """Check out guest; a non-zero balance is reported, not enforced"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        actual_check_out = _as_naive_utc(actual_check_out)
        if actual_nights is None:
            actual_nights = self._nights_stayed(booking, actual_check_out)

        final_amount, balance_due = booking.check_out(
            actual_check_out=actual_check_out,
            actual_nights=actual_nights,
            extra_charges=extra_charges,
            settlement_method=payment_method,
            processed_by=processed_by,
            notes=notes
        )
        saved = await self.repository.update(booking)

        await self._set_room_status(saved.room_id, room_status_after)
        if balance_due != 0:
            logger.info(
                "Booking %s checked out with balance due %s", saved.booking_number, balance_due
            )
        else:
            logger.info("Booking %s checked out, settled", saved.booking_number)
        return CheckOutResult(saved, final_amount, balance_due)

    @staticmethod
    def _nights_stayed(booking: Booking, actual_check_out: datetime) -> int:
        if booking.check_in_record:
            start = booking.check_in_record.actual_check_in
        else:
            start = datetime.combine(booking.check_in_date, time.min)
        days = (actual_check_out - start).total_seconds() / 86400
        return max(1, math.ceil(days))

    async def _set_room_status(self, room_id: UUID, status: RoomStatus) -> None:
        room = await self.room_repo.find_by_id(room_id)
        if not room:
            logger.warning("Room %s missing, status %s not recorded", room_id, status.value)
            return
        room.set_status(status)
        await self.room_repo.update(room)


class BookingQueryService:
    """Booking listing, statistics and response enrichment"""

    def __init__(self,
                 repository: BookingRepository,
                 guest_repo: GuestRepository,
                 room_repo: RoomRepository,
                 room_type_repo: RoomTypeRepository):
        self.repository = repository
        self.guest_repo = guest_repo
        self.room_repo = room_repo
        self.room_type_repo = room_type_repo

    async def list_bookings(
        self,
        search: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        date_range: Optional[DateRangeFilter] = None,
        page: int = 1,
        limit: int = 10,
        today: Optional[date] = None
    ) -> BookingPage:
        """Filtered page of bookings, newest first, with stats over all bookings"""
        bookings = await self.repository.find_all()
        stats = self.compute_stats(bookings)

        if search:
            guests = {g.guest_id: g for g in await self.guest_repo.find_all()}
            needle = search.lower()
            bookings = [
                b for b in bookings
                if needle in b.booking_number.lower()
                or needle in str(b.guest_id).lower()
                or (b.guest_id in guests and guests[b.guest_id].matches(needle))
            ]
        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        if payment_status is not None:
            bookings = [b for b in bookings if b.payment_status == payment_status]
        if date_range is not None:
            start, end = resolve_date_range(date_range, today or date.today())
            bookings = [b for b in bookings if start <= b.check_in_date <= end]

        bookings.sort(key=lambda b: b.created_at, reverse=True)
        total = len(bookings)
        skip = (page - 1) * limit
        return BookingPage(
            items=bookings[skip:skip + limit],
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            stats=stats
        )

    @staticmethod
    def compute_stats(bookings: List[Booking]) -> BookingStats:
        """Dashboard figures across every booking, independent of filters"""
        total = len(bookings)
        revenue = to_money(sum((b.total_amount for b in bookings), ZERO))
        return BookingStats(
            total_bookings=total,
            confirmed_bookings=sum(1 for b in bookings if b.status == BookingStatus.CONFIRMED),
            checked_in_bookings=sum(1 for b in bookings if b.status == BookingStatus.CHECKED_IN),
            revenue=revenue,
            avg_booking_value=to_money(revenue / total) if total else ZERO
        )

    async def describe(self, booking: Booking) -> BookingDetails:
        """Join guest, room and room type for the response"""
        guest = await self.guest_repo.find_by_id(booking.guest_id)
        room = await self.room_repo.find_by_id(booking.room_id)
        room_type = await self.room_type_repo.find_by_id(room.room_type_id) if room else None
        return BookingDetails(booking, guest, room, room_type)

    async def describe_many(self, bookings: List[Booking]) -> List[BookingDetails]:
        guests: Dict[UUID, Guest] = {g.guest_id: g for g in await self.guest_repo.find_all()}
        rooms: Dict[UUID, Room] = {r.room_id: r for r in await self.room_repo.find_all()}
        room_types: Dict[UUID, RoomType] = {rt.room_type_id: rt for rt in await self.room_type_repo.find_all()}
        details = []
        for booking in bookings:
            room = rooms.get(booking.room_id)
            details.append(BookingDetails(
                booking,
                guests.get(booking.guest_id),
                room,
                room_types.get(room.room_type_id) if room else None
            ))
        return details
