"""In-Memory Repository Implementations

Entities are copied on the way in and out so that a caller mutating a loaded
entity never touches storage until it calls ``update``.
"""
import asyncio
import logging
from typing import Optional, List, Dict
from uuid import UUID
from datetime import date

from domain.repositories import (
    BookingRepository, PaymentRepository, RoomTypeRepository, RoomRepository, GuestRepository,
)
from domain.entities import Booking, Room, RoomType, Guest, PaymentEvent
from domain.exceptions import (
    RoomUnavailableError, ConcurrentModificationError, DuplicateEntityError, EntityNotFoundError,
)

logger = logging.getLogger(__name__)


def _copy(entity):
    return entity.model_copy(deep=True)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}
        # serializes the overlap check with the write, like an exclusion constraint
        self._write_lock = asyncio.Lock()

    async def save(self, booking: Booking) -> Booking:
        """Save booking to memory"""
        async with self._write_lock:
            if booking.booking_id in self._storage:
                raise DuplicateEntityError("Booking already exists")
            if any(b.booking_number == booking.booking_number for b in self._storage.values()):
                raise DuplicateEntityError("Booking number already exists")
            self._enforce_no_overlap(booking)
            self._storage[booking.booking_id] = _copy(booking)
        return _copy(booking)

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        booking = self._storage.get(booking_id)
        return _copy(booking) if booking else None

    async def find_by_booking_number(self, booking_number: str) -> Optional[Booking]:
        """Find booking by booking number"""
        for booking in self._storage.values():
            if booking.booking_number == booking_number:
                return _copy(booking)
        return None

    async def find_all(self) -> List[Booking]:
        """Find all bookings"""
        return [_copy(b) for b in self._storage.values()]

    async def find_active_overlapping(
        self,
        room_id: UUID,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> List[Booking]:
        """Find active bookings overlapping a stay on a room"""
        return [
            _copy(b) for b in self._storage.values()
            if b.booking_id != exclude_booking_id and b.conflicts_with(room_id, check_in, check_out)
        ]

    async def exists_active_for_room(self, room_id: UUID) -> bool:
        return any(b.room_id == room_id and b.is_active() for b in self._storage.values())

    async def exists_active_for_guest(self, guest_id: UUID) -> bool:
        return any(b.guest_id == guest_id and b.is_active() for b in self._storage.values())

    async def update(self, booking: Booking) -> Booking:
        """Update booking if nobody else wrote it since it was read"""
        async with self._write_lock:
            stored = self._storage.get(booking.booking_id)
            if stored is None:
                raise EntityNotFoundError("Booking", booking.booking_id)
            if stored.version != booking.version:
                logger.warning(
                    "Stale write rejected for booking %s (stored v%s, got v%s)",
                    booking.booking_number, stored.version, booking.version
                )
                raise ConcurrentModificationError("Booking", booking.booking_id)
            self._enforce_no_overlap(booking)
            updated = booking.model_copy(update={"version": booking.version + 1}, deep=True)
            self._storage[booking.booking_id] = updated
        return _copy(updated)

    async def delete(self, booking_id: UUID) -> bool:
        """Delete booking"""
        if booking_id in self._storage:
            del self._storage[booking_id]
            return True
        return False

    def _enforce_no_overlap(self, booking: Booking) -> None:
        if not booking.is_active():
            return
        for other in self._storage.values():
            if other.booking_id != booking.booking_id and other.conflicts_with(
                booking.room_id, booking.check_in_date, booking.check_out_date
            ):
                logger.warning(
                    "Write of booking %s blocked by overlapping booking %s",
                    booking.booking_number, other.booking_number
                )
                raise RoomUnavailableError()


class InMemoryPaymentRepository(PaymentRepository):
    """In-memory append-only payment log"""

    def __init__(self):
        self._events: List[PaymentEvent] = []

    async def append(self, event: PaymentEvent) -> PaymentEvent:
        self._events.append(event)
        return event

    async def find_by_booking(self, booking_id: UUID) -> List[PaymentEvent]:
        return [e for e in self._events if e.booking_id == booking_id]


class InMemoryRoomTypeRepository(RoomTypeRepository):
    """In-memory implementation of RoomTypeRepository"""

    def __init__(self):
        self._storage: Dict[UUID, RoomType] = {}

    async def save(self, room_type: RoomType) -> RoomType:
        self._storage[room_type.room_type_id] = _copy(room_type)
        return _copy(room_type)

    async def find_by_id(self, room_type_id: UUID) -> Optional[RoomType]:
        room_type = self._storage.get(room_type_id)
        return _copy(room_type) if room_type else None

    async def find_by_code(self, code: str) -> Optional[RoomType]:
        for room_type in self._storage.values():
            if room_type.code == code:
                return _copy(room_type)
        return None

    async def find_all(self) -> List[RoomType]:
        return [_copy(rt) for rt in self._storage.values()]

    async def update(self, room_type: RoomType) -> RoomType:
        if room_type.room_type_id in self._storage:
            self._storage[room_type.room_type_id] = _copy(room_type)
            return _copy(room_type)
        raise EntityNotFoundError("Room type", room_type.room_type_id)


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Room] = {}

    async def save(self, room: Room) -> Room:
        self._storage[room.room_id] = _copy(room)
        return _copy(room)

    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        room = self._storage.get(room_id)
        return _copy(room) if room else None

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        for room in self._storage.values():
            if room.room_number == room_number:
                return _copy(room)
        return None

    async def find_all(self) -> List[Room]:
        return [_copy(r) for r in self._storage.values()]

    async def update(self, room: Room) -> Room:
        if room.room_id in self._storage:
            self._storage[room.room_id] = _copy(room)
            return _copy(room)
        raise EntityNotFoundError("Room", room.room_id)

    async def delete(self, room_id: UUID) -> bool:
        if room_id in self._storage:
            del self._storage[room_id]
            return True
        return False


class InMemoryGuestRepository(GuestRepository):
    """In-memory implementation of GuestRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Guest] = {}

    async def save(self, guest: Guest) -> Guest:
        self._storage[guest.guest_id] = _copy(guest)
        return _copy(guest)

    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        guest = self._storage.get(guest_id)
        return _copy(guest) if guest else None

    async def find_by_email(self, email: str) -> Optional[Guest]:
        email = email.lower()
        for guest in self._storage.values():
            if guest.email.lower() == email:
                return _copy(guest)
        return None

    async def find_by_phone(self, phone: str) -> Optional[Guest]:
        for guest in self._storage.values():
            if guest.phone == phone:
                return _copy(guest)
        return None

    async def find_all(self) -> List[Guest]:
        return [_copy(g) for g in self._storage.values()]

    async def update(self, guest: Guest) -> Guest:
        if guest.guest_id in self._storage:
            self._storage[guest.guest_id] = _copy(guest)
            return _copy(guest)
        raise EntityNotFoundError("Guest", guest.guest_id)

    async def delete(self, guest_id: UUID) -> bool:
        if guest_id in self._storage:
            del self._storage[guest_id]
            return True
        return False


class InMemoryStore:
    """All repositories of one application instance"""

    def __init__(self):
        self.room_types = InMemoryRoomTypeRepository()
        self.rooms = InMemoryRoomRepository()
        self.guests = InMemoryGuestRepository()
        self.bookings = InMemoryBookingRepository()
        self.payments = InMemoryPaymentRepository()
