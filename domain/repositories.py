"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import date

from domain.entities import Booking, Room, RoomType, Guest, PaymentEvent


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate

    ``save`` and ``update`` must refuse to store an active booking that
    overlaps another active booking on the same room (``RoomUnavailableError``).
    ``update`` is a compare-and-swap on ``version`` and raises
    ``ConcurrentModificationError`` when the stored copy moved on.
    """

    @abstractmethod
    async def save(self, booking: Booking) -> Booking:
        """Insert a new booking"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_by_booking_number(self, booking_number: str) -> Optional[Booking]:
        """Find booking by its human-readable number"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Booking]:
        """Find all bookings"""
        pass

    @abstractmethod
    async def find_active_overlapping(
        self,
        room_id: UUID,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> List[Booking]:
        """Active bookings on a room whose stay overlaps [check_in, check_out)"""
        pass

    @abstractmethod
    async def exists_active_for_room(self, room_id: UUID) -> bool:
        """Whether any active booking references the room"""
        pass

    @abstractmethod
    async def exists_active_for_guest(self, guest_id: UUID) -> bool:
        """Whether any active booking belongs to the guest"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking, returning the stored copy with its new version"""
        pass

    @abstractmethod
    async def delete(self, booking_id: UUID) -> bool:
        """Delete booking"""
        pass


class PaymentRepository(ABC):
    """Append-only log of payment events"""

    @abstractmethod
    async def append(self, event: PaymentEvent) -> PaymentEvent:
        """Append a payment event"""
        pass

    @abstractmethod
    async def find_by_booking(self, booking_id: UUID) -> List[PaymentEvent]:
        """Payment events for a booking, oldest first"""
        pass


class RoomTypeRepository(ABC):
    """Repository interface for RoomType"""

    @abstractmethod
    async def save(self, room_type: RoomType) -> RoomType:
        pass

    @abstractmethod
    async def find_by_id(self, room_type_id: UUID) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def find_all(self) -> List[RoomType]:
        pass

    @abstractmethod
    async def update(self, room_type: RoomType) -> RoomType:
        pass


class RoomRepository(ABC):
    """Repository interface for Room"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Room]:
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def delete(self, room_id: UUID) -> bool:
        pass


class GuestRepository(ABC):
    """Repository interface for Guest directory"""

    @abstractmethod
    async def save(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_by_phone(self, phone: str) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Guest]:
        pass

    @abstractmethod
    async def update(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def delete(self, guest_id: UUID) -> bool:
        pass
