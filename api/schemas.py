"""API Schemas - Request and Response DTOs

Requests accept camelCase aliases as well as field names. Responses are
snake_case with money as plain numbers.
"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Generic, List, Optional, TypeVar

from domain.enums import (
    BookingStatus, PaymentMethod, RoomStatus, RoomCategory, ViewType,
)

T = TypeVar("T")


class RequestModel(BaseModel):
    """Base for request bodies"""

    class Config:
        populate_by_name = True
        str_strip_whitespace = True


# ============================================================================
# ROOM TYPE SCHEMAS
# ============================================================================

class CreateRoomTypeRequest(RequestModel):
    """Create room type request DTO"""
    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=20, pattern=r"^[A-Z0-9_]+$")
    category: RoomCategory
    description: Optional[str] = Field(None, max_length=1000)
    max_occupancy: int = Field(ge=1, le=20, alias="maxOccupancy")
    base_price: Decimal = Field(ge=0, alias="basePrice")
    extra_person_price: Optional[Decimal] = Field(None, ge=0, alias="extraPersonPrice")
    amenities: List[str] = []
    view_type: ViewType = Field(ViewType.CITY, alias="viewType")
    smoking_allowed: bool = Field(False, alias="smokingAllowed")
    is_active: bool = Field(True, alias="isActive")


class UpdateRoomTypeRequest(RequestModel):
    """Update room type request DTO"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[RoomCategory] = None
    description: Optional[str] = Field(None, max_length=1000)
    max_occupancy: Optional[int] = Field(None, ge=1, le=20, alias="maxOccupancy")
    base_price: Optional[Decimal] = Field(None, ge=0, alias="basePrice")
    extra_person_price: Optional[Decimal] = Field(None, ge=0, alias="extraPersonPrice")
    amenities: Optional[List[str]] = None
    view_type: Optional[ViewType] = Field(None, alias="viewType")
    smoking_allowed: Optional[bool] = Field(None, alias="smokingAllowed")
    is_active: Optional[bool] = Field(None, alias="isActive")


class RoomTypeResponse(BaseModel):
    """Room type response DTO"""
    room_type_id: UUID
    name: str
    code: str
    category: str
    description: Optional[str] = None
    max_occupancy: int
    base_price: float
    extra_person_price: Optional[float] = None
    amenities: List[str]
    view_type: str
    smoking_allowed: bool
    is_active: bool
    created_at: datetime
    modified_at: datetime


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(RequestModel):
    """Create room request DTO"""
    room_number: str = Field(pattern=r"^[A-Za-z0-9-]{1,10}$", alias="roomNumber")
    room_type_id: UUID = Field(alias="roomType")
    floor: int = Field(ge=-2, le=100)
    status: RoomStatus = RoomStatus.AVAILABLE
    notes: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = Field(None, alias="imageUrl")


class UpdateRoomRequest(RequestModel):
    """Update room request DTO"""
    room_number: Optional[str] = Field(None, pattern=r"^[A-Za-z0-9-]{1,10}$", alias="roomNumber")
    room_type_id: Optional[UUID] = Field(None, alias="roomType")
    floor: Optional[int] = Field(None, ge=-2, le=100)
    status: Optional[RoomStatus] = None
    notes: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = Field(None, alias="imageUrl")


class RoomStatusRequest(RequestModel):
    """Room status change request DTO"""
    status: RoomStatus


class AvailabilitySearchRequest(RequestModel):
    """Available rooms search request DTO"""
    check_in: date = Field(alias="checkInDate")
    check_out: date = Field(alias="checkOutDate")
    guests: int = Field(1, ge=1, le=20)


class RoomTypeSummary(BaseModel):
    room_type_id: UUID
    name: str
    code: str
    category: str
    base_price: float
    max_occupancy: int


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    room_number: str
    room_type_id: UUID
    room_type: Optional[RoomTypeSummary] = None
    floor: int
    status: str
    notes: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    modified_at: datetime


# ============================================================================
# GUEST SCHEMAS
# ============================================================================

class CreateGuestRequest(RequestModel):
    """Create guest request DTO"""
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    phone: Optional[str] = Field(None, max_length=30)
    nationality: Optional[str] = Field(None, max_length=60)
    id_number: Optional[str] = Field(None, max_length=50, alias="idNumber")


class UpdateGuestRequest(RequestModel):
    """Update guest request DTO"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    phone: Optional[str] = Field(None, max_length=30)
    nationality: Optional[str] = Field(None, max_length=60)
    id_number: Optional[str] = Field(None, max_length=50, alias="idNumber")
    is_active: Optional[bool] = Field(None, alias="isActive")


class GuestResponse(BaseModel):
    """Guest response DTO"""
    guest_id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    id_number: Optional[str] = None
    is_active: bool
    created_at: datetime
    modified_at: datetime


class GuestSummary(BaseModel):
    guest_id: UUID
    name: str
    email: str
    phone: Optional[str] = None


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(RequestModel):
    """Create booking request DTO"""
    guest_id: UUID = Field(alias="guest")
    room_id: UUID = Field(alias="room")
    check_in: date = Field(alias="checkInDate")
    check_out: date = Field(alias="checkOutDate")
    adults: int = Field(ge=1, le=20)
    children: int = Field(0, ge=0, le=20)
    infants: int = Field(0, ge=0, le=10)
    room_rate: Decimal = Field(ge=0, alias="roomRate")
    total_nights: Optional[int] = Field(None, alias="totalNights")
    total_amount: Optional[Decimal] = Field(None, ge=0, alias="totalAmount")
    status: BookingStatus = BookingStatus.PENDING
    source: Optional[str] = Field(None, max_length=50)
    special_requests: Optional[str] = Field(None, max_length=1000, alias="specialRequests")
    notes: Optional[str] = Field(None, max_length=1000)


class UpdateBookingRequest(RequestModel):
    """Update booking request DTO; any subset of mutable fields"""
    room_id: Optional[UUID] = Field(None, alias="room")
    check_in: Optional[date] = Field(None, alias="checkInDate")
    check_out: Optional[date] = Field(None, alias="checkOutDate")
    adults: Optional[int] = Field(None, ge=1, le=20)
    children: Optional[int] = Field(None, ge=0, le=20)
    infants: Optional[int] = Field(None, ge=0, le=10)
    room_rate: Optional[Decimal] = Field(None, ge=0, alias="roomRate")
    status: Optional[BookingStatus] = None
    source: Optional[str] = Field(None, max_length=50)
    special_requests: Optional[str] = Field(None, max_length=1000, alias="specialRequests")
    notes: Optional[str] = Field(None, max_length=1000)


class CheckInRequest(RequestModel):
    """Check-in request DTO"""
    actual_check_in: Optional[datetime] = Field(None, alias="actualCheckIn")
    room_key_number: Optional[str] = Field(None, max_length=20, alias="roomKeyNumber")
    notes: Optional[str] = Field(None, max_length=1000)
    collect_payment: bool = Field(False, alias="collectPayment")
    advance_amount: Optional[Decimal] = Field(None, ge=0, alias="advanceAmount")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, alias="paymentMethod")


class CheckOutRequest(RequestModel):
    """Check-out request DTO"""
    actual_check_out: Optional[datetime] = Field(None, alias="actualCheckOut")
    actual_nights: Optional[int] = Field(None, alias="actualNights")
    extra_charges: Decimal = Field(Decimal("0"), ge=0, alias="extraCharges")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, alias="paymentMethod")
    notes: Optional[str] = Field(None, max_length=1000)
    room_status_after: RoomStatus = Field(RoomStatus.CLEANING, alias="roomStatusAfter")


class PaymentRequest(RequestModel):
    """Payment request DTO; the amount is range-checked by the ledger"""
    amount: Decimal
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, alias="paymentMethod")
    transaction_id: Optional[str] = Field(None, max_length=100, alias="transactionId")
    notes: Optional[str] = Field(None, max_length=1000)


class RoomSummary(BaseModel):
    room_id: UUID
    room_number: str
    floor: int
    room_type: Optional[RoomTypeSummary] = None


class CheckInRecordResponse(BaseModel):
    actual_check_in: datetime
    room_key_number: Optional[str] = None
    checked_in_by: str
    check_in_notes: Optional[str] = None


class CheckOutRecordResponse(BaseModel):
    actual_check_out: datetime
    actual_nights: int
    extra_charges: float
    settlement_method: str
    checked_out_by: str
    check_out_notes: Optional[str] = None


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    booking_number: str
    guest_id: UUID
    guest: Optional[GuestSummary] = None
    room_id: UUID
    room: Optional[RoomSummary] = None
    check_in_date: date
    check_out_date: date
    total_nights: int
    adults: int
    children: int
    infants: int
    room_rate: float
    extra_charges: float
    total_amount: float
    paid_amount: float
    outstanding_amount: float
    status: str
    payment_status: str
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    check_in: Optional[CheckInRecordResponse] = None
    check_out: Optional[CheckOutRecordResponse] = None
    created_by: str
    created_at: datetime
    modified_at: datetime
    version: int


class PaymentResponse(BaseModel):
    """Payment event response DTO"""
    payment_id: UUID
    booking_id: UUID
    amount: float
    method: str
    kind: str
    transaction_id: Optional[str] = None
    processed_by: str
    notes: Optional[str] = None
    created_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class BookingStatsResponse(BaseModel):
    total_bookings: int
    confirmed_bookings: int
    checked_in_bookings: int
    revenue: float
    avg_booking_value: float


class BookingListResponse(BaseModel):
    """Booking list response DTO"""
    data: List[BookingResponse]
    pagination: Pagination
    stats: BookingStatsResponse


class CheckOutResponse(BaseModel):
    """Check-out response DTO; a non-zero balance_due is informational"""
    data: BookingResponse
    final_amount: float
    balance_due: float
    message: str


class PaymentAppliedResponse(BaseModel):
    data: BookingResponse
    payment: PaymentResponse
    message: str


# ============================================================================
# ENVELOPES
# ============================================================================

class DataResponse(BaseModel, Generic[T]):
    """Single-item envelope"""
    data: T
    message: Optional[str] = None


class PagedResponse(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    sub: Optional[str] = None
    role: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
