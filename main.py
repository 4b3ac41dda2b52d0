import logging
import math
from contextlib import asynccontextmanager
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Type
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Room types & rooms
    CreateRoomTypeRequest, UpdateRoomTypeRequest, RoomTypeResponse, RoomTypeSummary,
    CreateRoomRequest, UpdateRoomRequest, RoomStatusRequest, AvailabilitySearchRequest, RoomResponse,
    # Guests
    CreateGuestRequest, UpdateGuestRequest, GuestResponse, GuestSummary,
    # Bookings
    CreateBookingRequest, UpdateBookingRequest, CheckInRequest, CheckOutRequest, PaymentRequest,
    BookingResponse, RoomSummary, CheckInRecordResponse, CheckOutRecordResponse, PaymentResponse,
    BookingListResponse, BookingStatsResponse, CheckOutResponse, PaymentAppliedResponse, Pagination,
    # Envelopes
    DataResponse, PagedResponse, MessageResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, authenticate_user
from infrastructure.config import settings
from infrastructure.logging_config import configure_logging
from infrastructure.security import create_access_token
from domain.auth import User

from application.services import (
    RoomCatalogService, GuestService, AvailabilityService, PaymentLedger, BookingService,
    BookingQueryService, BookingDetails,
)
from infrastructure.repositories.in_memory_repositories import InMemoryStore
from domain.entities import Room, RoomType, Guest, PaymentEvent
from domain.enums import (
    BookingStatus, PaymentStatus, PaymentMethod, RoomStatus, RoomCategory, ViewType, DateRangeFilter,
)
from domain.exceptions import EntityNotFoundError, ConcurrentModificationError, StorageUnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("%s started", settings.APP_NAME)
    yield
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Hotel administration API: booking lifecycle, payments, rooms and guests",
    version="1.0.0",
    lifespan=lifespan
)

# Initialize repositories
store = InMemoryStore()


# Dependency injection
def get_store() -> InMemoryStore:
    return store

def get_catalog_service(store: InMemoryStore = Depends(get_store)) -> RoomCatalogService:
    return RoomCatalogService(store.room_types, store.rooms, store.bookings)

def get_guest_service(store: InMemoryStore = Depends(get_store)) -> GuestService:
    return GuestService(store.guests, store.bookings)

def get_availability_service(store: InMemoryStore = Depends(get_store)) -> AvailabilityService:
    return AvailabilityService(store.bookings, store.rooms, store.room_types)

def get_payment_ledger(store: InMemoryStore = Depends(get_store)) -> PaymentLedger:
    return PaymentLedger(store.bookings, store.payments)

def get_booking_service(
    store: InMemoryStore = Depends(get_store),
    availability: AvailabilityService = Depends(get_availability_service),
    ledger: PaymentLedger = Depends(get_payment_ledger)
) -> BookingService:
    return BookingService(store.bookings, store.rooms, store.guests, availability, ledger)

def get_booking_query_service(store: InMemoryStore = Depends(get_store)) -> BookingQueryService:
    return BookingQueryService(store.bookings, store.guests, store.rooms, store.room_types)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(EntityNotFoundError)
async def entity_not_found_handler(request: Request, exc: EntityNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(ConcurrentModificationError)
async def concurrent_modification_handler(request: Request, exc: ConcurrentModificationError):
    logger.warning("Concurrent modification of %s %s", exc.entity, exc.entity_id)
    return JSONResponse(status_code=409, content={"detail": str(exc)})

@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Storage is temporarily unavailable, please retry"}
    )


def _parse_filter(value: Optional[str], enum_cls: Type[Enum], name: str):
    """Query filter where a missing value or 'all' means no filter"""
    if not value or value == "all":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: {value}")


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [item.value for item in BookingStatus],
        "description": "Booking status values; confirmed and checked_in hold the room"
    }

@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    return {"values": [item.value for item in PaymentStatus]}

@app.get("/api/enums/payment-method", tags=["Enum Reference"])
async def get_payment_methods():
    return {"values": [item.value for item in PaymentMethod]}

@app.get("/api/enums/room-status", tags=["Enum Reference"])
async def get_room_statuses():
    return {
        "values": [item.value for item in RoomStatus],
        "description": "Informational housekeeping status; booking conflicts come from bookings only"
    }

@app.get("/api/enums/room-category", tags=["Enum Reference"])
async def get_room_categories():
    return {"values": [item.value for item in RoomCategory]}

@app.get("/api/enums/view-type", tags=["Enum Reference"])
async def get_view_types():
    return {"values": [item.value for item in ViewType]}

@app.get("/api/enums/date-range", tags=["Enum Reference"])
async def get_date_ranges():
    return {
        "values": [item.value for item in DateRangeFilter],
        "description": "Booking list filter on check-in date; weeks start on Sunday"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        subject=user.user_id,
        claims={"username": user.username, "role": user.role},
        expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM TYPE ENDPOINTS
# ============================================================================

@app.post("/api/room-types", response_model=DataResponse[RoomTypeResponse], status_code=201, tags=["Room Types"])
async def create_room_type(
    request: CreateRoomTypeRequest,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new room type"""
    try:
        room_type = await service.create_room_type(**request.model_dump())
        return {"data": _room_type_to_response(room_type), "message": "Room type created successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/room-types", response_model=DataResponse[List[RoomTypeResponse]], tags=["Room Types"])
async def list_room_types(
    category: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    room_types = await service.list_room_types(_parse_filter(category, RoomCategory, "category"), is_active)
    return {"data": [_room_type_to_response(rt) for rt in room_types]}

@app.get("/api/room-types/{room_type_id}", response_model=DataResponse[RoomTypeResponse], tags=["Room Types"])
async def get_room_type(
    room_type_id: UUID,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    room_type = await service.get_room_type(room_type_id)
    if not room_type:
        raise HTTPException(status_code=404, detail="Room type not found")
    return {"data": _room_type_to_response(room_type)}

@app.put("/api/room-types/{room_type_id}", response_model=DataResponse[RoomTypeResponse], tags=["Room Types"])
async def update_room_type(
    room_type_id: UUID,
    request: UpdateRoomTypeRequest,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update room type; existing bookings keep their rate"""
    try:
        room_type = await service.update_room_type(room_type_id, **request.model_dump(exclude_unset=True))
        if not room_type:
            raise HTTPException(status_code=404, detail="Room type not found")
        return {"data": _room_type_to_response(room_type), "message": "Room type updated successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.post("/api/rooms/availability", response_model=DataResponse[List[RoomResponse]], tags=["Rooms"])
async def search_available_rooms(
    request: AvailabilitySearchRequest,
    service: AvailabilityService = Depends(get_availability_service),
    current_user: User = Depends(get_current_active_user)
):
    """Rooms free for the whole stay that fit the party"""
    try:
        available = await service.find_available_rooms(request.check_in, request.check_out, request.guests)
        return {"data": [_room_to_response(room, room_type) for room, room_type in available]}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/rooms", response_model=DataResponse[RoomResponse], status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new room"""
    try:
        room = await service.create_room(**request.model_dump())
        room_type = await service.get_room_type(room.room_type_id)
        return {"data": _room_to_response(room, room_type), "message": "Room created successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/rooms", response_model=DataResponse[List[RoomResponse]], tags=["Rooms"])
async def list_rooms(
    search: Optional[str] = None,
    status: Optional[str] = None,
    floor: Optional[int] = None,
    room_type_id: Optional[UUID] = Query(None, alias="roomType"),
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    rooms = await service.list_rooms(search, _parse_filter(status, RoomStatus, "status"), floor, room_type_id)
    return {"data": [_room_to_response(room, room_type) for room, room_type in rooms]}

@app.get("/api/rooms/{room_id}", response_model=DataResponse[RoomResponse], tags=["Rooms"])
async def get_room(
    room_id: UUID,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    found = await service.get_room_with_type(room_id)
    if not found:
        raise HTTPException(status_code=404, detail="Room not found")
    return {"data": _room_to_response(*found)}

@app.put("/api/rooms/{room_id}", response_model=DataResponse[RoomResponse], tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    try:
        room = await service.update_room(room_id, **request.model_dump(exclude_unset=True))
        if not room:
            raise HTTPException(status_code=404, detail="Room not found")
        room_type = await service.get_room_type(room.room_type_id)
        return {"data": _room_to_response(room, room_type), "message": "Room updated successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/rooms/{room_id}/status", response_model=DataResponse[RoomResponse], tags=["Rooms"])
async def set_room_status(
    room_id: UUID,
    request: RoomStatusRequest,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    room = await service.set_room_status(room_id, request.status)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    room_type = await service.get_room_type(room.room_type_id)
    return {"data": _room_to_response(room, room_type), "message": f"Room status set to {room.status.value}"}

@app.delete("/api/rooms/{room_id}", response_model=MessageResponse, tags=["Rooms"])
async def delete_room(
    room_id: UUID,
    service: RoomCatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete room unless it has confirmed or checked-in bookings"""
    try:
        if not await service.delete_room(room_id):
            raise HTTPException(status_code=404, detail="Room not found")
        return {"message": "Room deleted successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# GUEST ENDPOINTS
# ============================================================================

@app.post("/api/guests", response_model=DataResponse[GuestResponse], status_code=201, tags=["Guests"])
async def create_guest(
    request: CreateGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    try:
        guest = await service.create_guest(**request.model_dump())
        return {"data": _guest_to_response(guest), "message": "Guest created successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/guests", response_model=PagedResponse[GuestResponse], tags=["Guests"])
async def list_guests(
    search: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    guests, total = await service.list_guests(search, is_active, page, limit)
    return {
        "data": [_guest_to_response(g) for g in guests],
        "pagination": _pagination(page, limit, total)
    }

@app.get("/api/guests/{guest_id}", response_model=DataResponse[GuestResponse], tags=["Guests"])
async def get_guest(
    guest_id: UUID,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    guest = await service.get_guest(guest_id)
    if not guest:
        raise HTTPException(status_code=404, detail="Guest not found")
    return {"data": _guest_to_response(guest)}

@app.put("/api/guests/{guest_id}", response_model=DataResponse[GuestResponse], tags=["Guests"])
async def update_guest(
    guest_id: UUID,
    request: UpdateGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    try:
        guest = await service.update_guest(guest_id, **request.model_dump(exclude_unset=True))
        if not guest:
            raise HTTPException(status_code=404, detail="Guest not found")
        return {"data": _guest_to_response(guest), "message": "Guest updated successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/api/guests/{guest_id}", response_model=MessageResponse, tags=["Guests"])
async def delete_guest(
    guest_id: UUID,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete guest unless they have confirmed or checked-in bookings"""
    try:
        if not await service.delete_guest(guest_id):
            raise HTTPException(status_code=404, detail="Guest not found")
        return {"message": "Guest deleted successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.get("/api/bookings", response_model=BookingListResponse, tags=["Bookings"])
async def list_bookings(
    search: Optional[str] = None,
    status: Optional[str] = None,
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    date_range: Optional[str] = Query(None, alias="dateRange"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """List bookings; stats cover every booking regardless of filters"""
    result = await queries.list_bookings(
        search=search,
        status=_parse_filter(status, BookingStatus, "status"),
        payment_status=_parse_filter(payment_status, PaymentStatus, "paymentStatus"),
        date_range=_parse_filter(date_range, DateRangeFilter, "dateRange"),
        page=page,
        limit=limit
    )
    details = await queries.describe_many(result.items)
    return {
        "data": [_booking_to_response(d) for d in details],
        "pagination": Pagination(
            page=result.page, limit=result.limit, total=result.total, total_pages=result.total_pages
        ),
        "stats": BookingStatsResponse(
            total_bookings=result.stats.total_bookings,
            confirmed_bookings=result.stats.confirmed_bookings,
            checked_in_bookings=result.stats.checked_in_bookings,
            revenue=_money(result.stats.revenue),
            avg_booking_value=_money(result.stats.avg_booking_value)
        )
    }

@app.post("/api/bookings", response_model=DataResponse[BookingResponse], status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new booking"""
    try:
        booking = await service.create_booking(**request.model_dump(), created_by=current_user.user_id)
        return {
            "data": _booking_to_response(await queries.describe(booking)),
            "message": "Booking created successfully"
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/bookings/{booking_id}", response_model=DataResponse[BookingResponse], tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID"""
    booking = await service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return {"data": _booking_to_response(await queries.describe(booking))}

@app.put("/api/bookings/{booking_id}", response_model=DataResponse[BookingResponse], tags=["Bookings"])
async def update_booking(
    booking_id: UUID,
    request: UpdateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update booking; nights and amounts are recomputed from the effective values"""
    try:
        booking = await service.update_booking(booking_id, **request.model_dump(exclude_unset=True))
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return {
            "data": _booking_to_response(await queries.describe(booking)),
            "message": "Booking updated successfully"
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/api/bookings/{booking_id}", response_model=MessageResponse, tags=["Bookings"])
async def delete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete booking unless the guest is checked in"""
    try:
        if not await service.delete_booking(booking_id):
            raise HTTPException(status_code=404, detail="Booking not found")
        return {"message": "Booking deleted successfully"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/bookings/{booking_id}/checkin", response_model=DataResponse[BookingResponse], tags=["Bookings"])
async def check_in_booking(
    booking_id: UUID,
    request: CheckInRequest,
    service: BookingService = Depends(get_booking_service),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check in guest, optionally collecting an advance payment"""
    try:
        booking = await service.check_in_guest(
            booking_id,
            processed_by=current_user.user_id,
            **request.model_dump()
        )
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return {
            "data": _booking_to_response(await queries.describe(booking)),
            "message": "Guest checked in successfully"
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/bookings/{booking_id}/checkout", response_model=CheckOutResponse, tags=["Bookings"])
async def check_out_booking(
    booking_id: UUID,
    request: CheckOutRequest,
    service: BookingService = Depends(get_booking_service),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check out guest; a remaining balance is reported, not enforced"""
    try:
        result = await service.check_out_guest(
            booking_id,
            processed_by=current_user.user_id,
            **request.model_dump()
        )
        if not result:
            raise HTTPException(status_code=404, detail="Booking not found")
        message = "Guest checked out successfully"
        if result.balance_due > 0:
            message += f". Balance due: {result.balance_due} {settings.CURRENCY}"
        return {
            "data": _booking_to_response(await queries.describe(result.booking)),
            "final_amount": _money(result.final_amount),
            "balance_due": _money(result.balance_due),
            "message": message
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/bookings/{booking_id}/payment", response_model=PaymentAppliedResponse, tags=["Bookings"])
async def apply_payment(
    booking_id: UUID,
    request: PaymentRequest,
    ledger: PaymentLedger = Depends(get_payment_ledger),
    queries: BookingQueryService = Depends(get_booking_query_service),
    current_user: User = Depends(get_current_active_user)
):
    """Apply a payment against the outstanding balance"""
    try:
        result = await ledger.apply_payment(
            booking_id,
            amount=request.amount,
            method=request.payment_method,
            processed_by=current_user.user_id,
            transaction_id=request.transaction_id,
            notes=request.notes
        )
        if not result:
            raise HTTPException(status_code=404, detail="Booking not found")
        booking, event = result
        return {
            "data": _booking_to_response(await queries.describe(booking)),
            "payment": _payment_to_response(event),
            "message": "Payment processed successfully"
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/bookings/{booking_id}/payments", response_model=DataResponse[List[PaymentResponse]], tags=["Bookings"])
async def list_booking_payments(
    booking_id: UUID,
    ledger: PaymentLedger = Depends(get_payment_ledger),
    current_user: User = Depends(get_current_active_user)
):
    """Payment history of a booking, oldest first"""
    events = await ledger.list_payments(booking_id)
    if events is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return {"data": [_payment_to_response(e) for e in events]}

# ============================================================================
# RESPONSE HELPERS
# ============================================================================

def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)

def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))

def _room_type_summary(room_type: Optional[RoomType]) -> Optional[RoomTypeSummary]:
    if room_type is None:
        return None
    return RoomTypeSummary(
        room_type_id=room_type.room_type_id,
        name=room_type.name,
        code=room_type.code,
        category=room_type.category.value,
        base_price=_money(room_type.base_price),
        max_occupancy=room_type.max_occupancy
    )

def _room_type_to_response(room_type: RoomType) -> RoomTypeResponse:
    return RoomTypeResponse(
        room_type_id=room_type.room_type_id,
        name=room_type.name,
        code=room_type.code,
        category=room_type.category.value,
        description=room_type.description,
        max_occupancy=room_type.max_occupancy,
        base_price=_money(room_type.base_price),
        extra_person_price=_money(room_type.extra_person_price),
        amenities=room_type.amenities,
        view_type=room_type.view_type.value,
        smoking_allowed=room_type.smoking_allowed,
        is_active=room_type.is_active,
        created_at=room_type.created_at,
        modified_at=room_type.modified_at
    )

def _room_to_response(room: Room, room_type: Optional[RoomType] = None) -> RoomResponse:
    return RoomResponse(
        room_id=room.room_id,
        room_number=room.room_number,
        room_type_id=room.room_type_id,
        room_type=_room_type_summary(room_type),
        floor=room.floor,
        status=room.status.value,
        notes=room.notes,
        image_url=room.image_url,
        created_at=room.created_at,
        modified_at=room.modified_at
    )

def _guest_to_response(guest: Guest) -> GuestResponse:
    return GuestResponse(
        guest_id=guest.guest_id,
        name=guest.name,
        email=guest.email,
        phone=guest.phone,
        nationality=guest.nationality,
        id_number=guest.id_number,
        is_active=guest.is_active,
        created_at=guest.created_at,
        modified_at=guest.modified_at
    )

def _payment_to_response(event: PaymentEvent) -> PaymentResponse:
    return PaymentResponse(
        payment_id=event.payment_id,
        booking_id=event.booking_id,
        amount=_money(event.amount),
        method=event.method.value,
        kind=event.kind.value,
        transaction_id=event.transaction_id,
        processed_by=event.processed_by,
        notes=event.notes,
        created_at=event.created_at
    )

def _booking_to_response(details: BookingDetails) -> BookingResponse:
    """Flatten a booking and its references into the client-facing shape"""
    booking, guest, room, room_type = details
    check_in = None
    if booking.check_in_record:
        record = booking.check_in_record
        check_in = CheckInRecordResponse(
            actual_check_in=record.actual_check_in,
            room_key_number=record.room_key_number,
            checked_in_by=record.processed_by,
            check_in_notes=record.notes
        )
    check_out = None
    if booking.check_out_record:
        record = booking.check_out_record
        check_out = CheckOutRecordResponse(
            actual_check_out=record.actual_check_out,
            actual_nights=record.actual_nights,
            extra_charges=_money(record.extra_charges),
            settlement_method=record.settlement_method.value,
            checked_out_by=record.processed_by,
            check_out_notes=record.notes
        )

    return BookingResponse(
        booking_id=booking.booking_id,
        booking_number=booking.booking_number,
        guest_id=booking.guest_id,
        guest=GuestSummary(
            guest_id=guest.guest_id, name=guest.name, email=guest.email, phone=guest.phone
        ) if guest else None,
        room_id=booking.room_id,
        room=RoomSummary(
            room_id=room.room_id,
            room_number=room.room_number,
            floor=room.floor,
            room_type=_room_type_summary(room_type)
        ) if room else None,
        check_in_date=booking.check_in_date,
        check_out_date=booking.check_out_date,
        total_nights=booking.total_nights,
        adults=booking.guest_count.adults,
        children=booking.guest_count.children,
        infants=booking.guest_count.infants,
        room_rate=_money(booking.room_rate),
        extra_charges=_money(booking.extra_charges),
        total_amount=_money(booking.total_amount),
        paid_amount=_money(booking.paid_amount),
        outstanding_amount=_money(booking.outstanding_amount),
        status=booking.status.value,
        payment_status=booking.payment_status.value,
        special_requests=booking.special_requests,
        notes=booking.notes,
        source=booking.source,
        check_in=check_in,
        check_out=check_out,
        created_by=booking.created_by,
        created_at=booking.created_at,
        modified_at=booking.modified_at,
        version=booking.version
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
