"""Shared fixtures: fresh in-memory stores, services and an authenticated client"""
import pytest
from datetime import date
from decimal import Decimal
from fastapi.testclient import TestClient

from main import app, get_store
from application.services import (
    RoomCatalogService, GuestService, AvailabilityService, PaymentLedger, BookingService,
    BookingQueryService,
)
from infrastructure.repositories.in_memory_repositories import InMemoryStore
from domain.enums import RoomCategory


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def catalog_service(store):
    return RoomCatalogService(store.room_types, store.rooms, store.bookings)


@pytest.fixture
def guest_service(store):
    return GuestService(store.guests, store.bookings)


@pytest.fixture
def availability_service(store):
    return AvailabilityService(store.bookings, store.rooms, store.room_types)


@pytest.fixture
def payment_ledger(store):
    return PaymentLedger(store.bookings, store.payments)


@pytest.fixture
def booking_service(store, availability_service, payment_ledger):
    return BookingService(store.bookings, store.rooms, store.guests, availability_service, payment_ledger)


@pytest.fixture
def query_service(store):
    return BookingQueryService(store.bookings, store.guests, store.rooms, store.room_types)


@pytest.fixture
async def room_type(catalog_service):
    return await catalog_service.create_room_type(
        name="Deluxe Double",
        code="DLX_DBL",
        category=RoomCategory.LUXURY,
        max_occupancy=3,
        base_price=Decimal("100"),
        amenities=["wifi", "minibar"]
    )


@pytest.fixture
async def room(catalog_service, room_type):
    return await catalog_service.create_room("101", room_type.room_type_id, floor=1)


@pytest.fixture
async def second_room(catalog_service, room_type):
    return await catalog_service.create_room("102", room_type.room_type_id, floor=1)


@pytest.fixture
async def guest(guest_service):
    return await guest_service.create_guest(
        name="Ahmad Karimi", email="ahmad@example.com", phone="+93700111222"
    )


@pytest.fixture
def stay():
    """2024-01-10 -> 2024-01-12, two nights"""
    return date(2024, 1, 10), date(2024, 1, 12)


@pytest.fixture
def make_booking(booking_service, guest, room, stay):
    """Factory for bookings on the default guest/room"""
    async def _make(**overrides):
        check_in, check_out = stay
        params = dict(
            guest_id=guest.guest_id,
            room_id=room.room_id,
            check_in=check_in,
            check_out=check_out,
            adults=2,
            room_rate=Decimal("100"),
        )
        params.update(overrides)
        return await booking_service.create_booking(**params)
    return _make


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def client(store):
    """FastAPI test client bound to a fresh store"""
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Get authentication headers with valid token"""
    response = client.post("/token", data={"username": "admin", "password": "admin123"})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_room(client, auth_headers):
    """Room type + room created through the API"""
    room_type = client.post("/api/room-types", json={
        "name": "Standard Twin",
        "code": "STD_TWN",
        "category": "standard",
        "maxOccupancy": 2,
        "basePrice": 100,
    }, headers=auth_headers).json()["data"]
    room = client.post("/api/rooms", json={
        "roomNumber": "201",
        "roomType": room_type["room_type_id"],
        "floor": 2,
    }, headers=auth_headers).json()["data"]
    return room


@pytest.fixture
def api_guest(client, auth_headers):
    return client.post("/api/guests", json={
        "name": "Mariam Sadat",
        "email": "mariam@example.com",
        "phone": "+93700999888",
    }, headers=auth_headers).json()["data"]


@pytest.fixture
def booking_payload(api_room, api_guest):
    return {
        "guest": api_guest["guest_id"],
        "room": api_room["room_id"],
        "checkInDate": "2024-01-10",
        "checkOutDate": "2024-01-12",
        "adults": 2,
        "roomRate": 100,
    }
