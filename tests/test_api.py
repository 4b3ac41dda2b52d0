"""API tests: routes, auth, error mapping"""
import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4
from jose import jwt

from main import app, get_store
from infrastructure.config import settings
from infrastructure.security import create_access_token
from infrastructure.repositories.in_memory_repositories import InMemoryStore, InMemoryBookingRepository
from domain.exceptions import ConcurrentModificationError, StorageUnavailableError


class StaleBookingRepository(InMemoryBookingRepository):
    """Every update loses the race"""

    async def update(self, booking):
        raise ConcurrentModificationError("Booking", booking.booking_id)


class VanishingBookingRepository(InMemoryBookingRepository):
    """The booking is deleted between the read and the write"""

    async def update(self, booking):
        await self.delete(booking.booking_id)
        return await super().update(booking)


class UnreachableBookingRepository(InMemoryBookingRepository):
    """Availability queries fail as if the database went away"""

    async def find_active_overlapping(self, room_id, check_in, check_out, exclude_booking_id=None):
        raise StorageUnavailableError("connection refused")


# ============================================================================
# AUTH
# ============================================================================

class TestAuth:

    @pytest.mark.api
    @pytest.mark.integration
    def test_login_and_me(self, client, auth_headers):
        response = client.get("/users/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == settings.ADMIN_USER_ID
        assert data["username"] == "admin"
        assert data["role"] == "admin"

    @pytest.mark.api
    def test_login_wrong_password(self, client):
        response = client.post("/token", data={"username": "admin", "password": "wrong"})
        assert response.status_code == 401

    @pytest.mark.api
    def test_protected_route_requires_token(self, client):
        assert client.get("/api/bookings").status_code == 401
        assert client.post("/api/bookings", json={}).status_code == 401

    @pytest.mark.api
    def test_invalid_token(self, client):
        response = client.get("/api/bookings", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_token_without_subject(self, client):
        token = jwt.encode(
            {"role": "staff", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.SECRET_KEY, algorithm=settings.ALGORITHM
        )
        response = client.get("/api/bookings", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_expired_token(self, client):
        token = create_access_token("user_1", expires_delta=timedelta(minutes=-1))
        response = client.get("/api/bookings", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.api
    def test_identity_provider_subject_is_used(self, client, booking_payload):
        token = create_access_token("idp|42", claims={"role": "receptionist"})
        headers = {"Authorization": f"Bearer {token}"}
        me = client.get("/users/me", headers=headers).json()
        assert me["user_id"] == "idp|42"
        assert me["role"] == "receptionist"
        created = client.post("/api/bookings", json=booking_payload, headers=headers).json()["data"]
        assert created["created_by"] == "idp|42"

    @pytest.mark.api
    def test_health_is_public(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ============================================================================
# BOOKINGS
# ============================================================================

class TestBookingAPI:

    @pytest.mark.api
    @pytest.mark.integration
    def test_scenario_a_create(self, client, auth_headers, booking_payload, api_guest, api_room):
        response = client.post("/api/bookings", json=booking_payload, headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Booking created successfully"
        data = body["data"]
        assert data["check_in_date"] == "2024-01-10"
        assert data["check_out_date"] == "2024-01-12"
        assert data["total_nights"] == 2
        assert data["total_amount"] == 200.0
        assert data["outstanding_amount"] == 200.0
        assert data["paid_amount"] == 0.0
        assert data["payment_status"] == "pending"
        assert data["status"] == "pending"
        assert data["created_by"] == settings.ADMIN_USER_ID
        assert data["guest"]["name"] == api_guest["name"]
        assert data["room"]["room_number"] == api_room["room_number"]
        assert data["booking_number"].startswith("BKG-")

    @pytest.mark.api
    def test_snake_case_body_accepted(self, client, auth_headers, api_guest, api_room):
        response = client.post("/api/bookings", json={
            "guest_id": api_guest["guest_id"],
            "room_id": api_room["room_id"],
            "check_in": "2024-03-01",
            "check_out": "2024-03-04",
            "adults": 1,
            "room_rate": "80.50",
        }, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["data"]["total_amount"] == 241.5

    @pytest.mark.api
    def test_scenario_b_room_unavailable(self, client, auth_headers, booking_payload):
        confirmed = dict(booking_payload, status="confirmed")
        assert client.post("/api/bookings", json=confirmed, headers=auth_headers).status_code == 201
        overlapping = dict(booking_payload, checkInDate="2024-01-11", checkOutDate="2024-01-13")
        response = client.post("/api/bookings", json=overlapping, headers=auth_headers)
        assert response.status_code == 400
        assert "not available" in response.json()["detail"]

    @pytest.mark.api
    def test_invalid_dates(self, client, auth_headers, booking_payload):
        payload = dict(booking_payload, checkOutDate="2024-01-10")
        response = client.post("/api/bookings", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Check-out date must be after check-in date"

    @pytest.mark.api
    def test_unknown_guest_is_404(self, client, auth_headers, booking_payload):
        payload = dict(booking_payload, guest=str(uuid4()))
        response = client.post("/api/bookings", json=payload, headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Guest not found"

    @pytest.mark.api
    def test_get_is_idempotent(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        first = client.get(f"/api/bookings/{booking_id}", headers=auth_headers)
        second = client.get(f"/api/bookings/{booking_id}", headers=auth_headers)
        assert first.status_code == 200
        assert first.json() == second.json()

    @pytest.mark.api
    def test_get_missing(self, client, auth_headers):
        response = client.get(f"/api/bookings/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.api
    def test_scenario_e_update_invalid_dates(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.put(
            f"/api/bookings/{booking_id}", json={"checkOutDate": "2024-01-09"}, headers=auth_headers
        )
        assert response.status_code == 400
        stored = client.get(f"/api/bookings/{booking_id}", headers=auth_headers).json()["data"]
        assert stored["check_out_date"] == "2024-01-12"
        assert stored["total_nights"] == 2

    @pytest.mark.api
    def test_update_recomputes(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.put(
            f"/api/bookings/{booking_id}",
            json={"checkOutDate": "2024-01-13", "roomRate": 120, "status": "confirmed"},
            headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_nights"] == 3
        assert data["total_amount"] == 360.0
        assert data["status"] == "confirmed"
        assert data["version"] == 2

    @pytest.mark.api
    def test_update_missing(self, client, auth_headers):
        response = client.put(f"/api/bookings/{uuid4()}", json={"notes": "x"}, headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.integration
    def test_payment_flow_scenarios_c_and_d(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.post(
            f"/api/bookings/{booking_id}/payment",
            json={"amount": 200, "paymentMethod": "credit_card", "transactionId": "TX-9"},
            headers=auth_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["paid_amount"] == 200.0
        assert body["data"]["outstanding_amount"] == 0.0
        assert body["data"]["payment_status"] == "paid"
        assert body["payment"]["method"] == "credit_card"
        assert body["payment"]["transaction_id"] == "TX-9"

        response = client.post(f"/api/bookings/{booking_id}/payment", json={"amount": 50}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Payment amount exceeds outstanding balance"

        history = client.get(f"/api/bookings/{booking_id}/payments", headers=auth_headers).json()["data"]
        assert [p["amount"] for p in history] == [200.0]

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_zero_payment(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.post(f"/api/bookings/{booking_id}/payment", json={"amount": 0}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Payment amount must be greater than 0"

    @pytest.mark.api
    def test_payment_missing_booking(self, client, auth_headers):
        response = client.post(f"/api/bookings/{uuid4()}/payment", json={"amount": 10}, headers=auth_headers)
        assert response.status_code == 404
        assert client.get(f"/api/bookings/{uuid4()}/payments", headers=auth_headers).status_code == 404

    @pytest.mark.api
    @pytest.mark.integration
    def test_check_in_check_out_flow(self, client, auth_headers, booking_payload, api_room):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.post(f"/api/bookings/{booking_id}/checkin", json={
            "actualCheckIn": "2024-01-10T14:00:00Z",
            "roomKeyNumber": "K-201",
            "collectPayment": True,
            "advanceAmount": 50,
        }, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "checked_in"
        assert data["paid_amount"] == 50.0
        assert data["check_in"]["room_key_number"] == "K-201"
        room = client.get(f"/api/rooms/{api_room['room_id']}", headers=auth_headers).json()["data"]
        assert room["status"] == "occupied"

        response = client.post(f"/api/bookings/{booking_id}/checkout", json={
            "actualCheckOut": "2024-01-12T10:30:00Z",
            "extraCharges": 30,
            "paymentMethod": "cash",
        }, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["final_amount"] == 230.0
        assert body["balance_due"] == 180.0
        assert "Balance due" in body["message"]
        assert body["data"]["status"] == "checked_out"
        assert body["data"]["check_out"]["actual_nights"] == 2
        room = client.get(f"/api/rooms/{api_room['room_id']}", headers=auth_headers).json()["data"]
        assert room["status"] == "cleaning"

    @pytest.mark.api
    def test_check_out_before_check_in(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.post(f"/api/bookings/{booking_id}/checkout", json={"actualNights": 2}, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.api
    def test_scenario_f_delete(self, client, auth_headers, booking_payload):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        client.post(f"/api/bookings/{booking_id}/checkin", json={}, headers=auth_headers)
        response = client.delete(f"/api/bookings/{booking_id}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot delete a checked-in booking"

        other = dict(booking_payload, checkInDate="2024-02-01", checkOutDate="2024-02-03")
        pending_id = client.post("/api/bookings", json=other, headers=auth_headers).json()["data"]["booking_id"]
        response = client.delete(f"/api/bookings/{pending_id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/bookings/{pending_id}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/bookings/{pending_id}", headers=auth_headers).status_code == 404

    @pytest.mark.api
    def test_list_with_filters_and_global_stats(self, client, auth_headers, booking_payload):
        client.post("/api/bookings", json=dict(booking_payload, status="confirmed"), headers=auth_headers)
        client.post("/api/bookings", json=dict(
            booking_payload, checkInDate="2024-02-01", checkOutDate="2024-02-02"
        ), headers=auth_headers)

        response = client.get("/api/bookings?status=pending&limit=5", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 1, "limit": 5, "total": 1, "total_pages": 1}
        assert body["stats"]["total_bookings"] == 2
        assert body["stats"]["confirmed_bookings"] == 1
        assert body["stats"]["revenue"] == 300.0
        assert body["stats"]["avg_booking_value"] == 150.0

        everything = client.get("/api/bookings?status=all&paymentStatus=all", headers=auth_headers).json()
        assert everything["pagination"]["total"] == 2

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_list_rejects_unknown_filter_and_oversized_page(self, client, auth_headers):
        assert client.get("/api/bookings?dateRange=last_year", headers=auth_headers).status_code == 400
        assert client.get("/api/bookings?limit=101", headers=auth_headers).status_code == 422


# ============================================================================
# CATALOG & GUESTS
# ============================================================================

class TestCatalogAPI:

    @pytest.mark.api
    def test_room_type_validation(self, client, auth_headers):
        response = client.post("/api/room-types", json={
            "name": "Bad", "code": "lower-case", "category": "standard", "maxOccupancy": 2, "basePrice": 10,
        }, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.api
    def test_duplicate_room_number(self, client, auth_headers, api_room):
        response = client.post("/api/rooms", json={
            "roomNumber": api_room["room_number"], "roomType": api_room["room_type_id"], "floor": 2,
        }, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.api
    def test_availability_search(self, client, auth_headers, booking_payload, api_room):
        search = {"checkInDate": "2024-01-10", "checkOutDate": "2024-01-12", "guests": 2}
        rooms = client.post("/api/rooms/availability", json=search, headers=auth_headers).json()["data"]
        assert [r["room_id"] for r in rooms] == [api_room["room_id"]]

        client.post("/api/bookings", json=dict(booking_payload, status="confirmed"), headers=auth_headers)
        rooms = client.post("/api/rooms/availability", json=search, headers=auth_headers).json()["data"]
        assert rooms == []

        too_many = dict(search, checkInDate="2024-03-01", checkOutDate="2024-03-02", guests=3)
        assert client.post("/api/rooms/availability", json=too_many, headers=auth_headers).json()["data"] == []

    @pytest.mark.api
    def test_room_status_and_delete(self, client, auth_headers, api_room):
        room_id = api_room["room_id"]
        response = client.post(f"/api/rooms/{room_id}/status", json={"status": "maintenance"}, headers=auth_headers)
        assert response.json()["data"]["status"] == "maintenance"
        assert client.delete(f"/api/rooms/{room_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/rooms/{room_id}", headers=auth_headers).status_code == 404

    @pytest.mark.api
    def test_guest_crud(self, client, auth_headers, api_guest):
        guest_id = api_guest["guest_id"]
        response = client.put(f"/api/guests/{guest_id}", json={"nationality": "AF"}, headers=auth_headers)
        assert response.json()["data"]["nationality"] == "AF"
        listing = client.get("/api/guests?search=sadat", headers=auth_headers).json()
        assert listing["pagination"]["total"] == 1
        duplicate = client.post("/api/guests", json={"name": "X", "email": api_guest["email"]}, headers=auth_headers)
        assert duplicate.status_code == 400
        assert client.get(f"/api/guests/{uuid4()}", headers=auth_headers).status_code == 404

    @pytest.mark.api
    def test_delete_guest(self, client, auth_headers, api_guest):
        guest_id = api_guest["guest_id"]
        response = client.delete(f"/api/guests/{guest_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Guest deleted successfully"
        assert client.get(f"/api/guests/{guest_id}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/guests/{guest_id}", headers=auth_headers).status_code == 404

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_delete_guest_with_confirmed_booking_rejected(self, client, auth_headers, booking_payload):
        booking_payload["status"] = "confirmed"
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        response = client.delete(f"/api/guests/{booking_payload['guest']}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot delete a guest with active bookings"

        client.put(f"/api/bookings/{booking_id}", json={"status": "cancelled"}, headers=auth_headers)
        assert client.delete(f"/api/guests/{booking_payload['guest']}", headers=auth_headers).status_code == 200

    @pytest.mark.api
    def test_enum_reference(self, client):
        response = client.get("/api/enums/booking-status")
        assert response.json()["values"] == ["pending", "confirmed", "checked_in", "checked_out", "cancelled"]


# ============================================================================
# ERROR MAPPING
# ============================================================================

class TestErrorMapping:

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_concurrent_modification_is_409(self, client, auth_headers, booking_payload, store):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        stale = InMemoryStore()
        stale.room_types, stale.rooms, stale.guests, stale.payments = (
            store.room_types, store.rooms, store.guests, store.payments
        )
        stale.bookings = StaleBookingRepository()
        stale.bookings._storage = store.bookings._storage
        app.dependency_overrides[get_store] = lambda: stale

        response = client.post(f"/api/bookings/{booking_id}/payment", json={"amount": 10}, headers=auth_headers)
        assert response.status_code == 409
        assert client.get(f"/api/bookings/{booking_id}/payments", headers=auth_headers).json()["data"] == []

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_storage_failure_is_500(self, client, auth_headers, booking_payload, store):
        broken = InMemoryStore()
        broken.room_types, broken.rooms, broken.guests = store.room_types, store.rooms, store.guests
        broken.bookings = UnreachableBookingRepository()
        app.dependency_overrides[get_store] = lambda: broken

        response = client.post("/api/bookings", json=booking_payload, headers=auth_headers)
        assert response.status_code == 500
        assert response.json()["detail"] == "Storage is temporarily unavailable, please retry"
        assert store.bookings._storage == {}

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_booking_deleted_mid_update_is_404(self, client, auth_headers, booking_payload, store):
        booking_id = client.post("/api/bookings", json=booking_payload, headers=auth_headers).json()["data"]["booking_id"]
        racing = InMemoryStore()
        racing.room_types, racing.rooms, racing.guests, racing.payments = (
            store.room_types, store.rooms, store.guests, store.payments
        )
        racing.bookings = VanishingBookingRepository()
        racing.bookings._storage = store.bookings._storage
        app.dependency_overrides[get_store] = lambda: racing

        response = client.put(f"/api/bookings/{booking_id}", json={"notes": "late"}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Booking not found"
