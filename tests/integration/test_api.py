"""HTTP-level tests: routing, auth, error bodies and camelCase output."""

from practice_api.auth import create_access_token
from practice_api.models import ActivityLog


class TestHealth:
    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestAuth:
    def test_missing_token(self, api):
        response = api.get("/practice/sales")
        # HTTPBearer answers 403 on older FastAPI releases
        assert response.status_code in (401, 403)

    def test_bad_token(self, api):
        response = api.get("/practice/sales", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_unknown_subject(self, api):
        token = create_access_token("no-such-doctor")
        response = api.get("/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestPublicBooking:
    """Patients book and look up without a token."""

    def test_book_and_look_up(self, api, slot, patient_payload):
        response = api.post("/appointments/bookings", json={**patient_payload, "slotId": slot.id})
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["slotId"] == slot.id
        code = body["confirmationCode"]

        found = api.get(f"/appointments/bookings/{code}")
        assert found.status_code == 200
        assert found.json()["id"] == body["id"]

    def test_audit_runs_after_response(self, api, db, slot, patient_payload):
        api.post("/appointments/bookings", json={**patient_payload, "slotId": slot.id})
        assert db.query(ActivityLog).filter_by(action_type="BOOKING_CREATED").count() == 1

    def test_full_slot_is_409(self, api, slot, patient_payload):
        api.post("/appointments/bookings", json={**patient_payload, "slotId": slot.id})
        response = api.post(
            "/appointments/bookings",
            json={**patient_payload, "patientEmail": "otra@example.com", "slotId": slot.id},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "capacity_exceeded"

    def test_invalid_payload_is_422(self, api, slot):
        response = api.post("/appointments/bookings", json={"slotId": slot.id, "patientEmail": "nope"})
        assert response.status_code == 422

    def test_public_slot_listing(self, api, single_day_slots, doctor):
        response = api.get("/appointments/slots", params={"doctorId": doctor.id})
        assert response.status_code == 200
        assert [s["startTime"] for s in response.json()] == ["09:00", "10:00", "11:00"]


class TestDoctorEndpoints:
    def test_confirm_booking(self, api, auth_headers, slot, patient_payload):
        booking = api.post("/appointments/bookings", json={**patient_payload, "slotId": slot.id}).json()

        response = api.patch(
            f"/appointments/bookings/{booking['id']}", json={"status": "CONFIRMED"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

        again = api.patch(
            f"/appointments/bookings/{booking['id']}", json={"status": "PENDING"}, headers=auth_headers
        )
        assert again.status_code == 409
        assert again.json()["detail"]["from"] == "CONFIRMED"

    def test_purchase_scenario(self, api, auth_headers, supplier, item_payload):
        response = api.post(
            "/practice/purchases",
            json={"supplierId": supplier.id, "items": item_payload},
            headers=auth_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["purchaseNumber"].startswith("CMP-")
        assert float(body["total"]) == 2240.0
        assert len(body["items"]) == 2

        entries = api.get("/practice/ledger", headers=auth_headers).json()
        assert len(entries) == 1
        assert entries[0]["entryType"] == "egreso"
        assert entries[0]["purchaseId"] == body["id"]

        balance = api.get("/practice/ledger/balance", headers=auth_headers).json()
        assert float(balance["balance"]) == -2240.0

    def test_task_warnings_in_response(self, api, auth_headers, slot, patient_payload, slot_date):
        api.post("/appointments/bookings", json={**patient_payload, "slotId": slot.id})

        response = api.post(
            "/tasks",
            json={
                "title": "Llamar proveedor",
                "dueDate": slot_date.isoformat(),
                "startTime": "10:30",
                "endTime": "11:00",
            },
            headers=auth_headers,
        )
        assert response.status_code == 201
        warnings = response.json()["bookingWarnings"]
        assert warnings[0]["slotId"] == slot.id

    def test_conflict_report_query(self, api, auth_headers, slot_date):
        response = api.get(
            "/tasks/conflicts",
            params={"date": slot_date.isoformat(), "startTime": "10:00", "endTime": "09:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_other_doctors_sale_is_404(self, api, other_doctor):
        token = create_access_token(other_doctor.id)
        response = api.get("/practice/sales/999", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"


class TestCounterparties:
    """Clients and suppliers are scoped to the doctor."""

    def test_create_list_update_client(self, api, auth_headers):
        created = api.post(
            "/practice/clients",
            json={"businessName": "Clínica Norte", "email": "Compras@Norte.MX"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        client = created.json()
        assert client["businessName"] == "Clínica Norte"
        assert client["email"] == "compras@norte.mx"

        listed = api.get("/practice/clients", params={"search": "norte"}, headers=auth_headers).json()
        assert [c["id"] for c in listed] == [client["id"]]

        updated = api.put(
            f"/practice/clients/{client['id']}", json={"contactName": "Luis Pérez"}, headers=auth_headers
        )
        assert updated.json()["contactName"] == "Luis Pérez"
        assert updated.json()["businessName"] == "Clínica Norte"

    def test_supplier_of_other_doctor_is_404(self, api, supplier, other_doctor):
        token = create_access_token(other_doctor.id)
        response = api.get(
            f"/practice/suppliers/{supplier.id}", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 404
