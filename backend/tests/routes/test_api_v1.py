"""
API tests for the v1 routes.

Route-level services run on the real clock, so classes are booked far in
the future; time-dependent transitions are covered in the service tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from tutorbook.core.actor import Actor
from tutorbook.core.enums import ActorRole

from tests.utils.builders import actor_headers

FUTURE_DATE = "2099-01-05"
PROBLEM_JSON = "application/problem+json"


@pytest.fixture
def admin_headers(admin_actor):
    return actor_headers(admin_actor)


@pytest.fixture
def teacher_headers(teacher_actor):
    return actor_headers(teacher_actor)


@pytest.fixture
def student_headers(student_actor):
    return actor_headers(student_actor)


@pytest.fixture
def published(client, teacher, teacher_headers):
    response = client.post(
        f"/api/v1/teachers/{teacher.id}/slots",
        json={
            "slots": [
                {"slot_date": FUTURE_DATE, "start_time": "09:00"},
                {"slot_date": FUTURE_DATE, "start_time": "09:30"},
            ]
        },
        headers=teacher_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def booked(client, published, teacher, student, student_headers):
    response = client.post(
        "/api/v1/bookings/",
        json={
            "student_id": student.id,
            "teacher_id": teacher.id,
            "booking_date": FUTURE_DATE,
            "start_time": "09:00",
            "lesson_ref": "Unit 5",
            "student_level": "Advanced",
        },
        headers=student_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestPlumbing:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_identity_headers(self, client, teacher):
        response = client.get(f"/api/v1/bookings/teacher?teacher_id={teacher.id}")

        assert response.status_code == 401
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        assert response.json()["code"] == "UNAUTHENTICATED"

    def test_unknown_role(self, client):
        response = client.get(
            "/api/v1/bookings/student", headers={"X-Actor-Role": "janitor", "X-Actor-Id": "x"}
        )
        assert response.status_code == 401

    def test_request_validation_problem(self, client, student_headers):
        response = client.post("/api/v1/bookings/", json={"teacher_id": "t"}, headers=student_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["instance"] == "/api/v1/bookings/"


class TestAvailabilityRoutes:
    def test_publish_and_list(self, client, published, teacher, teacher_headers):
        assert published["published"] == 2
        assert published["range_start"] == FUTURE_DATE

        response = client.get(
            f"/api/v1/teachers/{teacher.id}/slots",
            params={"start_date": FUTURE_DATE, "end_date": FUTURE_DATE},
            headers=teacher_headers,
        )
        assert response.status_code == 200
        assert [s["start_time"] for s in response.json()] == ["09:00:00", "09:30:00"]

    def test_publish_for_other_teacher_forbidden(self, client, teacher, other_teacher):
        headers = actor_headers(Actor(role=ActorRole.TEACHER, id=other_teacher.id))
        response = client.post(
            f"/api/v1/teachers/{teacher.id}/slots",
            json={"slots": [{"slot_date": FUTURE_DATE, "start_time": "09:00"}]},
            headers=headers,
        )

        assert response.status_code == 403
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        assert response.json()["code"] == "NOT_AUTHORIZED"

    def test_empty_publish(self, client, teacher, teacher_headers):
        response = client.post(
            f"/api/v1/teachers/{teacher.id}/slots", json={"slots": []}, headers=teacher_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_SLOT_LIST"

    def test_find_available_teachers(self, client, published, teacher, student_headers):
        response = client.get(
            "/api/v1/availability/teachers",
            params={"date": FUTURE_DATE, "time": "09:30"},
            headers=student_headers,
        )
        assert response.status_code == 200
        assert response.json() == [{"id": teacher.id, "name": "Maria Santos"}]


class TestBookingRoutes:
    def test_create_booking(self, booked, teacher):
        assert booked["status"] == "pending"
        assert booked["classroom_id"] == "209901050900kenji1"
        assert booked["teacher_id"] == teacher.id

    def test_double_booking_conflicts(self, client, booked, teacher, other_student):
        headers = actor_headers(Actor(role=ActorRole.STUDENT, id=other_student.id))
        response = client.post(
            "/api/v1/bookings/",
            json={
                "student_id": other_student.id,
                "teacher_id": teacher.id,
                "booking_date": FUTURE_DATE,
                "start_time": "09:00",
                "lesson_ref": "Unit 1",
                "student_level": "A1",
            },
            headers=headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_UNAVAILABLE"

    def test_lookup_by_id_and_classroom(self, client, booked, teacher_headers):
        by_id = client.get(f"/api/v1/bookings/{booked['id']}", headers=teacher_headers)
        by_room = client.get(
            f"/api/v1/bookings/classroom/{booked['classroom_id']}", headers=teacher_headers
        )

        assert by_id.status_code == 200
        assert by_room.json()["id"] == booked["id"]

    def test_unknown_booking_is_404(self, client, teacher_headers):
        response = client.get("/api/v1/bookings/nope", headers=teacher_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "BOOKING_NOT_FOUND"

    def test_enter_then_finish_too_early(self, client, booked, teacher_headers):
        entered = client.post(
            f"/api/v1/bookings/{booked['id']}/enter", json={"role": "teacher"}, headers=teacher_headers
        )
        assert entered.status_code == 200
        assert entered.json()["teacher_entered"] is True

        finished = client.post(f"/api/v1/bookings/{booked['id']}/finish", headers=teacher_headers)
        assert finished.status_code == 422
        assert finished.json()["code"] == "DURATION_REQUIREMENT_NOT_MET"

    def test_enter_rejects_client_supplied_time(self, client, booked, teacher_headers):
        forged = client.post(
            f"/api/v1/bookings/{booked['id']}/enter",
            json={"role": "teacher", "entered_at": f"{FUTURE_DATE}T01:00:00Z"},
            headers=teacher_headers,
        )
        assert forged.status_code == 422
        assert forged.headers["content-type"].startswith(PROBLEM_JSON)

        booking = client.get(f"/api/v1/bookings/{booked['id']}", headers=teacher_headers).json()
        assert booking["teacher_entered"] is False
        assert booking["teacher_entered_at"] is None
        assert booking["late_minutes"] == 0

    def test_finish_without_teacher(self, client, booked, teacher_headers):
        response = client.post(f"/api/v1/bookings/{booked['id']}/finish", headers=teacher_headers)
        assert response.status_code == 422
        assert response.json()["code"] == "TEACHER_NOT_PRESENT"

    def test_self_cancel_reopens_slot(self, client, booked, teacher, student_headers):
        response = client.post(f"/api/v1/bookings/{booked['id']}/cancel", headers=student_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        open_teachers = client.get(
            "/api/v1/availability/teachers",
            params={"date": FUTURE_DATE, "time": "09:00"},
            headers=student_headers,
        ).json()
        assert [t["id"] for t in open_teachers] == [teacher.id]

    def test_teacher_absent_requires_admin(self, client, booked, teacher_headers, admin_headers):
        forbidden = client.post(
            f"/api/v1/bookings/{booked['id']}/teacher-absent", headers=teacher_headers
        )
        assert forbidden.status_code == 403

        response = client.post(
            f"/api/v1/bookings/{booked['id']}/teacher-absent",
            json={"reason": "No show"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["absent_type"] == "teacher"

    def test_completed_status_is_frozen(self, client, booked, admin_headers):
        corrected = client.post(
            f"/api/v1/bookings/{booked['id']}/status",
            json={"status": "completed"},
            headers=admin_headers,
        )
        assert corrected.status_code == 200

        again = client.post(
            f"/api/v1/bookings/{booked['id']}/status",
            json={"status": "absent"},
            headers=admin_headers,
        )
        assert again.status_code == 409
        assert again.json()["code"] == "ALREADY_RESOLVED"

    def test_teacher_listing(self, client, booked, teacher, teacher_headers):
        response = client.get(
            "/api/v1/bookings/teacher", params={"status": "pending"}, headers=teacher_headers
        )
        assert [b["id"] for b in response.json()] == [booked["id"]]


class TestCancellationRoutes:
    def test_request_and_approve(self, client, booked, student_headers, admin_headers):
        created = client.post(
            "/api/v1/cancellation-requests/",
            json={"booking_id": booked["id"], "reason": "Travelling abroad that week"},
            headers=student_headers,
        )
        assert created.status_code == 201
        request_id = created.json()["id"]

        reviewed = client.post(
            f"/api/v1/cancellation-requests/{request_id}/review",
            json={"decision": "approved", "admin_notes": "ok"},
            headers=admin_headers,
        )
        assert reviewed.status_code == 200
        assert reviewed.json()["status"] == "approved"

        booking = client.get(f"/api/v1/bookings/{booked['id']}", headers=admin_headers).json()
        assert booking["status"] == "cancelled"

    def test_short_reason(self, client, booked, student_headers):
        response = client.post(
            "/api/v1/cancellation-requests/",
            json={"booking_id": booked["id"], "reason": "sick"},
            headers=student_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REASON"


class TestPayrollRoutes:
    def test_rates(self, client, teacher, admin_headers, teacher_headers):
        updated = client.put("/api/v1/payroll/rates/global", json={"rate": "150"}, headers=admin_headers)
        assert updated.status_code == 200
        assert Decimal(updated.json()["rate"]) == Decimal("150.00")

        fetched = client.get("/api/v1/payroll/rates/global", headers=teacher_headers)
        assert Decimal(fetched.json()["rate"]) == Decimal("150.00")

        forbidden = client.put(
            f"/api/v1/payroll/rates/teachers/{teacher.id}", json={"rate": "90"}, headers=teacher_headers
        )
        assert forbidden.status_code == 403

    def test_summary_and_disbursement(self, client, teacher, teacher_headers, admin_headers):
        params = {"start_date": "2026-03-02", "end_date": "2026-03-08"}
        summary = client.get(
            f"/api/v1/payroll/teachers/{teacher.id}/summary", params=params, headers=teacher_headers
        )
        assert summary.status_code == 200
        assert summary.json()["period_label"] == "2026-03-02 - 2026-03-08"
        assert Decimal(summary.json()["net"]) == Decimal("0")

        disbursed = client.post(
            f"/api/v1/payroll/teachers/{teacher.id}/disburse",
            json={"start_date": "2026-03-02", "end_date": "2026-03-08"},
            headers=admin_headers,
        )
        assert disbursed.status_code == 200
        assert disbursed.json()["status"] == "nothing_due"

    def test_inverted_range(self, client, teacher, teacher_headers):
        response = client.get(
            f"/api/v1/payroll/teachers/{teacher.id}/summary",
            params={"start_date": "2026-03-08", "end_date": "2026-03-02"},
            headers=teacher_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_RANGE"

    def test_weekly_overview(self, client, teacher, admin_headers):
        response = client.get(
            "/api/v1/payroll/weekly", params={"week_of": date(2026, 3, 4).isoformat()}, headers=admin_headers
        )
        assert response.status_code == 200
        rows = response.json()
        assert [row["summary"]["teacher_id"] for row in rows] == [teacher.id]
        assert rows[0]["status"] == "Pending"
