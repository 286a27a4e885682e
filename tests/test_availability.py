from datetime import time

from medibook.core.security import UserRole
from medibook.models import Appointment, AppointmentStatus, Availability, DayOfWeek

from .conftest import next_weekday

BASE = "/api/v1/availability"


class TestAvailabilityTemplates:

    def test_create_availability(self, client, make_doctor, auth_headers):
        doctor = make_doctor()

        response = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 1, "startTime": "09:00:00", "endTime": "10:00:00"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 201

        data = response.json()
        assert data["doctorId"] == doctor.id
        assert data["dayOfWeek"] == 1
        assert data["startTime"] == "09:00:00"
        assert data["endTime"] == "10:00:00"
        assert data["isActive"] is True

    def test_create_accepts_day_name(self, client, make_doctor, auth_headers):
        doctor = make_doctor()

        response = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": "Friday", "startTime": "14:00:00", "endTime": "15:00:00"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 201
        assert response.json()["dayOfWeek"] == int(DayOfWeek.FRIDAY)

    def test_create_rejects_times_with_offset(self, client, make_doctor, auth_headers):
        doctor = make_doctor()

        response = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 1, "startTime": "09:00:00Z", "endTime": "10:00:00Z"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 422

    def test_update_rejects_times_with_offset(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        availability = make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))

        response = client.put(
            f"{BASE}/{availability.id}",
            json={"endTime": "11:00:00+01:00"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 422

    def test_overlapping_availability_is_rejected(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(11, 0))

        for start, end in [("10:00:00", "12:00:00"), ("08:00:00", "09:30:00"),
                           ("09:30:00", "10:30:00"), ("08:00:00", "12:00:00")]:
            response = client.post(
                f"{BASE}/my-availability",
                json={"dayOfWeek": 1, "startTime": start, "endTime": end},
                headers=auth_headers(doctor.user)
            )
            assert response.status_code == 400, (start, end)
            assert "overlaps" in response.json()["detail"]

    def test_adjacent_and_other_day_windows_are_allowed(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))
        headers = auth_headers(doctor.user)

        adjacent = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 1, "startTime": "10:00:00", "endTime": "11:00:00"},
            headers=headers
        )
        other_day = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 2, "startTime": "09:00:00", "endTime": "10:00:00"},
            headers=headers
        )
        assert adjacent.status_code == 201
        assert other_day.status_code == 201

    def test_inactive_templates_do_not_block(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0), is_active=False)

        response = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 1, "startTime": "09:00:00", "endTime": "10:00:00"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 201

    def test_overlap_is_per_doctor(self, client, make_doctor, make_availability, auth_headers):
        other = make_doctor()
        doctor = make_doctor()
        make_availability(other, DayOfWeek.MONDAY, time(9, 0), time(10, 0))

        response = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 1, "startTime": "09:00:00", "endTime": "10:00:00"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 201

    def test_start_must_be_before_end(self, client, make_doctor, auth_headers):
        doctor = make_doctor()

        for start, end in [("10:00:00", "09:00:00"), ("10:00:00", "10:00:00")]:
            response = client.post(
                f"{BASE}/my-availability",
                json={"dayOfWeek": 1, "startTime": start, "endTime": end},
                headers=auth_headers(doctor.user)
            )
            assert response.status_code == 400

    def test_patient_cannot_manage_availability(self, client, make_patient, auth_headers):
        patient = make_patient()

        response = client.post(
            f"{BASE}/my-availability",
            json={"dayOfWeek": 1, "startTime": "09:00:00", "endTime": "10:00:00"},
            headers=auth_headers(patient.user)
        )
        assert response.status_code == 403

    def test_update_excludes_itself_from_overlap_check(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        availability = make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))

        response = client.put(
            f"{BASE}/{availability.id}",
            json={"startTime": "09:00:00", "endTime": "09:30:00"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 200
        assert response.json()["endTime"] == "09:30:00"
        assert response.json()["updatedAt"] is not None

    def test_update_into_overlap_is_rejected(self, client, db_session, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))
        second = make_availability(doctor, DayOfWeek.TUESDAY, time(9, 0), time(10, 0))

        response = client.put(
            f"{BASE}/{second.id}",
            json={"dayOfWeek": "Monday"},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 400

        db_session.expire_all()
        assert db_session.get(Availability, second.id).day_of_week == int(DayOfWeek.TUESDAY)

    def test_deactivated_update_skips_overlap_check(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))
        second = make_availability(doctor, DayOfWeek.TUESDAY, time(9, 0), time(10, 0))

        response = client.put(
            f"{BASE}/{second.id}",
            json={"dayOfWeek": 1, "isActive": False},
            headers=auth_headers(doctor.user)
        )
        assert response.status_code == 200
        assert response.json()["isActive"] is False

    def test_cannot_update_another_doctors_template(self, client, make_doctor, make_availability, auth_headers):
        owner = make_doctor()
        intruder = make_doctor()
        availability = make_availability(owner, DayOfWeek.MONDAY, time(9, 0), time(10, 0))

        response = client.put(
            f"{BASE}/{availability.id}",
            json={"endTime": "11:00:00"},
            headers=auth_headers(intruder.user)
        )
        assert response.status_code == 404

    def test_delete_keeps_booked_appointments(self, client, db_session, make_doctor, make_patient,
                                              make_availability, make_appointment, auth_headers):
        doctor = make_doctor()
        patient = make_patient()
        availability = make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))
        appointment = make_appointment(
            doctor, patient, next_weekday(DayOfWeek.MONDAY), time(9, 0), time(10, 0),
            status=AppointmentStatus.CONFIRMED
        )

        availability_id, appointment_id = availability.id, appointment.id

        response = client.delete(f"{BASE}/{availability_id}", headers=auth_headers(doctor.user))
        assert response.status_code == 200

        db_session.expire_all()
        assert db_session.get(Availability, availability_id) is None
        assert db_session.get(Appointment, appointment_id).status == AppointmentStatus.CONFIRMED

    def test_public_listing_shows_only_active(self, client, make_doctor, make_availability):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.TUESDAY, time(9, 0), time(10, 0))
        make_availability(doctor, DayOfWeek.MONDAY, time(11, 0), time(12, 0))
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))
        make_availability(doctor, DayOfWeek.MONDAY, time(13, 0), time(14, 0), is_active=False)

        response = client.get(f"{BASE}/doctor/{doctor.id}")
        assert response.status_code == 200

        data = response.json()
        assert [(a["dayOfWeek"], a["startTime"]) for a in data] == [
            (1, "09:00:00"), (1, "11:00:00"), (2, "09:00:00")
        ]

    def test_my_availability_includes_inactive(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 0), time(10, 0))
        make_availability(doctor, DayOfWeek.MONDAY, time(13, 0), time(14, 0), is_active=False)

        response = client.get(f"{BASE}/my-availability", headers=auth_headers(doctor.user))
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_doctor_without_profile_gets_not_found(self, client, make_user, auth_headers):
        user = make_user(UserRole.DOCTOR)

        response = client.get(f"{BASE}/my-availability", headers=auth_headers(user))
        assert response.status_code == 404


class TestDefaultAvailability:

    def test_creates_hourly_templates_monday_to_saturday(self, client, make_doctor, auth_headers):
        doctor = make_doctor()

        response = client.post(f"{BASE}/my-availability/defaults", headers=auth_headers(doctor.user))
        assert response.status_code == 201

        data = response.json()
        assert len(data) == 6 * 12
        assert {a["dayOfWeek"] for a in data} == {1, 2, 3, 4, 5, 6}
        monday = sorted(a["startTime"] for a in data if a["dayOfWeek"] == 1)
        assert monday[0] == "09:00:00"
        assert monday[-1] == "20:00:00"
        assert all(a["endTime"][:2] == f"{int(a['startTime'][:2]) + 1:02d}" for a in data)

    def test_skips_windows_overlapping_existing_templates(self, client, make_doctor, make_availability, auth_headers):
        doctor = make_doctor()
        make_availability(doctor, DayOfWeek.MONDAY, time(9, 30), time(11, 0))

        response = client.post(f"{BASE}/my-availability/defaults", headers=auth_headers(doctor.user))
        assert response.status_code == 201

        monday = [a for a in response.json() if a["dayOfWeek"] == 1]
        assert len(monday) == 10
        assert "09:00:00" not in {a["startTime"] for a in monday}
        assert "10:00:00" not in {a["startTime"] for a in monday}

    def test_second_call_creates_nothing(self, client, make_doctor, auth_headers):
        doctor = make_doctor()
        headers = auth_headers(doctor.user)

        client.post(f"{BASE}/my-availability/defaults", headers=headers)
        response = client.post(f"{BASE}/my-availability/defaults", headers=headers)

        assert response.status_code == 201
        assert response.json() == []
