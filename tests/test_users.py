"""Tests for lecturer and student account management."""

import pytest

from conftest import auth_header
from models.assignment import AssignmentModel
from models.submission import SubmissionModel
from models.user import UserModel
from schemas.user import RegisterEntry, Role
from utils.user_manager import UserManager


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


def entry(first, last, email):
    return {"firstName": first, "lastName": last, "email": email}


def test_register_students_issues_sequential_ids(client, db, mailer, admin):
    resp = client.post(
        "/api/student/register",
        json=[entry("Esi", "Owusu", "esi@example.com"), entry("Yaw", "Asante", "yaw@example.com")],
        headers=auth_header(admin),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert [e["staffId"] for e in body["successfulEntries"]] == ["STU-00001", "STU-00002"]
    assert body["skippedEntries"] == []

    db.expire_all()
    stored = db.query(UserModel).filter(UserModel.email == "esi@example.com").one()
    assert stored.role == "STUDENT"
    assert stored.change_password is True
    assert stored.password_hash.startswith("$2")


def test_register_sends_invite_with_temporary_password(client, mailer, admin):
    client.post(
        "/api/lecturer/register",
        json=[entry("Kofi", "Boateng", "kofi@example.com")],
        headers=auth_header(admin),
    )

    [message] = mailer.sent_to("kofi@example.com")
    assert message["subject"] == "Claim Your Lecturer Account Now"
    assert "LEC-00001" in message["html"]
    assert "Kofi Boateng" in message["html"]


def test_temporary_password_from_invite_can_log_in(client, db, mailer, admin, monkeypatch):
    monkeypatch.setattr("utils.user_manager.generate_temporary_password", lambda: "Temp-Pass-123")
    client.post(
        "/api/student/register",
        json=[entry("Esi", "Owusu", "esi@example.com")],
        headers=auth_header(admin),
    )

    resp = client.post(
        "/api/auth/login", json={"emailOrId": "STU-00001", "password": "Temp-Pass-123"}
    )

    assert resp.status_code == 200
    assert "Temp-Pass-123" in mailer.sent_to("esi@example.com")[0]["html"]


def test_duplicate_email_is_skipped_not_rejected(client, make_user, admin):
    make_user(Role.STUDENT, email="taken@example.com")

    resp = client.post(
        "/api/student/register",
        json=[entry("A", "B", "taken@example.com"), entry("C", "D", "new@example.com")],
        headers=auth_header(admin),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["skippedEntries"] == [
        {"email": "taken@example.com", "message": "Email already exists"}
    ]
    assert [e["email"] for e in body["successfulEntries"]] == ["new@example.com"]


def test_duplicate_inside_one_request_is_skipped(client, admin):
    resp = client.post(
        "/api/lecturer/register",
        json=[entry("A", "B", "same@example.com"), entry("A", "B", "same@example.com")],
        headers=auth_header(admin),
    )

    body = resp.json()
    assert len(body["successfulEntries"]) == 1
    assert len(body["skippedEntries"]) == 1


def test_invite_mail_failure_still_creates_account(client, db, mailer, admin):
    mailer.failing_recipients.add("esi@example.com")

    resp = client.post(
        "/api/student/register",
        json=[entry("Esi", "Owusu", "esi@example.com")],
        headers=auth_header(admin),
    )

    [created] = resp.json()["successfulEntries"]
    assert "could not be sent" in created["message"]
    db.expire_all()
    assert db.query(UserModel).filter(UserModel.email == "esi@example.com").count() == 1


def test_list_and_count_users(client, make_user, admin):
    make_user(Role.LECTURER)
    make_user(Role.LECTURER)
    make_user(Role.STUDENT)

    lecturers = client.get("/api/lecturer/all", headers=auth_header(admin)).json()["lecturers"]
    total = client.get("/api/lecturer/total", headers=auth_header(admin)).json()
    students = client.get("/api/student/total", headers=auth_header(admin)).json()

    assert [u["staffId"] for u in lecturers] == ["LEC-00001", "LEC-00002"]
    assert total == {"totalLecturers": 2}
    assert students == {"totalStudents": 1}


def test_list_users_skip(client, make_user, admin):
    for _ in range(3):
        make_user(Role.STUDENT)

    resp = client.get("/api/student/all?skip=2", headers=auth_header(admin))

    assert [u["staffId"] for u in resp.json()["students"]] == ["STU-00003"]


def test_update_student(client, db, make_user, admin):
    student = make_user(Role.STUDENT)

    resp = client.put(
        "/api/student/update",
        json={"studentId": student.staff_id, "updatedUser": {"email": "new@example.com"}},
        headers=auth_header(admin),
    )

    assert resp.status_code == 200
    db.expire_all()
    refreshed = db.get(UserModel, student.id)
    assert refreshed.email == "new@example.com"
    assert refreshed.first_name == "Ama"


def test_update_unknown_lecturer_is_not_found(client, admin):
    resp = client.put(
        "/api/lecturer/update",
        json={"staffId": "LEC-00404", "updatedUser": {"firstName": "X"}},
        headers=auth_header(admin),
    )

    assert resp.status_code == 404


def test_delete_lecturer_removes_assignments(client, db, make_user, make_assignment, admin):
    lecturer = make_user(Role.LECTURER)
    make_assignment(lecturer.staff_id, code="ASS-001")

    resp = client.request(
        "DELETE",
        "/api/lecturer/clear",
        json={"staffIds": [lecturer.staff_id]},
        headers=auth_header(admin),
    )

    assert resp.status_code == 200
    db.expire_all()
    assert db.query(UserModel).filter(UserModel.role == "LECTURER").count() == 0
    assert db.query(AssignmentModel).count() == 0


def test_delete_student_keeps_submissions(
    client, db, make_user, make_assignment, make_submission, admin
):
    lecturer = make_user(Role.LECTURER)
    student = make_user(Role.STUDENT)
    make_assignment(lecturer.staff_id, code="ASS-001")
    submission = make_submission(student.staff_id, "ASS-001")

    resp = client.request(
        "DELETE",
        "/api/student/clear",
        json={"studentIds": [student.staff_id]},
        headers=auth_header(admin),
    )

    assert resp.status_code == 200
    db.expire_all()
    assert db.get(SubmissionModel, submission.id).student_id is None


def test_delete_unknown_students_is_not_found(client, admin):
    resp = client.request(
        "DELETE",
        "/api/student/clear",
        json={"studentIds": ["STU-00404"]},
        headers=auth_header(admin),
    )

    assert resp.status_code == 404
    assert resp.json()["message"] == "Students not found"


def test_staff_id_clash_is_not_reported_as_duplicate_email(db, mailer, make_user):
    # A lecturer holding a student-style id is invisible to the student seed
    make_user(Role.LECTURER, staff_id="STU-00001")
    manager = UserManager(db, mailer)

    result = manager.register_users(
        [RegisterEntry(first_name="Esi", last_name="Owusu", email="esi@example.com")],
        Role.STUDENT,
    )

    assert result.successful_entries == []
    assert result.skipped_entries == [
        {"email": "esi@example.com", "message": "Staff ID could not be assigned, please retry"}
    ]
    assert manager.get_user_by_email("esi@example.com") is None


def test_email_taken_during_insert_is_duplicate(db, mailer, make_user, monkeypatch):
    make_user(Role.STUDENT, email="esi@example.com")
    manager = UserManager(db, mailer)
    real_lookup = manager.get_user_by_email
    lookups = []

    def lookup_misses_first(email):
        lookups.append(email)
        return None if len(lookups) == 1 else real_lookup(email)

    monkeypatch.setattr(manager, "get_user_by_email", lookup_misses_first)

    result = manager.register_users(
        [RegisterEntry(first_name="Esi", last_name="Owusu", email="esi@example.com")],
        Role.STUDENT,
    )

    assert result.skipped_entries == [
        {"email": "esi@example.com", "message": "Email already exists"}
    ]
