"""Tests for assignment publishing, invitations and lecturer statistics."""

import pytest
from sqlalchemy.exc import OperationalError

from conftest import auth_header
from models.assignment import AssignmentModel
from models.invitation import InvitationModel
from schemas.user import Role
from utils.assignment_manager import AssignmentManager, format_deadline


@pytest.fixture
def lecturer(make_user):
    return make_user(Role.LECTURER, first_name="Kofi", last_name="Boateng")


def new_assignment(**overrides):
    body = {
        "title": "Lab Report",
        "course": "Physics",
        "description": "Write it up",
        "deadline": "2030-03-05T12:00:00",
        "isPublished": True,
    }
    body.update(overrides)
    return body


def test_format_deadline():
    from datetime import datetime

    assert format_deadline(datetime(2030, 3, 5, 12, 0)) == "March 5, 2030"
    assert format_deadline(datetime(2031, 11, 23)) == "November 23, 2031"


def test_create_published_assignment_gets_code(client, lecturer):
    resp = client.post("/api/assignment/new", json=new_assignment(), headers=auth_header(lecturer))

    assert resp.status_code == 201
    assignment = resp.json()["assignment"]
    assert assignment["assignmentCode"] == "ASS-001"
    assert assignment["lecturerId"] == lecturer.staff_id
    assert assignment["isPublished"] is True


def test_codes_continue_after_existing_assignments(client, lecturer, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-007")

    resp = client.post("/api/assignment/new", json=new_assignment(), headers=auth_header(lecturer))

    assert resp.json()["assignment"]["assignmentCode"] == "ASS-008"


def test_draft_has_no_code_until_published(client, lecturer):
    headers = auth_header(lecturer)
    draft = client.post(
        "/api/assignment/new", json=new_assignment(isPublished=False), headers=headers
    ).json()["assignment"]
    assert draft["assignmentCode"] is None

    resp = client.put(
        "/api/assignment/update",
        json=new_assignment(id=draft["id"], title="Final Lab Report"),
        headers=headers,
    )

    assert resp.status_code == 200
    published = resp.json()["assignment"]
    assert published["assignmentCode"] == "ASS-001"
    assert published["title"] == "Final Lab Report"


@pytest.mark.parametrize("missing", ["title", "deadline"])
def test_create_requires_title_and_deadline(client, lecturer, missing):
    body = new_assignment()
    del body[missing]

    resp = client.post("/api/assignment/new", json=body, headers=auth_header(lecturer))

    assert resp.status_code == 400
    assert resp.json()["message"] == "Title and deadline are required."


def test_students_cannot_create_assignments(client, make_user):
    student = make_user(Role.STUDENT)

    resp = client.post("/api/assignment/new", json=new_assignment(), headers=auth_header(student))

    assert resp.status_code == 403


def test_update_requires_code(client, lecturer):
    resp = client.put("/api/assignment/update", json=new_assignment(), headers=auth_header(lecturer))

    assert resp.status_code == 400


def test_update_by_other_lecturer_is_not_found(client, make_user, lecturer, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-001")
    intruder = make_user(Role.LECTURER)

    resp = client.put(
        "/api/assignment/update",
        json=new_assignment(assignmentCode="ASS-001", title="Hijacked"),
        headers=auth_header(intruder),
    )

    assert resp.status_code == 404
    assert resp.json()["message"] == "Assignment not found or not authorized."


def test_delete_assignment(client, db, lecturer, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-001")

    resp = client.request(
        "DELETE",
        "/api/assignment/clear",
        json={"assignmentCode": "ASS-001"},
        headers=auth_header(lecturer),
    )

    assert resp.status_code == 200
    assert resp.json() == {"message": "Assignment deleted successfully."}
    db.expire_all()
    assert db.query(AssignmentModel).count() == 0


def test_list_and_count_assignments(client, lecturer, make_user, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-001")
    make_assignment(lecturer.staff_id, code="ASS-002", title="Essay")
    student = make_user(Role.STUDENT)

    listed = client.get("/api/assignment/all", headers=auth_header(student)).json()
    total = client.get("/api/assignment/total", headers=auth_header(student)).json()

    assert [a["title"] for a in listed["assignments"]] == ["Lab Report", "Essay"]
    assert total == {"totalAssignments": 2}


def test_invite_students(client, db, mailer, lecturer, make_user, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-001")
    student = make_user(Role.STUDENT, first_name="Esi", last_name="Owusu")

    resp = client.post(
        "/api/invite/assignment",
        json={"studentIds": [student.staff_id, "STU-00404"], "assignmentCode": "ASS-001"},
        headers=auth_header(lecturer),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["successfulEntries"] == [
        {"studentId": student.staff_id, "message": "Invitation sent successfully"}
    ]
    assert body["skippedEntries"] == [{"studentId": "STU-00404", "message": "User not found"}]

    [message] = mailer.sent_to(student.email)
    assert message["subject"] == "Invitation to Assignment"
    assert "March 5, 2030" in message["html"]
    assert "ASS-001" in message["html"]

    db.expire_all()
    invitation = db.query(InvitationModel).one()
    assert [s.staff_id for s in invitation.students] == [student.staff_id]


def test_invite_to_unknown_assignment_is_skipped(client, mailer, lecturer, make_user):
    student = make_user(Role.STUDENT)

    resp = client.post(
        "/api/invite/assignment",
        json={"studentIds": [student.staff_id], "assignmentCode": "ASS-404"},
        headers=auth_header(lecturer),
    )

    assert resp.json()["skippedEntries"] == [
        {"studentId": student.staff_id, "message": "Assignment not found"}
    ]
    assert mailer.sent == []


def test_invite_mail_failure_is_skipped(client, mailer, lecturer, make_user, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-001")
    student = make_user(Role.STUDENT)
    mailer.failing_recipients.add(student.email)

    resp = client.post(
        "/api/invite/assignment",
        json={"studentIds": [student.staff_id], "assignmentCode": "ASS-001"},
        headers=auth_header(lecturer),
    )

    assert resp.status_code == 200
    assert resp.json()["skippedEntries"][0]["message"] == "Error processing invitation"


def test_student_sees_invited_assignments(client, lecturer, make_user, make_assignment):
    make_assignment(lecturer.staff_id, code="ASS-001")
    make_assignment(lecturer.staff_id, code="ASS-002", title="Essay")
    student = make_user(Role.STUDENT)
    client.post(
        "/api/invite/assignment",
        json={"studentIds": [student.staff_id], "assignmentCode": "ASS-002"},
        headers=auth_header(lecturer),
    )

    resp = client.get("/api/student/byassignment", headers=auth_header(student))

    assert [a["assignmentCode"] for a in resp.json()["assignments"]] == ["ASS-002"]


def test_lecturer_assignment_stats(client, lecturer, make_user, make_assignment, make_submission):
    make_assignment(lecturer.staff_id, code="ASS-001")
    esi = make_user(Role.STUDENT, first_name="Esi", last_name="Owusu")
    yaw = make_user(Role.STUDENT, first_name="Yaw", last_name="Asante")
    make_submission(esi.staff_id, "ASS-001")
    make_submission(esi.staff_id, "ASS-001")
    make_submission(yaw.staff_id, "ASS-001")

    resp = client.get("/api/lecturer/assignments", headers=auth_header(lecturer))

    [assignment] = resp.json()["assignments"]
    assert assignment["totalSubmissions"] == 2
    assert assignment["studentIds"] == [esi.staff_id, yaw.staff_id]
    assert assignment["studentNames"] == ["Esi Owusu", "Yaw Asante"]


def test_invite_database_failure_is_skipped(
    client, db, lecturer, make_user, make_assignment, monkeypatch
):
    make_assignment(lecturer.staff_id, code="ASS-001")
    esi = make_user(Role.STUDENT)
    yaw = make_user(Role.STUDENT)
    real_link = AssignmentManager._link_student

    def link_fails_for_esi(self, assignment, user):
        if user.staff_id == esi.staff_id:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return real_link(self, assignment, user)

    monkeypatch.setattr(AssignmentManager, "_link_student", link_fails_for_esi)

    resp = client.post(
        "/api/invite/assignment",
        json={"studentIds": [esi.staff_id, yaw.staff_id], "assignmentCode": "ASS-001"},
        headers=auth_header(lecturer),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["skippedEntries"] == [
        {"studentId": esi.staff_id, "message": "Error processing invitation"}
    ]
    assert [e["studentId"] for e in body["successfulEntries"]] == [yaw.staff_id]
    db.expire_all()
    assert [s.staff_id for s in db.query(InvitationModel).one().students] == [yaw.staff_id]
