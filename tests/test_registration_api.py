"""
End-to-end tests for the registration workflow over HTTP.
"""
import uuid

from factories import TEST_PASSWORD, approve, auth_headers, module_payload, reject, submit
from portal.database.models import ApprovalLog, Submission, UserRole


def history(client, user, submission_id):
    response = client.get(f"/api/v1/registrations/{submission_id}/history", headers=auth_headers(user))
    assert response.status_code == 200
    return response.json()


def assert_error(response, status_code, code):
    assert response.status_code == status_code, response.text
    assert response.headers["X-App-Error-Code"] == code
    assert response.json()["code"] == code


class TestAuth:
    def test_login_returns_bearer_token(self, client, student):
        response = client.post(
            "/api/v1/auth/login", json={"email": student.email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == student.email
        assert me.json()["role"] == "student"

    def test_login_with_wrong_password(self, client, student):
        response = client.post(
            "/api/v1/auth/login", json={"email": student.email, "password": "not-the-password"}
        )
        assert_error(response, 403, "UNAUTHORIZED")

    def test_requests_without_token_are_rejected(self, client):
        assert client.get("/api/v1/registrations").status_code == 401


class TestSubmission:
    def test_submit_six_modules(self, client, student, mailer):
        response = submit(client, student)

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["status"] == "pending_year_leader"
        assert len(body["modules"]) == 6

        entries = history(client, student, body["id"])
        assert [e["action"] for e in entries] == ["submitted"]
        assert entries[0]["from_status"] is None
        assert entries[0]["to_status"] == "pending_year_leader"

        assert mailer.kinds() == ["submission_received"]

    def test_duplicate_submission(self, client, student):
        assert submit(client, student).status_code == 201
        assert_error(submit(client, student), 409, "DUPLICATE_SUBMISSION")

    def test_empty_module_list(self, client, student):
        response = submit(client, student, modules=[])
        assert_error(response, 400, "VALIDATION_FAILED")
        assert response.json()["field"] == "modules"

    def test_eleven_modules(self, client, student):
        assert_error(submit(client, student, modules=module_payload(11)), 400, "VALIDATION_FAILED")

    def test_staff_cannot_submit(self, client, year_leader):
        assert_error(submit(client, year_leader), 403, "UNAUTHORIZED")

    def test_student_lists_only_own_registrations(self, client, student, make_user, faculty, program):
        classmate = make_user(UserRole.STUDENT, faculty, program)
        mine = submit(client, student).json()
        submit(client, classmate)

        response = client.get("/api/v1/registrations", headers=auth_headers(student))
        assert [s["id"] for s in response.json()] == [mine["id"]]

        theirs = client.get("/api/v1/registrations", headers=auth_headers(classmate)).json()[0]
        assert_error(
            client.get(f"/api/v1/registrations/{theirs['id']}", headers=auth_headers(student)),
            404,
            "NOT_FOUND",
        )


class TestApprovalChain:
    def test_year_leader_approves_to_finance(self, client, student, year_leader, mailer):
        submission_id = submit(client, student).json()["id"]

        response = approve(client, year_leader, submission_id, "ok")

        assert response.status_code == 200, response.text
        assert response.json()["status"] == "pending_finance"
        entries = history(client, year_leader, submission_id)
        assert [e["action"] for e in entries] == ["submitted", "approved"]
        assert entries[1]["comments"] == "ok"
        assert (entries[0]["actor_name"], entries[0]["actor_role"]) == (student.full_name, "student")
        assert (entries[1]["actor_name"], entries[1]["actor_role"]) == (year_leader.full_name, "year_leader")
        assert mailer.kinds() == ["submission_received", "approval"]

    def test_finance_rejection_then_registrar_is_invalid_stage(
        self, client, student, year_leader, finance_officer, registrar, mailer
    ):
        submission_id = submit(client, student).json()["id"]
        approve(client, year_leader, submission_id, "ok")

        response = reject(client, finance_officer, submission_id, "Outstanding balance")
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert mailer.kinds()[-1] == "rejection"

        assert_error(approve(client, registrar, submission_id), 409, "INVALID_STAGE")
        assert len(history(client, registrar, submission_id)) == 3

    def test_registrar_final_approval_sends_email(
        self, client, student, year_leader, finance_officer, registrar, mailer
    ):
        submission_id = submit(client, student).json()["id"]
        approve(client, year_leader, submission_id)
        approve(client, finance_officer, submission_id)

        response = approve(client, registrar, submission_id, "Welcome back")

        assert response.json()["status"] == "approved"
        kind, recipient, context = mailer.sent[-1]
        assert kind == "final_approval"
        assert recipient == student.email
        assert context["semester"] == "Semester 1"

        statuses = [e["to_status"] for e in history(client, student, submission_id)]
        assert statuses == ["pending_year_leader", "pending_finance", "pending_registrar", "approved"]

    def test_finance_cannot_approve_before_year_leader(self, client, student, finance_officer):
        submission_id = submit(client, student).json()["id"]
        assert_error(approve(client, finance_officer, submission_id), 409, "INVALID_STAGE")

    def test_rejection_reason_too_short(self, client, student, year_leader):
        submission_id = submit(client, student).json()["id"]

        response = reject(client, year_leader, submission_id, "no")

        assert_error(response, 400, "VALIDATION_FAILED")
        assert response.json()["field"] == "comments"
        assert len(history(client, year_leader, submission_id)) == 1

    def test_year_leader_from_other_faculty(self, client, student, other_year_leader):
        submission_id = submit(client, student).json()["id"]

        assert_error(approve(client, other_year_leader, submission_id), 403, "UNAUTHORIZED")
        assert_error(
            client.get(f"/api/v1/registrations/{submission_id}", headers=auth_headers(other_year_leader)),
            404,
            "NOT_FOUND",
        )
        listed = client.get("/api/v1/registrations", headers=auth_headers(other_year_leader))
        assert listed.json() == []

    def test_students_cannot_approve(self, client, student):
        submission_id = submit(client, student).json()["id"]
        assert_error(approve(client, student, submission_id), 403, "UNAUTHORIZED")

    def test_generic_decision_endpoint(self, client, student, year_leader):
        submission_id = submit(client, student).json()["id"]

        response = client.post(
            f"/api/v1/registrations/{submission_id}/decision",
            json={"decision": "reject", "comments": "Prerequisite missing"},
            headers=auth_headers(year_leader),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    def test_decision_by_system_admin_is_unauthorized(self, client, student, system_admin):
        submission_id = submit(client, student).json()["id"]
        response = client.post(
            f"/api/v1/registrations/{submission_id}/decision",
            json={"decision": "approve"},
            headers=auth_headers(system_admin),
        )
        assert_error(response, 403, "UNAUTHORIZED")

    def test_unknown_registration(self, client, year_leader):
        assert_error(approve(client, year_leader, uuid.uuid4()), 404, "NOT_FOUND")

    def test_resubmit_after_rejection(self, client, student, year_leader):
        submission_id = submit(client, student).json()["id"]
        reject(client, year_leader, submission_id, "Wrong modules selected")

        response = submit(client, student)
        assert response.status_code == 201
        assert response.json()["id"] != submission_id


class TestStoreOutage:
    def test_database_failure_is_a_retryable_503(self, client, student, db, database_outage):
        response = submit(client, student)

        assert_error(response, 503, "PERSISTENCE_FAILURE")
        assert response.headers["Retry-After"] == "1"
        assert response.json()["detail"] == "The registration store is temporarily unavailable"
        assert db.query(Submission).count() == 0
        assert db.query(ApprovalLog).count() == 0
