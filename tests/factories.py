"""
Request builders shared by the API tests
"""
from portal.database.models import User
from portal.utils.auth import create_access_token

TEST_PASSWORD = "correct-horse-battery"


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def module_payload(count: int = 6) -> list:
    return [
        {"id": f"mod-{i}", "name": f"Module {i}", "code": f"CS{300 + i}", "credits": 3}
        for i in range(1, count + 1)
    ]


def registration_payload(**overrides) -> dict:
    payload = {
        "semester": "Semester 1",
        "academic_year": "2025/2026",
        "year_level": 2,
        "enrollment_intake": "March 2024",
        "modules": module_payload(),
    }
    payload.update(overrides)
    return payload


def submit(client, student: User, **overrides):
    return client.post(
        "/api/v1/registrations", json=registration_payload(**overrides), headers=auth_headers(student)
    )


def approve(client, user: User, submission_id, comments=None):
    body = {"comments": comments} if comments is not None else None
    return client.post(
        f"/api/v1/registrations/{submission_id}/approve", json=body, headers=auth_headers(user)
    )


def reject(client, user: User, submission_id, comments):
    return client.post(
        f"/api/v1/registrations/{submission_id}/reject",
        json={"comments": comments},
        headers=auth_headers(user),
    )
