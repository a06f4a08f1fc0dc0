"""
Confirmation slip upload, download and deletion.
"""
import pytest

from factories import approve, auth_headers, submit
from portal import settings
from portal.database.models import UserRole

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF\n"


@pytest.fixture
def approved_id(client, student, year_leader, finance_officer, registrar):
    submission_id = submit(client, student).json()["id"]
    for approver in (year_leader, finance_officer, registrar):
        assert approve(client, approver, submission_id).status_code == 200
    return submission_id


def upload(client, user, submission_id, content=PDF_BYTES, name="slip.pdf", mime="application/pdf"):
    return client.post(
        f"/api/v1/registrations/{submission_id}/documents",
        files={"file": (name, content, mime)},
        headers=auth_headers(user),
    )


def test_registrar_uploads_slip_and_student_downloads_it(client, student, registrar, approved_id):
    response = upload(client, registrar, approved_id)

    assert response.status_code == 201, response.text
    document = response.json()
    assert document["file_name"] == "slip.pdf"
    assert document["file_size_bytes"] == len(PDF_BYTES)

    listed = client.get(f"/api/v1/registrations/{approved_id}/documents", headers=auth_headers(student))
    assert [d["id"] for d in listed.json()] == [document["id"]]

    download = client.get(
        f"/api/v1/registrations/{approved_id}/documents/{document['id']}/download",
        headers=auth_headers(student),
    )
    assert download.status_code == 200
    assert download.content == PDF_BYTES
    assert download.headers["content-type"] == "application/pdf"


def test_upload_notifies_student(client, student, registrar, approved_id):
    upload(client, registrar, approved_id)

    titles = [
        n["title"]
        for n in client.get("/api/v1/notifications", headers=auth_headers(student)).json()
    ]
    assert "Confirmation Slip Available" in titles


def test_upload_requires_approved_registration(client, student, registrar):
    submission_id = submit(client, student).json()["id"]

    response = upload(client, registrar, submission_id)

    assert response.status_code == 409
    assert response.headers["X-App-Error-Code"] == "INVALID_STAGE"


def test_only_pdf_files_are_accepted(client, registrar, approved_id):
    response = upload(client, registrar, approved_id, content=b"hello", name="slip.txt", mime="text/plain")

    assert response.status_code == 400
    assert response.json()["field"] == "file"


def test_oversized_file_is_rejected(client, registrar, approved_id, monkeypatch):
    monkeypatch.setattr(settings, "MAX_DOCUMENT_BYTES", 16)

    response = upload(client, registrar, approved_id)

    assert response.status_code == 400
    assert response.headers["X-App-Error-Code"] == "VALIDATION_FAILED"
    assert response.json()["field"] == "file"


def test_only_registrar_can_upload(client, system_admin, approved_id):
    assert upload(client, system_admin, approved_id).status_code == 403


def test_other_students_cannot_see_documents(client, make_user, faculty, program, registrar, approved_id):
    upload(client, registrar, approved_id)
    classmate = make_user(UserRole.STUDENT, faculty, program)

    response = client.get(f"/api/v1/registrations/{approved_id}/documents", headers=auth_headers(classmate))

    assert response.status_code == 404


def test_finance_cannot_list_documents(client, finance_officer, approved_id):
    response = client.get(
        f"/api/v1/registrations/{approved_id}/documents", headers=auth_headers(finance_officer)
    )
    assert response.status_code == 403


def test_system_admin_deletes_document(client, registrar, system_admin, approved_id, document_store):
    document_id = upload(client, registrar, approved_id).json()["id"]

    response = client.delete(
        f"/api/v1/registrations/{approved_id}/documents/{document_id}",
        headers=auth_headers(system_admin),
    )

    assert response.status_code == 204
    listed = client.get(f"/api/v1/registrations/{approved_id}/documents", headers=auth_headers(registrar))
    assert listed.json() == []


def test_non_latin_file_name_can_be_downloaded(client, student, registrar, approved_id):
    document = upload(client, registrar, approved_id, name="注册确认.pdf").json()

    download = client.get(
        f"/api/v1/registrations/{approved_id}/documents/{document['id']}/download",
        headers=auth_headers(student),
    )

    assert download.status_code == 200
    assert download.content == PDF_BYTES
    disposition = download.headers["content-disposition"]
    assert 'filename="document.pdf"' in disposition
    assert "filename*=UTF-8''%E6%B3%A8%E5%86%8C%E7%A1%AE%E8%AE%A4.pdf" in disposition


def test_accented_file_name_keeps_an_ascii_fallback(client, registrar, approved_id):
    document = upload(client, registrar, approved_id, name="Inscripción.pdf").json()

    download = client.get(
        f"/api/v1/registrations/{approved_id}/documents/{document['id']}/download",
        headers=auth_headers(registrar),
    )

    assert download.status_code == 200
    assert 'filename="Inscripcion.pdf"' in download.headers["content-disposition"]


def test_file_at_the_size_limit_is_accepted(client, registrar, approved_id, monkeypatch):
    monkeypatch.setattr(settings, "MAX_DOCUMENT_BYTES", len(PDF_BYTES))

    response = upload(client, registrar, approved_id)

    assert response.status_code == 201
    assert response.json()["file_size_bytes"] == len(PDF_BYTES)
