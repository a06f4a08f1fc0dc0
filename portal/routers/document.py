import logging
import os

from fastapi import APIRouter, BackgroundTasks, Depends, File, Response, UploadFile, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from portal import settings
from portal.database.config.db import get_db, transaction
from portal.database.models.auth import UserRole
from portal.database.models.registration import (
    RegistrationDocument,
    Submission,
    SubmissionStatus,
    utcnow,
)
from portal.exceptions import InvalidStage, NotFound, Unauthorized, ValidationFailed
from portal.schema.document import DocumentResponse
from portal.utils.auth import get_current_actor, require_roles
from portal.utils.documents import DocumentStore, content_disposition, get_document_store
from portal.workflow.dispatcher import NotificationDispatcher, get_dispatcher
from portal.workflow.events import EventKind, Outbox, WorkflowEvent
from portal.workflow.types import Actor

logger = logging.getLogger(__name__)

document_router = APIRouter(
    prefix="/registrations/{submission_id}/documents",
    tags=["Registration Documents"],
)

PDF_MIME_TYPE = "application/pdf"
DOCUMENT_MANAGERS = (UserRole.REGISTRAR, UserRole.SYSTEM_ADMIN)


def _get_submission(db: Session, submission_id: UUID) -> Submission:
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if submission is None:
        raise NotFound("Registration not found")
    return submission


def _check_read_access(actor: Actor, submission: Submission) -> None:
    if actor.role in DOCUMENT_MANAGERS:
        return
    if actor.role == UserRole.STUDENT and submission.student_id == actor.id:
        return
    if actor.role == UserRole.STUDENT:
        # Other students' registrations do not exist as far as the caller can tell
        raise NotFound("Registration not found")
    raise Unauthorized("Only the registrar, system admin or the owning student can view documents")


def _get_document(db: Session, submission_id: UUID, document_id: UUID) -> RegistrationDocument:
    document = (
        db.query(RegistrationDocument)
        .filter(
            RegistrationDocument.id == document_id,
            RegistrationDocument.submission_id == submission_id,
        )
        .first()
    )
    if document is None:
        raise NotFound("Document not found")
    return document


def _read_upload(file: UploadFile) -> bytes:
    # One byte past the limit is enough to tell the file is too large
    content = file.file.read(settings.MAX_DOCUMENT_BYTES + 1)
    if len(content) > settings.MAX_DOCUMENT_BYTES:
        raise ValidationFailed(
            f"File exceeds the maximum size of {settings.MAX_DOCUMENT_BYTES // (1024 * 1024)} MB",
            field="file",
        )
    return content


def _validate_upload(file: UploadFile, content: bytes) -> str:
    file_name = os.path.basename(file.filename or "").strip()
    if not file_name:
        raise ValidationFailed("A file name is required", field="file")
    if file.content_type != PDF_MIME_TYPE or not file_name.lower().endswith(".pdf"):
        raise ValidationFailed("Only PDF files are allowed", field="file")
    if not content:
        raise ValidationFailed("The uploaded file is empty", field="file")
    return file_name


@document_router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def upload_document(
    submission_id: UUID,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    actor: Actor = Depends(require_roles(UserRole.REGISTRAR)),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Upload the confirmation slip for a fully approved registration.
    """
    submission = _get_submission(db, submission_id)
    if SubmissionStatus(submission.status) != SubmissionStatus.APPROVED:
        raise InvalidStage("Documents can only be uploaded for approved registrations")

    content = _read_upload(file)
    file_name = _validate_upload(file, content)

    storage_key = store.put(submission.id, file_name, content)
    outbox = Outbox()
    try:
        with transaction(db):
            document = RegistrationDocument(
                submission_id=submission.id,
                file_name=file_name,
                storage_key=storage_key,
                file_size_bytes=len(content),
                mime_type=PDF_MIME_TYPE,
                uploaded_by=actor.id,
                uploaded_at=utcnow(),
            )
            db.add(document)
            outbox.publish(
                WorkflowEvent(
                    kind=EventKind.DOCUMENT_UPLOADED,
                    submission_id=submission.id,
                    student_id=submission.student_id,
                    semester=submission.semester,
                    academic_year=submission.academic_year,
                    actor_id=actor.id,
                    actor_name=actor.full_name,
                )
            )
    except Exception:
        store.delete(storage_key)
        raise

    logger.info("Document %s uploaded for submission %s by %s", document.id, submission.id, actor.id)
    background_tasks.add_task(dispatcher.dispatch, outbox.drain())
    return document


@document_router.get("", response_model=List[DocumentResponse])
def list_documents(
    submission_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    submission = _get_submission(db, submission_id)
    _check_read_access(actor, submission)
    return (
        db.query(RegistrationDocument)
        .filter(RegistrationDocument.submission_id == submission_id)
        .order_by(RegistrationDocument.uploaded_at.desc())
        .all()
    )


@document_router.get("/{document_id}/download")
def download_document(
    submission_id: UUID,
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
):
    submission = _get_submission(db, submission_id)
    _check_read_access(actor, submission)
    document = _get_document(db, submission_id, document_id)

    try:
        content = store.get(document.storage_key)
    except FileNotFoundError:
        logger.error("Document %s is recorded but missing from storage (%s)", document.id, document.storage_key)
        raise NotFound("Document file not found")

    return Response(
        content=content,
        media_type=document.mime_type,
        headers={"Content-Disposition": content_disposition(document.file_name)},
    )


@document_router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    submission_id: UUID,
    document_id: UUID,
    actor: Actor = Depends(require_roles(*DOCUMENT_MANAGERS)),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
):
    with transaction(db):
        document = _get_document(db, submission_id, document_id)
        storage_key = document.storage_key
        db.delete(document)

    store.delete(storage_key)
    logger.info("Document %s deleted from submission %s by %s", document_id, submission_id, actor.id)
