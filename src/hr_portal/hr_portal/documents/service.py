from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.enums import DocumentStatus, SubmissionStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.state_machine import DOCUMENT_FLOW
from ..storage.file_storage import FileStorage, Upload, UploadPolicy
from ..users.principal import Principal
from .model import Document, DocumentFile
from .repository import DocumentRepository, SettingsRepository

logger = logging.getLogger(__name__)

DOCUMENT_POLICY = UploadPolicy(allowed_types=frozenset(), label="Document")


class DocumentService:
    def __init__(self, documents: DocumentRepository, settings: SettingsRepository, storage: FileStorage):
        self._documents = documents
        self._settings = settings
        self._storage = storage

    def submission_status(self) -> SubmissionStatus:
        return self._settings.get_submission_status()

    def set_submission_status(self, principal: Principal, status: SubmissionStatus) -> None:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can open or close document submission")
        self._settings.set_submission_status(status)
        logger.info("Document submission %s by employee %s", status.value, principal.employee_id)

    def upload(self, principal: Principal, *, name: str, upload: Optional[Upload]) -> int:
        if self._settings.get_submission_status() == SubmissionStatus.CLOSED:
            raise AuthorizationError("Document submission is currently closed by HR.")
        name = require_non_empty(name, "Document name")
        if upload is None or not upload.data:
            raise ValidationError("No file uploaded")

        stored = self._storage.save(
            upload.data,
            content_type=upload.content_type or "application/octet-stream",
            filename=upload.filename,
            policy=DOCUMENT_POLICY,
        )
        document_id = self._documents.create(
            employee_id=principal.employee_id,
            name=name,
            file_type=stored.content_type,
            data=stored.data if stored.data is not None else upload.data,
        )
        logger.info("Document %s uploaded by employee %s (%d bytes)", document_id, principal.employee_id, stored.size)
        return document_id

    def list_mine(self, principal: Principal) -> Sequence[Document]:
        return self._documents.list_for_employee(principal.employee_id)

    def list_pending(self, principal: Principal) -> Sequence[Document]:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can review documents")
        return self._documents.list_by_status(DocumentStatus.PENDING)

    def download(self, principal: Principal, document_id: int) -> DocumentFile:
        doc = self._documents.get_file(int(document_id))
        if not doc:
            raise NotFoundError("Document not found")
        if not principal.is_hr and doc.employee_id != principal.employee_id:
            raise AuthorizationError("Access denied")
        return doc

    def decide(
        self,
        principal: Principal,
        document_id: int,
        *,
        approve: bool,
        now: Optional[datetime] = None,
    ) -> Document:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can review documents")
        now = now or datetime.now()

        doc = self._documents.get(int(document_id))
        if not doc:
            raise NotFoundError("Document not found")

        target = DocumentStatus.APPROVED if approve else DocumentStatus.REJECTED
        DOCUMENT_FLOW.ensure(doc.status, target)

        won = self._documents.transition(
            doc.document_id,
            expected=DocumentStatus.PENDING,
            target=target,
            reviewed_by=principal.employee_id,
            reviewed_at=now,
        )
        if not won:
            raise ConflictError("Document was already reviewed")
        logger.info("Document %s %s by employee %s", doc.document_id, target.value, principal.employee_id)
        return replace(doc, status=target, reviewed_by=principal.employee_id, reviewed_at=now)

    @staticmethod
    def parse_submission_status(value: str) -> SubmissionStatus:
        try:
            return SubmissionStatus((value or "").upper())
        except ValueError:
            raise ValidationError("Invalid submission status")
