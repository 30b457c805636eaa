from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import DocumentStatus, SubmissionStatus
from .model import Document, DocumentFile

SUBMISSION_SETTING_KEY = "document_submission"


class DocumentRepository(Protocol):
    def create(self, *, employee_id: int, name: str, file_type: str, data: bytes) -> int:
        raise NotImplementedError

    def get(self, document_id: int) -> Optional[Document]:
        raise NotImplementedError

    def get_file(self, document_id: int) -> Optional[DocumentFile]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[Document]:
        raise NotImplementedError

    def list_by_status(self, status: DocumentStatus) -> Sequence[Document]:
        raise NotImplementedError

    def transition(
        self,
        document_id: int,
        *,
        expected: DocumentStatus,
        target: DocumentStatus,
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> bool:
        raise NotImplementedError


class SettingsRepository(Protocol):
    def get_submission_status(self) -> SubmissionStatus:
        """OPEN when nothing is stored."""
        raise NotImplementedError

    def set_submission_status(self, status: SubmissionStatus) -> None:
        raise NotImplementedError
