from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import DocumentStatus, SubmissionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Document, DocumentFile
from .repository import SUBMISSION_SETTING_KEY, DocumentRepository, SettingsRepository

_SELECT_DOCUMENT = """
    SELECT d.document_id, d.employee_id, d.name, d.file_type, d.status, d.uploaded_at,
           d.reviewed_by, d.reviewed_at,
           CONCAT(e.first_name, ' ', e.last_name) AS employee_name, e.employee_code
    FROM documents d
    JOIN employees e ON e.employee_id = d.employee_id
"""


def _to_document(r: dict) -> Document:
    return Document(
        document_id=int(r["document_id"]),
        employee_id=int(r["employee_id"]),
        name=r["name"],
        file_type=r["file_type"],
        status=DocumentStatus(r["status"]),
        uploaded_at=r.get("uploaded_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
    )


class MySQLDocumentRepository(DocumentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, employee_id: int, name: str, file_type: str, data: bytes) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO documents (employee_id, name, file_data, file_type, status) VALUES (%s,%s,%s,%s,%s)",
                (int(employee_id), name, data, file_type, DocumentStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get(self, document_id: int) -> Optional[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_DOCUMENT} WHERE d.document_id=%s", (int(document_id),))
            row = fetchone(cur)
            return _to_document(row) if row else None

    def get_file(self, document_id: int) -> Optional[DocumentFile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT document_id, employee_id, name, file_type, file_data FROM documents WHERE document_id=%s",
                (int(document_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return DocumentFile(
                document_id=int(row["document_id"]),
                employee_id=int(row["employee_id"]),
                name=row["name"],
                file_type=row["file_type"],
                data=bytes(row["file_data"]),
            )

    def list_for_employee(self, employee_id: int) -> Sequence[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_DOCUMENT} WHERE d.employee_id=%s ORDER BY d.uploaded_at DESC", (int(employee_id),))
            return [_to_document(r) for r in fetchall(cur)]

    def list_by_status(self, status: DocumentStatus) -> Sequence[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_DOCUMENT} WHERE d.status=%s ORDER BY d.uploaded_at", (status.value,))
            return [_to_document(r) for r in fetchall(cur)]

    def transition(
        self,
        document_id: int,
        *,
        expected: DocumentStatus,
        target: DocumentStatus,
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE documents
                SET status=%s, reviewed_by=%s, reviewed_at=%s
                WHERE document_id=%s AND status=%s
                """,
                (target.value, int(reviewed_by), reviewed_at, int(document_id), expected.value),
            )
            return cur.rowcount > 0


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_submission_status(self) -> SubmissionStatus:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT setting_value FROM app_settings WHERE setting_key=%s", (SUBMISSION_SETTING_KEY,))
            row = fetchone(cur)
        if not row:
            return SubmissionStatus.OPEN
        return SubmissionStatus(row["setting_value"])

    def set_submission_status(self, status: SubmissionStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO app_settings (setting_key, setting_value) VALUES (%s,%s)
                ON DUPLICATE KEY UPDATE setting_value=VALUES(setting_value)
                """,
                (SUBMISSION_SETTING_KEY, status.value),
            )
