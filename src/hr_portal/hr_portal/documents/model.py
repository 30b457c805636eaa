from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import DocumentStatus


@dataclass(frozen=True)
class Document:
    """Metadata only; the file bytes are fetched separately."""

    document_id: int
    employee_id: int
    name: str
    file_type: str
    status: DocumentStatus
    uploaded_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    employee_name: str = ""
    employee_code: str = ""


@dataclass(frozen=True)
class DocumentFile:
    document_id: int
    employee_id: int
    name: str
    file_type: str
    data: bytes
