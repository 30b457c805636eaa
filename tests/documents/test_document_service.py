import pytest

from src.hr_portal.hr_portal.core.enums import DocumentStatus, SubmissionStatus
from src.hr_portal.hr_portal.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.hr_portal.hr_portal.documents.service import DocumentService
from src.hr_portal.hr_portal.storage.file_storage import InlineFileStorage, Upload

PDF = Upload(data=b"%PDF-1.7 offer letter", content_type="application/pdf", filename="offer.pdf")


@pytest.fixture
def service(documents_repo, settings_repo):
    return DocumentService(documents_repo, settings_repo, InlineFileStorage())


def test_upload_and_download(service, employee, hr, manager):
    document_id = service.upload(employee, name="Offer letter", upload=PDF)
    assert [d.name for d in service.list_mine(employee)] == ["Offer letter"]

    assert service.download(employee, document_id).data == PDF.data
    assert service.download(hr, document_id).file_type == "application/pdf"
    with pytest.raises(AuthorizationError):
        service.download(manager, document_id)


def test_closed_window_refuses_upload(service, hr, employee, documents_repo):
    service.set_submission_status(hr, SubmissionStatus.CLOSED)
    with pytest.raises(AuthorizationError, match="closed by HR"):
        service.upload(employee, name="PAN", upload=PDF)
    assert documents_repo.rows == {}

    service.set_submission_status(hr, SubmissionStatus.OPEN)
    assert service.upload(employee, name="PAN", upload=PDF)


def test_only_hr_toggles_window(service, manager):
    with pytest.raises(AuthorizationError):
        service.set_submission_status(manager, SubmissionStatus.CLOSED)


def test_upload_requires_name_and_file(service, employee):
    with pytest.raises(ValidationError):
        service.upload(employee, name="", upload=PDF)
    with pytest.raises(ValidationError):
        service.upload(employee, name="Empty", upload=None)


def test_review_once(service, hr, employee):
    document_id = service.upload(employee, name="Degree", upload=PDF)
    assert [d.document_id for d in service.list_pending(hr)] == [document_id]

    assert service.decide(hr, document_id, approve=True).status == DocumentStatus.APPROVED
    assert service.list_pending(hr) == []
    with pytest.raises(ConflictError):
        service.decide(hr, document_id, approve=False)


def test_parse_submission_status():
    assert DocumentService.parse_submission_status("closed") == SubmissionStatus.CLOSED
    with pytest.raises(ValidationError):
        DocumentService.parse_submission_status("maybe")
