from __future__ import annotations

import io

from flask import Flask, flash, redirect, render_template, request, send_file, url_for

from ..common.web import flash_error, hr_required, login_required, render_forbidden, upload_from_request
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container
from ..employees.model import BankDetails
from ..users.principal import Principal


def register(app: Flask, container: Container) -> None:
    @app.route("/documents", endpoint="my_documents")
    @login_required
    def my_documents(principal: Principal):
        return render_template(
            "documents/my_documents.html",
            current_user=principal,
            employee=container.employee_service.get(principal.employee_id),
            documents=container.document_service.list_mine(principal),
            submission_status=container.document_service.submission_status(),
            active_page="documents",
        )

    @app.route("/documents/upload", methods=["POST"], endpoint="upload_document")
    @login_required
    def upload_document(principal: Principal):
        try:
            container.document_service.upload(
                principal,
                name=request.form.get("name", ""),
                upload=upload_from_request("file"),
            )
            flash("Document uploaded.", "success")
        except AuthorizationError as e:
            flash(str(e), "danger")
            return render_forbidden(principal)
        except Exception as e:
            flash_error(e, "uploading document")
        return redirect(url_for("my_documents"))

    @app.route("/documents/<int:document_id>/download", endpoint="download_document")
    @login_required
    def download_document(principal: Principal, document_id: int):
        try:
            doc = container.document_service.download(principal, document_id)
        except AuthorizationError:
            return render_forbidden(principal)
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("my_documents"))
        return send_file(io.BytesIO(doc.data), mimetype=doc.file_type, download_name=doc.name)

    @app.route("/documents/photo", methods=["POST"], endpoint="upload_profile_photo")
    @login_required
    def upload_profile_photo(principal: Principal):
        try:
            upload = upload_from_request("photo")
            if upload is None:
                raise ValidationError("No photo uploaded")
            container.employee_service.upload_profile_photo(
                principal, upload.data, content_type=upload.content_type, filename=upload.filename
            )
            flash("Profile photo updated.", "success")
        except Exception as e:
            flash_error(e, "uploading photo")
        return redirect(url_for("my_documents"))

    @app.route("/documents/bank", methods=["POST"], endpoint="update_bank_details")
    @login_required
    def update_bank_details(principal: Principal):
        try:
            container.employee_service.update_bank_details(
                principal,
                BankDetails(
                    account_number=request.form.get("account_number") or None,
                    ifsc=request.form.get("ifsc") or None,
                    bank_name=request.form.get("bank_name") or None,
                    branch_name=request.form.get("branch_name") or None,
                    aadhar=request.form.get("aadhar") or None,
                ),
            )
            flash("Bank details updated.", "success")
        except Exception as e:
            flash_error(e, "updating bank details")
        return redirect(url_for("my_documents"))

    @app.route("/hr/documents", endpoint="hr_documents")
    @hr_required
    def hr_documents(principal: Principal):
        return render_template(
            "documents/hr_review.html",
            current_user=principal,
            documents=container.document_service.list_pending(principal),
            submission_status=container.document_service.submission_status(),
            active_page="hr_documents",
        )

    @app.route("/hr/documents/<int:document_id>/<string:action>", methods=["POST"], endpoint="decide_document")
    @hr_required
    def decide_document(principal: Principal, document_id: int, action: str):
        try:
            if action not in {"approve", "reject"}:
                raise ValidationError("Invalid action")
            doc = container.document_service.decide(principal, document_id, approve=action == "approve")
            flash(f"Document {doc.status.value.lower()}.", "success")
        except Exception as e:
            flash_error(e, "reviewing document")
        return redirect(url_for("hr_documents"))

    @app.route("/hr/documents/submission", methods=["POST"], endpoint="set_document_submission")
    @hr_required
    def set_document_submission(principal: Principal):
        try:
            status = container.document_service.parse_submission_status(request.form.get("status", ""))
            container.document_service.set_submission_status(principal, status)
            flash(f"Document submission is now {status.value}.", "success")
        except Exception as e:
            flash_error(e, "updating submission window")
        return redirect(url_for("hr_documents"))
