from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .model import Notification

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


class MessageBuilder:
    """Renders e-mail bodies from the Jinja2 templates beside this module."""

    def __init__(self, *, portal_name: str = "HR Portal", template_dir: Path = TEMPLATE_DIR):
        self._portal_name = portal_name
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )

    def _build(self, recipient: str, subject: str, template: str, **context) -> Notification:
        body = self._env.get_template(template).render(portal_name=self._portal_name, subject=subject, **context)
        return Notification(recipient=recipient, subject=subject, html_body=body)

    def leave_applied(self, *, manager, employee, leave) -> Notification:
        return self._build(
            manager.email,
            f"New Leave Request: {employee.full_name}",
            "leave_applied.html",
            manager=manager,
            employee=employee,
            leave=leave,
        )

    def leave_decided(self, *, employee, leave) -> Notification:
        return self._build(
            employee.email,
            f"Leave Request {leave.status.value.title()}",
            "leave_decided.html",
            employee=employee,
            leave=leave,
        )

    def account_created(self, *, employee, username: str, temp_password: str) -> Notification:
        return self._build(
            employee.email,
            f"Welcome to {self._portal_name}",
            "account_created.html",
            employee=employee,
            username=username,
            temp_password=temp_password,
        )

    def resignation_submitted(self, *, manager, employee) -> Notification:
        return self._build(
            manager.email,
            f"Resignation Submitted: {employee.full_name}",
            "resignation_submitted.html",
            manager=manager,
            employee=employee,
        )

    def resignation_decided(self, *, employee, approved: bool) -> Notification:
        return self._build(
            employee.email,
            "Resignation Approved" if approved else "Resignation Rejected",
            "resignation_decided.html",
            employee=employee,
            approved=approved,
        )
