from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Notification:
    recipient: str
    subject: str
    html_body: str
