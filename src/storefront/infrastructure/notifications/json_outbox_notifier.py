"""Notifier that appends every message to a JSON outbox file.

A separate delivery worker (mail relay, push service) drains the outbox;
this process only records what should be sent.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from storefront.application.notifications import Notifier
from storefront.infrastructure.persistence.json_store import JsonFileStore

ADMIN_AUDIENCE = "admins"


class JsonOutboxNotifier(Notifier):

    def __init__(self, file_path: Path) -> None:
        self._store = JsonFileStore(file_path)

    def notify_customer(self, customer_id: str, title: str, message: str) -> None:
        self._append("in_app", customer_id, title, message)

    def notify_admins(self, title: str, message: str) -> None:
        self._append("in_app", ADMIN_AUDIENCE, title, message)

    def send_email(self, to: str, subject: str, body: str) -> None:
        self._append("email", to, subject, body)

    def pending(self) -> list[dict]:
        return self._store.load()

    def _append(self, channel: str, recipient: str, title: str, body: str) -> None:
        with self._store.transaction() as records:
            records.append(
                {
                    "id": uuid.uuid4().hex,
                    "channel": channel,
                    "recipient": recipient,
                    "title": title,
                    "body": body,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
            )
