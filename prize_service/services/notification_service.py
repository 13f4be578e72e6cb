from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

from prize_service.services.http import request_json

DEFAULT_NOTIFICATION_API_URL = "https://notification-worker.jibonhossen-dev.workers.dev"


class NotificationClient:
    def __init__(self, base_url: str | None = None, *, timeout: float | None = None) -> None:
        self.base_url = (base_url or os.getenv("NOTIFICATION_API_URL", DEFAULT_NOTIFICATION_API_URL)).rstrip("/")
        self.timeout = timeout

    def send_notification(
        self,
        *,
        title: str,
        body: str,
        user_ids: Sequence[str],
        data: dict[str, Any] | None = None,
        skip_save: bool = True,
    ) -> Any:
        payload: dict[str, Any] = {
            "title": title,
            "body": body,
            "targetType": "specific",
            "userIds": list(user_ids),
            "skipSave": skip_save,
        }
        if data is not None:
            payload["data"] = data
        return request_json(
            "POST",
            f"{self.base_url}/api/send",
            payload=payload,
            timeout=self.timeout,
            service="notification service",
        )
