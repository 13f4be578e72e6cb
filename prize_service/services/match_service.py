from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from prize_service.domain import CalculatedWinner, payout_pairs
from prize_service.services.http import UpstreamServiceError, request_json

DEFAULT_MATCH_API_URL = "https://match-worker.jibonhossen-dev.workers.dev"


@dataclass(slots=True)
class Participant:
    uid: str
    username: str
    push_enabled: bool = False


class MatchServiceClient:
    """Client for the match worker that owns rosters and wallet credits."""

    def __init__(self, base_url: str | None = None, *, timeout: float | None = None) -> None:
        self.base_url = (base_url or os.getenv("MATCH_API_URL", DEFAULT_MATCH_API_URL)).rstrip("/")
        self.timeout = timeout

    def get_participants(self, match_id: str) -> list[Participant]:
        payload = request_json(
            "GET",
            f"{self.base_url}/match/admin/participants/{quote(match_id, safe='')}",
            timeout=self.timeout,
            service="match service",
        )
        if not isinstance(payload, list):
            raise UpstreamServiceError("match service returned an unexpected participants payload", status_code=502)
        return [_to_participant(item) for item in payload if isinstance(item, dict) and item.get("uid")]

    def distribute_prizes(self, match_id: str, winners: Sequence[CalculatedWinner]) -> Any:
        return request_json(
            "POST",
            f"{self.base_url}/match/admin/distribute",
            payload={"matchId": match_id, "winners": payout_pairs(winners)},
            timeout=self.timeout,
            service="match service",
        )


def _to_participant(item: dict[str, Any]) -> Participant:
    return Participant(
        uid=str(item["uid"]),
        username=str(item.get("username") or ""),
        push_enabled=bool(item.get("pushToken") or item.get("expoPushToken")),
    )
