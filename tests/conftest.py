from collections.abc import Generator

import pytest
from sqlalchemy.orm import Session

from prize_service.services.http import UpstreamServiceError
from prize_service.services.match_service import Participant
from prize_service.storage.database import create_db_engine, init_db, make_session_factory


def make_test_db() -> Session:
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    init_db(engine)
    return make_session_factory(engine)()


class FakeMatchClient:
    def __init__(self) -> None:
        self.fail = False
        self.distributed: list[tuple[str, list[dict]]] = []
        self.participants: list[Participant] = []

    def get_participants(self, match_id: str) -> list[Participant]:
        if self.fail:
            raise UpstreamServiceError("match service unavailable", status_code=503, retryable=True)
        return self.participants

    def distribute_prizes(self, match_id, winners):
        if self.fail:
            raise UpstreamServiceError("match service unavailable", status_code=503, retryable=True)
        self.distributed.append((match_id, [winner.to_payout() for winner in winners]))
        return {"success": True}


class FakeNotificationClient:
    def __init__(self) -> None:
        self.fail_for: set[str] = set()
        self.sent: list[dict] = []

    def send_notification(self, *, title, body, user_ids, data=None, skip_save=True):
        if set(user_ids) & self.fail_for:
            raise UpstreamServiceError("push failed", status_code=502)
        self.sent.append({"title": title, "body": body, "user_ids": list(user_ids), "data": data})
        return {"success": True}


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = make_test_db()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def match_client() -> FakeMatchClient:
    return FakeMatchClient()


@pytest.fixture
def notification_client() -> FakeNotificationClient:
    return FakeNotificationClient()
