from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from prize_service.services.match_service import MatchServiceClient
from prize_service.services.notification_service import NotificationClient
from prize_service.services.payout_service import PayoutService
from prize_service.storage.database import get_db
from prize_service.storage.repository import PayoutRepository, RuleRepository


def get_match_client() -> MatchServiceClient:
    return MatchServiceClient()


def get_notification_client() -> NotificationClient:
    return NotificationClient()


def get_payout_service(
    db: Session = Depends(get_db),
    match_client: MatchServiceClient = Depends(get_match_client),
    notification_client: NotificationClient = Depends(get_notification_client),
) -> PayoutService:
    return PayoutService(
        rules=RuleRepository(db),
        payouts=PayoutRepository(db),
        match_client=match_client,
        notification_client=notification_client,
    )
