from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from prize_service.api.errors import api_error, rule_not_found, upstream_error
from prize_service.api.schemas import (
    DistributeRequest,
    ParticipantResponse,
    PayoutResponse,
    PayoutWinnerResponse,
)
from prize_service.domain import DomainValidationError, amount_to_json
from prize_service.runtime import get_match_client, get_payout_service
from prize_service.services.http import UpstreamServiceError
from prize_service.services.match_service import MatchServiceClient
from prize_service.services.payout_service import (
    ManualPayout,
    NoPayoutPossibleError,
    PayoutService,
    RuleNotFoundError,
)
from prize_service.storage.database import get_db
from prize_service.storage.repository import PayoutRepository, PayoutRow

router = APIRouter(tags=["payouts"])


def _payout_response(row: PayoutRow) -> PayoutResponse:
    return PayoutResponse(
        id=row.id,
        match_id=row.match_id,
        rule_id=row.rule_id,
        total_amount=amount_to_json(row.total_amount),
        winners_count=row.winners_count,
        status=row.status,
        created_at=row.created_at,
        winners=[
            PayoutWinnerResponse(
                uid=winner.uid,
                username=winner.username,
                amount=amount_to_json(winner.amount),
                breakdown=winner.breakdown,
                position=winner.position,
            )
            for winner in row.winners
        ],
    )


@router.get(
    "/matches/{match_id}/participants",
    response_model=list[ParticipantResponse],
    summary="Match roster from the match service",
)
def list_participants(
    match_id: str,
    match_client: MatchServiceClient = Depends(get_match_client),
) -> list[ParticipantResponse]:
    try:
        participants = match_client.get_participants(match_id)
    except UpstreamServiceError as exc:
        raise upstream_error(exc) from exc
    return [
        ParticipantResponse(uid=item.uid, username=item.username, push_enabled=item.push_enabled)
        for item in participants
    ]


@router.post(
    "/matches/{match_id}/distribute",
    response_model=PayoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Credit winners and record the payout",
)
def distribute(
    match_id: str,
    payload: DistributeRequest,
    service: PayoutService = Depends(get_payout_service),
) -> PayoutResponse:
    try:
        if payload.rule_id is not None:
            row = service.distribute(match_id, payload.rule_id, [item.to_domain() for item in payload.results])
        else:
            row = service.distribute_manual(
                match_id,
                [ManualPayout(uid=item.uid, amount=item.amount, username=item.username) for item in payload.winners],
            )
    except RuleNotFoundError as exc:
        raise rule_not_found(payload.rule_id or "") from exc
    except NoPayoutPossibleError as exc:
        raise api_error(
            code="no_payout_possible",
            message=str(exc),
            details={"match_id": match_id},
            status_code=status.HTTP_409_CONFLICT,
        ) from exc
    except DomainValidationError as exc:
        raise api_error(code="invalid_results", message=str(exc), details={"match_id": match_id}) from exc
    except UpstreamServiceError as exc:
        raise upstream_error(exc) from exc

    return _payout_response(row)


@router.get("/payouts", response_model=list[PayoutResponse], summary="Payout history")
def list_payouts(
    match_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[PayoutResponse]:
    return [_payout_response(row) for row in PayoutRepository(db).list_payouts(match_id=match_id)]


@router.get("/payouts/{payout_id}", response_model=PayoutResponse, summary="Single payout")
def get_payout(payout_id: int, db: Session = Depends(get_db)) -> PayoutResponse:
    row = PayoutRepository(db).get(payout_id)
    if row is None:
        raise api_error(
            code="payout_not_found",
            message=f"Payout {payout_id} not found",
            details={"id": payout_id},
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return _payout_response(row)
