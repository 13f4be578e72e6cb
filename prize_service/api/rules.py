from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from prize_service.api.errors import api_error, rule_not_found
from prize_service.api.schemas import (
    CalculateRequest,
    CalculationResponse,
    RuleRequest,
    RuleResponse,
    WinnerResponse,
)
from prize_service.domain import (
    DomainValidationError,
    PrizeRule,
    amount_to_json,
    rule_to_dict,
)
from prize_service.runtime import get_payout_service
from prize_service.services.payout_service import PayoutService, RuleNotFoundError
from prize_service.storage.database import get_db
from prize_service.storage.repository import RuleRepository

router = APIRouter(prefix="/rules", tags=["rules"])


def _rule_response(rule: PrizeRule) -> RuleResponse:
    return RuleResponse(**rule_to_dict(rule))


@router.post(
    "",
    response_model=RuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a prize rule",
)
def create_rule(payload: RuleRequest, db: Session = Depends(get_db)) -> RuleResponse:
    rule = RuleRepository(db).create(name=payload.name, rule_type=payload.type, config=payload.config)
    return _rule_response(rule)


@router.get("", response_model=list[RuleResponse], summary="List prize rules")
def list_rules(db: Session = Depends(get_db)) -> list[RuleResponse]:
    return [_rule_response(rule) for rule in RuleRepository(db).list_rules()]


@router.get("/{id}", response_model=RuleResponse, summary="Get a prize rule")
def get_rule(id: str, db: Session = Depends(get_db)) -> RuleResponse:
    rule = RuleRepository(db).get(id)
    if rule is None:
        raise rule_not_found(id)
    return _rule_response(rule)


@router.put("/{id}", response_model=RuleResponse, summary="Replace a prize rule")
def update_rule(id: str, payload: RuleRequest, db: Session = Depends(get_db)) -> RuleResponse:
    rule = RuleRepository(db).update(id, name=payload.name, rule_type=payload.type, config=payload.config)
    if rule is None:
        raise rule_not_found(id)
    return _rule_response(rule)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a prize rule")
def delete_rule(id: str, db: Session = Depends(get_db)) -> Response:
    if not RuleRepository(db).delete(id):
        raise rule_not_found(id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{id}/calculate",
    response_model=CalculationResponse,
    summary="Preview winnings for match results",
)
def calculate(
    id: str,
    payload: CalculateRequest,
    service: PayoutService = Depends(get_payout_service),
) -> CalculationResponse:
    try:
        preview = service.preview(id, [item.to_domain() for item in payload.results])
    except RuleNotFoundError as exc:
        raise rule_not_found(id) from exc
    except DomainValidationError as exc:
        raise api_error(code="invalid_results", message=str(exc), details={"rule_id": id}) from exc

    return CalculationResponse(
        rule_id=id,
        rule_type=preview.rule.type,
        winners=[
            WinnerResponse(
                uid=winner.uid,
                amount=amount_to_json(winner.amount),
                breakdown=winner.breakdown,
                position=winner.position,
            )
            for winner in preview.winners
        ],
        total_amount=amount_to_json(preview.total_amount),
    )
