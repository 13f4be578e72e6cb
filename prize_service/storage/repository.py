from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from prize_service.domain import (
    CalculatedWinner,
    PrizeRule,
    PrizeRuleType,
    rule_from_dict,
    rule_to_dict,
    total_amount,
)
from prize_service.storage.models import Payout, PayoutWinner, PrizeRuleRecord


@dataclass(slots=True)
class PayoutWinnerRow:
    uid: str
    username: str
    amount: Decimal
    breakdown: str
    position: int | None


@dataclass(slots=True)
class PayoutRow:
    id: int
    match_id: str
    rule_id: str | None
    total_amount: Decimal
    winners_count: int
    status: str
    created_at: datetime
    winners: list[PayoutWinnerRow]


class RuleRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, *, name: str, rule_type: PrizeRuleType, config: Mapping[str, Any]) -> PrizeRule:
        record = PrizeRuleRecord(
            name=name.strip(),
            type=rule_type.value,
            config=_normalized_config(rule_type, config),
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return _to_rule(record)

    def list_rules(self) -> list[PrizeRule]:
        records = self.db.scalars(
            select(PrizeRuleRecord).order_by(PrizeRuleRecord.created_at.desc(), PrizeRuleRecord.name)
        ).all()
        return [_to_rule(record) for record in records]

    def get(self, rule_id: str) -> PrizeRule | None:
        record = self.db.get(PrizeRuleRecord, rule_id)
        if record is None:
            return None
        return _to_rule(record)

    def update(
        self,
        rule_id: str,
        *,
        name: str,
        rule_type: PrizeRuleType,
        config: Mapping[str, Any],
    ) -> PrizeRule | None:
        record = self.db.get(PrizeRuleRecord, rule_id)
        if record is None:
            return None
        record.name = name.strip()
        record.type = rule_type.value
        record.config = _normalized_config(rule_type, config)
        self.db.commit()
        self.db.refresh(record)
        return _to_rule(record)

    def delete(self, rule_id: str) -> bool:
        record = self.db.get(PrizeRuleRecord, rule_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        return True


class PayoutRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def record(
        self,
        *,
        match_id: str,
        rule_id: str | None,
        winners: Sequence[CalculatedWinner],
        usernames: Mapping[str, str],
    ) -> PayoutRow:
        payout = Payout(
            match_id=match_id,
            rule_id=rule_id,
            total_amount=total_amount(winners),
            winners_count=len(winners),
            status="distributed",
        )
        payout.winners = [
            PayoutWinner(
                uid=winner.uid,
                username=usernames.get(winner.uid, ""),
                amount=winner.amount,
                breakdown=winner.breakdown,
                position=winner.position,
            )
            for winner in winners
        ]
        self.db.add(payout)
        self.db.commit()
        self.db.refresh(payout)
        return _to_payout_row(payout)

    def list_payouts(self, match_id: str | None = None) -> list[PayoutRow]:
        query = select(Payout).options(selectinload(Payout.winners))
        if match_id is not None:
            query = query.where(Payout.match_id == match_id)
        payouts = self.db.scalars(query.order_by(Payout.created_at.desc(), Payout.id.desc())).all()
        return [_to_payout_row(payout) for payout in payouts]

    def get(self, payout_id: int) -> PayoutRow | None:
        payout = self.db.get(Payout, payout_id)
        if payout is None:
            return None
        return _to_payout_row(payout)


def _normalized_config(rule_type: PrizeRuleType, config: Mapping[str, Any]) -> dict[str, Any]:
    rule = rule_from_dict({"type": rule_type.value, "config": config})
    return rule_to_dict(rule)["config"]


def _to_rule(record: PrizeRuleRecord) -> PrizeRule:
    return rule_from_dict(
        {
            "id": record.id,
            "name": record.name,
            "type": record.type,
            "config": record.config,
            "created_at": record.created_at,
        }
    )


def _to_payout_row(payout: Payout) -> PayoutRow:
    return PayoutRow(
        id=payout.id,
        match_id=payout.match_id,
        rule_id=payout.rule_id,
        total_amount=Decimal(payout.total_amount),
        winners_count=payout.winners_count,
        status=payout.status,
        created_at=payout.created_at,
        winners=[
            PayoutWinnerRow(
                uid=winner.uid,
                username=winner.username,
                amount=Decimal(winner.amount),
                breakdown=winner.breakdown,
                position=winner.position,
            )
            for winner in payout.winners
        ],
    )
