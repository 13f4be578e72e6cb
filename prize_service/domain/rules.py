from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar

ZERO = Decimal(0)


class DomainValidationError(ValueError):
    """Raised when prize rule or match result data violates a rule."""


class PrizeRuleType(str, Enum):
    EQUAL_SHARE = "equal_share"
    RANK_KILL = "rank_kill"
    FIXED_LIST = "fixed_list"


@dataclass(frozen=True)
class EqualShareConfig:
    total_prize: Decimal = ZERO


@dataclass(frozen=True)
class RankKillConfig:
    per_kill: Decimal = ZERO
    rank_rewards: Mapping[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class FixedListConfig:
    prizes: tuple[Decimal, ...] = ()


@dataclass(frozen=True)
class EqualShareRule:
    id: str
    name: str
    config: EqualShareConfig
    created_at: datetime | None = None

    type: ClassVar[PrizeRuleType] = PrizeRuleType.EQUAL_SHARE


@dataclass(frozen=True)
class RankKillRule:
    id: str
    name: str
    config: RankKillConfig
    created_at: datetime | None = None

    type: ClassVar[PrizeRuleType] = PrizeRuleType.RANK_KILL


@dataclass(frozen=True)
class FixedListRule:
    id: str
    name: str
    config: FixedListConfig
    created_at: datetime | None = None

    type: ClassVar[PrizeRuleType] = PrizeRuleType.FIXED_LIST


PrizeRule = EqualShareRule | RankKillRule | FixedListRule


@dataclass(frozen=True)
class MatchResultInput:
    uid: str
    username: str = ""
    kills: int = 0
    rank: int = 0
    team_id: str | None = None


@dataclass(frozen=True)
class CalculatedWinner:
    uid: str
    amount: Decimal
    breakdown: str
    position: int | None = None

    def to_payout(self) -> dict[str, Any]:
        """Pair accepted by the match service distribute call."""
        return {"uid": self.uid, "amount": amount_to_json(self.amount)}


def to_amount(value: object) -> Decimal:
    """Coerce a configured amount to Decimal; anything unusable counts as zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, (float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not amount.is_finite() or amount < 0:
        return ZERO
    return amount


def amount_to_json(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def format_amount(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return format(value, "f").rstrip("0").rstrip(".")


def rule_from_dict(payload: Mapping[str, Any]) -> PrizeRule:
    raw_type = payload.get("type")
    try:
        rule_type = PrizeRuleType(raw_type)
    except ValueError as exc:
        raise DomainValidationError(f"unsupported rule type: {raw_type}") from exc

    config = payload.get("config")
    if not isinstance(config, Mapping):
        config = {}

    rule_id = str(payload.get("id") or "")
    name = str(payload.get("name") or "")
    created_at = _parse_datetime(payload.get("created_at"))

    if rule_type == PrizeRuleType.EQUAL_SHARE:
        return EqualShareRule(
            id=rule_id,
            name=name,
            config=EqualShareConfig(total_prize=to_amount(config.get("total_prize"))),
            created_at=created_at,
        )

    if rule_type == PrizeRuleType.RANK_KILL:
        raw_rewards = config.get("rank_rewards")
        if not isinstance(raw_rewards, Mapping):
            raw_rewards = {}
        return RankKillRule(
            id=rule_id,
            name=name,
            config=RankKillConfig(
                per_kill=to_amount(config.get("per_kill")),
                rank_rewards={str(rank).strip(): to_amount(amount) for rank, amount in raw_rewards.items()},
            ),
            created_at=created_at,
        )

    raw_prizes = config.get("prizes")
    if not isinstance(raw_prizes, (list, tuple)):
        raw_prizes = ()
    return FixedListRule(
        id=rule_id,
        name=name,
        config=FixedListConfig(prizes=tuple(to_amount(prize) for prize in raw_prizes)),
        created_at=created_at,
    )


def rule_to_dict(rule: PrizeRule) -> dict[str, Any]:
    if isinstance(rule, EqualShareRule):
        config: dict[str, Any] = {"total_prize": amount_to_json(to_amount(rule.config.total_prize))}
    elif isinstance(rule, RankKillRule):
        config = {
            "per_kill": amount_to_json(to_amount(rule.config.per_kill)),
            "rank_rewards": {
                str(rank): amount_to_json(to_amount(amount)) for rank, amount in rule.config.rank_rewards.items()
            },
        }
    else:
        config = {"prizes": [amount_to_json(to_amount(prize)) for prize in rule.config.prizes]}

    return {
        "id": rule.id,
        "name": rule.name,
        "type": rule.type.value,
        "config": config,
        "created_at": rule.created_at.isoformat() if rule.created_at else None,
    }


def normalize_uid(uid: str) -> str:
    value = uid.strip()
    if not value:
        raise DomainValidationError("uid must be non-empty")
    return value


def validate_results(results: Iterable[MatchResultInput]) -> list[MatchResultInput]:
    """Check a batch before it is used for a payout: unique trimmed uids, no negative counters."""
    seen: set[str] = set()
    validated: list[MatchResultInput] = []
    for result in results:
        uid = normalize_uid(result.uid)
        if uid in seen:
            raise DomainValidationError(f"duplicate uid in results: {uid}")
        if result.kills < 0:
            raise DomainValidationError(f"kills must be non-negative: {uid}")
        if result.rank < 0:
            raise DomainValidationError(f"rank must be non-negative: {uid}")
        seen.add(uid)
        validated.append(replace(result, uid=uid))
    return validated


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None
