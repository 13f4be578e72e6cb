from datetime import datetime, timezone
from decimal import Decimal

import pytest

from prize_service.domain import (
    DomainValidationError,
    EqualShareRule,
    FixedListRule,
    MatchResultInput,
    PrizeRuleType,
    RankKillRule,
    format_amount,
    rule_from_dict,
    rule_to_dict,
    to_amount,
    validate_results,
)


def test_rule_from_dict_builds_matching_variant() -> None:
    rule = rule_from_dict(
        {
            "id": "r-1",
            "name": "Solo Cup",
            "type": "rank_kill",
            "config": {"per_kill": 10, "rank_rewards": {"1": 500, "2": "300"}},
            "created_at": "2025-03-01T12:00:00Z",
        }
    )

    assert isinstance(rule, RankKillRule)
    assert rule.type is PrizeRuleType.RANK_KILL
    assert rule.config.per_kill == Decimal(10)
    assert rule.config.rank_rewards == {"1": Decimal(500), "2": Decimal(300)}
    assert rule.created_at == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_rule_from_dict_defaults_missing_config() -> None:
    equal = rule_from_dict({"id": "e", "name": "Split", "type": "equal_share"})
    fixed = rule_from_dict({"id": "f", "name": "List", "type": "fixed_list", "config": None})

    assert isinstance(equal, EqualShareRule)
    assert equal.config.total_prize == 0
    assert isinstance(fixed, FixedListRule)
    assert fixed.config.prizes == ()


def test_rule_from_dict_rejects_unknown_type() -> None:
    with pytest.raises(DomainValidationError):
        rule_from_dict({"id": "x", "name": "Odd", "type": "winner_takes_all"})


def test_rule_to_dict_is_json_friendly() -> None:
    rule = rule_from_dict({"id": "f", "name": "List", "type": "fixed_list", "config": {"prizes": [500, 12.5, 0]}})

    assert rule_to_dict(rule) == {
        "id": "f",
        "name": "List",
        "type": "fixed_list",
        "config": {"prizes": [500, 12.5, 0]},
        "created_at": None,
    }


@pytest.mark.parametrize(
    "value, expected",
    [
        (10, Decimal(10)),
        (0.1, Decimal("0.1")),
        ("25", Decimal(25)),
        (None, Decimal(0)),
        (True, Decimal(0)),
        ("abc", Decimal(0)),
        (-5, Decimal(0)),
        (float("nan"), Decimal(0)),
    ],
)
def test_to_amount_is_defensive(value: object, expected: Decimal) -> None:
    assert to_amount(value) == expected


def test_format_amount_drops_trailing_zeros() -> None:
    assert format_amount(Decimal("500.00")) == "500"
    assert format_amount(Decimal("12.50")) == "12.5"


def test_validate_results_rejects_duplicate_uids() -> None:
    results = [MatchResultInput(uid="a"), MatchResultInput(uid="b"), MatchResultInput(uid="a")]

    with pytest.raises(DomainValidationError, match="duplicate uid"):
        validate_results(results)


def test_validate_results_rejects_blank_uid_and_negative_counters() -> None:
    with pytest.raises(DomainValidationError):
        validate_results([MatchResultInput(uid="  ")])

    with pytest.raises(DomainValidationError):
        validate_results([MatchResultInput(uid="a", kills=-1)])

    with pytest.raises(DomainValidationError):
        validate_results([MatchResultInput(uid="a", rank=-2)])


def test_format_amount_keeps_every_digit() -> None:
    assert format_amount(Decimal("12345678901234567890123456789.5")) == "12345678901234567890123456789.5"
    assert format_amount(Decimal("0.750")) == "0.75"


def test_validate_results_returns_trimmed_uids() -> None:
    validated = validate_results([MatchResultInput(uid=" a ", username="Alice", rank=1)])

    assert validated == [MatchResultInput(uid="a", username="Alice", rank=1)]
