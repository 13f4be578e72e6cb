from .calculator import (
    calculate_winnings,
    payout_pairs,
    total_amount,
)
from .rules import (
    CalculatedWinner,
    DomainValidationError,
    EqualShareConfig,
    EqualShareRule,
    FixedListConfig,
    FixedListRule,
    MatchResultInput,
    PrizeRule,
    PrizeRuleType,
    RankKillConfig,
    RankKillRule,
    amount_to_json,
    format_amount,
    normalize_uid,
    rule_from_dict,
    rule_to_dict,
    to_amount,
    validate_results,
)

__all__ = [
    "CalculatedWinner",
    "DomainValidationError",
    "EqualShareConfig",
    "EqualShareRule",
    "FixedListConfig",
    "FixedListRule",
    "MatchResultInput",
    "PrizeRule",
    "PrizeRuleType",
    "RankKillConfig",
    "RankKillRule",
    "amount_to_json",
    "calculate_winnings",
    "format_amount",
    "normalize_uid",
    "payout_pairs",
    "rule_from_dict",
    "rule_to_dict",
    "to_amount",
    "total_amount",
    "validate_results",
]
