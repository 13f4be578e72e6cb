"""Prize calculation for match payouts.

Every function here is pure: the same rule and results always give the same
winners, in the order the results were supplied. Malformed rule config is read
defensively (missing amounts are zero), so calculation never fails on data that
was accepted into the rule store.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Context, Decimal, getcontext, localcontext
from typing import Any

from .rules import (
    ZERO,
    CalculatedWinner,
    DomainValidationError,
    EqualShareConfig,
    EqualShareRule,
    FixedListConfig,
    FixedListRule,
    MatchResultInput,
    PrizeRule,
    RankKillConfig,
    RankKillRule,
    format_amount,
    to_amount,
)


def calculate_winnings(rule: PrizeRule, results: Sequence[MatchResultInput]) -> list[CalculatedWinner]:
    if isinstance(rule, EqualShareRule):
        return _equal_share(rule.config, results)
    if isinstance(rule, RankKillRule):
        return _rank_kill(rule.config, results)
    if isinstance(rule, FixedListRule):
        return _fixed_list(rule.config, results)

    raise DomainValidationError(f"unsupported rule: {type(rule).__name__}")


def _equal_share(config: EqualShareConfig, results: Sequence[MatchResultInput]) -> list[CalculatedWinner]:
    # The caller passes only qualifying entries; all of them share the pool.
    count = len(results)
    if count == 0:
        return []

    total_prize = to_amount(config.total_prize)
    # Floor division; the remainder is not paid out.
    amount_each = _floor_divide(total_prize, count)
    breakdown = f"Equal Share: {format_amount(total_prize)} / {count} players"

    return [
        CalculatedWinner(uid=result.uid, amount=amount_each, breakdown=breakdown, position=result.rank)
        for result in results
    ]


def _rank_kill(config: RankKillConfig, results: Sequence[MatchResultInput]) -> list[CalculatedWinner]:
    per_kill = to_amount(config.per_kill)
    rank_rewards = config.rank_rewards if isinstance(config.rank_rewards, Mapping) else {}

    winners: list[CalculatedWinner] = []
    for result in results:
        total = ZERO
        parts: list[str] = []

        rank_amount = to_amount(rank_rewards.get(str(result.rank)))
        if rank_amount > 0:
            total += rank_amount
            parts.append(f"Rank {result.rank} ({format_amount(rank_amount)})")

        kills = _as_count(result.kills)
        if kills > 0:
            with localcontext(_exact_context(per_kill, Decimal(kills), rank_amount)):
                kill_amount = per_kill * kills
                total += kill_amount
            parts.append(f"{kills} Kills ({format_amount(kill_amount)})")

        if total > 0:
            winners.append(
                CalculatedWinner(uid=result.uid, amount=total, breakdown=" + ".join(parts), position=result.rank)
            )

    return winners


def _fixed_list(config: FixedListConfig, results: Sequence[MatchResultInput]) -> list[CalculatedWinner]:
    prizes = tuple(config.prizes) if isinstance(config.prizes, (list, tuple)) else ()

    winners: list[CalculatedWinner] = []
    for result in results:
        index = _as_count(result.rank) - 1
        if not 0 <= index < len(prizes):
            continue

        amount = to_amount(prizes[index])
        if amount > 0:
            winners.append(
                CalculatedWinner(
                    uid=result.uid,
                    amount=amount,
                    breakdown=f"Rank {result.rank} Fixed Prize",
                    position=result.rank,
                )
            )

    return winners


def total_amount(winners: Iterable[CalculatedWinner]) -> Decimal:
    amounts = [winner.amount for winner in winners]
    with localcontext(_exact_context(*amounts)):
        return sum(amounts, ZERO)


def payout_pairs(winners: Iterable[CalculatedWinner]) -> list[dict[str, Any]]:
    return [winner.to_payout() for winner in winners]


def _as_count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(value, 0)


def _floor_divide(amount: Decimal, count: int) -> Decimal:
    # Integer arithmetic; Decimal // is capped by the context precision.
    _, digits, exponent = amount.as_tuple()
    numerator = int("".join(str(digit) for digit in digits) or "0")
    if exponent >= 0:
        return Decimal(numerator * 10**exponent // count)
    return Decimal(numerator // (count * 10**-exponent))


def _exact_context(*amounts: Decimal) -> Context:
    """Context wide enough that sums and products of the amounts are not rounded."""
    width = 0
    for amount in amounts:
        _, digits, exponent = amount.as_tuple()
        width += len(digits) + abs(exponent)
    context = getcontext().copy()
    context.prec = max(context.prec, width + 2)
    return context
