from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from prize_service.domain import (
    CalculatedWinner,
    DomainValidationError,
    MatchResultInput,
    PrizeRule,
    calculate_winnings,
    format_amount,
    normalize_uid,
    to_amount,
    total_amount,
    validate_results,
)
from prize_service.services.http import UpstreamServiceError
from prize_service.storage.repository import PayoutRepository, PayoutRow, RuleRepository

logger = logging.getLogger(__name__)

CURRENCY_SYMBOL = os.getenv("PRIZE_CURRENCY_SYMBOL", "৳")
WINNER_NOTIFICATION_TITLE = "🎉 Congratulations! You Won!"


class RuleNotFoundError(LookupError):
    pass


class NoPayoutPossibleError(DomainValidationError):
    """Raised when a calculation yields no winners; nothing may be submitted."""


class MatchClient(Protocol):
    def distribute_prizes(self, match_id: str, winners: Sequence[CalculatedWinner]) -> object: ...


class NotificationSender(Protocol):
    def send_notification(
        self,
        *,
        title: str,
        body: str,
        user_ids: Sequence[str],
        data: dict | None = None,
        skip_save: bool = True,
    ) -> object: ...


@dataclass(frozen=True)
class ManualPayout:
    uid: str
    amount: Decimal
    username: str = ""


@dataclass(slots=True)
class PayoutPreview:
    rule: PrizeRule
    winners: list[CalculatedWinner]
    total_amount: Decimal


class PayoutService:
    def __init__(
        self,
        rules: RuleRepository,
        payouts: PayoutRepository,
        match_client: MatchClient,
        notification_client: NotificationSender,
    ) -> None:
        self.rules = rules
        self.payouts = payouts
        self.match_client = match_client
        self.notification_client = notification_client

    def get_rule(self, rule_id: str) -> PrizeRule:
        rule = self.rules.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"rule not found: {rule_id}")
        return rule

    def preview(self, rule_id: str, results: Sequence[MatchResultInput]) -> PayoutPreview:
        rule = self.get_rule(rule_id)
        winners = calculate_winnings(rule, validate_results(results))
        return PayoutPreview(rule=rule, winners=winners, total_amount=total_amount(winners))

    def distribute(self, match_id: str, rule_id: str, results: Sequence[MatchResultInput]) -> PayoutRow:
        results = validate_results(results)
        preview = self.preview(rule_id, results)
        usernames = {result.uid: result.username for result in results}
        return self._submit(match_id, rule_id, preview.winners, usernames)

    def distribute_manual(self, match_id: str, entries: Sequence[ManualPayout]) -> PayoutRow:
        """Pay operator-entered amounts; entries without a positive amount are skipped."""
        winners: list[CalculatedWinner] = []
        usernames: dict[str, str] = {}
        for entry in entries:
            uid = normalize_uid(entry.uid)
            if uid in usernames:
                raise DomainValidationError(f"duplicate uid in winners: {uid}")
            usernames[uid] = entry.username
            amount = to_amount(entry.amount)
            if amount > 0:
                winners.append(CalculatedWinner(uid=uid, amount=amount, breakdown="Manual Prize"))
        return self._submit(match_id, None, winners, usernames)

    def _submit(
        self,
        match_id: str,
        rule_id: str | None,
        winners: Sequence[CalculatedWinner],
        usernames: dict[str, str],
    ) -> PayoutRow:
        if not winners:
            raise NoPayoutPossibleError("no winners to pay for this match")

        total = total_amount(winners)
        logger.info(
            "Distributing %s to %d winners for match %s (rule %s)",
            format_amount(total),
            len(winners),
            match_id,
            rule_id or "manual",
        )
        self.match_client.distribute_prizes(match_id, winners)

        row = self.payouts.record(match_id=match_id, rule_id=rule_id, winners=winners, usernames=usernames)
        self._notify_winners(winners, usernames)
        return row

    def _notify_winners(self, winners: Sequence[CalculatedWinner], usernames: dict[str, str]) -> None:
        # Credits are already applied; a failed push must not fail the payout.
        for winner in winners:
            name = usernames.get(winner.uid) or "Player"
            amount = format_amount(winner.amount)
            try:
                self.notification_client.send_notification(
                    title=WINNER_NOTIFICATION_TITLE,
                    body=(
                        f"Hey {name}! You've won {CURRENCY_SYMBOL}{amount} as prize money! 🏆 "
                        "The amount has been added to your wallet."
                    ),
                    user_ids=[winner.uid],
                    data={"screen": "wallet", "amount": winner.to_payout()["amount"]},
                    skip_save=True,
                )
            except UpstreamServiceError as exc:
                logger.warning("Prize notification to %s failed: %s", winner.uid, exc)
