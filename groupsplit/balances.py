"""Net balances for a group and the transfers that settle them.

Balances are recomputed from the full expense history on every query and
never stored. Two ways of computing who owes what exist side by side,
``shares`` (every member owes exactly their recorded shares) and
``payers`` (the group total is split evenly among whoever paid for
something). They disagree whenever shares are uneven or a participant
never paid, so callers always name the one they use.

Settlement uses the usual greedy pairing of the largest creditor with the
largest debtor. It needs at most ``creditors + debtors - 1`` transfers but
is not guaranteed to find the fewest possible; the exact minimum is NP-hard
and the greedy plan is good enough for groups of friends.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import ConservationViolation
from .models import Balance, Expense, Repayment, Settlement
from .money import TOLERANCE, ZERO, quantize
from .splits import split_equally

logger = logging.getLogger(__name__)


class BalanceStrategy(ABC):
    name = ""

    @abstractmethod
    def tally(self, expenses: Sequence[Expense], ledger: "Ledger") -> None:
        raise NotImplementedError


class ShareLedgerStrategy(BalanceStrategy):
    """Payers are credited the expense total, participants debited their share."""

    name = "shares"

    def tally(self, expenses: Sequence[Expense], ledger: "Ledger") -> None:
        for expense in expenses:
            ledger.entry(expense.payer_id).paid += expense.total_amount
            for share in expense.shares:
                ledger.entry(share.member_id).owed += share.amount


class PayerSplitStrategy(BalanceStrategy):
    """Only payers count; the group total is split evenly across them."""

    name = "payers"

    def tally(self, expenses: Sequence[Expense], ledger: "Ledger") -> None:
        payers: List[Any] = []
        group_total = ZERO
        for expense in expenses:
            if expense.payer_id not in payers:
                payers.append(expense.payer_id)
            ledger.entry(expense.payer_id).paid += expense.total_amount
            group_total += expense.total_amount

        if not payers:
            return
        for payer_id, portion in zip(payers, split_equally(group_total, len(payers))):
            ledger.entry(payer_id).owed += portion


STRATEGIES: Dict[str, BalanceStrategy] = {
    strategy.name: strategy for strategy in (ShareLedgerStrategy(), PayerSplitStrategy())
}


def get_strategy(strategy: Union[str, BalanceStrategy, None]) -> BalanceStrategy:
    if isinstance(strategy, BalanceStrategy):
        return strategy
    try:
        return STRATEGIES[strategy or ShareLedgerStrategy.name]
    except KeyError:
        raise ValueError("unknown_balance_strategy") from None


class Ledger:
    """Balances keyed by member, in order of first appearance."""

    def __init__(self, names: Optional[Mapping[Any, str]] = None) -> None:
        self.names = names or {}
        self.balances: Dict[Any, Balance] = {}

    def entry(self, member_id: Any) -> Balance:
        balance = self.balances.get(member_id)
        if balance is None:
            balance = Balance(member_id=member_id, name=self.names.get(member_id))
            self.balances[member_id] = balance
        return balance

    def apply_repayments(self, repayments: Iterable[Repayment]) -> None:
        # Paying someone back counts as paying for them.
        for repayment in repayments:
            self.entry(repayment.from_member_id).paid += repayment.amount
            self.entry(repayment.to_member_id).owed += repayment.amount

    def to_list(self) -> List[Balance]:
        for balance in self.balances.values():
            balance.paid = quantize(balance.paid)
            balance.owed = quantize(balance.owed)
        return list(self.balances.values())


def compute_balances(
    expenses: Sequence[Expense],
    strategy: Union[str, BalanceStrategy, None] = None,
    repayments: Sequence[Repayment] = (),
    members: Optional[Mapping[Any, str]] = None,
) -> List[Balance]:
    """Paid, owed and net per member of one group.

    ``members`` maps member ids to display names and only labels the
    result. Members with no history do not get an entry.
    """
    strategy = get_strategy(strategy)
    ledger = Ledger(members)
    strategy.tally(expenses, ledger)
    ledger.apply_repayments(repayments)
    return ledger.to_list()


def check_conservation(balances: Iterable[Balance], tolerance: Decimal = TOLERANCE) -> Decimal:
    total = sum((balance.net for balance in balances), ZERO)
    if abs(total) > tolerance:
        logger.error("Net balances sum to %s instead of zero", total)
        raise ConservationViolation(total)
    return total


def compute_settlements(balances: Iterable[Balance]) -> List[Settlement]:
    creditors = []
    debtors = []

    for balance in balances:
        amount = balance.net
        if amount > 0:
            creditors.append({"member_id": balance.member_id, "name": balance.name, "amount": amount})
        elif amount < 0:
            debtors.append({"member_id": balance.member_id, "name": balance.name, "amount": -amount})

    settlements: List[Settlement] = []
    creditor_count = len(creditors)
    debtor_count = len(debtors)

    while debtors and creditors:
        # max() returns the first of equal amounts, so ties keep first-appearance order
        debtor = max(debtors, key=lambda x: x["amount"])
        creditor = max(creditors, key=lambda x: x["amount"])

        settled_amount = min(debtor["amount"], creditor["amount"])
        settlements.append(
            Settlement(
                from_id=debtor["member_id"],
                to_id=creditor["member_id"],
                amount=quantize(settled_amount),
                from_name=debtor["name"],
                to_name=creditor["name"],
            )
        )

        debtor["amount"] -= settled_amount
        creditor["amount"] -= settled_amount

        if debtor["amount"] < TOLERANCE:
            debtors.remove(debtor)
        if creditor["amount"] < TOLERANCE:
            creditors.remove(creditor)

    logger.debug("Settled %d debtors and %d creditors in %d transfers", debtor_count, creditor_count, len(settlements))
    return settlements


def summarize_group(
    expenses: Sequence[Expense],
    members: Optional[Mapping[Any, str]] = None,
    strategy: Union[str, BalanceStrategy, None] = None,
    repayments: Sequence[Repayment] = (),
) -> Dict[str, Any]:
    """Balances and settlement plan in the shape the balances endpoint returns."""
    strategy = get_strategy(strategy)
    balances = compute_balances(expenses, strategy, repayments, members)
    check_conservation(balances)
    settlements = compute_settlements(balances)
    return {
        "strategy": strategy.name,
        "balances": [balance.to_dict() for balance in balances],
        "settlements": [settlement.to_dict() for settlement in settlements],
    }
