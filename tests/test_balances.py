import random
from decimal import Decimal

import pytest

from groupsplit.balances import (
    BalanceStrategy,
    PayerSplitStrategy,
    check_conservation,
    compute_balances,
    compute_settlements,
    get_strategy,
    summarize_group,
)
from groupsplit.errors import ConservationViolation
from groupsplit.models import Balance, Expense, Repayment, Share
from groupsplit.repository import Repository
from groupsplit.splits import compute_shares

NAMES = {1: "Alice", 2: "Bob", 3: "Cara"}


def expense(expense_id, payer_id, total, shares, mode="custom"):
    total = Decimal(total)
    return Expense(
        id=expense_id,
        group_id=1,
        payer_id=payer_id,
        total_amount=total,
        split_mode=mode,
        shares=[Share(member_id=m, amount=Decimal(a), expense_id=expense_id) for m, a in shares],
    )


def balance(member_id, net):
    net = Decimal(net)
    if net >= 0:
        return Balance(member_id=member_id, paid=net)
    return Balance(member_id=member_id, owed=-net)


def apply(balances, settlements):
    remaining = {b.member_id: b.net for b in balances}
    for settlement in settlements:
        remaining[settlement.from_id] += settlement.amount
        remaining[settlement.to_id] -= settlement.amount
    return remaining


@pytest.fixture
def dinner():
    return [expense(1, 1, "90", [(1, "30"), (2, "30"), (3, "30")], mode="equal")]


def test_alice_paid_for_everyone(dinner):
    balances = compute_balances(dinner, members=NAMES)

    assert [(b.member_id, b.name, b.paid, b.owed, b.net) for b in balances] == [
        (1, "Alice", Decimal("90.00"), Decimal("30.00"), Decimal("60.00")),
        (2, "Bob", Decimal("0.00"), Decimal("30.00"), Decimal("-30.00")),
        (3, "Cara", Decimal("0.00"), Decimal("30.00"), Decimal("-30.00")),
    ]

    settlements = compute_settlements(balances)

    assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
        (2, 1, Decimal("30.00")),
        (3, 1, Decimal("30.00")),
    ]


def test_summary_shape(dinner):
    summary = summarize_group(dinner, NAMES)

    assert summary["strategy"] == "shares"
    assert summary["balances"][0] == {"member_id": 1, "name": "Alice", "paid": 90.0, "owed": 30.0, "net": 60.0}
    assert summary["settlements"] == [
        {"from_id": 2, "from": "Bob", "to_id": 1, "to": "Alice", "amount": 30.0},
        {"from_id": 3, "from": "Cara", "to_id": 1, "to": "Alice", "amount": 30.0},
    ]


def test_empty_group():
    assert compute_balances([]) == []
    assert compute_settlements([]) == []
    assert summarize_group([], NAMES) == {"strategy": "shares", "balances": [], "settlements": []}


def test_members_without_history_are_left_out(dinner):
    names = {**NAMES, 4: "Dan"}

    balances = compute_balances(dinner, members=names)

    assert [b.member_id for b in balances] == [1, 2, 3]


def test_repayment_counts_as_paying(dinner):
    repayments = [Repayment(id=1, group_id=1, from_member_id=2, to_member_id=1, amount=Decimal("30.00"))]

    balances = compute_balances(dinner, repayments=repayments, members=NAMES)

    assert {b.member_id: b.net for b in balances} == {
        1: Decimal("30.00"),
        2: Decimal("0.00"),
        3: Decimal("-30.00"),
    }
    assert [(s.from_id, s.to_id, s.amount) for s in compute_settlements(balances)] == [(3, 1, Decimal("30.00"))]


def test_payer_split_strategy_ignores_shares():
    expenses = [
        expense(1, 1, "90", [(1, "30"), (2, "30"), (3, "30")]),
        expense(2, 2, "30", [(3, "30")]),
    ]

    balances = compute_balances(expenses, strategy="payers")

    assert {b.member_id: (b.paid, b.owed, b.net) for b in balances} == {
        1: (Decimal("90.00"), Decimal("60.00"), Decimal("30.00")),
        2: (Decimal("30.00"), Decimal("60.00"), Decimal("-30.00")),
    }


def test_payer_split_strategy_spreads_odd_cents():
    expenses = [
        expense(1, 1, "5", []),
        expense(2, 2, "5", []),
        expense(3, 3, "0.01", []),
    ]

    balances = compute_balances(expenses, strategy=PayerSplitStrategy())

    assert [b.owed for b in balances] == [Decimal("3.34"), Decimal("3.34"), Decimal("3.33")]
    assert check_conservation(balances) == Decimal("0.00")


def test_strategies_disagree_on_uneven_shares():
    expenses = [expense(1, 1, "100", [(1, "10"), (2, "90")])]

    shares = {b.member_id: b.net for b in compute_balances(expenses, strategy="shares")}
    payers = {b.member_id: b.net for b in compute_balances(expenses, strategy="payers")}

    assert shares == {1: Decimal("90.00"), 2: Decimal("-90.00")}
    assert payers == {1: Decimal("0.00")}


def test_unknown_strategy():
    with pytest.raises(ValueError):
        get_strategy("average")


def test_partial_shares_break_conservation():
    expenses = [expense(1, 1, "100", [(1, "50")])]

    balances = compute_balances(expenses)

    with pytest.raises(ConservationViolation) as excinfo:
        check_conservation(balances)
    assert excinfo.value.total == Decimal("50.00")

    with pytest.raises(ConservationViolation):
        summarize_group(expenses)


def test_random_histories_conserve_money_and_settle():
    rng = random.Random(20261018)
    members = [1, 2, 3, 4, 5, 6]

    for _ in range(50):
        expenses = []
        for expense_id in range(1, rng.randint(1, 12)):
            total = Decimal(rng.randint(1, 50000)) / 100
            participants = rng.sample(members, rng.randint(1, len(members)))
            shares = compute_shares(total, "equal", participants)
            expenses.append(
                Expense(
                    id=expense_id,
                    group_id=1,
                    payer_id=rng.choice(members),
                    total_amount=total,
                    split_mode="equal",
                    shares=shares,
                )
            )

        for strategy in ("shares", "payers"):
            balances = compute_balances(expenses, strategy=strategy)
            assert abs(sum((b.net for b in balances), Decimal("0"))) <= Decimal("0.01")

            settlements = compute_settlements(balances)
            creditors = len([b for b in balances if b.net > 0])
            debtors = len([b for b in balances if b.net < 0])

            assert all(s.amount > 0 for s in settlements)
            if settlements:
                assert len(settlements) <= creditors + debtors - 1
            assert all(abs(net) < Decimal("0.01") for net in apply(balances, settlements).values())


def test_settlement_pairs_largest_first():
    balances = [balance(1, "10"), balance(2, "-5"), balance(3, "40"), balance(4, "-45")]

    settlements = compute_settlements(balances)

    # after 4 pays 3, both remaining debtors owe 5; the earlier one goes first
    assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
        (4, 3, Decimal("40.00")),
        (2, 1, Decimal("5.00")),
        (4, 1, Decimal("5.00")),
    ]


def test_settlement_picks_current_largest_creditor():
    balances = [balance(1, "50"), balance(2, "40"), balance(3, "-45"), balance(4, "-45")]

    settlements = compute_settlements(balances)

    # 1 is owed only 5 after the first transfer, so 2 is paid next
    assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
        (3, 1, Decimal("45.00")),
        (4, 2, Decimal("40.00")),
        (4, 1, Decimal("5.00")),
    ]


def test_greedy_plan_is_not_always_minimal():
    # C pays B and D, E pay A would take three transfers; greedy pairs C with A first
    balances = [
        balance("A", "6"),
        balance("B", "5"),
        balance("C", "-5"),
        balance("D", "-3"),
        balance("E", "-3"),
    ]

    settlements = compute_settlements(balances)

    assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
        ("C", "A", Decimal("5.00")),
        ("D", "B", Decimal("3.00")),
        ("E", "B", Decimal("2.00")),
        ("E", "A", Decimal("1.00")),
    ]
    assert all(net == 0 for net in apply(balances, settlements).values())


def test_strategy_and_repository_interfaces_are_abstract():
    class Incomplete(BalanceStrategy):
        name = "incomplete"

    with pytest.raises(TypeError):
        Incomplete()

    with pytest.raises(TypeError):
        Repository()


def test_settlements_do_not_touch_balances(dinner):
    balances = compute_balances(dinner)
    before = [b.net for b in balances]

    first = compute_settlements(balances)
    second = compute_settlements(balances)

    assert first == second
    assert [b.net for b in balances] == before
    assert compute_balances(dinner) == balances
