from __future__ import annotations

import itertools
from typing import Dict, List

import pytest

from groupsplit.app import create_app
from groupsplit.models import Expense, Member, Repayment, Share
from groupsplit.repository import Repository


class InMemoryRepository(Repository):
    def __init__(self) -> None:
        self.groups: Dict[int, str] = {}
        self.members: List[Member] = []
        self.expenses: List[Expense] = []
        self.repayments: List[Repayment] = []
        self._group_ids = itertools.count(1)
        self._member_ids = itertools.count(1)
        self._expense_ids = itertools.count(1)
        self._repayment_ids = itertools.count(1)

    def create_group(self, name):
        group_id = next(self._group_ids)
        self.groups[group_id] = name
        return group_id

    def group_exists(self, group_id):
        return group_id in self.groups

    def add_member(self, group_id, name):
        member_id = next(self._member_ids)
        self.members.append(Member(id=member_id, group_id=group_id, name=name))
        return member_id

    def list_members(self, group_id):
        return [member for member in self.members if member.group_id == group_id]

    def create_expense(self, group_id, title, payer_id, total_amount, split_mode, shares):
        expense_id = next(self._expense_ids)
        self.expenses.append(
            Expense(
                id=expense_id,
                group_id=group_id,
                payer_id=payer_id,
                total_amount=total_amount,
                split_mode=split_mode,
                shares=[Share(member_id=s.member_id, amount=s.amount, expense_id=expense_id) for s in shares],
                title=title,
            )
        )
        return expense_id

    def list_expenses(self, group_id):
        return [expense for expense in self.expenses if expense.group_id == group_id]

    def create_repayment(self, group_id, from_member_id, to_member_id, amount):
        repayment_id = next(self._repayment_ids)
        self.repayments.append(
            Repayment(
                id=repayment_id,
                group_id=group_id,
                from_member_id=from_member_id,
                to_member_id=to_member_id,
                amount=amount,
            )
        )
        return repayment_id

    def list_repayments(self, group_id):
        return [repayment for repayment in self.repayments if repayment.group_id == group_id]


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def app(repository):
    app = create_app(repository)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def trip(repository):
    """A group with Alice, Bob and Cara (member ids 1, 2, 3)."""
    group_id = repository.create_group("Trip")
    for name in ("Alice", "Bob", "Cara"):
        repository.add_member(group_id, name)
    return group_id
