"""Persistence collaborator for groups, members, expenses and repayments."""
from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from .db import Database
from .models import Expense, Member, Repayment, Share
from .money import to_decimal


class Repository(ABC):
    """What the HTTP layer needs from storage.

    ``create_expense`` must write the expense and all of its shares as one
    unit; balances rely on every stored expense having complete shares.
    """

    @abstractmethod
    def create_group(self, name: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def group_exists(self, group_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def add_member(self, group_id: int, name: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_members(self, group_id: int) -> List[Member]:
        raise NotImplementedError

    @abstractmethod
    def create_expense(
        self,
        group_id: int,
        title: str,
        payer_id: int,
        total_amount: Decimal,
        split_mode: str,
        shares: Sequence[Share],
    ) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_expenses(self, group_id: int) -> List[Expense]:
        raise NotImplementedError

    @abstractmethod
    def create_repayment(self, group_id: int, from_member_id: int, to_member_id: int, amount: Decimal) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_repayments(self, group_id: int) -> List[Repayment]:
        raise NotImplementedError


class MySQLRepository(Repository):
    def __init__(self, db: Optional[Database] = None) -> None:
        self.db = db or Database()

    def create_group(self, name: str) -> int:
        return self.db.execute("INSERT INTO `groups` (group_name) VALUES (%s)", (name,))

    def group_exists(self, group_id: int) -> bool:
        return self.db.fetch_one("SELECT id FROM `groups` WHERE id=%s", (group_id,)) is not None

    def add_member(self, group_id: int, name: str) -> int:
        return self.db.execute(
            "INSERT INTO members (group_id, name) VALUES (%s, %s)",
            (group_id, name),
        )

    def list_members(self, group_id: int) -> List[Member]:
        rows = self.db.fetch_all(
            "SELECT id, group_id, name FROM members WHERE group_id=%s ORDER BY id",
            (group_id,),
        )
        return [Member(id=row["id"], group_id=row["group_id"], name=row["name"]) for row in rows]

    def create_expense(self, group_id, title, payer_id, total_amount, split_mode, shares) -> int:
        with self.db.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO expenses (group_id, title, amount, paid_by, split_mode)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (group_id, title, str(total_amount), payer_id, split_mode),
            )
            expense_id = cursor.lastrowid
            for share in shares:
                cursor.execute(
                    """
                    INSERT INTO expense_shares (expense_id, member_id, share_amount)
                    VALUES (%s, %s, %s)
                    """,
                    (expense_id, share.member_id, str(share.amount)),
                )
        return expense_id

    def list_expenses(self, group_id: int) -> List[Expense]:
        # One consistent snapshot of expenses and their shares
        with self.db.cursor() as cursor:
            cursor.execute(
                """
                SELECT id, group_id, title, amount, paid_by, split_mode
                FROM expenses
                WHERE group_id=%s
                ORDER BY id
                """,
                (group_id,),
            )
            expense_rows = cursor.fetchall()
            cursor.execute(
                """
                SELECT es.expense_id, es.member_id, es.share_amount
                FROM expense_shares es
                JOIN expenses e ON es.expense_id = e.id
                WHERE e.group_id=%s
                ORDER BY es.id
                """,
                (group_id,),
            )
            share_rows = cursor.fetchall()

        shares_map: Dict[int, List[Share]] = {}
        for row in share_rows:
            shares_map.setdefault(row["expense_id"], []).append(
                Share(
                    member_id=row["member_id"],
                    amount=to_decimal(row["share_amount"]),
                    expense_id=row["expense_id"],
                )
            )

        return [
            Expense(
                id=row["id"],
                group_id=row["group_id"],
                payer_id=row["paid_by"],
                total_amount=to_decimal(row["amount"]),
                split_mode=row["split_mode"],
                shares=shares_map.get(row["id"], []),
                title=row["title"],
            )
            for row in expense_rows
        ]

    def create_repayment(self, group_id, from_member_id, to_member_id, amount) -> int:
        return self.db.execute(
            """
            INSERT INTO repayments (group_id, from_member_id, to_member_id, amount)
            VALUES (%s, %s, %s, %s)
            """,
            (group_id, from_member_id, to_member_id, str(amount)),
        )

    def list_repayments(self, group_id: int) -> List[Repayment]:
        rows = self.db.fetch_all(
            """
            SELECT id, group_id, from_member_id, to_member_id, amount
            FROM repayments
            WHERE group_id=%s
            ORDER BY id
            """,
            (group_id,),
        )
        return [
            Repayment(
                id=row["id"],
                group_id=row["group_id"],
                from_member_id=row["from_member_id"],
                to_member_id=row["to_member_id"],
                amount=to_decimal(row["amount"]),
            )
            for row in rows
        ]
