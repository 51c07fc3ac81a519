from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .money import ZERO, as_float, quantize

SPLIT_MODES = ("equal", "percent", "custom")


@dataclass(frozen=True)
class Member:
    id: int
    group_id: int
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "group_id": self.group_id, "name": self.name}


@dataclass(frozen=True)
class Share:
    member_id: int
    amount: Decimal
    expense_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"member_id": self.member_id, "amount": as_float(self.amount)}


@dataclass(frozen=True)
class Expense:
    id: Optional[int]
    group_id: int
    payer_id: int
    total_amount: Decimal
    split_mode: str
    shares: List[Share] = field(default_factory=list)
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "group_id": self.group_id,
            "title": self.title,
            "paid_by": self.payer_id,
            "amount": as_float(self.total_amount),
            "split_mode": self.split_mode,
            "shares": [share.to_dict() for share in self.shares],
        }


@dataclass(frozen=True)
class Repayment:
    """Money handed directly from one member to another."""

    id: Optional[int]
    group_id: int
    from_member_id: int
    to_member_id: int
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from_member_id": self.from_member_id,
            "to_member_id": self.to_member_id,
            "amount": as_float(self.amount),
        }


@dataclass
class Balance:
    member_id: int
    name: Optional[str] = None
    paid: Decimal = ZERO
    owed: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return quantize(self.paid - self.owed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "paid": as_float(self.paid),
            "owed": as_float(self.owed),
            "net": as_float(self.net),
        }


@dataclass(frozen=True)
class Settlement:
    from_id: int
    to_id: int
    amount: Decimal
    from_name: Optional[str] = None
    to_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_id": self.from_id,
            "from": self.from_name,
            "to_id": self.to_id,
            "to": self.to_name,
            "amount": as_float(self.amount),
        }
