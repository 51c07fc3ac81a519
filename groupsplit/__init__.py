from .balances import check_conservation, compute_balances, compute_settlements, summarize_group
from .errors import ConservationViolation, InvalidSplitError
from .splits import compute_shares

__all__ = [
    "check_conservation",
    "compute_balances",
    "compute_settlements",
    "compute_shares",
    "summarize_group",
    "ConservationViolation",
    "InvalidSplitError",
]
