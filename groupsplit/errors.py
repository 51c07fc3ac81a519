from decimal import Decimal


class GroupSplitError(Exception):
    """Base class for errors raised by the splitting engine."""


class InvalidSplitError(GroupSplitError, ValueError):
    """The split request itself is malformed.

    ``code`` is a short machine readable reason (``percent_total_mismatch``,
    ``unknown_split_mode``...) and is what the HTTP layer reports.
    """

    def __init__(self, code: str, detail: str = "") -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail


class ConservationViolation(GroupSplitError):
    """Net balances of a group do not sum to zero.

    Points at corrupted history upstream, e.g. an expense whose shares were
    only partly written.
    """

    def __init__(self, total: Decimal) -> None:
        super().__init__(f"net balances sum to {total}, expected 0.00")
        self.total = total
