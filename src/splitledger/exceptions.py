"""Custom exceptions for SplitLedger."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Kinds of rejected ledger operations."""

    NEGATIVE_RESIDUAL = "NegativeResidual"
    SPLIT_SUM_MISMATCH = "SplitSumMismatch"
    PERCENTAGE_SUM_MISMATCH = "PercentageSumMismatch"
    INVALID_PARTICIPANT_SET = "InvalidParticipantSet"
    NO_OUTSTANDING_BALANCE = "NoOutstandingBalance"
    NON_ZERO_BALANCE = "NonZeroBalance"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_EVENT = "InvalidEvent"
    INVALID_TRANSFER = "InvalidTransfer"
    NOT_FOUND = "NotFound"
    CONFIGURATION = "Configuration"


class SplitLedgerError(Exception):
    """Base exception for all SplitLedger errors."""

    kind: ErrorKind


class ConfigurationError(SplitLedgerError):
    """Raised when configuration is invalid or missing."""

    kind = ErrorKind.CONFIGURATION


class NegativeResidualError(SplitLedgerError):
    """Raised when the implicit participant would be left with a negative share."""

    kind = ErrorKind.NEGATIVE_RESIDUAL

    def __init__(self, residual: int | str, message: str | None = None):
        self.residual = residual
        super().__init__(
            message
            or f"Entered shares exceed the total (residual would be {residual})"
        )


class SplitSumMismatchError(SplitLedgerError):
    """Raised when shares don't add up to the total amount."""

    kind = ErrorKind.SPLIT_SUM_MISMATCH

    def __init__(self, total: int, actual: int):
        self.total = total
        self.actual = actual
        super().__init__(
            f"The shares must add up to the total amount "
            f"(expected {total}, got {actual})"
        )


class PercentageSumMismatchError(SplitLedgerError):
    """Raised when percentages don't add up to 100."""

    kind = ErrorKind.PERCENTAGE_SUM_MISMATCH

    def __init__(self, actual: str):
        self.actual = actual
        super().__init__(f"The percentages must add up to 100% (got {actual}%)")


class InvalidParticipantSetError(SplitLedgerError):
    """Raised for empty participant lists, duplicate ids or a missing payer."""

    kind = ErrorKind.INVALID_PARTICIPANT_SET


class InvalidAmountError(SplitLedgerError):
    """Raised when an amount is zero or negative where it must be positive."""

    kind = ErrorKind.INVALID_AMOUNT


class InvalidEventError(SplitLedgerError):
    """Raised when a cost-sharing event is malformed or in the wrong state."""

    kind = ErrorKind.INVALID_EVENT


class InvalidTransferError(SplitLedgerError):
    """Raised when a settlement transfer has identical endpoints."""

    kind = ErrorKind.INVALID_TRANSFER


class NoOutstandingBalanceError(SplitLedgerError):
    """Raised when asked to settle a balance that is already settled."""

    kind = ErrorKind.NO_OUTSTANDING_BALANCE

    def __init__(self, counterparty_id: str):
        self.counterparty_id = counterparty_id
        super().__init__(f"Nothing to settle with {counterparty_id}: already settled")


class NonZeroBalanceError(SplitLedgerError):
    """Raised when removing a counterparty whose balance is not settled."""

    kind = ErrorKind.NON_ZERO_BALANCE

    def __init__(self, counterparty_id: str, net_amount: int):
        self.counterparty_id = counterparty_id
        self.net_amount = net_amount
        super().__init__(
            f"Cannot remove {counterparty_id} with pending balance. Settle up first!"
        )


class NotFoundError(SplitLedgerError):
    """Raised when an event or relationship does not exist."""

    kind = ErrorKind.NOT_FOUND
