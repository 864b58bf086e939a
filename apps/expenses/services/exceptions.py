"""
Domain exceptions for expenses app.

These exceptions are raised by the split calculator, the settlement
tracker and the expense repository services. Views catch them and
translate them into HTTP responses; storage errors never leak out.

Exception Hierarchy:
    ExpensesServiceError (base)
    ├── InvalidAmountError
    ├── EmptyParticipantsError
    ├── InvalidSplitTypeError
    ├── ParticipantNotFoundError
    ├── DuplicateParticipantError
    ├── InvalidStateTransitionError
    ├── ExpenseNotFoundError
    ├── GroupNotFoundError
    └── InsufficientPermissionsError
"""


class ExpensesServiceError(Exception):
    """Base exception for all expenses service errors."""
    pass


class InvalidAmountError(ExpensesServiceError):
    """Raised when an expense total is not a positive amount."""
    pass


class EmptyParticipantsError(ExpensesServiceError):
    """Raised when an equal split has no participants to divide among."""
    pass


class InvalidSplitTypeError(ExpensesServiceError):
    """Raised when the split type is not equal, percentage or exact."""
    pass


class ParticipantNotFoundError(ExpensesServiceError):
    """Raised when a user has no split on the referenced expense."""
    pass


class InvalidStateTransitionError(ExpensesServiceError):
    """Raised when a split status change is not allowed (settled -> pending)."""
    pass


class ExpenseNotFoundError(ExpensesServiceError):
    """Raised when an expense does not exist."""
    pass


class GroupNotFoundError(ExpensesServiceError):
    """Raised when the expense's group does not exist."""
    pass


class InsufficientPermissionsError(ExpensesServiceError):
    """Raised when a user may not modify an expense."""
    pass


class DuplicateParticipantError(ExpensesServiceError):
    """Raised when the same user appears twice in an expense's splits."""
    pass
