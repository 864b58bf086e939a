"""
Expenses app services layer.

Split calculation and balance aggregation are pure functions; expense
management and settlement persist through the ORM inside transactions.
"""

from .exceptions import (
    ExpensesServiceError,
    InvalidAmountError,
    EmptyParticipantsError,
    InvalidSplitTypeError,
    ParticipantNotFoundError,
    DuplicateParticipantError,
    InvalidStateTransitionError,
    ExpenseNotFoundError,
    GroupNotFoundError,
    InsufficientPermissionsError,
)

from .split_calculation import (
    compute_splits,
    normalize_total,
    split_total_discrepancy,
)

from .balance_aggregation import (
    compute_balances,
    compute_user_summary,
    sort_balances,
    expense_to_entry,
    get_group_balances,
    get_user_summary,
)

from .settlement import (
    next_status,
    settle_split,
    get_pending_splits,
)

from .expense_management import (
    create_expense,
    get_expense_by_id,
    get_group_expenses,
    delete_expense,
)


__all__ = [
    # Exceptions
    'ExpensesServiceError',
    'InvalidAmountError',
    'EmptyParticipantsError',
    'InvalidSplitTypeError',
    'ParticipantNotFoundError',
    'DuplicateParticipantError',
    'InvalidStateTransitionError',
    'ExpenseNotFoundError',
    'GroupNotFoundError',
    'InsufficientPermissionsError',

    # Split Calculation
    'compute_splits',
    'normalize_total',
    'split_total_discrepancy',

    # Balance Aggregation
    'compute_balances',
    'compute_user_summary',
    'sort_balances',
    'expense_to_entry',
    'get_group_balances',
    'get_user_summary',

    # Settlement
    'next_status',
    'settle_split',
    'get_pending_splits',

    # Expense Management
    'create_expense',
    'get_expense_by_id',
    'get_group_expenses',
    'delete_expense',
]
