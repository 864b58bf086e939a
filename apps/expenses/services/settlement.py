"""
Settlement service.

A split moves from ``pending`` to ``settled`` and never back. Settling an
already-settled split is a no-op, so clients may safely retry.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import F, QuerySet

from apps.accounts.models import User
from apps.expenses.models import Expense, Split, SplitStatus

from .exceptions import (
    ExpenseNotFoundError,
    ParticipantNotFoundError,
    InvalidStateTransitionError,
)

logger = logging.getLogger(__name__)


_ALLOWED_TRANSITIONS = {
    (SplitStatus.PENDING, SplitStatus.PENDING),
    (SplitStatus.PENDING, SplitStatus.SETTLED),
    (SplitStatus.SETTLED, SplitStatus.SETTLED),
}


def next_status(current: str, target: str) -> SplitStatus:
    """
    Validate a split status transition and return the target status.

    Raises:
        InvalidStateTransitionError: For settled -> pending or unknown statuses
    """
    try:
        transition = (SplitStatus(current), SplitStatus(target))
    except ValueError:
        raise InvalidStateTransitionError(f"Unknown split status: {current!r} -> {target!r}")

    if transition not in _ALLOWED_TRANSITIONS:
        raise InvalidStateTransitionError(
            f"Cannot change split status from {current} to {target}"
        )
    return transition[1]


@transaction.atomic
def settle_split(
    *,
    expense_id: UUID,
    user_id: UUID,
    settled_by: Optional[User] = None
) -> Split:
    """
    Mark a participant's split on an expense as settled.

    Args:
        expense_id: UUID of the expense
        user_id: UUID of the participant whose split is settled
        settled_by: User recording the settlement

    Returns:
        The Split instance, settled

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ParticipantNotFoundError: If user has no split on the expense
    """
    if not Expense.objects.filter(id=expense_id).exists():
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    try:
        split = (
            Split.objects
            .select_for_update()
            .get(expense_id=expense_id, user_id=user_id)
        )
    except Split.DoesNotExist:
        raise ParticipantNotFoundError("User is not a participant in this expense")

    next_status(split.status, SplitStatus.SETTLED)

    if split.mark_settled(settled_by=settled_by):
        logger.info("Split %s on expense %s settled", split.id, expense_id)
    return split


def get_pending_splits(*, user: User) -> QuerySet[Split]:
    """Pending splits the user owes on expenses somebody else paid for."""
    return (
        Split.objects
        .filter(user=user, status=SplitStatus.PENDING)
        .exclude(expense__paid_by=F('user'))
        .select_related('expense', 'expense__group', 'expense__paid_by')
        .order_by('-expense__date', '-expense__created_at')
    )
