"""
Expense management service.

Creates, loads and deletes expenses. Split amounts come from the split
calculator; this module only resolves participants and persists the result.
"""

import logging
from datetime import date as date_type
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.expenses.models import Expense, Split, SplitType
from apps.groups.models import Group

from .exceptions import (
    DuplicateParticipantError,
    ExpenseNotFoundError,
    GroupNotFoundError,
    InsufficientPermissionsError,
    ParticipantNotFoundError,
)
from .split_calculation import compute_splits, normalize_total, split_total_discrepancy

logger = logging.getLogger(__name__)


def _resolve_participants(
    group: Group,
    splits: Optional[Iterable[Mapping[str, Any]]]
) -> List[Mapping[str, Any]]:
    """
    Validate requested participants against the group roster.

    Without explicit splits every member participates, in join order.
    """
    member_ids = group.member_ids()

    if splits is None:
        return [{'user_id': user_id} for user_id in member_ids]

    participants = list(splits)
    members = {str(user_id) for user_id in member_ids}
    seen = set()

    for participant in participants:
        key = str(participant['user_id'])
        if key not in members:
            raise ParticipantNotFoundError(
                f"User {participant['user_id']} is not a member of this group"
            )
        if key in seen:
            raise DuplicateParticipantError(
                f"User {participant['user_id']} appears more than once in splits"
            )
        seen.add(key)

    return participants


@transaction.atomic
def create_expense(
    *,
    group_id: UUID,
    paid_by: User,
    description: str,
    amount: Any,
    split_type: str = SplitType.EQUAL,
    splits: Optional[Iterable[Mapping[str, Any]]] = None,
    date: Optional[date_type] = None,
    notes: str = ''
) -> Expense:
    """
    Record an expense and its splits.

    Args:
        group_id: UUID of the group the expense belongs to
        paid_by: User who paid (must be a group member)
        description: Short description
        amount: Expense total, must be positive; rounded to cents before splitting
        split_type: ``equal``, ``percentage`` or ``exact``
        splits: Ordered participant mappings with ``user_id`` and optional
            ``percentage``/``amount``. None means every group member.
        date: Expense date, defaults to today
        notes: Optional free text

    Returns:
        The created Expense with its splits

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If paid_by is not a group member
        ParticipantNotFoundError: If a split user is not a group member
        DuplicateParticipantError: If a split user is listed twice
        InvalidAmountError: If amount is not positive
        EmptyParticipantsError: If an equal split has no participants
        InvalidSplitTypeError: If split_type is unknown
    """
    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.has_member(paid_by):
        raise InsufficientPermissionsError("Only group members can add expenses")

    total = normalize_total(amount)
    participants = _resolve_participants(group, splits)
    computed = compute_splits(
        total_amount=total,
        split_type=split_type,
        participants=participants,
    )

    expense_kwargs = {
        'group': group,
        'paid_by': paid_by,
        'description': description,
        'amount': total,
        'split_type': split_type,
        'notes': notes,
    }
    if date is not None:
        expense_kwargs['date'] = date

    expense = Expense.objects.create(**expense_kwargs)

    Split.objects.bulk_create([
        Split(
            expense=expense,
            user_id=item['user_id'],
            amount=item['amount'],
            percentage=item['percentage'],
            status=item['status'],
            position=position,
        )
        for position, item in enumerate(computed)
    ])

    logger.info(
        "Expense %s created in group %s: %s split %s way(s)",
        expense.id, group.id, expense.amount, len(computed)
    )

    discrepancy = split_total_discrepancy(total, computed)
    if discrepancy:
        logger.warning(
            "Expense %s splits do not add up to the total (%s unallocated)",
            expense.id, discrepancy
        )

    return expense


def get_expense_by_id(*, expense_id: UUID) -> Expense:
    """
    Get expense with group, payer and splits loaded.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    try:
        return (
            Expense.objects
            .select_related('group', 'paid_by')
            .prefetch_related('splits__user')
            .get(id=expense_id)
        )
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")


def get_group_expenses(*, group_id: UUID) -> QuerySet[Expense]:
    """
    Expenses of a group, newest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        Expense.objects
        .filter(group_id=group_id)
        .select_related('group', 'paid_by')
        .prefetch_related('splits__user')
        .order_by('-date', '-created_at')
    )


@transaction.atomic
def delete_expense(*, expense_id: UUID, user: User) -> None:
    """
    Delete an expense and its splits.

    Only the payer or a group admin may delete.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        InsufficientPermissionsError: If user is neither payer nor admin
    """
    try:
        expense = (
            Expense.objects
            .select_for_update()
            .select_related('group')
            .get(id=expense_id)
        )
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    if expense.paid_by_id != user.id and not expense.group.is_admin(user):
        raise InsufficientPermissionsError(
            "Only the payer or a group admin can delete this expense"
        )

    group_id = expense.group_id
    expense.delete()
    logger.info("Expense %s deleted from group %s by %s", expense_id, group_id, user.id)
