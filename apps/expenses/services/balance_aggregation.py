"""
Balance aggregation service.

Derives paid/owed/balance views from a set of expenses. Balances are never
stored: every call starts from zero and folds the given expenses in, so the
result does not depend on expense order and no state is shared between calls.

The pure functions work on plain ledger entries::

    {
        'paid_by': <user id>,
        'amount': Decimal('200.00'),
        'splits': [{'user': <user id>, 'amount': Decimal('100.00')}, ...],
    }

``get_group_balances`` and ``get_user_summary`` load the entries through the
ORM and delegate to them.
"""

from decimal import Decimal
from typing import Any, Dict, Hashable, Iterable, List, Mapping
from uuid import UUID

from django.db.models import Q

from apps.accounts.models import User
from apps.expenses.models import Expense
from apps.groups.models import Group

from .exceptions import GroupNotFoundError
from .split_calculation import to_decimal

ZERO = Decimal('0.00')


def expense_to_entry(expense: Expense) -> Dict[str, Any]:
    """Convert an Expense (with prefetched splits) to a ledger entry."""
    return {
        'paid_by': expense.paid_by_id,
        'amount': expense.amount,
        'splits': [
            {'user': split.user_id, 'amount': split.amount}
            for split in expense.splits.all()
        ],
    }


def compute_balances(
    *,
    members: Iterable[Hashable],
    expenses: Iterable[Mapping]
) -> Dict[Hashable, Dict[str, Decimal]]:
    """
    Compute per-member paid, owed and balance over a set of expenses.

    The payer is credited with the full expense amount. Every other
    participant is debited with their split amount; the payer's own split
    is not counted as owed. Payers or participants that are not in
    ``members`` are ignored.

    Args:
        members: Ordered user ids to report on
        expenses: Ledger entries (see module docstring)

    Returns:
        Dict mapping user id to ``{'paid', 'owed', 'balance'}``, in member
        order, with ``balance = paid - owed``
    """
    balances = {
        member: {'paid': ZERO, 'owed': ZERO, 'balance': ZERO}
        for member in members
    }

    for expense in expenses:
        payer = expense['paid_by']
        if payer in balances:
            balances[payer]['paid'] += to_decimal(expense['amount'])

        for split in expense['splits']:
            participant = split['user']
            if participant == payer or participant not in balances:
                continue
            balances[participant]['owed'] += to_decimal(split['amount'])

    for entry in balances.values():
        entry['balance'] = entry['paid'] - entry['owed']

    return balances


def compute_user_summary(
    *,
    user_id: Hashable,
    expenses: Iterable[Mapping]
) -> Dict[str, Decimal]:
    """
    Compute one user's position across expenses from any number of groups.

    For expenses the user paid, ``paid`` grows by the amount and
    ``owed_to_me`` by the other participants' splits. For expenses paid by
    someone else, ``owed`` grows by the user's own split.

    Returns:
        Dict with ``paid``, ``owed``, ``owed_to_me`` and
        ``balance = owed_to_me - owed``
    """
    paid = owed = owed_to_me = ZERO

    for expense in expenses:
        if expense['paid_by'] == user_id:
            paid += to_decimal(expense['amount'])
            owed_to_me += sum(
                (to_decimal(s['amount']) for s in expense['splits'] if s['user'] != user_id),
                ZERO
            )
        else:
            owed += sum(
                (to_decimal(s['amount']) for s in expense['splits'] if s['user'] == user_id),
                ZERO
            )

    return {
        'paid': paid,
        'owed': owed,
        'owed_to_me': owed_to_me,
        'balance': owed_to_me - owed,
    }


def sort_balances(balances: Mapping[Hashable, Mapping[str, Decimal]]) -> List[Dict[str, Any]]:
    """Flatten a balance map into a list ordered by balance, highest first."""
    rows = [
        {
            'user_id': user_id,
            'paid': entry['paid'],
            'owed': entry['owed'],
            'balance': entry['balance'],
        }
        for user_id, entry in balances.items()
    ]
    # sorted() is stable, ties keep member order
    return sorted(rows, key=lambda row: row['balance'], reverse=True)


def get_group_balances(*, group_id: UUID) -> List[Dict[str, Any]]:
    """
    Balances for every current member of a group, highest first.

    Each row also carries the member's ``user`` instance for display.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    memberships = list(
        group.memberships.select_related('user').order_by('joined_at', 'id')
    )
    users = {m.user_id: m.user for m in memberships}

    expenses = group.expenses.prefetch_related('splits')
    balances = compute_balances(
        members=[m.user_id for m in memberships],
        expenses=(expense_to_entry(e) for e in expenses),
    )

    rows = sort_balances(balances)
    for row in rows:
        row['user'] = users[row['user_id']]
    return rows


def get_user_summary(*, user: User) -> Dict[str, Decimal]:
    """Summary of what the user paid, owes and is owed across all groups."""
    expenses = (
        Expense.objects
        .filter(Q(paid_by=user) | Q(splits__user=user))
        .distinct()
        .prefetch_related('splits')
    )
    return compute_user_summary(
        user_id=user.id,
        expenses=(expense_to_entry(e) for e in expenses),
    )
