"""
Unit tests for the balance aggregator.

The pure functions are exercised with plain ledger entries; the ORM-backed
helpers are covered at the end.
"""

import itertools
import pytest
from decimal import Decimal
from uuid import uuid4

from apps.expenses.services import (
    compute_balances,
    compute_user_summary,
    sort_balances,
    get_group_balances,
    get_user_summary,
    settle_split,
    GroupNotFoundError,
)


def _entry(paid_by, amount, **splits):
    return {
        'paid_by': paid_by,
        'amount': Decimal(amount),
        'splits': [{'user': user, 'amount': Decimal(value)} for user, value in splits.items()],
    }


LEDGER = [
    _entry('A', '200', A='0', B='100', C='100'),
    _entry('B', '60', A='20', B='20', C='20'),
    _entry('C', '15.50', A='7.75', C='7.75'),
    _entry('A', '9.99', B='9.99'),
]


class TestComputeBalances:

    def test_payer_credited_participants_debited(self):
        balances = compute_balances(
            members=['A', 'B', 'C'],
            expenses=[_entry('A', '200', A='0', B='100', C='100')],
        )

        assert balances['A'] == {
            'paid': Decimal('200'), 'owed': Decimal('0'), 'balance': Decimal('200')
        }
        assert balances['B'] == {
            'paid': Decimal('0'), 'owed': Decimal('100'), 'balance': Decimal('-100')
        }
        assert balances['C']['owed'] == Decimal('100')
        assert balances['C']['balance'] == Decimal('-100')

    def test_payer_own_split_not_counted_as_owed(self):
        balances = compute_balances(
            members=['A', 'B'],
            expenses=[_entry('A', '50', A='25', B='25')],
        )

        assert balances['A']['owed'] == Decimal('0')
        assert balances['A']['balance'] == Decimal('50')

    def test_member_order_preserved(self):
        balances = compute_balances(members=['C', 'A', 'B'], expenses=LEDGER)

        assert list(balances) == ['C', 'A', 'B']

    def test_non_members_ignored(self):
        balances = compute_balances(
            members=['A', 'B'],
            expenses=[
                _entry('Z', '30', A='10', B='10', Z='10'),
                _entry('A', '10', Z='10'),
            ],
        )

        assert set(balances) == {'A', 'B'}
        assert balances['A']['paid'] == Decimal('10')
        assert balances['A']['owed'] == Decimal('10')
        assert balances['B']['owed'] == Decimal('10')

    def test_no_expenses(self):
        balances = compute_balances(members=['A'], expenses=[])

        assert balances == {
            'A': {'paid': Decimal('0'), 'owed': Decimal('0'), 'balance': Decimal('0')}
        }

    def test_accounting_identity(self):
        balances = compute_balances(members=['A', 'B', 'C'], expenses=LEDGER)

        total_balance = sum(entry['balance'] for entry in balances.values())
        total_paid = sum(entry['paid'] for entry in balances.values())
        total_owed = sum(entry['owed'] for entry in balances.values())
        assert total_balance == total_paid - total_owed

    def test_independent_of_expense_order(self):
        expected = compute_balances(members=['A', 'B', 'C'], expenses=LEDGER)

        for permutation in itertools.permutations(LEDGER):
            assert compute_balances(members=['A', 'B', 'C'], expenses=permutation) == expected

    def test_fresh_result_per_call(self):
        first = compute_balances(members=['A'], expenses=[_entry('A', '10', A='10')])
        first['A']['paid'] += Decimal('999')

        second = compute_balances(members=['A'], expenses=[_entry('A', '10', A='10')])
        assert second['A']['paid'] == Decimal('10')

    def test_float_amounts_read_as_written(self):
        expenses = [{'paid_by': 'A', 'amount': 0.3, 'splits': [{'user': 'B', 'amount': 0.1}]}]

        balances = compute_balances(members=['A', 'B'], expenses=expenses)

        assert balances['A']['paid'] == Decimal('0.3')
        assert balances['B']['owed'] == Decimal('0.1')
        assert balances['B']['balance'] == Decimal('-0.1')


class TestComputeUserSummary:

    def test_payer_summary(self):
        summary = compute_user_summary(
            user_id='A',
            expenses=[_entry('A', '200', A='0', B='100', C='100')],
        )

        assert summary == {
            'paid': Decimal('200'),
            'owed': Decimal('0'),
            'owed_to_me': Decimal('200'),
            'balance': Decimal('200'),
        }

    def test_participant_summary(self):
        summary = compute_user_summary(user_id='B', expenses=LEDGER)

        assert summary['paid'] == Decimal('60')
        assert summary['owed'] == Decimal('109.99')
        assert summary['owed_to_me'] == Decimal('40')
        assert summary['balance'] == Decimal('-69.99')

    def test_float_amounts_read_as_written(self):
        expenses = [{'paid_by': 'A', 'amount': 0.3, 'splits': [{'user': 'B', 'amount': 0.1}]}]

        summary = compute_user_summary(user_id='A', expenses=expenses)

        assert summary['owed_to_me'] == Decimal('0.1')

    def test_uninvolved_user(self):
        summary = compute_user_summary(user_id='X', expenses=LEDGER)

        assert all(value == Decimal('0') for value in summary.values())


class TestSortBalances:

    def test_descending_by_balance(self):
        rows = sort_balances(compute_balances(members=['A', 'B', 'C'], expenses=LEDGER))

        balances = [row['balance'] for row in rows]
        assert balances == sorted(balances, reverse=True)
        assert set(rows[0]) == {'user_id', 'paid', 'owed', 'balance'}

    def test_ties_keep_member_order(self):
        rows = sort_balances(compute_balances(members=['C', 'A', 'B'], expenses=[]))

        assert [row['user_id'] for row in rows] == ['C', 'A', 'B']


@pytest.mark.django_db
class TestGroupBalances:

    def test_group_balances_from_database(self, group, alice, bob, carol, expense, bob_expense):
        rows = get_group_balances(group_id=group.id)
        by_user = {row['user_id']: row for row in rows}

        assert by_user[alice.id]['paid'] == Decimal('90.00')
        assert by_user[alice.id]['balance'] == Decimal('90.00')
        assert by_user[bob.id]['owed'] == Decimal('30.00')
        assert by_user[bob.id]['balance'] == Decimal('10.00')
        assert by_user[carol.id]['owed'] == Decimal('55.00')
        assert by_user[carol.id]['balance'] == Decimal('-55.00')
        assert rows[0]['user'] == alice

    def test_settled_splits_still_count(self, group, alice, bob, expense):
        settle_split(expense_id=expense.id, user_id=bob.id, settled_by=bob)

        rows = get_group_balances(group_id=group.id)
        by_user = {row['user_id']: row for row in rows}
        assert by_user[bob.id]['owed'] == Decimal('30.00')

    def test_group_not_found(self):
        with pytest.raises(GroupNotFoundError):
            get_group_balances(group_id=uuid4())

    def test_user_summary_from_database(self, carol, expense, bob_expense, other_group):
        summary = get_user_summary(user=carol)

        assert summary['paid'] == Decimal('0')
        assert summary['owed'] == Decimal('55.00')
        assert summary['owed_to_me'] == Decimal('0')
        assert summary['balance'] == Decimal('-55.00')
