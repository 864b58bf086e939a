"""
Unit tests for the split calculator.

Pure functions, no database access.
"""

import pytest
from decimal import Decimal

from apps.expenses.services import (
    compute_splits,
    normalize_total,
    split_total_discrepancy,
    InvalidAmountError,
    EmptyParticipantsError,
    InvalidSplitTypeError,
)


def _people(*names, **values):
    """Participants for the given ids, with an optional raw value per id."""
    key = values.pop('key', None)
    participants = []
    for name in names:
        participant = {'user_id': name}
        if key and name in values:
            participant[key] = values[name]
        participants.append(participant)
    return participants


class TestEqualSplit:

    def test_three_way_split_of_100(self):
        splits = compute_splits(
            total_amount=Decimal('100'),
            split_type='equal',
            participants=_people('a', 'b', 'c'),
        )

        assert [s['amount'] for s in splits] == [Decimal('33.33')] * 3
        assert [s['percentage'] for s in splits] == [Decimal('33.33')] * 3
        assert [s['user_id'] for s in splits] == ['a', 'b', 'c']
        assert all(s['status'] == 'pending' for s in splits)

    def test_residual_cent_not_reconciled(self):
        splits = compute_splits(
            total_amount=Decimal('100.00'),
            split_type='equal',
            participants=_people('a', 'b', 'c'),
        )

        assert split_total_discrepancy(Decimal('100.00'), splits) == Decimal('0.01')

    def test_rounds_half_up(self):
        splits = compute_splits(
            total_amount=Decimal('0.05'),
            split_type='equal',
            participants=_people('a', 'b'),
        )

        assert splits[0]['amount'] == Decimal('0.03')

    @pytest.mark.parametrize('total,count', [
        ('100.00', 3),
        ('10.00', 7),
        ('0.01', 4),
        ('999.99', 6),
        ('1234.56', 11),
    ])
    def test_sum_within_rounding_bound(self, total, count):
        total = Decimal(total)
        splits = compute_splits(
            total_amount=total,
            split_type='equal',
            participants=_people(*range(count)),
        )

        allocated = sum(s['amount'] for s in splits)
        assert abs(allocated - total) <= Decimal('0.01') * count

    def test_single_participant_gets_everything(self):
        splits = compute_splits(
            total_amount='42.50',
            split_type='equal',
            participants=_people('a'),
        )

        assert splits[0]['amount'] == Decimal('42.50')
        assert splits[0]['percentage'] == Decimal('100.00')

    def test_empty_participants(self):
        with pytest.raises(EmptyParticipantsError):
            compute_splits(total_amount=Decimal('10'), split_type='equal', participants=[])


class TestPercentageSplit:

    def test_60_40_of_50(self):
        splits = compute_splits(
            total_amount=Decimal('50'),
            split_type='percentage',
            participants=_people('a', 'b', key='percentage', a=60, b=40),
        )

        assert [s['amount'] for s in splits] == [Decimal('30.00'), Decimal('20.00')]
        assert [s['percentage'] for s in splits] == [Decimal('60.00'), Decimal('40.00')]

    def test_missing_percentage_counts_as_zero(self):
        splits = compute_splits(
            total_amount=Decimal('50'),
            split_type='percentage',
            participants=_people('a', 'b', key='percentage', a=100),
        )

        assert splits[1]['amount'] == Decimal('0.00')
        assert splits[1]['percentage'] == Decimal('0.00')

    def test_percentages_not_required_to_sum_to_100(self):
        splits = compute_splits(
            total_amount=Decimal('100'),
            split_type='percentage',
            participants=_people('a', 'b', key='percentage', a=30, b=30),
        )

        assert split_total_discrepancy(Decimal('100'), splits) == Decimal('40.00')

    def test_empty_participants_allowed(self):
        splits = compute_splits(total_amount=Decimal('10'), split_type='percentage', participants=[])

        assert splits == []

    def test_non_numeric_percentage(self):
        with pytest.raises(InvalidAmountError):
            compute_splits(
                total_amount=Decimal('10'),
                split_type='percentage',
                participants=[{'user_id': 'a', 'percentage': 'lots'}],
            )


class TestExactSplit:

    def test_amounts_taken_as_given(self):
        splits = compute_splits(
            total_amount=Decimal('200'),
            split_type='exact',
            participants=_people('a', 'b', 'c', key='amount', a=0, b=100, c=100),
        )

        assert [s['amount'] for s in splits] == [
            Decimal('0.00'), Decimal('100.00'), Decimal('100.00')
        ]
        assert [s['percentage'] for s in splits] == [
            Decimal('0.00'), Decimal('50.00'), Decimal('50.00')
        ]

    def test_percentage_derived_and_rounded(self):
        splits = compute_splits(
            total_amount=Decimal('30'),
            split_type='exact',
            participants=_people('a', key='amount', a=Decimal('10')),
        )

        assert splits[0]['percentage'] == Decimal('33.33')

    def test_missing_amount_counts_as_zero(self):
        splits = compute_splits(
            total_amount=Decimal('30'),
            split_type='exact',
            participants=_people('a', 'b', key='amount', a=Decimal('30')),
        )

        assert splits[1]['amount'] == Decimal('0.00')

    def test_over_allocation_reported_as_negative(self):
        splits = compute_splits(
            total_amount=Decimal('30'),
            split_type='exact',
            participants=_people('a', 'b', key='amount', a=20, b=20),
        )

        assert split_total_discrepancy(Decimal('30'), splits) == Decimal('-10.00')


class TestInvalidInput:

    @pytest.mark.parametrize('total', [0, '0.00', -5, Decimal('-0.01')])
    def test_non_positive_total(self, total):
        with pytest.raises(InvalidAmountError):
            compute_splits(total_amount=total, split_type='equal', participants=_people('a'))

    @pytest.mark.parametrize('total', ['abc', None, 'NaN', 'Infinity'])
    def test_non_numeric_total(self, total):
        with pytest.raises(InvalidAmountError):
            compute_splits(total_amount=total, split_type='equal', participants=_people('a'))

    def test_unknown_split_type(self):
        with pytest.raises(InvalidSplitTypeError):
            compute_splits(total_amount=Decimal('10'), split_type='shares', participants=_people('a'))

    def test_amount_checked_before_participants(self):
        with pytest.raises(InvalidAmountError):
            compute_splits(total_amount=0, split_type='equal', participants=[])

    def test_total_rounded_before_splitting(self):
        splits = compute_splits(
            total_amount='10.005',
            split_type='equal',
            participants=_people('a', 'b', 'c'),
        )

        assert normalize_total('10.005') == Decimal('10.01')
        assert [s['amount'] for s in splits] == [Decimal('3.34')] * 3

    @pytest.mark.parametrize('total', ['0.004', '100000000.00'])
    def test_total_outside_storable_range(self, total):
        with pytest.raises(InvalidAmountError):
            normalize_total(total)


class TestStorageLimits:

    def test_exact_split_percentage_too_large(self):
        """1000.00 owed on a 1.00 expense derives a 100000% share."""
        with pytest.raises(InvalidAmountError):
            compute_splits(
                total_amount=Decimal('1.00'),
                split_type='exact',
                participants=_people('a', key='amount', a=Decimal('1000.00')),
            )

    def test_percentage_split_amount_too_large(self):
        with pytest.raises(InvalidAmountError):
            compute_splits(
                total_amount=Decimal('99999999.99'),
                split_type='percentage',
                participants=_people('a', key='percentage', a=200),
            )

    def test_largest_storable_values_accepted(self):
        splits = compute_splits(
            total_amount=Decimal('1.00'),
            split_type='exact',
            participants=_people('a', key='amount', a=Decimal('999.99')),
        )

        assert splits[0]['percentage'] == Decimal('99999.00')
