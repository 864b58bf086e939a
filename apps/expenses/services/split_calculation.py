"""
Split Calculator
================

Turns an expense total, a split type and an ordered participant list into
per-participant owed amounts. Pure functions only: nothing here touches the
database, persistence is the caller's job.

Split types:
    - ``equal``: total / N for everyone, percentage 100 / N.
    - ``percentage``: each participant supplies a percentage,
      amount = percentage / 100 * total.
    - ``exact``: each participant supplies an amount, percentage is derived
      as amount / total * 100 for display.

Every amount and percentage, the total included, is rounded half-up to 2
decimal places. Results must fit the Split columns: amounts up to
``MAX_AMOUNT`` and percentages up to ``MAX_PERCENTAGE``.

Known gaps, kept on purpose:
    - Equal splits do not reconcile the rounding residual. 100.00 over three
      people gives 33.33 each and 0.01 stays unallocated.
    - Percentage splits are not checked to sum to 100, and exact splits are
      not checked to sum to the total. Use ``split_total_discrepancy`` to
      detect (and report) the mismatch.

Example:
    Three-way equal split::

        from apps.expenses.services.split_calculation import compute_splits

        splits = compute_splits(
            total_amount=Decimal('100.00'),
            split_type='equal',
            participants=[{'user_id': a}, {'user_id': b}, {'user_id': c}],
        )
        # [{'user_id': a, 'amount': Decimal('33.33'),
        #   'percentage': Decimal('33.33'), 'status': 'pending'}, ...]
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional

from apps.expenses.models import SplitStatus, SplitType

from .exceptions import (
    EmptyParticipantsError,
    InvalidAmountError,
    InvalidSplitTypeError,
)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')

# Largest values the Decimal(10,2) amount and Decimal(7,2) percentage columns hold
MAX_AMOUNT = Decimal('99999999.99')
MAX_PERCENTAGE = Decimal('99999.99')


def quantize(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Decimal:
    """
    Convert user input (Decimal, int, str, float) to a finite Decimal.

    ``None`` maps to ``default`` when one is given.

    Raises:
        InvalidOperation: If the value is not a finite number.
    """
    if value is None:
        if default is None:
            raise InvalidOperation("Missing numeric value")
        return default

    number = value if isinstance(value, Decimal) else Decimal(str(value))
    if not number.is_finite():
        raise InvalidOperation(f"Not a finite number: {value}")
    return number


def normalize_total(total_amount: Any) -> Decimal:
    """
    Validate an expense total and round it to cents.

    Raises:
        InvalidAmountError: If the total is not a number, rounds to zero or
            less, or exceeds MAX_AMOUNT.
    """
    try:
        total = quantize(to_decimal(total_amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(f"Invalid amount: {total_amount!r}")

    if total <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    if total > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount must not exceed {MAX_AMOUNT}")

    return total


def _split(user_id, amount: Decimal, percentage: Decimal) -> Dict[str, Any]:
    if abs(amount) > MAX_AMOUNT:
        raise InvalidAmountError(
            f"Split amount {amount} for participant {user_id} exceeds {MAX_AMOUNT}"
        )
    if abs(percentage) > MAX_PERCENTAGE:
        raise InvalidAmountError(
            f"Split percentage {percentage} for participant {user_id} exceeds {MAX_PERCENTAGE}"
        )
    return {
        'user_id': user_id,
        'amount': amount,
        'percentage': percentage,
        'status': SplitStatus.PENDING.value,
    }


def _equal_splits(total: Decimal, participants: List[Mapping]) -> List[Dict[str, Any]]:
    if not participants:
        raise EmptyParticipantsError("At least one participant required for an equal split")

    count = len(participants)
    amount = quantize(total / count)
    percentage = quantize(HUNDRED / count)

    return [_split(p['user_id'], amount, percentage) for p in participants]


def _percentage_splits(total: Decimal, participants: List[Mapping]) -> List[Dict[str, Any]]:
    splits = []
    for participant in participants:
        try:
            raw = to_decimal(participant.get('percentage'), default=Decimal('0'))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountError(
                f"Invalid percentage for participant {participant['user_id']}"
            )
        splits.append(
            _split(participant['user_id'], quantize(raw / HUNDRED * total), quantize(raw))
        )
    return splits


def _exact_splits(total: Decimal, participants: List[Mapping]) -> List[Dict[str, Any]]:
    splits = []
    for participant in participants:
        try:
            raw = to_decimal(participant.get('amount'), default=Decimal('0'))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountError(
                f"Invalid amount for participant {participant['user_id']}"
            )
        amount = quantize(raw)
        splits.append(
            _split(participant['user_id'], amount, quantize(amount / total * HUNDRED))
        )
    return splits


_CALCULATORS = {
    SplitType.EQUAL: _equal_splits,
    SplitType.PERCENTAGE: _percentage_splits,
    SplitType.EXACT: _exact_splits,
}


def compute_splits(
    *,
    total_amount: Any,
    split_type: str,
    participants: Iterable[Mapping]
) -> List[Dict[str, Any]]:
    """
    Compute per-participant splits for an expense.

    Args:
        total_amount: Expense total; must be a positive number.
        split_type: One of ``equal``, ``percentage``, ``exact``.
        participants: Ordered mappings with ``user_id`` and, depending on
            the split type, ``percentage`` or ``amount``. Missing raw values
            count as zero.

    Returns:
        list[dict]: One dict per participant, in input order, with keys
        ``user_id``, ``amount``, ``percentage`` and ``status`` (always
        ``pending``).

    Raises:
        InvalidAmountError: If total_amount is not positive, or a raw
            percentage/amount is not a number, or a computed amount or
            percentage is too large to store.
        EmptyParticipantsError: If participants is empty for an equal split.
        InvalidSplitTypeError: If split_type is unknown.
    """
    total = normalize_total(total_amount)

    try:
        calculator = _CALCULATORS[SplitType(split_type)]
    except ValueError:
        raise InvalidSplitTypeError(f"Unknown split type: {split_type!r}")

    return calculator(total, list(participants))


def split_total_discrepancy(total_amount: Any, splits: Iterable[Mapping]) -> Decimal:
    """
    Return ``total - sum(split amounts)``.

    Zero when the splits cover the total exactly; positive when something is
    left unallocated (equal-split rounding, percentages under 100), negative
    when the splits over-allocate.
    """
    allocated = sum((to_decimal(s['amount']) for s in splits), Decimal('0.00'))
    return quantize(to_decimal(total_amount) - allocated)
