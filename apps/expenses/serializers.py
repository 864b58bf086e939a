from decimal import Decimal

from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from apps.groups.models import Group
from .models import Expense, Split, SplitType


# =============================================================================
# Input Serializers
# =============================================================================

class ExpenseFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for expense filtering.

    Query Parameters:
        group (UUID): Filter by group ID
        paid_by (UUID): Filter by payer
        date_from (date): Expenses on or after this date
        date_to (date): Expenses on or before this date
    """

    group = serializers.UUIDField(required=False)
    paid_by = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to:
            if date_from > date_to:
                raise serializers.ValidationError({
                    'date_to': 'End date must be after start date'
                })

        return attrs


class SplitInputSerializer(serializers.Serializer):
    """
    One participant of a new expense.

    ``percentage`` is read for percentage splits, ``amount`` for exact
    splits; a missing value counts as zero.
    """

    user = serializers.UUIDField()
    percentage = serializers.DecimalField(
        max_digits=7,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        allow_null=True
    )
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        allow_null=True
    )


class ExpenseCreateSerializer(serializers.Serializer):
    """Validate input for creating an expense."""

    group = serializers.UUIDField()
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.01')
    )
    split_type = serializers.ChoiceField(
        choices=SplitType.choices,
        default=SplitType.EQUAL
    )
    date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    splits = SplitInputSerializer(
        many=True,
        required=False,
        help_text="Participants. If omitted, every group member participates."
    )

    def validate(self, attrs):
        """
        Check the requester and every participant belong to the group.

        An unknown group is left to the expense service, which reports it
        as not found.
        """
        group = Group.objects.filter(id=attrs['group']).first()
        if group is None:
            return attrs
        request = self.context.get('request')

        if request and request.user and not group.has_member(request.user):
            raise serializers.ValidationError({
                'group': 'You must be a member of this group'
            })

        splits = attrs.get('splits')
        if splits is not None:
            member_ids = {str(user_id) for user_id in group.member_ids()}
            seen = set()
            for split in splits:
                user_id = str(split['user'])
                if user_id not in member_ids:
                    raise serializers.ValidationError({
                        'splits': f'User {user_id} is not a member of this group'
                    })
                if user_id in seen:
                    raise serializers.ValidationError({
                        'splits': f'User {user_id} is listed more than once'
                    })
                seen.add(user_id)

        return attrs

    def to_service_splits(self):
        """Validated splits in the shape the expense service expects."""
        splits = self.validated_data.get('splits')
        if splits is None:
            return None
        return [
            {
                'user_id': split['user'],
                'percentage': split.get('percentage'),
                'amount': split.get('amount'),
            }
            for split in splits
        ]


class SettleSplitInputSerializer(serializers.Serializer):
    """
    Validate input for settling a split.

    Fields:
        expense (UUID): Expense the split belongs to
        user (UUID): Participant whose split is settled (defaults to requester)
    """

    expense = serializers.UUIDField()
    user = serializers.UUIDField(required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class SplitSerializer(serializers.ModelSerializer):
    """Serializer for a participant's split."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Split
        fields = [
            'id',
            'user',
            'amount',
            'percentage',
            'status',
            'settled_at',
            'settled_by',
        ]
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Main serializer for expenses."""

    paid_by = UserMinimalSerializer(read_only=True)
    splits = SplitSerializer(many=True, read_only=True)
    unallocated_amount = serializers.DecimalField(
        source='get_unallocated_amount',
        max_digits=12,
        decimal_places=2,
        read_only=True
    )

    class Meta:
        model = Expense
        fields = [
            'id',
            'group',
            'description',
            'amount',
            'paid_by',
            'split_type',
            'date',
            'notes',
            'splits',
            'unallocated_amount',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ExpenseListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    paid_by = UserMinimalSerializer(read_only=True)
    participant_count = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = [
            'id',
            'group',
            'description',
            'amount',
            'paid_by',
            'split_type',
            'date',
            'participant_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_participant_count(self, obj):
        return len(obj.splits.all())


class PendingSplitSerializer(serializers.ModelSerializer):
    """A split the current user still owes, with its expense context."""

    expense_id = serializers.UUIDField(source='expense.id', read_only=True)
    description = serializers.CharField(source='expense.description', read_only=True)
    date = serializers.DateField(source='expense.date', read_only=True)
    group_id = serializers.UUIDField(source='expense.group_id', read_only=True)
    group_name = serializers.CharField(source='expense.group.name', read_only=True)
    paid_by = UserMinimalSerializer(source='expense.paid_by', read_only=True)

    class Meta:
        model = Split
        fields = [
            'id',
            'expense_id',
            'description',
            'date',
            'group_id',
            'group_name',
            'paid_by',
            'amount',
            'percentage',
            'status',
        ]
        read_only_fields = fields


class BalanceSerializer(serializers.Serializer):
    """One member's position within a group."""

    user = UserMinimalSerializer()
    paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    owed = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2)


class UserSummarySerializer(serializers.Serializer):
    """The current user's position across all groups."""

    paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    owed = serializers.DecimalField(max_digits=12, decimal_places=2)
    owed_to_me = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2)
