from decimal import Decimal

from rest_framework import mixins, viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import Expense
from .serializers import (
    ExpenseSerializer,
    ExpenseCreateSerializer,
    ExpenseListSerializer,
    SplitSerializer,
    PendingSplitSerializer,
    UserSummarySerializer,
    # Input serializers
    ExpenseFilterSerializer,
    SettleSplitInputSerializer,
)
from .permissions import IsGroupMemberForExpense, CanManageExpense

from apps.expenses.services import (
    create_expense,
    delete_expense,
    get_expense_by_id,
    get_user_summary,
    get_pending_splits,
    settle_split,
    # Exceptions
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


# Response serializers for API documentation
class PendingSplitsResponseSerializer(drf_serializers.Serializer):
    total_pending = drf_serializers.DecimalField(max_digits=12, decimal_places=2)
    count = drf_serializers.IntegerField()
    splits = PendingSplitSerializer(many=True)


class ExpensePagination(PageNumberPagination):
    """Custom pagination for expenses."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ExpenseViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for expenses.

    Business logic lives in services; views translate HTTP to service calls.

    list: Expenses in the user's groups (filter with ?group=<id>), newest first
    create: Record an expense and split it
    retrieve: Get a specific expense with its splits
    destroy: Delete an expense (payer or group admin)
    """

    queryset = Expense.objects.select_related(
        'group',
        'paid_by'
    ).prefetch_related('splits__user')
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, IsGroupMemberForExpense]
    pagination_class = ExpensePagination

    def get_permissions(self):
        """Use different permissions for different actions."""
        if self.action == 'destroy':
            return [IsAuthenticated(), IsGroupMemberForExpense(), CanManageExpense()]
        return super().get_permissions()

    def get_queryset(self):
        """Expenses of groups the user belongs to, filtered by query params."""
        queryset = super().get_queryset().filter(
            group__memberships__user=self.request.user
        )

        if self.action != 'list':
            return queryset

        filter_serializer = ExpenseFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'group' in params:
            queryset = queryset.filter(group_id=params['group'])
        if 'paid_by' in params:
            queryset = queryset.filter(paid_by_id=params['paid_by'])
        if 'date_from' in params:
            queryset = queryset.filter(date__gte=params['date_from'])
        if 'date_to' in params:
            queryset = queryset.filter(date__lte=params['date_to'])

        return queryset.order_by('-date', '-created_at')

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return ExpenseListSerializer
        elif self.action == 'create':
            return ExpenseCreateSerializer
        elif self.action == 'settle':
            return SettleSplitInputSerializer
        elif self.action == 'summary':
            return UserSummarySerializer
        elif self.action == 'my_pending':
            return PendingSplitSerializer
        return ExpenseSerializer

    @extend_schema(request=ExpenseCreateSerializer, responses={201: ExpenseSerializer})
    def create(self, request, *args, **kwargs):
        """Record an expense, computing splits from the split type."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            expense = create_expense(
                group_id=data['group'],
                paid_by=request.user,
                description=data['description'],
                amount=data['amount'],
                split_type=data['split_type'],
                splits=serializer.to_service_splits(),
                date=data.get('date'),
                notes=data.get('notes', ''),
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (
            InvalidAmountError,
            EmptyParticipantsError,
            InvalidSplitTypeError,
            ParticipantNotFoundError,
            DuplicateParticipantError,
        ) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        expense = get_expense_by_id(expense_id=expense.id)
        output_serializer = ExpenseSerializer(expense, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        """Delete an expense and its splits."""
        expense = self.get_object()

        try:
            delete_expense(expense_id=expense.id, user=request.user)
        except ExpenseNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """
        What the current user paid, owes and is owed across all groups.

        GET /api/expenses/summary/
        """
        summary = get_user_summary(user=request.user)
        return Response(UserSummarySerializer(summary).data)

    @extend_schema(request=SettleSplitInputSerializer, responses={200: SplitSerializer})
    @action(detail=False, methods=['patch'])
    def settle(self, request):
        """
        Mark a participant's split as settled.

        PATCH /api/expenses/settle/
        Body: {"expense": "<uuid>", "user": "<uuid, defaults to you>"}
        """
        input_serializer = SettleSplitInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        expense_id = input_serializer.validated_data['expense']
        user_id = input_serializer.validated_data.get('user', request.user.id)

        try:
            expense = get_expense_by_id(expense_id=expense_id)
        except ExpenseNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        # Any member of the expense's group may settle any split in it
        if not expense.group.has_member(request.user):
            return Response(
                {'error': 'You must be a member of this group to settle its expenses'},
                status=status.HTTP_403_FORBIDDEN
            )

        try:
            split = settle_split(
                expense_id=expense_id,
                user_id=user_id,
                settled_by=request.user
            )
        except ExpenseNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (ParticipantNotFoundError, InvalidStateTransitionError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(SplitSerializer(split).data)

    @extend_schema(
        responses={200: PendingSplitsResponseSerializer},
        description="Get all pending splits the current user owes to other payers.",
    )
    @action(detail=False, methods=['get'])
    def my_pending(self, request):
        """
        Pending splits for the current user.

        GET /api/expenses/my_pending/
        """
        splits = list(get_pending_splits(user=request.user))

        serializer = PendingSplitsResponseSerializer({
            'total_pending': sum((split.amount for split in splits), Decimal('0.00')),
            'count': len(splits),
            'splits': splits,
        })
        return Response(serializer.data)
