from django.db.models import Prefetch
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import Group, GroupMembership
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    AddMembersSerializer,
    RemoveMemberSerializer,
    UpdateMemberRoleSerializer,
)
from .permissions import IsGroupMember

from apps.groups.services import (
    create_group,
    update_group,
    get_group_by_id,
    add_members,
    remove_member,
    get_group_members,
    update_member_role,
    # Exceptions
    GroupNotFoundError,
    UserNotFoundError,
    NotMemberError,
    CannotRemoveOwnerError,
    CannotChangeOwnerRoleError,
    InsufficientPermissionsError,
)
from apps.expenses.serializers import BalanceSerializer
from apps.expenses.services import get_group_balances


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for groups.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all groups (user is member of)
    create: Create a new group, optionally with initial members
    retrieve: Get a specific group with its members
    partial_update: Update name/description (admin only)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated, IsGroupMember]
    pagination_class = GroupPagination

    def get_queryset(self):
        """Return only groups where user is a member."""
        return (
            Group.objects
            .filter(memberships__user=self.request.user)
            .select_related('owner')
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=GroupMembership.objects.select_related('user')
                )
            )
            .distinct()
        )

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action == 'partial_update':
            return GroupUpdateSerializer
        return GroupSerializer

    def create(self, request, *args, **kwargs):
        """Create a new group."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            group = create_group(
                name=serializer.validated_data['name'],
                owner=request.user,
                description=serializer.validated_data.get('description', ''),
                member_ids=serializer.validated_data.get('members')
            )
        except UserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        group = get_group_by_id(group_id=group.id)
        output_serializer = GroupSerializer(group, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=GroupUpdateSerializer, responses={200: GroupSerializer})
    def partial_update(self, request, *args, **kwargs):
        """Update group details (admin only)."""
        group = self.get_object()
        serializer = GroupUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            update_group(
                group_id=group.id,
                user=request.user,
                name=serializer.validated_data.get('name'),
                description=serializer.validated_data.get('description')
            )
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        group = get_group_by_id(group_id=group.id)
        return Response(GroupSerializer(group, context={'request': request}).data)

    @extend_schema(responses={200: GroupMemberSerializer(many=True)})
    @action(detail=True, methods=['get', 'post', 'delete'])
    def members(self, request, pk=None):
        """
        List, add or remove group members.

        GET    /api/groups/{id}/members/
        POST   /api/groups/{id}/members/  Body: {"user_ids": [...]}  (admin)
        DELETE /api/groups/{id}/members/  Body: {"user_id": "..."}   (admin)
        """
        group = self.get_object()

        if request.method == 'POST':
            return self._add_members(request, group)
        if request.method == 'DELETE':
            return self._remove_member(request, group)

        memberships = get_group_members(group_id=group.id)
        serializer = GroupMemberSerializer(memberships, many=True)
        return Response(serializer.data)

    def _add_members(self, request, group):
        serializer = AddMembersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            add_members(
                group_id=group.id,
                user_ids=serializer.validated_data['user_ids'],
                added_by=request.user
            )
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except UserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        memberships = get_group_members(group_id=group.id)
        output_serializer = GroupMemberSerializer(memberships, many=True)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def _remove_member(self, request, group):
        serializer = RemoveMemberSerializer(data=request.data or request.query_params)
        serializer.is_valid(raise_exception=True)

        try:
            remove_member(
                group_id=group.id,
                user_id=serializer.validated_data['user_id'],
                removed_by=request.user
            )
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (CannotRemoveOwnerError, NotMemberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(responses={200: BalanceSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def balances(self, request, pk=None):
        """
        Paid, owed and net balance per member, highest balance first.

        GET /api/groups/{id}/balances/
        """
        group = self.get_object()

        try:
            rows = get_group_balances(group_id=group.id)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(BalanceSerializer(rows, many=True).data)

    @extend_schema(request=UpdateMemberRoleSerializer, responses={200: GroupMemberSerializer})
    @action(detail=True, methods=['post'])
    def update_member_role(self, request, pk=None):
        """Grant or revoke a member's admin flag (admin only)."""
        group = self.get_object()
        serializer = UpdateMemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = update_member_role(
                group_id=group.id,
                user_id=serializer.validated_data['user_id'],
                is_admin=serializer.validated_data['is_admin'],
                updated_by=request.user
            )
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (NotMemberError, CannotChangeOwnerRoleError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        output_serializer = GroupMemberSerializer(membership)
        return Response(output_serializer.data)
