"""
Membership management service.

Handles group membership operations with concurrency protection.
Only group admins (owner or admin role) may add or remove members.
"""

import logging
from typing import Iterable, List
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole

from .exceptions import (
    GroupNotFoundError,
    NotMemberError,
    CannotRemoveOwnerError,
    InsufficientPermissionsError,
)
from .group_management import _resolve_users

logger = logging.getLogger(__name__)


@transaction.atomic
def add_members(
    *,
    group_id: UUID,
    user_ids: Iterable[UUID],
    added_by: User
) -> List[GroupMembership]:
    """
    Add users to a group (admin only).

    Users who are already members are skipped, so repeating a request
    is harmless.

    Args:
        group_id: UUID of the group
        user_ids: UUIDs of the users to add
        added_by: User performing the addition (must be admin)

    Returns:
        List of newly created GroupMembership instances

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If added_by is not admin
        UserNotFoundError: If any user id doesn't exist
    """
    try:
        group = (
            Group.objects
            .select_for_update()
            .get(id=group_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.is_admin(added_by):
        raise InsufficientPermissionsError("Only group admins can add members")

    users = _resolve_users(user_ids)
    existing = set(group.memberships.values_list('user_id', flat=True))

    created = []
    for user in users:
        if user.id in existing:
            continue
        created.append(
            GroupMembership.objects.create(
                user=user,
                group=group,
                role=GroupRole.MEMBER
            )
        )

    logger.info("Added %d member(s) to group %s", len(created), group.id)
    return created


@transaction.atomic
def remove_member(
    *,
    group_id: UUID,
    user_id: UUID,
    removed_by: User
) -> None:
    """
    Remove a member from a group (admin only).

    Cannot remove the group owner. Expenses and splits that reference
    the removed user are kept.

    Args:
        group_id: UUID of the group
        user_id: UUID of the user to remove
        removed_by: User performing the removal (must be admin)

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If target user is not a member
        CannotRemoveOwnerError: If trying to remove the owner
        InsufficientPermissionsError: If removed_by is not admin
    """
    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.is_admin(removed_by):
        raise InsufficientPermissionsError("Only group admins can remove members")

    if str(group.owner_id) == str(user_id):
        raise CannotRemoveOwnerError("Cannot remove the group creator")

    try:
        membership = (
            GroupMembership.objects
            .select_for_update()
            .get(group=group, user_id=user_id)
        )
    except GroupMembership.DoesNotExist:
        raise NotMemberError("User is not a member of this group")

    membership.delete()
    logger.info("Removed user %s from group %s", user_id, group.id)


def get_group_members(*, group_id: UUID) -> QuerySet[GroupMembership]:
    """
    Get all members of a group in join order.

    Args:
        group_id: UUID of the group

    Returns:
        QuerySet of GroupMembership instances

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        GroupMembership.objects
        .filter(group_id=group_id)
        .select_related('user')
        .order_by('joined_at', 'id')
    )
