"""
Group management service.

Handles group creation and updates with proper transaction safety.
Groups are never deleted.
"""

import logging
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Prefetch

from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole

from .exceptions import (
    GroupNotFoundError,
    UserNotFoundError,
    InsufficientPermissionsError,
)

logger = logging.getLogger(__name__)


def _resolve_users(user_ids: Iterable[UUID]) -> list:
    """Load users for the given ids, preserving order and dropping duplicates."""
    unique_ids = list(dict.fromkeys(str(user_id) for user_id in user_ids))
    users = {str(u.id): u for u in User.objects.filter(id__in=unique_ids)}

    missing = [user_id for user_id in unique_ids if user_id not in users]
    if missing:
        raise UserNotFoundError(f"Users not found: {', '.join(missing)}")

    return [users[user_id] for user_id in unique_ids]


@transaction.atomic
def create_group(
    *,
    name: str,
    owner: User,
    description: str = '',
    member_ids: Optional[Iterable[UUID]] = None
) -> Group:
    """
    Create a new group and add the creator as owner.

    The creator always becomes the first member with the owner role,
    which carries admin privileges. Any additional ``member_ids`` are
    added as regular members; the creator's id is ignored if repeated.

    Args:
        name: Group name
        owner: User creating the group
        description: Optional group description
        member_ids: Optional ids of users to add as initial members

    Returns:
        Created Group instance

    Raises:
        UserNotFoundError: If any of member_ids does not exist
    """
    initial_members = _resolve_users(member_ids or [])

    group = Group.objects.create(
        name=name,
        owner=owner,
        description=description,
    )

    GroupMembership.objects.create(
        user=owner,
        group=group,
        role=GroupRole.OWNER
    )

    for user in initial_members:
        if user.id == owner.id:
            continue
        GroupMembership.objects.create(
            user=user,
            group=group,
            role=GroupRole.MEMBER
        )

    logger.info(
        "Group %s created by %s with %d member(s)",
        group.id, owner.id, group.memberships.count()
    )
    return group


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get a group by ID with optimized queries.

    Uses select_related and prefetch_related to minimize database queries.

    Args:
        group_id: UUID of the group

    Returns:
        Group instance

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        return (
            Group.objects
            .select_related('owner')
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=GroupMembership.objects.select_related('user')
                )
            )
            .get(id=group_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


@transaction.atomic
def update_group(
    *,
    group_id: UUID,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None
) -> Group:
    """
    Update group details (admin only).

    Uses select_for_update to prevent concurrent modifications.

    Args:
        group_id: UUID of the group
        user: User performing the update (must be admin)
        name: New name (optional)
        description: New description (optional)

    Returns:
        Updated Group instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not admin
    """
    try:
        group = (
            Group.objects
            .select_for_update()
            .get(id=group_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.is_admin(user):
        raise InsufficientPermissionsError("Only group admins can update the group")

    update_fields = ['updated_at']

    if name is not None:
        group.name = name
        update_fields.append('name')

    if description is not None:
        group.description = description
        update_fields.append('description')

    group.save(update_fields=update_fields)

    return group
