"""
Role management service.

Grants or revokes the admin flag of a group member.
"""

import logging
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole

from .exceptions import (
    GroupNotFoundError,
    NotMemberError,
    CannotChangeOwnerRoleError,
    InsufficientPermissionsError,
)

logger = logging.getLogger(__name__)


@transaction.atomic
def update_member_role(
    *,
    group_id: UUID,
    user_id: UUID,
    is_admin: bool,
    updated_by: User
) -> GroupMembership:
    """
    Promote a member to admin or demote an admin to member (admin only).

    The owner's role is fixed: the creator always keeps admin privileges.

    Args:
        group_id: UUID of the group
        user_id: UUID of the member whose role changes
        is_admin: True to grant admin, False to revoke it
        updated_by: User performing the update (must be admin)

    Returns:
        Updated GroupMembership instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If updated_by is not admin
        NotMemberError: If target user is not a member
        CannotChangeOwnerRoleError: If target is the owner
    """
    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.is_admin(updated_by):
        raise InsufficientPermissionsError("Only group admins can change member roles")

    try:
        membership = (
            GroupMembership.objects
            .select_for_update()
            .get(group=group, user_id=user_id)
        )
    except GroupMembership.DoesNotExist:
        raise NotMemberError("User is not a member of this group")

    if membership.role == GroupRole.OWNER:
        raise CannotChangeOwnerRoleError("Cannot change the group creator's role")

    membership.role = GroupRole.ADMIN if is_admin else GroupRole.MEMBER
    membership.save(update_fields=['role'])

    logger.info(
        "User %s is now %s of group %s", user_id, membership.role, group.id
    )
    return membership
