"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    UserNotFoundError,
    NotMemberError,
    CannotChangeOwnerRoleError,
    CannotRemoveOwnerError,
    InsufficientPermissionsError,
)

from .group_management import (
    create_group,
    update_group,
    get_group_by_id,
)

from .membership_management import (
    add_members,
    remove_member,
    get_group_members,
)

from .role_management import (
    update_member_role,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'UserNotFoundError',
    'NotMemberError',
    'CannotChangeOwnerRoleError',
    'CannotRemoveOwnerError',
    'InsufficientPermissionsError',

    # Group Management
    'create_group',
    'update_group',
    'get_group_by_id',

    # Membership Management
    'add_members',
    'remove_member',
    'get_group_members',

    # Role Management
    'update_member_role',
]
