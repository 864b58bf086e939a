import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole


def _client_for(user):
    """Return a fresh API client authenticated as user via JWT."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def group_owner(db):
    """Create and return a test user (group owner)."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        name='Group Owner',
    )


@pytest.fixture
def admin_user(db):
    """Create and return an admin user."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        name='Group Admin',
    )


@pytest.fixture
def member_user(db):
    """Create and return a member user."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        name='Group Member',
    )


@pytest.fixture
def group_other_user(db):
    """Create and return a user not in any group."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        name='Other User',
    )


@pytest.fixture
def authenticated_client(group_owner):
    """Return API client authenticated as group owner."""
    return _client_for(group_owner)


@pytest.fixture
def admin_client(admin_user):
    """Return API client authenticated as group admin."""
    return _client_for(admin_user)


@pytest.fixture
def member_client(member_user):
    """Return API client authenticated as group member."""
    return _client_for(member_user)


@pytest.fixture
def other_client(group_other_user):
    """Return API client authenticated as non-member user."""
    return _client_for(group_other_user)


@pytest.fixture
def group(db, group_owner):
    """Create and return a test group with owner membership."""
    group = Group.objects.create(
        name='Flatmates',
        description='Rent, groceries and bills',
        owner=group_owner,
    )
    GroupMembership.objects.create(
        user=group_owner,
        group=group,
        role=GroupRole.OWNER,
    )
    return group


@pytest.fixture
def group_with_members(group, admin_user, member_user):
    """Group with owner, admin, and member."""
    GroupMembership.objects.create(
        user=admin_user,
        group=group,
        role=GroupRole.ADMIN,
    )
    GroupMembership.objects.create(
        user=member_user,
        group=group,
        role=GroupRole.MEMBER,
    )
    return group
