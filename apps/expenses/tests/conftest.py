import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole
from apps.expenses.services import create_expense


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
def alice(db):
    """Group owner."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        name='Alice',
    )


@pytest.fixture
def bob(db):
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        name='Bob',
    )


@pytest.fixture
def carol(db):
    return User.objects.create_user(
        email='carol@example.com',
        password='TestPass123!',
        name='Carol',
    )


@pytest.fixture
def outsider(db):
    """A user who belongs to no group."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        name='Outsider',
    )


@pytest.fixture
def alice_client(alice):
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def carol_client(carol):
    return _client_for(carol)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)


@pytest.fixture
def group(db, alice, bob, carol):
    """Alice (owner), Bob and Carol (members), joined in that order."""
    group = Group.objects.create(name='Flatmates', owner=alice)
    GroupMembership.objects.create(user=alice, group=group, role=GroupRole.OWNER)
    GroupMembership.objects.create(user=bob, group=group, role=GroupRole.MEMBER)
    GroupMembership.objects.create(user=carol, group=group, role=GroupRole.MEMBER)
    return group


@pytest.fixture
def other_group(db, outsider):
    """A group none of Alice, Bob or Carol belong to."""
    group = Group.objects.create(name='Elsewhere', owner=outsider)
    GroupMembership.objects.create(user=outsider, group=group, role=GroupRole.OWNER)
    return group


@pytest.fixture
def expense(group, alice):
    """90.00 paid by Alice, split equally between all three members."""
    return create_expense(
        group_id=group.id,
        paid_by=alice,
        description='Groceries',
        amount=Decimal('90.00'),
        split_type='equal',
    )


@pytest.fixture
def bob_expense(group, bob, carol):
    """40.00 paid by Bob, Carol owes 25.00 of it."""
    return create_expense(
        group_id=group.id,
        paid_by=bob,
        description='Taxi',
        amount=Decimal('40.00'),
        split_type='exact',
        splits=[
            {'user_id': bob.id, 'amount': Decimal('15.00')},
            {'user_id': carol.id, 'amount': Decimal('25.00')},
        ],
    )
