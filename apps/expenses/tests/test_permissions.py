import pytest
from rest_framework.test import APIRequestFactory
from apps.expenses.permissions import IsGroupMemberForExpense, CanManageExpense
from apps.groups.models import GroupMembership, GroupRole


# =============================================================================
# IsGroupMemberForExpense Tests
# =============================================================================

@pytest.mark.django_db
class TestIsGroupMemberForExpense:
    """Tests for IsGroupMemberForExpense permission class."""

    def test_payer_can_view(self, alice, expense):
        factory = APIRequestFactory()
        request = factory.get('/')
        request.user = alice

        permission = IsGroupMemberForExpense()
        assert permission.has_object_permission(request, None, expense) is True

    def test_group_member_can_view(self, bob, expense):
        factory = APIRequestFactory()
        request = factory.get('/')
        request.user = bob

        permission = IsGroupMemberForExpense()
        assert permission.has_object_permission(request, None, expense) is True

    def test_non_member_cannot_view(self, outsider, expense):
        factory = APIRequestFactory()
        request = factory.get('/')
        request.user = outsider

        permission = IsGroupMemberForExpense()
        assert permission.has_object_permission(request, None, expense) is False


# =============================================================================
# CanManageExpense Tests
# =============================================================================

@pytest.mark.django_db
class TestCanManageExpense:
    """Tests for CanManageExpense permission class."""

    def test_payer_can_manage(self, bob, bob_expense):
        """Payer can delete their own expense even without admin rights."""
        factory = APIRequestFactory()
        request = factory.delete('/')
        request.user = bob

        permission = CanManageExpense()
        assert permission.has_object_permission(request, None, bob_expense) is True

    def test_group_owner_can_manage(self, alice, bob_expense):
        factory = APIRequestFactory()
        request = factory.delete('/')
        request.user = alice

        permission = CanManageExpense()
        assert permission.has_object_permission(request, None, bob_expense) is True

    def test_group_admin_can_manage(self, group, carol, expense):
        GroupMembership.objects.filter(group=group, user=carol).update(role=GroupRole.ADMIN)
        factory = APIRequestFactory()
        request = factory.delete('/')
        request.user = carol

        permission = CanManageExpense()
        assert permission.has_object_permission(request, None, expense) is True

    def test_participant_cannot_manage(self, carol, bob_expense):
        """Owing part of an expense does not grant delete rights."""
        factory = APIRequestFactory()
        request = factory.delete('/')
        request.user = carol

        permission = CanManageExpense()
        assert permission.has_object_permission(request, None, bob_expense) is False

    def test_non_member_cannot_manage(self, outsider, expense):
        factory = APIRequestFactory()
        request = factory.delete('/')
        request.user = outsider

        permission = CanManageExpense()
        assert permission.has_object_permission(request, None, expense) is False
