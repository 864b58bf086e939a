"""
Custom permission classes for expenses app.

This module defines permission classes for controlling access to
expenses and their splits.
"""
from rest_framework.permissions import BasePermission


class IsGroupMemberForExpense(BasePermission):
    """
    Permission to check if user is a member of the expense's group.

    Usage:
        class ExpenseViewSet(viewsets.GenericViewSet):
            permission_classes = [IsAuthenticated, IsGroupMemberForExpense]
    """

    message = 'You must be a member of this group to view this expense.'

    def has_object_permission(self, request, view, obj):
        """Check if user can access the expense."""
        return obj.group.has_member(request.user)


class CanManageExpense(BasePermission):
    """
    Permission to delete an expense.

    Allows if the user paid the expense or is an admin of its group.

    Usage:
        def get_permissions(self):
            if self.action == 'destroy':
                return [IsAuthenticated(), CanManageExpense()]
            return super().get_permissions()
    """

    message = 'Only the payer or a group admin can manage this expense.'

    def has_object_permission(self, request, view, obj):
        """Check if user can manage the expense."""
        return (
            obj.paid_by_id == request.user.id or
            obj.group.is_admin(request.user)
        )
