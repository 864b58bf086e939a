from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin for the email-login User model.

    The base fieldsets reference ``username`` and are redefined here.
    """

    list_display = [
        'email',
        'name',
        'is_active',
        'is_staff',
        'group_count',
        'pending_split_count',
        'created_at',
    ]
    list_filter = ['is_active', 'is_staff', 'is_superuser']
    search_fields = ['email', 'name']
    ordering = ['-created_at']

    fieldsets = (
        (None, {'fields': ('email', 'name', 'password')}),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']
    actions = ['deactivate_users']

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _group_count=Count('group_memberships', distinct=True),
            _pending_split_count=Count(
                'splits',
                filter=Q(splits__status='pending'),
                distinct=True,
            ),
        )

    @admin.display(description='Groups', ordering='_group_count')
    def group_count(self, obj):
        return obj._group_count

    @admin.display(description='Pending splits', ordering='_pending_split_count')
    def pending_split_count(self, obj):
        return obj._pending_split_count

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        """Deactivate selected users; superusers are skipped."""
        count = queryset.filter(is_superuser=False).update(is_active=False)
        self.message_user(request, f'Deactivated {count} user(s).')
