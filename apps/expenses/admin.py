# ==========================================
# apps/expenses/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Expense, Split, SplitStatus


class SplitInline(admin.TabularInline):
    """Inline admin for splits within an expense."""
    model = Split
    extra = 0
    fields = [
        'user',
        'amount',
        'percentage',
        'status_badge',
        'settled_at',
        'settled_by',
    ]
    readonly_fields = ['status_badge', 'settled_at', 'settled_by']

    def status_badge(self, obj):
        """Display split status as colored badge."""
        colors = {
            SplitStatus.PENDING: ('#E5C49A', '#2C1810'),
            SplitStatus.SETTLED: ('#6B8E5E', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request, obj=None):
        """Splits are created by the expense service."""
        return False


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = [
        'description',
        'group',
        'paid_by',
        'amount',
        'split_type',
        'date',
        'get_unallocated',
    ]
    list_filter = ['split_type', 'date', 'group']
    search_fields = ['description', 'paid_by__email', 'group__name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    date_hierarchy = 'date'
    inlines = [SplitInline]

    def get_unallocated(self, obj):
        return obj.get_unallocated_amount()
    get_unallocated.short_description = 'Unallocated'


@admin.register(Split)
class SplitAdmin(admin.ModelAdmin):
    list_display = ['user', 'expense', 'amount', 'percentage', 'status', 'settled_at']
    list_filter = ['status']
    search_fields = ['user__email', 'expense__description']
    readonly_fields = ['id', 'created_at', 'updated_at', 'settled_at']
    actions = ['mark_as_settled']

    @admin.action(description='Mark selected splits as settled')
    def mark_as_settled(self, request, queryset):
        count = 0
        for split in queryset.filter(status=SplitStatus.PENDING):
            if split.mark_settled(settled_by=request.user):
                count += 1
        self.message_user(request, f'{count} split(s) marked as settled.')
