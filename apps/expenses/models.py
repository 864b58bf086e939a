from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid


class SplitType(models.TextChoices):
    EQUAL = 'equal', 'Equal'
    PERCENTAGE = 'percentage', 'Percentage'
    EXACT = 'exact', 'Exact'


class SplitStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    SETTLED = 'settled', 'Settled'


class Expense(models.Model):
    """An amount paid by one member on behalf of the group."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expenses'
    )
    paid_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='expenses_paid'
    )
    
    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    split_type = models.CharField(
        max_length=20,
        choices=SplitType.choices,
        default=SplitType.EQUAL
    )
    date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['group', 'date'], name='expenses_group_date_idx'),
            models.Index(fields=['paid_by', 'date'], name='expenses_payer_date_idx'),
        ]
        ordering = ['-date', '-created_at']
    
    def __str__(self):
        return f"{self.description} - {self.amount} ({self.group.name})"
    
    def get_allocated_amount(self):
        """Sum of all split amounts."""
        return sum((split.amount for split in self.splits.all()), Decimal('0.00'))
    
    def get_unallocated_amount(self):
        """Expense amount not covered by splits (negative when over-allocated)."""
        return self.amount - self.get_allocated_amount()


class Split(models.Model):
    """One participant's owed portion of an expense."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='splits'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='splits'
    )
    
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    # Only meaningful for percentage splits; derived for the other types
    percentage = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        default=Decimal('0.00')
    )
    position = models.PositiveIntegerField(default=0)
    
    # Settlement tracking
    status = models.CharField(
        max_length=20,
        choices=SplitStatus.choices,
        default=SplitStatus.PENDING
    )
    settled_at = models.DateTimeField(null=True, blank=True)
    settled_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='settled_splits'
    )
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'expense_splits'
        unique_together = [['expense', 'user']]
        indexes = [
            models.Index(fields=['user', 'status'], name='splits_user_status_idx'),
            models.Index(fields=['expense', 'status'], name='splits_expense_status_idx'),
        ]
        ordering = ['position', 'created_at']
    
    def __str__(self):
        return f"{self.user.get_display_name()} owes {self.amount} ({self.status})"
    
    @property
    def is_settled(self):
        return self.status == SplitStatus.SETTLED
    
    def mark_settled(self, settled_by=None):
        """Mark split as settled. Already-settled splits are left untouched."""
        if self.is_settled:
            return False
        
        self.status = SplitStatus.SETTLED
        self.settled_at = timezone.now()
        self.settled_by = settled_by
        self.save(update_fields=['status', 'settled_at', 'settled_by', 'updated_at'])
        return True
