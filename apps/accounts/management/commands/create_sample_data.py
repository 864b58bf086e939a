"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data [--clear]

This creates:
- 4 users (admin, alice, bob, charlie)
- 2 groups (Flat 4B, Lisbon Trip)
- Expenses using each split type
- A settled split
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import Group
from apps.groups.services import create_group, update_member_role
from apps.expenses.models import Expense
from apps.expenses.services import create_expense, settle_split


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        groups = self.create_groups(users)
        self.create_expenses(users, groups)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser)')
        self.stdout.write('  alice@example.com / password123')
        self.stdout.write('  bob@example.com / password123')
        self.stdout.write('  charlie@example.com / password123')

    def clear_data(self):
        """Clear all data from the database."""
        Expense.objects.all().delete()
        Group.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='admin@example.com').delete()

    def _user(self, email, name, password, **extra):
        user, _ = User.objects.get_or_create(
            email=email,
            defaults={'name': name, **extra}
        )
        user.set_password(password)
        user.save()
        return user

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        return {
            'admin': self._user(
                'admin@example.com', 'Admin User', 'admin123',
                is_staff=True, is_superuser=True,
            ),
            'alice': self._user('alice@example.com', 'Alice', 'password123'),
            'bob': self._user('bob@example.com', 'Bob', 'password123'),
            'charlie': self._user('charlie@example.com', 'Charlie', 'password123'),
        }

    def create_groups(self, users):
        """Create groups; Alice owns the flat, Bob owns the trip."""
        self.stdout.write('  Creating groups...')

        flat = create_group(
            name='Flat 4B',
            owner=users['alice'],
            description='Rent, bills and groceries',
            member_ids=[users['bob'].id, users['charlie'].id],
        )
        update_member_role(
            group_id=flat.id,
            user_id=users['bob'].id,
            is_admin=True,
            updated_by=users['alice'],
        )

        trip = create_group(
            name='Lisbon Trip',
            owner=users['bob'],
            description='Long weekend in May',
            member_ids=[users['alice'].id],
        )

        return {'flat': flat, 'trip': trip}

    def create_expenses(self, users, groups):
        """Create one expense per split type and settle a split."""
        self.stdout.write('  Creating expenses...')
        today = timezone.localdate()
        alice, bob, charlie = users['alice'], users['bob'], users['charlie']

        groceries = create_expense(
            group_id=groups['flat'].id,
            paid_by=alice,
            description='Weekly groceries',
            amount=Decimal('100.00'),
            split_type='equal',
            date=today - timedelta(days=6),
        )

        create_expense(
            group_id=groups['flat'].id,
            paid_by=bob,
            description='Electricity bill',
            amount=Decimal('150.00'),
            split_type='percentage',
            splits=[
                {'user_id': alice.id, 'percentage': Decimal('40')},
                {'user_id': bob.id, 'percentage': Decimal('30')},
                {'user_id': charlie.id, 'percentage': Decimal('30')},
            ],
            date=today - timedelta(days=3),
        )

        create_expense(
            group_id=groups['flat'].id,
            paid_by=charlie,
            description='Rent top-up',
            amount=Decimal('200.00'),
            split_type='exact',
            splits=[
                {'user_id': alice.id, 'amount': Decimal('100.00')},
                {'user_id': bob.id, 'amount': Decimal('100.00')},
                {'user_id': charlie.id, 'amount': Decimal('0.00')},
            ],
            date=today - timedelta(days=1),
            notes='Landlord raised the rent',
        )

        create_expense(
            group_id=groups['trip'].id,
            paid_by=bob,
            description='Airbnb',
            amount=Decimal('480.00'),
            split_type='equal',
            date=today,
        )

        settle_split(expense_id=groceries.id, user_id=bob.id, settled_by=bob)
