"""
Add physical stock counts.
"""

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create StockCount and StockCountItem."""

    dependencies = [
        ('depotman', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='StockCount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('count_number', models.CharField(blank=True, help_text='Assigned on creation: CNT-YYYYMMDD-NNNN', max_length=40, null=True, unique=True, verbose_name='Count number')),
                ('status', models.CharField(choices=[('PLANNED', 'Planned'), ('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='PLANNED', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('cancellation_reason', models.TextField(blank=True, default='', verbose_name='Cancellation reason')),
                ('created_by', models.CharField(blank=True, default='', max_length=64)),
                ('started_by', models.CharField(blank=True, default='', max_length=64)),
                ('completed_by', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_counts', to='depotman.location', verbose_name='Location')),
            ],
            options={
                'verbose_name': 'Stock count',
                'verbose_name_plural': 'Stock counts',
                'ordering': ['-created_at', '-pk'],
            },
        ),
        migrations.CreateModel(
            name='StockCountItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('expected_quantity', models.PositiveIntegerField(default=0, verbose_name='Expected')),
                ('counted_quantity', models.PositiveIntegerField(blank=True, null=True, verbose_name='Counted')),
                ('variance', models.IntegerField(blank=True, null=True, verbose_name='Variance')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('COUNTED', 'Counted'), ('DISCREPANCY', 'Discrepancy'), ('RECONCILED', 'Reconciled')], default='PENDING', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('counted_by', models.CharField(blank=True, default='', max_length=64)),
                ('counted_at', models.DateTimeField(blank=True, null=True)),
                ('count', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='depotman.stockcount', verbose_name='Stock count')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='count_items', to='depotman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Stock count item',
                'verbose_name_plural': 'Stock count items',
                'ordering': ['pk'],
                'constraints': [
                    models.UniqueConstraint(fields=('count', 'product'), name='unique_product_per_stock_count'),
                    models.CheckConstraint(condition=models.Q(('counted_quantity__isnull', True), ('variance__isnull', False), _connector='OR'), name='stock_count_item_variance_when_counted'),
                ],
            },
        ),
    ]
