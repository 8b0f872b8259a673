"""
Initial migration for Depotman models.
"""

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Depotman models: Location, Product, LedgerEntry, Move, Transfer, TransferItem, StockStatus."""

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
    ]

    operations = [
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text='Unique identifier (e.g. wh-central, store-01)', unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('kind', models.CharField(choices=[('WAREHOUSE', 'Warehouse'), ('STORE', 'Store')], default='WAREHOUSE', max_length=20, verbose_name='Kind')),
                ('is_active', models.BooleanField(default=True, help_text='Inactive locations accept no stock mutations.', verbose_name='Active')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Location',
                'verbose_name_plural': 'Locations',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=64, unique=True, verbose_name='SKU')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('unit', models.CharField(default='pcs', max_length=20, verbose_name='Unit of measure')),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='Cost price')),
                ('retail_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='Retail price')),
                ('min_stock_level', models.PositiveIntegerField(default=0, verbose_name='Minimum stock level')),
                ('reorder_point', models.PositiveIntegerField(default=0, verbose_name='Reorder point')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['sku'],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('RESERVED', 'Reserved'), ('IN_TRANSIT', 'In transit'), ('DAMAGED', 'Damaged'), ('EXPIRED', 'Expired'), ('QUARANTINED', 'Quarantined')], default='AVAILABLE', max_length=20, verbose_name='Status')),
                ('_quantity', models.IntegerField(default=0, verbose_name='Quantity')),
                ('unit_cost_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='Unit cost price')),
                ('unit_retail_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='Unit retail price')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='depotman.location', verbose_name='Location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='depotman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Ledger entry',
                'verbose_name_plural': 'Ledger entries',
                'indexes': [models.Index(fields=['location', 'status'], name='depotman_le_locatio_6b1f0e_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'location', 'status'), name='unique_ledger_entry_key'),
                    models.CheckConstraint(condition=models.Q(('_quantity__gte', 0)), name='ledger_entry_quantity_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Move',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('delta', models.IntegerField(help_text='Positive = in, negative = out', verbose_name='Delta')),
                ('reference_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Reference id')),
                ('reason', models.CharField(help_text='Required. E.g. "Sale", "Transfer TRF-20261019-0001"', max_length=255, verbose_name='Reason')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('user_id', models.CharField(blank=True, default='', max_length=64, verbose_name='User')),
                ('entry', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='moves', to='depotman.ledgerentry', verbose_name='Ledger entry')),
                ('reference_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='contenttypes.contenttype', verbose_name='Reference type')),
            ],
            options={
                'verbose_name': 'Move',
                'verbose_name_plural': 'Moves',
                'ordering': ['timestamp', 'pk'],
                'indexes': [models.Index(fields=['entry', 'timestamp'], name='depotman_mo_entry_i_3c9d2a_idx')],
            },
        ),
        migrations.CreateModel(
            name='Transfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transfer_number', models.CharField(blank=True, help_text='Assigned on creation: TRF-YYYYMMDD-NNNN', max_length=40, null=True, unique=True, verbose_name='Transfer number')),
                ('transfer_type', models.CharField(choices=[('RESTOCK', 'Restock (warehouse → store)'), ('RETURN', 'Return (store → warehouse)'), ('REDISTRIBUTE', 'Redistribute (warehouse → warehouse)')], max_length=20, verbose_name='Type')),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('SUBMITTED', 'Submitted'), ('APPROVED', 'Approved'), ('SENT', 'Sent'), ('PARTIALLY_RECEIVED', 'Partially received'), ('RECEIVED', 'Received'), ('REJECTED', 'Rejected'), ('CANCELLED', 'Cancelled')], db_index=True, default='DRAFT', max_length=20, verbose_name='Status')),
                ('total_items', models.PositiveIntegerField(default=0, verbose_name='Total units')),
                ('total_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, verbose_name='Total cost')),
                ('total_retail', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, verbose_name='Total retail')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('cancellation_reason', models.TextField(blank=True, default='', verbose_name='Cancellation / rejection reason')),
                ('created_by', models.CharField(blank=True, default='', max_length=64)),
                ('approved_by', models.CharField(blank=True, default='', max_length=64)),
                ('shipped_by', models.CharField(blank=True, default='', max_length=64)),
                ('completed_by', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('shipped_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('destination', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inbound_transfers', to='depotman.location', verbose_name='Destination')),
                ('source', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outbound_transfers', to='depotman.location', verbose_name='Source')),
            ],
            options={
                'verbose_name': 'Transfer',
                'verbose_name_plural': 'Transfers',
                'ordering': ['-created_at', '-pk'],
                'indexes': [
                    models.Index(fields=['source', 'status'], name='depotman_tr_source__8e41c7_idx'),
                    models.Index(fields=['destination', 'status'], name='depotman_tr_destina_5a7b90_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('source', models.F('destination')), _negated=True), name='transfer_source_differs_from_destination'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TransferItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('requested_quantity', models.PositiveIntegerField(verbose_name='Requested')),
                ('shipped_quantity', models.PositiveIntegerField(default=0, verbose_name='Shipped')),
                ('received_quantity', models.PositiveIntegerField(default=0, verbose_name='Received')),
                ('condition', models.CharField(choices=[('GOOD', 'Good'), ('DAMAGED', 'Damaged'), ('EXPIRED', 'Expired')], default='GOOD', max_length=20, verbose_name='Condition')),
                ('unit_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='Unit cost')),
                ('unit_retail', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='Unit retail')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfer_items', to='depotman.product', verbose_name='Product')),
                ('transfer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='depotman.transfer', verbose_name='Transfer')),
            ],
            options={
                'verbose_name': 'Transfer item',
                'verbose_name_plural': 'Transfer items',
                'ordering': ['pk'],
                'constraints': [
                    models.UniqueConstraint(fields=('transfer', 'product'), name='unique_product_per_transfer'),
                    models.CheckConstraint(condition=models.Q(('requested_quantity__gt', 0)), name='transfer_item_requested_positive'),
                    models.CheckConstraint(condition=models.Q(('shipped_quantity__lte', models.F('requested_quantity'))), name='transfer_item_shipped_within_requested'),
                    models.CheckConstraint(condition=models.Q(('received_quantity__lte', models.F('shipped_quantity'))), name='transfer_item_received_within_shipped'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('current_stock', models.IntegerField(default=0, verbose_name='Current stock')),
                ('reserved_stock', models.IntegerField(default=0, verbose_name='Reserved stock')),
                ('available_stock', models.IntegerField(default=0, verbose_name='Available stock')),
                ('out_of_stock', models.BooleanField(db_index=True, default=True, verbose_name='Out of stock')),
                ('last_movement_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Last movement')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_statuses', to='depotman.location', verbose_name='Location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_statuses', to='depotman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Stock status',
                'verbose_name_plural': 'Stock statuses',
                'ordering': ['location', 'product'],
                'constraints': [
                    models.UniqueConstraint(fields=('location', 'product'), name='unique_stock_status_per_location_product'),
                ],
            },
        ),
    ]
