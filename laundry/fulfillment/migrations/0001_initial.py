import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Outlet',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150)),
                ('address', models.TextField(blank=True)),
                ('latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('service_radius_km', models.DecimalField(decimal_places=2, default=Decimal('10.00'), help_text='Radius served by this outlet (km); orders beyond it are flagged', max_digits=8)),
                ('delivery_base_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Flat delivery fee', max_digits=12)),
                ('delivery_per_km', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Delivery fee per kilometre', max_digits=12)),
                ('currency_decimal_places', models.PositiveSmallIntegerField(default=0, help_text="Minor unit of the outlet's currency; fees are rounded to it")),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='LaundryItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('base_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('pricing_type', models.CharField(choices=[('PER_PIECE', 'Per Piece'), ('PER_KG', 'Per Kilogram')], default='PER_PIECE', max_length=10)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'ordering': ['category', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Employee',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('role', models.CharField(choices=[('DRIVER', 'Driver'), ('WORKER', 'Station Worker'), ('OUTLET_ADMIN', 'Outlet Admin')], max_length=20)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='employees', to='fulfillment.outlet')),
                ('user', models.OneToOneField(help_text='Login account of this employee', on_delete=django.db.models.deletion.CASCADE, related_name='employee', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['outlet', 'role'], name='employee_outlet_role_idx')],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('order_number', models.CharField(help_text='Unique order identifier (auto-generated)', max_length=50, unique=True)),
                ('status', models.CharField(choices=[('CREATED', 'Created'), ('WAITING_FOR_PICKUP', 'Waiting for Pickup'), ('PICKUP_EN_ROUTE', 'Driver on the Way to Customer'), ('PICKUP_ARRIVED', 'Driver Arrived at Customer'), ('RETURNING_TO_OUTLET', 'Returning to Outlet'), ('ARRIVED_AT_OUTLET', 'Arrived at Outlet'), ('BEING_WASHED', 'Being Washed'), ('BEING_IRONED', 'Being Ironed'), ('BEING_PACKED', 'Being Packed'), ('WAITING_PAYMENT', 'Waiting for Payment'), ('READY_FOR_DELIVERY', 'Ready for Delivery'), ('DELIVERY_EN_ROUTE', 'Being Delivered'), ('DELIVERED', 'Delivered'), ('COMPLETED', 'Completed')], default='CREATED', help_text='Current order status in the fulfillment workflow', max_length=30)),
                ('payment_status', models.CharField(choices=[('UNPAID', 'Unpaid'), ('WAITING', 'Waiting for Payment'), ('PAID', 'Paid')], default='UNPAID', max_length=10)),
                ('total_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('total_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('delivery_fee', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('distance_km', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('within_service_radius', models.BooleanField(default=True)),
                ('priced_at', models.DateTimeField(blank=True, null=True)),
                ('address_line', models.CharField(max_length=255)),
                ('district', models.CharField(blank=True, max_length=100)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('province', models.CharField(blank=True, max_length=100)),
                ('postal_code', models.CharField(blank=True, max_length=20)),
                ('latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('scheduled_pickup_at', models.DateTimeField(blank=True, null=True)),
                ('actual_pickup_at', models.DateTimeField(blank=True, null=True)),
                ('scheduled_delivery_at', models.DateTimeField(blank=True, null=True)),
                ('actual_delivery_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('payment_reference', models.CharField(blank=True, max_length=100)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('disputed_at', models.DateTimeField(blank=True, null=True)),
                ('dispute_reason', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(help_text='Customer who requested the pickup', on_delete=django.db.models.deletion.PROTECT, related_name='laundry_orders', to=settings.AUTH_USER_MODEL)),
                ('outlet', models.ForeignKey(help_text='Outlet processing this order', on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='fulfillment.outlet')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['outlet', 'status'], name='order_outlet_status_idx'),
                    models.Index(fields=['customer', 'status'], name='order_customer_status_idx'),
                    models.Index(fields=['status', 'actual_delivery_at'], name='order_status_delivered_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('weight', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('unit_price', models.DecimalField(decimal_places=2, help_text='Catalogue price at the time the item was recorded', max_digits=12)),
                ('line_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('laundry_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='fulfillment.laundryitem')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='fulfillment.order')),
            ],
            options={
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='WorkStage',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('stage', models.CharField(choices=[('WASHING', 'Washing'), ('IRONING', 'Ironing'), ('PACKING', 'Packing')], max_length=10)),
                ('sequence', models.PositiveSmallIntegerField(help_text='Position in the pipeline, starting at 1')),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stages', to='fulfillment.order')),
                ('worker', models.ForeignKey(blank=True, help_text='Station worker who claimed this stage', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='work_stages', to='fulfillment.employee')),
            ],
            options={
                'ordering': ['order', 'sequence'],
                'indexes': [models.Index(fields=['worker', 'completed_at'], name='stage_worker_completed_idx')],
                'constraints': [models.UniqueConstraint(fields=('order', 'stage'), name='uniq_stage_per_order')],
            },
        ),
        migrations.CreateModel(
            name='TransportJob',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('kind', models.CharField(choices=[('PICKUP', 'Pickup'), ('DELIVERY', 'Delivery')], max_length=10)),
                ('status', models.CharField(choices=[('UNCLAIMED', 'Unclaimed'), ('CLAIMED', 'Claimed'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed')], default='UNCLAIMED', max_length=20)),
                ('claimed_at', models.DateTimeField(blank=True, null=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('photo_url', models.URLField(blank=True, help_text='Proof photo reference', max_length=500)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('driver', models.ForeignKey(blank=True, help_text='Driver holding this job', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transport_jobs', to='fulfillment.employee')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transport_jobs', to='fulfillment.order')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'kind'], name='job_status_kind_idx'),
                    models.Index(fields=['driver', 'status'], name='job_driver_status_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('order', 'kind'), name='uniq_job_kind_per_order')],
            },
        ),
        migrations.CreateModel(
            name='BypassRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('reason', models.TextField()),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], default='PENDING', max_length=10)),
                ('admin_note', models.TextField(blank=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('processed_by', models.ForeignKey(blank=True, help_text='Outlet admin who approved or rejected the request', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='processed_bypass_requests', to='fulfillment.employee')),
                ('requested_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bypass_requests', to='fulfillment.employee')),
                ('stage', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bypass_requests', to='fulfillment.workstage')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'created_at'], name='bypass_status_created_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status', 'PENDING')), fields=('stage',), name='uniq_pending_bypass_per_stage')],
            },
        ),
        migrations.AddField(
            model_name='workstage',
            name='bypass',
            field=models.ForeignKey(blank=True, help_text='Latest bypass request raised on this stage', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='fulfillment.bypassrequest'),
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('entity_type', models.CharField(help_text='Type of entity (Order, TransportJob, WorkStage, BypassRequest)', max_length=50)),
                ('entity_id', models.UUIDField()),
                ('action', models.CharField(help_text='Action performed (created, status_changed, claimed, priced, etc.)', max_length=50)),
                ('old_values', models.JSONField(blank=True, default=dict)),
                ('new_values', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(blank=True, help_text='User who performed the action; empty for system actions', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='fulfillment_audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['entity_type', 'entity_id', '-timestamp'], name='audit_entity_idx'),
                    models.Index(fields=['action', '-timestamp'], name='audit_action_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('event', models.CharField(max_length=50)),
                ('recipient_role', models.CharField(choices=[('CUSTOMER', 'Customer'), ('DRIVER', 'Driver'), ('WORKER', 'Station Worker'), ('OUTLET_ADMIN', 'Outlet Admin')], max_length=20)),
                ('message', models.TextField()),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='fulfillment.order')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['recipient_role', '-created_at'], name='notification_role_idx'),
                    models.Index(fields=['order', 'event'], name='notification_order_event_idx'),
                ],
            },
        ),
    ]
