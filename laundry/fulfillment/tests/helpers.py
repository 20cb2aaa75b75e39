"""
Shared fixtures for the fulfillment tests.
"""

from decimal import Decimal
from django.contrib.auth import get_user_model

from ..adapters.notification_adapter import switch_to_memory_sink
from ..models import (
    Employee, EmployeeRole, LaundryItem, Outlet, PricingType, StageType,
    TransportJobKind, WorkStage
)
from ..services import JobService, OrderService, PaymentService, StageService

OUTLET_LAT = Decimal('-7.764500')
OUTLET_LON = Decimal('110.382700')

# Due north of the outlet, 3.00 km after rounding
CUSTOMER_LAT = Decimal('-7.737520')
CUSTOMER_LON = OUTLET_LON

PHOTO_URL = 'https://photos.example.com/proof.jpg'


class FulfillmentTestMixin:
    """Outlet with one employee per role, a customer and a small catalogue."""

    def set_up_fulfillment(self):
        self.sink = switch_to_memory_sink()

        self.outlet = self.make_outlet('Outlet Kaliurang')
        self.driver = self.make_employee('driver_a', EmployeeRole.DRIVER)
        self.worker = self.make_employee('worker_a', EmployeeRole.WORKER)
        self.admin = self.make_employee('admin_a', EmployeeRole.OUTLET_ADMIN)
        self.customer = get_user_model().objects.create_user(
            username='customer',
            email='customer@example.com',
            password='testpass123',
            first_name='Siti',
            last_name='Rahma'
        )

        self.kg_item = LaundryItem.objects.create(
            name='Wash & Fold', category='Regular', base_price=Decimal('7000.00'),
            pricing_type=PricingType.PER_KG
        )
        self.piece_item = LaundryItem.objects.create(
            name='Shirt', category='Ironing', base_price=Decimal('5000.00'),
            pricing_type=PricingType.PER_PIECE
        )

    def make_outlet(self, name, latitude=OUTLET_LAT, longitude=OUTLET_LON, **kwargs):
        defaults = {
            'service_radius_km': Decimal('10.00'),
            'delivery_base_fee': Decimal('5000.00'),
            'delivery_per_km': Decimal('2000.00'),
            'currency_decimal_places': 0,
        }
        defaults.update(kwargs)
        return Outlet.objects.create(name=name, latitude=latitude, longitude=longitude, **defaults)

    def make_employee(self, username, role, outlet=None):
        user = get_user_model().objects.create_user(
            username=username,
            email=f'{username}@example.com',
            password='testpass123'
        )
        return Employee.objects.create(user=user, outlet=outlet or self.outlet, role=role)

    def create_order(self, customer=None, latitude=CUSTOMER_LAT, longitude=CUSTOMER_LON, **extra):
        order_data = {
            'address_line': 'Jl. Kaliurang KM 5 No. 12',
            'district': 'Depok',
            'city': 'Sleman',
            'province': 'DI Yogyakarta',
            'postal_code': '55281',
            'latitude': latitude,
            'longitude': longitude,
        }
        order_data.update(extra)
        return OrderService.create_pickup_order(customer or self.customer, order_data)

    def job(self, order, kind=TransportJobKind.PICKUP):
        return order.transport_jobs.get(kind=kind)

    def stage(self, order, stage):
        return WorkStage.objects.get(order=order, stage=stage)

    def bring_to_outlet(self, order, weight=Decimal('3.50')):
        job = self.job(order)
        JobService.claim_job(self.driver.id, job.id)
        JobService.start_job(self.driver.id, job.id)
        JobService.mark_arrived_at_customer(self.driver.id, job.id)
        JobService.mark_returning_to_outlet(self.driver.id, job.id)
        JobService.complete_job(self.driver.id, job.id, PHOTO_URL, total_weight=weight)
        order.refresh_from_db()
        return order

    def record_default_items(self, order):
        # 7000 x 3.50 kg + 5000 x 2 pieces = 34500
        return OrderService.record_items(order.id, self.admin.id, [
            {'laundry_item_id': self.kg_item.id, 'weight': Decimal('3.50')},
            {'laundry_item_id': self.piece_item.id, 'quantity': 2},
        ])

    def counts(self, order):
        """The order's recorded items, as a worker counting correctly reports them."""
        return [
            {'laundry_item_id': item.laundry_item_id, 'quantity': item.quantity}
            for item in order.items.all()
        ]

    def run_stage(self, order, stage):
        work_stage = StageService.start_stage(order.id, stage, self.worker.id, self.counts(order))
        return StageService.complete_stage(work_stage.id, self.worker.id)

    def process(self, order):
        for stage in [StageType.WASHING, StageType.IRONING, StageType.PACKING]:
            self.run_stage(order, stage)
        order.refresh_from_db()
        return order

    def bring_to_payment(self, order=None):
        order = order or self.create_order()
        self.bring_to_outlet(order)
        self.record_default_items(order)
        return self.process(order)

    def deliver(self, order):
        PaymentService.on_payment_confirmed(order.id)
        job = self.job(order, TransportJobKind.DELIVERY)
        JobService.claim_job(self.driver.id, job.id)
        JobService.start_job(self.driver.id, job.id)
        JobService.complete_job(self.driver.id, job.id, PHOTO_URL)
        order.refresh_from_db()
        return order
