"""
Tests for the REST endpoints.
"""

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import BypassStatus, EmployeeRole, OrderStatus, StageType, TransportJobStatus
from .helpers import CUSTOMER_LAT, CUSTOMER_LON, FulfillmentTestMixin, PHOTO_URL


class OrderAPITest(FulfillmentTestMixin, APITestCase):

    def setUp(self):
        self.set_up_fulfillment()

    def test_unauthenticated_requests_are_rejected(self):
        response = self.client.get(reverse('order-list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_customer_requests_pickup(self):
        self.client.force_authenticate(self.customer)

        response = self.client.post(reverse('order-list'), {
            'address_line': 'Jl. Kaliurang KM 5 No. 12',
            'city': 'Sleman',
            'latitude': str(CUSTOMER_LAT),
            'longitude': str(CUSTOMER_LON),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        data = response.data['data']
        self.assertEqual(data['status'], OrderStatus.WAITING_FOR_PICKUP)
        self.assertEqual(data['distance_km'], '3.00')
        self.assertIsNone(data['amount_due'])
        self.assertEqual(len(data['stages']), 3)
        self.assertEqual(data['transport_jobs'][0]['status'], TransportJobStatus.UNCLAIMED)

    def test_pickup_without_coordinates_is_invalid(self):
        self.client.force_authenticate(self.customer)

        response = self.client.post(reverse('order-list'), {'address_line': 'Jl. Kaliurang'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customers_only_see_their_own_orders(self):
        order = self.create_order()
        other = get_user_model().objects.create_user(username='other', password='testpass123')

        self.client.force_authenticate(other)
        response = self.client.get(reverse('order-list'))
        self.assertEqual(response.data['results'], [])

        response = self.client.get(reverse('order-detail', args=[order.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(self.customer)
        response = self.client.get(reverse('order-list'))
        self.assertEqual([row['id'] for row in response.data['results']], [str(order.id)])

    def test_outlet_staff_see_outlet_orders(self):
        order = self.create_order()
        self.client.force_authenticate(self.admin.user)

        response = self.client.get(reverse('order-list'), {'status': OrderStatus.WAITING_FOR_PICKUP})

        self.assertEqual([row['id'] for row in response.data['results']], [str(order.id)])

    def test_admin_records_items(self):
        order = self.create_order()
        self.bring_to_outlet(order)
        payload = {'items': [
            {'laundry_item_id': str(self.kg_item.id), 'weight': '3.50'},
            {'laundry_item_id': str(self.piece_item.id), 'quantity': 2},
        ]}

        self.client.force_authenticate(self.worker.user)
        response = self.client.post(reverse('order-items', args=[order.id]), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin.user)
        response = self.client.post(reverse('order-items', args=[order.id]), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)

    def test_dispute_of_undelivered_order_conflicts(self):
        order = self.create_order()
        self.client.force_authenticate(self.customer)

        response = self.client.post(reverse('order-dispute', args=[order.id]), {'reason': 'Stain'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'INVALID_TRANSITION')

    def test_invoice_reports_amount_due(self):
        order = self.bring_to_payment()
        self.client.force_authenticate(self.customer)

        response = self.client.post(reverse('order-invoice', args=[order.id]), {'reference': 'INV-7'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['payment_reference'], 'INV-7')
        self.assertEqual(str(response.data['data']['amount_due']), '45500.00')


class TransportJobAPITest(FulfillmentTestMixin, APITestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.driver_b = self.make_employee('driver_b', EmployeeRole.DRIVER)
        self.order = self.create_order()
        self.pickup = self.job(self.order)

    def test_customers_cannot_reach_job_board(self):
        self.client.force_authenticate(self.customer)

        response = self.client.get(reverse('job-list'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_driver_sees_and_claims_available_jobs(self):
        self.client.force_authenticate(self.driver.user)

        response = self.client.get(reverse('job-list'))
        self.assertEqual([row['id'] for row in response.data['results']], [str(self.pickup.id)])

        response = self.client.post(reverse('job-claim', args=[self.pickup.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], TransportJobStatus.CLAIMED)

        response = self.client.get(reverse('job-mine'))
        self.assertEqual([row['id'] for row in response.data['data']], [str(self.pickup.id)])

    def test_second_claim_conflicts(self):
        self.client.force_authenticate(self.driver.user)
        self.client.post(reverse('job-claim', args=[self.pickup.id]))

        self.client.force_authenticate(self.driver_b.user)
        response = self.client.post(reverse('job-claim', args=[self.pickup.id]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'ALREADY_CLAIMED')

    def test_driver_completes_pickup(self):
        self.client.force_authenticate(self.driver.user)
        for name in ['job-claim', 'job-start', 'job-arrived', 'job-returning']:
            response = self.client.post(reverse(name, args=[self.pickup.id]))
            self.assertEqual(response.status_code, status.HTTP_200_OK, name)

        response = self.client.post(reverse('job-complete', args=[self.pickup.id]), {
            'photo_url': PHOTO_URL,
            'total_weight': '3.50',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ARRIVED_AT_OUTLET)

    def test_complete_without_photo_is_invalid(self):
        self.client.force_authenticate(self.driver.user)

        response = self.client.post(reverse('job-complete', args=[self.pickup.id]), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StationAPITest(FulfillmentTestMixin, APITestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.order = self.create_order()
        self.bring_to_outlet(self.order)
        self.washing = self.stage(self.order, StageType.WASHING)

    def test_station_queue(self):
        self.client.force_authenticate(self.worker.user)

        response = self.client.get(reverse('stage-list'), {'stage': StageType.WASHING})
        self.assertEqual([row['id'] for row in response.data['results']], [str(self.washing.id)])

        response = self.client.get(reverse('stage-list'), {'stage': 'DRYING'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_bypass_round_trip(self):
        self.client.force_authenticate(self.worker.user)
        response = self.client.post(
            reverse('stage-start', args=[self.washing.id]), {'counted_items': []}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post(
            reverse('stage-bypass', args=[self.washing.id]), {'reason': 'Two socks missing'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        bypass_id = response.data['data']['id']

        response = self.client.post(reverse('stage-complete', args=[self.washing.id]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'STAGE_FROZEN')

        self.client.force_authenticate(self.admin.user)
        response = self.client.get(reverse('bypass-request-list'), {'status': BypassStatus.PENDING})
        self.assertEqual([row['id'] for row in response.data['results']], [bypass_id])

        url = reverse('bypass-request-approve', args=[bypass_id])
        response = self.client.post(url, {'note': 'Customer confirmed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], BypassStatus.APPROVED)

        response = self.client.post(url, {'note': 'Again'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'ALREADY_PROCESSED')

    def test_workers_cannot_resolve_bypasses(self):
        self.client.force_authenticate(self.worker.user)

        response = self.client.get(reverse('bypass-request-list'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_start_needs_a_matching_count(self):
        self.record_default_items(self.order)
        self.client.force_authenticate(self.worker.user)
        url = reverse('stage-start', args=[self.washing.id])

        response = self.client.post(url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'counted_items': [
            {'laundry_item_id': str(self.kg_item.id), 'quantity': 1},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertEqual(response.data['error']['details']['action'], 'request_bypass')

        response = self.client.post(url, {'counted_items': [
            {'laundry_item_id': str(self.kg_item.id), 'quantity': 1},
            {'laundry_item_id': str(self.piece_item.id), 'quantity': 2},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(str(response.data['data']['worker']), str(self.worker.id))

    def test_complete_with_corrected_quantities(self):
        self.record_default_items(self.order)
        self.client.force_authenticate(self.worker.user)
        response = self.client.post(
            reverse('stage-bypass', args=[self.washing.id]), {'reason': 'Third shirt found'}, format='json'
        )
        bypass_id = response.data['data']['id']

        self.client.force_authenticate(self.admin.user)
        self.client.post(
            reverse('bypass-request-approve', args=[bypass_id]), {'note': 'Confirmed'}, format='json'
        )

        self.client.force_authenticate(self.worker.user)
        response = self.client.post(reverse('stage-complete', args=[self.washing.id]), {
            'corrected_items': [{'laundry_item_id': str(self.piece_item.id), 'quantity': 3}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['data']['completed_at'])
        self.assertEqual(self.order.items.get(laundry_item=self.piece_item).quantity, 3)
