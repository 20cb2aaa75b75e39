"""
Tests for the job board, station queue and bypass list queries.
"""

from decimal import Decimal
from django.test import TestCase

from ..models import (
    BypassRequest, BypassStatus, EmployeeRole, StageType, TransportJob, TransportJobKind, WorkStage
)
from ..queries import AvailableJobsQuery, BypassRequestQuery, StationQueueQuery
from ..services import BypassService, JobService, StageService
from ..services.stage_service import is_cleared
from .helpers import FulfillmentTestMixin


class AvailableJobsQueryTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.order = self.create_order()
        self.pickup = self.job(self.order)

    def job_ids(self, **kwargs):
        query = AvailableJobsQuery(outlet_id=self.outlet.id, **kwargs)
        return [job.id for job in query.queryset()]

    def test_lists_unclaimed_jobs_of_the_outlet(self):
        other_outlet = self.make_outlet('Outlet Bantul', latitude=Decimal('-7.888000'))
        self.create_order(outlet_id=other_outlet.id)

        self.assertEqual(self.job_ids(), [self.pickup.id])

    def test_claimed_jobs_are_hidden(self):
        JobService.claim_job(self.driver.id, self.pickup.id)

        self.assertEqual(self.job_ids(), [])

    def test_unpaid_delivery_jobs_are_hidden(self):
        TransportJob.objects.create(order=self.order, kind=TransportJobKind.DELIVERY)

        self.assertEqual(self.job_ids(kind=TransportJobKind.DELIVERY), [])

    def test_filters_by_kind_and_search(self):
        second = self.create_order()

        self.assertCountEqual(self.job_ids(kind=TransportJobKind.PICKUP), [self.pickup.id, self.job(second).id])
        self.assertEqual(self.job_ids(search=second.order_number), [self.job(second).id])
        self.assertEqual(len(self.job_ids(search='Rahma')), 2)
        self.assertEqual(self.job_ids(search='nobody'), [])


class StationQueueQueryTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.worker_b = self.make_employee('worker_b', EmployeeRole.WORKER)
        self.order = self.create_order()

    def queue(self, stage, worker=None):
        query = StationQueueQuery(
            outlet_id=self.outlet.id, stage=stage, worker_id=worker.id if worker else None
        )
        return [work_stage.id for work_stage in query.queryset()]

    def test_washing_queue_waits_for_arrival(self):
        self.assertEqual(self.queue(StageType.WASHING), [])

        self.bring_to_outlet(self.order)

        self.assertEqual(self.queue(StageType.WASHING), [self.stage(self.order, StageType.WASHING).id])
        self.assertEqual(self.queue(StageType.IRONING), [])

    def test_stage_appears_once_previous_is_completed(self):
        self.bring_to_outlet(self.order)
        self.run_stage(self.order, StageType.WASHING)

        self.assertEqual(self.queue(StageType.WASHING), [])
        self.assertEqual(self.queue(StageType.IRONING), [self.stage(self.order, StageType.IRONING).id])

    def test_stages_claimed_by_others_are_hidden_from_a_worker(self):
        self.bring_to_outlet(self.order)
        StageService.start_stage(self.order.id, StageType.WASHING, self.worker.id, self.counts(self.order))
        washing = self.stage(self.order, StageType.WASHING).id

        self.assertEqual(self.queue(StageType.WASHING, self.worker), [washing])
        self.assertEqual(self.queue(StageType.WASHING, self.worker_b), [])

    def test_frozen_orders_leave_the_queue_until_approved(self):
        self.bring_to_outlet(self.order)
        washing = StageService.start_stage(
            self.order.id, StageType.WASHING, self.worker.id, self.counts(self.order)
        )
        bypass = BypassService.request_bypass(washing.id, self.worker.id, "Missing socks")

        self.assertEqual(self.queue(StageType.WASHING), [])
        self.assertEqual(self.queue(StageType.IRONING), [])

        BypassService.approve_bypass(bypass.id, self.admin.id, "Approved")

        self.assertEqual(self.queue(StageType.WASHING), [washing.id])
        self.assertEqual(self.queue(StageType.IRONING), [self.stage(self.order, StageType.IRONING).id])

    def test_queue_reads_every_request_on_the_previous_stage(self):
        self.bring_to_outlet(self.order)
        washing = StageService.start_stage(
            self.order.id, StageType.WASHING, self.worker.id, self.counts(self.order)
        )
        bypass = BypassService.request_bypass(washing.id, self.worker.id, "Missing socks")
        BypassService.approve_bypass(bypass.id, self.admin.id, "Approved")

        # A later rejected request in the stage's latest-request slot does not hide the approval
        stale = BypassRequest.objects.create(
            stage=washing, requested_by=self.worker, reason="Stain", status=BypassStatus.REJECTED
        )
        WorkStage.objects.filter(id=washing.id).update(bypass=stale)

        ironing = self.stage(self.order, StageType.IRONING)
        self.assertEqual(self.queue(StageType.IRONING), [ironing.id])
        self.assertTrue(is_cleared(self.stage(self.order, StageType.WASHING)))


class BypassRequestQueryTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()
        order = self.create_order()
        self.bring_to_outlet(order)
        washing = StageService.start_stage(order.id, StageType.WASHING, self.worker.id, self.counts(order))
        self.rejected = BypassService.request_bypass(washing.id, self.worker.id, "Missing socks")
        BypassService.reject_bypass(self.rejected.id, self.admin.id, "Count again")
        self.pending = BypassService.request_bypass(washing.id, self.worker.id, "Still missing")

    def test_filters_by_status(self):
        pending = BypassRequestQuery(outlet_id=self.outlet.id, status=BypassStatus.PENDING).queryset()

        self.assertEqual([bypass.id for bypass in pending], [self.pending.id])

    def test_lists_outlet_requests(self):
        all_requests = BypassRequestQuery(outlet_id=self.outlet.id, stage=StageType.WASHING).queryset()
        self.assertEqual({bypass.id for bypass in all_requests}, {self.pending.id, self.rejected.id})

        other_outlet = self.make_outlet('Outlet Bantul', latitude=Decimal('-7.888000'))
        self.assertFalse(BypassRequestQuery(outlet_id=other_outlet.id).queryset().exists())
