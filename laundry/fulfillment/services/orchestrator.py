"""
Workflow Orchestrator for Laundry Fulfillment.

Single entry point the API, webhooks and schedulers go through. Every
operation runs in its own transaction; storage failures such as lock
timeouts or dropped connections are retried a bounded number of times
before surfacing as TransientFailureException.
"""

import logging
import time
from typing import Any, Callable, Optional
from django.db import OperationalError

from ..conf import fulfillment_setting
from ..exceptions import TransientFailureException
from .bypass_service import BypassService
from .job_service import JobService
from .order_service import OrderService
from .payment_service import PaymentService
from .stage_service import StageService
from .sweep_service import sweep_overdue_orders

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """Runs workflow operations with bounded retry of storage failures."""

    def __init__(self, retries: Optional[int] = None, backoff: Optional[float] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self._retries = retries
        self._backoff = backoff
        self._sleep = sleep

    @property
    def retries(self) -> int:
        return self._retries if self._retries is not None else fulfillment_setting('TRANSACTION_RETRIES')

    @property
    def backoff(self) -> float:
        return self._backoff if self._backoff is not None else fulfillment_setting('RETRY_BACKOFF_SECONDS')

    def run(self, operation: str, func: Callable, *args, **kwargs) -> Any:
        """
        Call ``func`` and retry it on OperationalError with linear backoff.

        Business errors propagate untouched on the first attempt.

        Raises:
            TransientFailureException: If every attempt hit a storage failure
        """
        attempts = max(1, self.retries)
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except OperationalError as e:
                if attempt == attempts:
                    logger.error(f"{operation} failed after {attempt} attempts: {e}")
                    raise TransientFailureException(operation, attempt, str(e)) from e
                logger.warning(f"{operation} hit a storage failure (attempt {attempt}/{attempts}): {e}")
                self._sleep(self.backoff * attempt)

    # Intake and orders

    def request_pickup(self, customer, order_data):
        return self.run('request_pickup', OrderService.create_pickup_order, customer, order_data)

    def record_items(self, order_id, admin_id, items):
        return self.run('record_items', OrderService.record_items, order_id, admin_id, items)

    def raise_dispute(self, order_id, customer, reason):
        return self.run('raise_dispute', OrderService.raise_dispute, order_id, customer, reason)

    # Transport jobs

    def claim_job(self, driver_id, job_id):
        return self.run('claim_job', JobService.claim_job, driver_id, job_id)

    def start_job(self, driver_id, job_id):
        return self.run('start_job', JobService.start_job, driver_id, job_id)

    def mark_arrived_at_customer(self, driver_id, job_id):
        return self.run('mark_arrived_at_customer', JobService.mark_arrived_at_customer, driver_id, job_id)

    def mark_returning_to_outlet(self, driver_id, job_id):
        return self.run('mark_returning_to_outlet', JobService.mark_returning_to_outlet, driver_id, job_id)

    def complete_job(self, driver_id, job_id, photo_url, notes="", total_weight=None):
        return self.run('complete_job', JobService.complete_job, driver_id, job_id, photo_url,
                        notes=notes, total_weight=total_weight)

    # Stations

    def start_stage(self, order_id, stage, employee_id, counted_items):
        return self.run('start_stage', StageService.start_stage, order_id, stage, employee_id, counted_items)

    def complete_stage(self, stage_id, employee_id, notes="", corrected_items=None):
        return self.run('complete_stage', StageService.complete_stage, stage_id, employee_id,
                        notes=notes, corrected_items=corrected_items)

    def request_bypass(self, stage_id, worker_id, reason):
        return self.run('request_bypass', BypassService.request_bypass, stage_id, worker_id, reason)

    def approve_bypass(self, request_id, admin_id, note):
        return self.run('approve_bypass', BypassService.approve_bypass, request_id, admin_id, note)

    def reject_bypass(self, request_id, admin_id, note):
        return self.run('reject_bypass', BypassService.reject_bypass, request_id, admin_id, note)

    # Payment

    def open_invoice(self, order_id, customer, reference):
        return self.run('open_invoice', PaymentService.open_invoice, order_id, customer, reference)

    def on_payment_confirmed(self, order_id, paid=True, paid_at=None):
        return self.run('on_payment_confirmed', PaymentService.on_payment_confirmed, order_id,
                        paid=paid, paid_at=paid_at)

    # Scheduled

    def sweep_overdue_orders(self, now=None):
        return self.run('sweep_overdue_orders', sweep_overdue_orders, now)


orchestrator = WorkflowOrchestrator()
