"""
Job Assignment Service for Laundry Fulfillment.

Handles driver claims and progress on pickup and delivery jobs.
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from .. import events
from ..authorization import Capability, get_employee, require_capability
from ..conf import fulfillment_setting
from ..exceptions import (
    AlreadyClaimedException, DriverUnavailableException, InvalidTransitionException,
    NotOwnerException, ValidationException
)
from ..lookups import get_or_not_found
from ..models import (
    ACTIVE_JOB_STATUSES, AuditLog, Employee, Order, OrderStatus, PaymentStatus,
    RecipientRole, TransportJob, TransportJobKind, TransportJobStatus
)
from .order_service import OrderService
from .workflow import transition_order, validate_job_workflow

logger = logging.getLogger(__name__)


class JobService:
    """Service class for transport job operations."""

    @staticmethod
    def _lock(job_id) -> Tuple[Order, TransportJob]:
        """Lock the job's order, then the job itself."""
        order_id = get_or_not_found(TransportJob.objects.only('order_id'), job_id, "TransportJob").order_id
        order = OrderService.lock(order_id)
        job = TransportJob.objects.select_for_update().get(id=job_id)
        job.order = order
        return order, job

    @staticmethod
    def _require_assignee(job: TransportJob, driver: Employee) -> None:
        if job.driver_id != driver.id:
            raise NotOwnerException("TransportJob", job.id, driver.id)

    @staticmethod
    def claim_job(driver_id, job_id) -> TransportJob:
        """
        Claim an unclaimed job for a driver.

        The claim is a conditional UPDATE on ``status = UNCLAIMED AND driver
        IS NULL``; of any number of concurrent claimers exactly one sees its
        row count come back as 1.

        Args:
            driver_id: Employee UUID of the driver
            job_id: TransportJob UUID

        Returns:
            The claimed TransportJob

        Raises:
            AlreadyClaimedException: If another driver holds the job
            DriverUnavailableException: If the driver is busy or at the job limit
            CapabilityDeniedException: If the driver cannot work for the job's outlet
            InvalidTransitionException: If a delivery job's order is not paid
        """
        with transaction.atomic():
            driver = get_employee(driver_id)
            job = get_or_not_found(TransportJob.objects.select_related('order'), job_id, "TransportJob")
            require_capability(driver, Capability.CLAIM_JOB, job.order.outlet_id)

            if job.status != TransportJobStatus.UNCLAIMED or job.driver_id is not None:
                raise AlreadyClaimedException(job.id, job.driver_id)

            if job.kind == TransportJobKind.DELIVERY and job.order.payment_status != PaymentStatus.PAID:
                raise InvalidTransitionException(
                    current_status=job.order.payment_status,
                    attempted_status=TransportJobStatus.CLAIMED,
                    entity_type="TransportJob"
                )

            JobService._check_driver_available(driver)

            now = timezone.now()
            claimed = TransportJob.objects.filter(
                id=job.id,
                status=TransportJobStatus.UNCLAIMED,
                driver__isnull=True,
            ).update(
                status=TransportJobStatus.CLAIMED,
                driver=driver,
                claimed_at=now,
                updated_at=now,
            )

            if claimed != 1:
                logger.info(f"Driver {driver.id} lost the claim race for job {job.id}")
                raise AlreadyClaimedException(job.id)

            job.refresh_from_db()

            AuditLog.log_change(
                entity=job,
                action='claimed',
                user=driver.user,
                old_values={'status': TransportJobStatus.UNCLAIMED, 'driver': None},
                new_values={'status': job.status, 'driver': driver.id},
            )

            events.emit(
                events.JOB_CLAIMED,
                job.order_id,
                RecipientRole.CUSTOMER,
                f"A driver has taken the {job.get_kind_display().lower()} of order {job.order.order_number}",
                job_id=job.id,
                driver_id=driver.id,
                kind=job.kind,
            )

            logger.info(f"Driver {driver.id} claimed {job.kind} job {job.id} for order {job.order.order_number}")
            return job

    @staticmethod
    def _check_driver_available(driver: Employee) -> None:
        # Serialize claims by the same driver so the limit cannot be overrun
        Employee.objects.select_for_update().get(id=driver.id)

        active_jobs = TransportJob.objects.filter(driver=driver, status__in=ACTIVE_JOB_STATUSES)

        if active_jobs.filter(status=TransportJobStatus.IN_PROGRESS).exists():
            raise DriverUnavailableException(driver.id, "a job is already in progress")

        limit = fulfillment_setting('DRIVER_MAX_ACTIVE_JOBS')
        if active_jobs.count() >= limit:
            raise DriverUnavailableException(driver.id, f"already holding {limit} active jobs")

    @staticmethod
    def start_job(driver_id, job_id) -> TransportJob:
        """
        Start a claimed job; the order goes en route.

        Raises:
            NotOwnerException: If the caller is not the job's driver
            InvalidTransitionException: If the job is not CLAIMED or the order
                is not waiting for this job
        """
        with transaction.atomic():
            order, job = JobService._lock(job_id)
            driver = get_employee(driver_id)
            require_capability(driver, Capability.CLAIM_JOB, order.outlet_id)
            JobService._require_assignee(job, driver)
            validate_job_workflow(job, TransportJobStatus.IN_PROGRESS)

            job.status = TransportJobStatus.IN_PROGRESS
            job.started_at = timezone.now()
            job.save(update_fields=['status', 'started_at', 'updated_at'])

            AuditLog.log_status_change(
                entity=job,
                old_status=TransportJobStatus.CLAIMED,
                new_status=TransportJobStatus.IN_PROGRESS,
                user=driver.user
            )

            en_route = OrderStatus.PICKUP_EN_ROUTE if job.is_pickup else OrderStatus.DELIVERY_EN_ROUTE
            transition_order(order, en_route, user=driver.user, notes=f"{job.kind} job started")

            logger.info(f"Driver {driver.id} started {job.kind} job {job.id}")
            return job

    @staticmethod
    def _report_pickup_progress(driver_id, job_id, new_status: str) -> Order:
        with transaction.atomic():
            order, job = JobService._lock(job_id)
            driver = get_employee(driver_id)
            require_capability(driver, Capability.CLAIM_JOB, order.outlet_id)
            JobService._require_assignee(job, driver)

            if not job.is_pickup:
                raise ValidationException(
                    "Only pickup jobs report progress at the customer", {'kind': job.kind}
                )
            if job.status != TransportJobStatus.IN_PROGRESS:
                raise InvalidTransitionException(job.status, new_status, entity_type="TransportJob")

            return transition_order(order, new_status, user=driver.user)

    @staticmethod
    def mark_arrived_at_customer(driver_id, job_id) -> Order:
        """The pickup driver reports arrival at the customer's address."""
        return JobService._report_pickup_progress(driver_id, job_id, OrderStatus.PICKUP_ARRIVED)

    @staticmethod
    def mark_returning_to_outlet(driver_id, job_id) -> Order:
        """The pickup driver reports the items collected and is heading back."""
        return JobService._report_pickup_progress(driver_id, job_id, OrderStatus.RETURNING_TO_OUTLET)

    @staticmethod
    def complete_job(driver_id, job_id, photo_url: str, notes: str = "",
                     total_weight: Optional[Decimal] = None) -> TransportJob:
        """
        Complete a job with photo proof.

        Completing a pickup records the order's weight (unless already
        recorded) and brings the order to ARRIVED_AT_OUTLET. Completing a
        delivery marks the order DELIVERED and starts its auto-completion
        timer.

        Args:
            driver_id: Employee UUID of the driver
            job_id: TransportJob UUID
            photo_url: Reference to the uploaded proof photo
            notes: Driver notes
            total_weight: Weighed load in kg; defaults to the sum of item weights

        Raises:
            ValidationException: If the photo or the weight is missing or invalid
            NotOwnerException: If the caller is not the job's driver
            InvalidTransitionException: If the job is not IN_PROGRESS
        """
        if not photo_url or not photo_url.strip():
            raise ValidationException("A proof photo is required to complete a job", {'photo_url': 'required'})

        with transaction.atomic():
            order, job = JobService._lock(job_id)
            driver = get_employee(driver_id)
            require_capability(driver, Capability.CLAIM_JOB, order.outlet_id)
            JobService._require_assignee(job, driver)
            validate_job_workflow(job, TransportJobStatus.COMPLETED)

            now = timezone.now()
            if job.is_pickup:
                JobService._record_weight(order, total_weight)
                order.actual_pickup_at = now
                transition_order(
                    order, OrderStatus.ARRIVED_AT_OUTLET, user=driver.user,
                    notes=f"Picked up, {order.total_weight} kg",
                    extra_fields=['total_weight', 'actual_pickup_at']
                )
            else:
                order.actual_delivery_at = now
                transition_order(
                    order, OrderStatus.DELIVERED, user=driver.user,
                    notes="Delivered to customer",
                    extra_fields=['actual_delivery_at']
                )

            job.status = TransportJobStatus.COMPLETED
            job.completed_at = now
            job.photo_url = photo_url.strip()
            job.notes = notes
            job.save(update_fields=['status', 'completed_at', 'photo_url', 'notes', 'updated_at'])

            AuditLog.log_change(
                entity=job,
                action='completed',
                user=driver.user,
                old_values={'status': TransportJobStatus.IN_PROGRESS},
                new_values={'status': TransportJobStatus.COMPLETED, 'photo_url': job.photo_url},
                notes=notes
            )

            logger.info(f"Driver {driver.id} completed {job.kind} job {job.id} for order {order.order_number}")
            return job

    @staticmethod
    def _record_weight(order: Order, total_weight: Optional[Decimal]) -> None:
        if order.total_weight is not None:
            return

        if total_weight is None:
            total_weight = order.items.aggregate(total=Sum('weight'))['total']
        if total_weight is None:
            raise ValidationException(
                f"Order {order.order_number} needs a weight to complete pickup", {'total_weight': 'required'}
            )

        total_weight = Decimal(str(total_weight))
        if total_weight < 0:
            raise ValidationException("Weight cannot be negative", {'total_weight': str(total_weight)})

        order.total_weight = total_weight
