"""
Bypass Service for Laundry Fulfillment.

A station worker who finds a discrepancy (missing or extra items, damage)
raises a bypass request. The stage stays frozen until an outlet admin
approves or rejects it.
"""

import logging
from django.db import transaction
from django.utils import timezone

from .. import events
from ..authorization import Capability, get_employee, require_capability
from ..exceptions import (
    AlreadyProcessedException, InvalidTransitionException, NotOwnerException,
    StageFrozenException, ValidationException
)
from ..lookups import get_or_not_found
from ..models import AuditLog, BypassRequest, BypassStatus, RecipientRole
from .order_service import OrderService
from .stage_service import StageService
from .workflow import BypassWorkflow

logger = logging.getLogger(__name__)

ADMIN_NOTE_MAX_LENGTH = 500


class BypassService:
    """Service class for bypass requests."""

    @staticmethod
    def request_bypass(stage_id, worker_id, reason: str) -> BypassRequest:
        """
        Freeze a stage pending an outlet admin's decision.

        A stage nobody has started yet is started for the requesting worker.

        Args:
            stage_id: WorkStage UUID
            worker_id: Employee UUID of the station worker
            reason: Description of the discrepancy

        Returns:
            The PENDING BypassRequest

        Raises:
            InvalidTransitionException: If the stage is already completed
            StageFrozenException: If a request on the stage is already pending
            AlreadyProcessedException: If a request on the stage was already approved
            NotOwnerException: If another worker holds the stage
        """
        if not reason or not reason.strip():
            raise ValidationException("A bypass reason is required", {'reason': 'required'})

        with transaction.atomic():
            order, work_stage = StageService._lock(stage_id)
            worker = get_employee(worker_id)
            require_capability(worker, Capability.REQUEST_BYPASS, order.outlet_id)

            if work_stage.is_completed:
                raise InvalidTransitionException('COMPLETED', 'BYPASS_REQUESTED', entity_type="WorkStage")

            pending = work_stage.bypass_requests.filter(status=BypassStatus.PENDING).first()
            if pending is not None:
                raise StageFrozenException(work_stage.id, pending.id)

            approved = work_stage.bypass_requests.filter(status=BypassStatus.APPROVED).first()
            if approved is not None:
                raise AlreadyProcessedException(approved.id, approved.status)

            if not work_stage.is_started:
                StageService.begin(order, work_stage, worker)
            elif work_stage.worker_id != worker.id:
                raise NotOwnerException("WorkStage", work_stage.id, worker.id)

            bypass = BypassRequest.objects.create(
                stage=work_stage,
                requested_by=worker,
                reason=reason.strip(),
            )
            work_stage.bypass = bypass
            work_stage.save(update_fields=['bypass', 'updated_at'])

            AuditLog.log_change(
                entity=bypass,
                action='requested',
                user=worker.user,
                new_values={'status': bypass.status, 'stage': work_stage.stage},
                notes=bypass.reason
            )

            events.emit(
                events.BYPASS_REQUESTED,
                order.id,
                RecipientRole.OUTLET_ADMIN,
                f"Bypass requested on {work_stage.get_stage_display().lower()} of order {order.order_number}",
                bypass_id=bypass.id,
                stage=work_stage.stage,
                worker_id=worker.id,
            )

            logger.info(f"Worker {worker.id} requested bypass {bypass.id} on {work_stage.stage} of {order.order_number}")
            return bypass

    @staticmethod
    def approve_bypass(request_id, admin_id, note: str) -> BypassRequest:
        """Approve a pending request; the stage counts as cleared for the next one."""
        return BypassService._resolve(request_id, admin_id, note, BypassStatus.APPROVED)

    @staticmethod
    def reject_bypass(request_id, admin_id, note: str) -> BypassRequest:
        """Reject a pending request; the worker completes normally or asks again."""
        return BypassService._resolve(request_id, admin_id, note, BypassStatus.REJECTED)

    @staticmethod
    def _resolve(request_id, admin_id, note: str, new_status: str) -> BypassRequest:
        """
        Raises:
            ValidationException: If the note is empty or too long
            AlreadyProcessedException: If the request is no longer pending
            CapabilityDeniedException: If the admin is not an outlet admin of the order's outlet
        """
        note = (note or '').strip()
        if not note:
            raise ValidationException("An admin note is required", {'note': 'required'})
        if len(note) > ADMIN_NOTE_MAX_LENGTH:
            raise ValidationException(
                f"Admin note cannot exceed {ADMIN_NOTE_MAX_LENGTH} characters", {'note': len(note)}
            )

        with transaction.atomic():
            order_id = get_or_not_found(
                BypassRequest.objects.select_related('stage'), request_id, "BypassRequest"
            ).stage.order_id
            order = OrderService.lock(order_id)
            bypass = BypassRequest.objects.select_for_update().select_related('stage').get(id=request_id)

            admin = get_employee(admin_id)
            require_capability(admin, Capability.RESOLVE_BYPASS, order.outlet_id)

            if not bypass.is_pending:
                raise AlreadyProcessedException(bypass.id, bypass.status)
            BypassWorkflow.validate_transition(bypass, new_status)

            bypass.status = new_status
            bypass.admin_note = note
            bypass.processed_by = admin
            bypass.processed_at = timezone.now()
            bypass.save(update_fields=['status', 'admin_note', 'processed_by', 'processed_at', 'updated_at'])

            AuditLog.log_status_change(
                entity=bypass,
                old_status=BypassStatus.PENDING,
                new_status=new_status,
                user=admin.user,
                notes=note
            )

            events.emit(
                events.BYPASS_RESOLVED,
                order.id,
                RecipientRole.WORKER,
                f"Bypass on {bypass.stage.get_stage_display().lower()} of order {order.order_number} "
                f"was {new_status.lower()}",
                bypass_id=bypass.id,
                stage=bypass.stage.stage,
                status=new_status,
            )

            logger.info(f"Admin {admin.id} {new_status.lower()} bypass {bypass.id} for order {order.order_number}")
            return bypass
