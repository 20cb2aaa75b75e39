"""
Station and bypass views for Laundry Fulfillment.
"""

from rest_framework import mixins, viewsets
from rest_framework.decorators import action

from ..exceptions import BusinessException, ValidationException
from ..models import BypassRequest, StageType, WorkStage
from ..permissions import IsOutletAdmin, IsStationWorker, get_request_employee
from ..queries import BypassRequestQuery, StationQueueQuery
from ..serializers.stage_serializers import (
    BypassCreateSerializer, BypassRequestSerializer, BypassResolveSerializer,
    CompleteStageSerializer, StartStageSerializer, WorkStageSerializer
)
from ..services import orchestrator
from .responses import error_response, success_response


class WorkStageViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for station workers.

    The list is the queue of one station: ``?stage=WASHING|IRONING|PACKING``.
    """

    permission_classes = [IsStationWorker]

    def get_serializer_class(self):
        if self.action == 'start':
            return StartStageSerializer
        elif self.action == 'complete':
            return CompleteStageSerializer
        elif self.action == 'bypass':
            return BypassCreateSerializer
        return WorkStageSerializer

    def get_queryset(self):
        employee = get_request_employee(self.request)
        if employee is None:
            return WorkStage.objects.none()

        if self.action == 'list':
            stage = self.request.query_params.get('stage', StageType.WASHING)
            return StationQueueQuery(
                outlet_id=employee.outlet_id,
                stage=stage,
                worker_id=employee.id,
            ).queryset()

        return WorkStage.objects.select_related('order').filter(order__outlet_id=employee.outlet_id)

    def list(self, request, *args, **kwargs):
        stage = request.query_params.get('stage', StageType.WASHING)
        if stage not in StageType.values:
            return error_response(ValidationException(f"Unknown stage {stage}", {'stage': stage}))
        return super().list(request, *args, **kwargs)

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """Claim and start this stage after counting the order's items."""
        work_stage = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            work_stage = orchestrator.start_stage(
                work_stage.order_id, work_stage.stage, get_request_employee(request).id,
                serializer.validated_data['counted_items']
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(WorkStageSerializer(work_stage).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Complete this stage, correcting item quantities after an approved bypass."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            work_stage = orchestrator.complete_stage(
                pk, get_request_employee(request).id,
                notes=serializer.validated_data['notes'],
                corrected_items=serializer.validated_data.get('corrected_items'),
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(WorkStageSerializer(work_stage).data)

    @action(detail=True, methods=['post'])
    def bypass(self, request, pk=None):
        """Request a bypass on this stage."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bypass = orchestrator.request_bypass(
                pk, get_request_employee(request).id, serializer.validated_data['reason']
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(BypassRequestSerializer(bypass).data)


class BypassRequestViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for outlet admins reviewing bypass requests
    (``?status=``, ``?stage=``).
    """

    permission_classes = [IsOutletAdmin]

    def get_serializer_class(self):
        if self.action in ['approve', 'reject']:
            return BypassResolveSerializer
        return BypassRequestSerializer

    def get_queryset(self):
        employee = get_request_employee(self.request)
        if employee is None:
            return BypassRequest.objects.none()

        return BypassRequestQuery(
            outlet_id=employee.outlet_id,
            status=self.request.query_params.get('status') or None,
            stage=self.request.query_params.get('stage') or None,
        ).queryset()

    def _resolve(self, request, pk, resolve):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bypass = resolve(pk, get_request_employee(request).id, serializer.validated_data['note'])
        except BusinessException as e:
            return error_response(e)
        return success_response(BypassRequestSerializer(bypass).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """Approve a pending bypass request."""
        return self._resolve(request, pk, orchestrator.approve_bypass)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        """Reject a pending bypass request."""
        return self._resolve(request, pk, orchestrator.reject_bypass)
