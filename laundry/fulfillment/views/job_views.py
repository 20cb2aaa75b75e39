"""
Transport job views for Laundry Fulfillment.
"""

from rest_framework import mixins, viewsets
from rest_framework.decorators import action

from ..exceptions import BusinessException
from ..models import ACTIVE_JOB_STATUSES, TransportJob
from ..permissions import IsDriver, get_request_employee
from ..queries import AvailableJobsQuery
from ..serializers.job_serializers import CompleteJobSerializer, TransportJobSerializer
from ..services import orchestrator
from .responses import error_response, success_response


class TransportJobViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for drivers.

    The list shows jobs open for claiming at the driver's outlet
    (``?kind=PICKUP|DELIVERY``, ``?search=``); ``mine`` shows the driver's
    active jobs.
    """

    permission_classes = [IsDriver]
    serializer_class = TransportJobSerializer

    def get_serializer_class(self):
        if self.action == 'complete':
            return CompleteJobSerializer
        return TransportJobSerializer

    def get_queryset(self):
        employee = get_request_employee(self.request)
        if employee is None:
            return TransportJob.objects.none()

        if self.action == 'list':
            return AvailableJobsQuery(
                outlet_id=employee.outlet_id,
                kind=self.request.query_params.get('kind') or None,
                search=self.request.query_params.get('search') or None,
            ).queryset()

        return TransportJob.objects.select_related('order', 'order__customer').filter(
            order__outlet_id=employee.outlet_id
        )

    def _driver_id(self):
        return get_request_employee(self.request).id

    @action(detail=False, methods=['get'])
    def mine(self, request):
        """The driver's claimed and in-progress jobs."""
        jobs = self.get_queryset().filter(driver_id=self._driver_id(), status__in=ACTIVE_JOB_STATUSES)
        return success_response(TransportJobSerializer(jobs, many=True).data)

    @action(detail=True, methods=['post'])
    def claim(self, request, pk=None):
        """Claim an unclaimed job."""
        try:
            job = orchestrator.claim_job(self._driver_id(), pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(TransportJobSerializer(job).data)

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """Start a claimed job."""
        try:
            job = orchestrator.start_job(self._driver_id(), pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(TransportJobSerializer(job).data)

    @action(detail=True, methods=['post'])
    def arrived(self, request, pk=None):
        """Report arrival at the customer (pickup only)."""
        try:
            order = orchestrator.mark_arrived_at_customer(self._driver_id(), pk)
        except BusinessException as e:
            return error_response(e)
        return success_response({'order_id': order.id, 'status': order.status})

    @action(detail=True, methods=['post'])
    def returning(self, request, pk=None):
        """Report the items collected and heading back (pickup only)."""
        try:
            order = orchestrator.mark_returning_to_outlet(self._driver_id(), pk)
        except BusinessException as e:
            return error_response(e)
        return success_response({'order_id': order.id, 'status': order.status})

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Complete a job with photo proof."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            job = orchestrator.complete_job(
                self._driver_id(), pk,
                serializer.validated_data['photo_url'],
                notes=serializer.validated_data['notes'],
                total_weight=serializer.validated_data.get('total_weight'),
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(TransportJobSerializer(job).data)
