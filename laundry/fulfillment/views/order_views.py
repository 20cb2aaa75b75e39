"""
Order views for Laundry Fulfillment.
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter

from ..exceptions import BusinessException
from ..models import Order
from ..permissions import IsOrderCustomerOrOutletStaff, IsOutletAdmin, get_request_employee
from ..serializers.order_serializers import (
    DisputeSerializer, InvoiceSerializer, OrderDetailSerializer, OrderItemSerializer,
    OrderListSerializer, PickupRequestSerializer, RecordItemsSerializer
)
from ..services import orchestrator
from .responses import error_response, success_response


class OrderViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for laundry orders.

    Customers request pickups and follow their orders; outlet staff see the
    orders of their outlet.
    """

    permission_classes = [IsOrderCustomerOrOutletStaff]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ['status', 'payment_status', 'within_service_radius']
    search_fields = ['order_number', 'address_line', 'customer__username']
    ordering_fields = ['created_at', 'updated_at', 'status']

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'list':
            return OrderListSerializer
        elif self.action == 'create':
            return PickupRequestSerializer
        elif self.action == 'items':
            return RecordItemsSerializer
        elif self.action == 'dispute':
            return DisputeSerializer
        elif self.action == 'invoice':
            return InvoiceSerializer
        else:
            return OrderDetailSerializer

    def get_queryset(self):
        """Filter queryset based on who is asking."""
        user = self.request.user
        if not user.is_authenticated:
            return Order.objects.none()

        qs = Order.objects.select_related('customer', 'outlet')
        employee = get_request_employee(self.request)
        if employee is not None:
            return qs.filter(outlet_id=employee.outlet_id)
        return qs.filter(customer=user)

    def create(self, request):
        """Request a pickup."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = orchestrator.request_pickup(request.user, serializer.validated_data)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data, status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[IsOutletAdmin])
    def items(self, request, pk=None):
        """Record the items of an order."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            items = orchestrator.record_items(
                pk, get_request_employee(request).id, serializer.validated_data['items']
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderItemSerializer(items, many=True).data)

    @action(detail=True, methods=['post'])
    def dispute(self, request, pk=None):
        """Dispute a delivered order."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = orchestrator.raise_dispute(pk, request.user, serializer.validated_data['reason'])
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['post'])
    def invoice(self, request, pk=None):
        """Open the invoice of an order waiting for payment."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = orchestrator.open_invoice(pk, request.user, serializer.validated_data['reference'])
        except BusinessException as e:
            return error_response(e)
        return success_response({
            'order_id': order.id,
            'payment_reference': order.payment_reference,
            'payment_status': order.payment_status,
            'amount_due': order.amount_due,
        })
