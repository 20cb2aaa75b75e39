"""
Payment provider webhook for Laundry Fulfillment.
"""

from rest_framework.views import APIView

from ..exceptions import BusinessException
from ..permissions import HasWebhookToken
from ..serializers.payment_serializers import PaymentWebhookSerializer
from ..services import orchestrator
from .responses import error_response, success_response


class PaymentWebhookView(APIView):
    """Receives payment notifications authenticated by the shared token."""

    authentication_classes = []
    permission_classes = [HasWebhookToken]

    def post(self, request):
        serializer = PaymentWebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = orchestrator.on_payment_confirmed(
                data['order_id'], paid=data['paid'], paid_at=data.get('paid_at')
            )
        except BusinessException as e:
            return error_response(e)
        return success_response({
            'order_id': order.id,
            'status': order.status,
            'payment_status': order.payment_status,
        })
