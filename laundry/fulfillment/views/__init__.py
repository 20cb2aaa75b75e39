"""
Laundry Fulfillment Views
"""

from .order_views import OrderViewSet
from .job_views import TransportJobViewSet
from .stage_views import WorkStageViewSet, BypassRequestViewSet
from .payment_views import PaymentWebhookView

__all__ = [
    'OrderViewSet',
    'TransportJobViewSet',
    'WorkStageViewSet',
    'BypassRequestViewSet',
    'PaymentWebhookView',
]
