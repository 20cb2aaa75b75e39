"""
URL configuration for Laundry Fulfillment.

Provides API endpoints for orders, transport jobs, stations, bypass requests
and the payment webhook.
"""

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    BypassRequestViewSet, OrderViewSet, PaymentWebhookView,
    TransportJobViewSet, WorkStageViewSet
)

# Create router and register viewsets
router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'jobs', TransportJobViewSet, basename='job')
router.register(r'stages', WorkStageViewSet, basename='stage')
router.register(r'bypass-requests', BypassRequestViewSet, basename='bypass-request')

# URL patterns
urlpatterns = [
    path('payments/webhook/', PaymentWebhookView.as_view(), name='payment-webhook'),
] + router.urls
