"""
Settings access for the fulfillment app.

Values come from the ``FULFILLMENT`` dict in Django settings, falling back
to the defaults below.
"""

from django.conf import settings

DEFAULTS = {
    'AUTO_COMPLETE_AFTER_HOURS': 48,
    'TRANSACTION_RETRIES': 3,
    'RETRY_BACKOFF_SECONDS': 0.05,
    'DRIVER_MAX_ACTIVE_JOBS': 5,
    'EARTH_RADIUS_KM': 6371,
    'DISTANCE_DECIMAL_PLACES': 2,
    'NOTIFICATION_SINK': 'fulfillment.adapters.notification_adapter.DatabaseNotificationSink',
    'PAYMENT_WEBHOOK_TOKEN': '',
}


def fulfillment_setting(name: str):
    """Return a fulfillment setting, using the app default when unset."""
    overrides = getattr(settings, 'FULFILLMENT', {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
