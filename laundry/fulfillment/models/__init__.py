"""
Laundry Fulfillment Models
"""

from .outlet import Outlet, Employee, EmployeeRole, LaundryItem, PricingType
from .order import Order, OrderItem, OrderStatus, PaymentStatus
from .work_stage import WorkStage, StageType, STAGE_SEQUENCE
from .transport import TransportJob, TransportJobKind, TransportJobStatus, ACTIVE_JOB_STATUSES
from .bypass import BypassRequest, BypassStatus
from .audit import AuditLog, Notification, RecipientRole

__all__ = [
    # Outlet and staff
    'Outlet', 'Employee', 'EmployeeRole', 'LaundryItem', 'PricingType',

    # Orders
    'Order', 'OrderItem', 'OrderStatus', 'PaymentStatus',

    # Stations
    'WorkStage', 'StageType', 'STAGE_SEQUENCE',

    # Transport
    'TransportJob', 'TransportJobKind', 'TransportJobStatus', 'ACTIVE_JOB_STATUSES',

    # Bypass
    'BypassRequest', 'BypassStatus',

    # Audit and notifications
    'AuditLog', 'Notification', 'RecipientRole',
]
