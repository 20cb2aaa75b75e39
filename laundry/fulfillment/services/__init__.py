"""
Laundry Fulfillment Services
"""

from .workflow import validate_order_workflow, validate_job_workflow, transition_order
from .order_service import OrderService
from .pricing_service import PricingService
from .payment_service import PaymentService
from .job_service import JobService
from .stage_service import StageService
from .bypass_service import BypassService
from .sweep_service import sweep_overdue_orders
from .orchestrator import WorkflowOrchestrator, orchestrator

__all__ = [
    # Workflow validators
    'validate_order_workflow', 'validate_job_workflow', 'transition_order',

    # Services
    'OrderService', 'PricingService', 'PaymentService', 'JobService',
    'StageService', 'BypassService', 'sweep_overdue_orders',

    # Entry point
    'WorkflowOrchestrator', 'orchestrator',
]
