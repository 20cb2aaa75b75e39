"""
Capability checks for Laundry Fulfillment.

Authentication happens upstream; the workflow only resolves the acting
employee and checks that their role grants the capability at the outlet the
operation touches.
"""

import logging
from enum import Enum

from .exceptions import CapabilityDeniedException
from .lookups import get_or_not_found
from .models import Employee, EmployeeRole

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    CLAIM_JOB = 'CLAIM_JOB'
    PROCESS_STAGE = 'PROCESS_STAGE'
    REQUEST_BYPASS = 'REQUEST_BYPASS'
    RESOLVE_BYPASS = 'RESOLVE_BYPASS'
    RECORD_ITEMS = 'RECORD_ITEMS'


ROLE_CAPABILITIES = {
    EmployeeRole.DRIVER: {Capability.CLAIM_JOB},
    EmployeeRole.WORKER: {Capability.PROCESS_STAGE, Capability.REQUEST_BYPASS},
    EmployeeRole.OUTLET_ADMIN: {Capability.RESOLVE_BYPASS, Capability.RECORD_ITEMS},
}


def get_employee(employee_id) -> Employee:
    """
    Load an employee with their outlet.

    Raises:
        NotFoundException: If no such employee exists
    """
    return get_or_not_found(Employee.objects.select_related('outlet', 'user'), employee_id, "Employee")


def has_capability(employee: Employee, capability: Capability, outlet_id) -> bool:
    if not employee.is_assignable:
        return False
    if str(employee.outlet_id) != str(outlet_id):
        return False
    return capability in ROLE_CAPABILITIES.get(employee.role, set())


def require_capability(employee: Employee, capability: Capability, outlet_id) -> None:
    """
    Check that ``employee`` may exercise ``capability`` at ``outlet_id``.

    Tombstoned employees, and employees of tombstoned outlets, hold no
    capabilities.

    Raises:
        CapabilityDeniedException: If the check fails
    """
    if not has_capability(employee, capability, outlet_id):
        logger.warning(
            f"Capability {capability.value} denied to employee {employee.id} "
            f"({employee.role}) for outlet {outlet_id}"
        )
        raise CapabilityDeniedException(capability.value, outlet_id=outlet_id, employee_id=employee.id)
