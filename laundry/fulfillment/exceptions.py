"""
Custom exceptions for the Laundry Fulfillment workflow.
"""

from typing import Dict, Any


class BusinessException(Exception):
    """Base exception for business logic errors."""

    def __init__(self, message: str, code: str = "BUSINESS_ERROR", details: Dict[str, Any] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class InvalidTransitionException(BusinessException):
    """Raised when attempting an invalid workflow transition."""

    def __init__(self, current_status: str, attempted_status: str, entity_type: str = "Order"):
        message = f"Invalid transition for {entity_type}: cannot move from {current_status} to {attempted_status}"
        super().__init__(message, "INVALID_TRANSITION", {
            "current_status": current_status,
            "attempted_status": attempted_status,
            "entity_type": entity_type
        })


class AlreadyClaimedException(BusinessException):
    """Raised when a driver tries to claim a job another driver already holds."""

    def __init__(self, job_id, driver_id=None):
        message = f"Transport job {job_id} has already been claimed"
        super().__init__(message, "ALREADY_CLAIMED", {
            "job_id": str(job_id),
            "driver_id": str(driver_id) if driver_id else None,
        })


class NotOwnerException(BusinessException):
    """Raised when an employee acts on a job or stage assigned to someone else."""

    def __init__(self, entity_type: str, entity_id, employee_id):
        message = f"{entity_type} {entity_id} is not assigned to employee {employee_id}"
        super().__init__(message, "NOT_OWNER", {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "employee_id": str(employee_id),
        })


class StageFrozenException(BusinessException):
    """Raised when a stage is frozen by a pending bypass request."""

    def __init__(self, stage_id, bypass_id=None):
        message = f"Work stage {stage_id} is frozen by a pending bypass request"
        super().__init__(message, "STAGE_FROZEN", {
            "stage_id": str(stage_id),
            "bypass_id": str(bypass_id) if bypass_id else None,
        })


class AlreadyProcessedException(BusinessException):
    """Raised when a bypass request has already been approved or rejected."""

    def __init__(self, bypass_id, status: str):
        message = f"Bypass request {bypass_id} has already been processed ({status})"
        super().__init__(message, "ALREADY_PROCESSED", {
            "bypass_id": str(bypass_id),
            "status": status,
        })


class NotFoundException(BusinessException):
    """Raised when an id does not resolve to a record."""

    def __init__(self, entity_type: str, entity_id):
        message = f"{entity_type} {entity_id} not found"
        super().__init__(message, "NOT_FOUND", {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
        })


class ValidationException(BusinessException):
    """Raised when data validation fails."""

    def __init__(self, message: str, field_errors: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", field_errors or {})


class CapabilityDeniedException(BusinessException):
    """Raised when an employee lacks a capability for the outlet they act on."""

    def __init__(self, capability: str, outlet_id=None, employee_id=None):
        message = f"Employee {employee_id} lacks capability {capability} for outlet {outlet_id}"
        super().__init__(message, "CAPABILITY_DENIED", {
            "capability": capability,
            "outlet_id": str(outlet_id) if outlet_id else None,
            "employee_id": str(employee_id) if employee_id else None,
        })


class DriverUnavailableException(BusinessException):
    """Raised when a driver is busy or holds too many jobs to claim another."""

    def __init__(self, driver_id, reason: str):
        super().__init__(f"Driver {driver_id} cannot claim a job: {reason}", "DRIVER_UNAVAILABLE", {
            "driver_id": str(driver_id),
            "reason": reason,
        })


class TransientFailureException(BusinessException):
    """Raised when a storage failure persists after the bounded retries."""

    def __init__(self, operation: str, attempts: int, error: str = ""):
        message = f"{operation} failed after {attempts} attempts: {error}"
        super().__init__(message, "TRANSIENT_FAILURE", {
            "operation": operation,
            "attempts": attempts,
        })
