"""
Custom permissions for Laundry Fulfillment.

These only gate the API by account type. Outlet scoping and ownership are
checked again by the workflow services for every operation.
"""

import hmac

from rest_framework.permissions import BasePermission

from .conf import fulfillment_setting
from .models import EmployeeRole


def get_request_employee(request):
    """The active Employee behind the request, or None for customers."""
    user = request.user
    if not user or not user.is_authenticated:
        return None
    employee = getattr(user, 'employee', None)
    if employee is None or employee.deleted_at is not None:
        return None
    return employee


class IsEmployee(BasePermission):
    """Allows access only to users with an active employee record."""

    role = None

    def has_permission(self, request, view):
        employee = get_request_employee(request)
        if employee is None:
            return False
        return self.role is None or employee.role == self.role


class IsDriver(IsEmployee):
    role = EmployeeRole.DRIVER


class IsStationWorker(IsEmployee):
    role = EmployeeRole.WORKER


class IsOutletAdmin(IsEmployee):
    role = EmployeeRole.OUTLET_ADMIN


class IsOrderCustomerOrOutletStaff(BasePermission):
    """
    Customers reach their own orders; employees reach orders of their outlet.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        employee = get_request_employee(request)
        if employee is not None:
            return obj.outlet_id == employee.outlet_id
        return obj.customer_id == request.user.id


class HasWebhookToken(BasePermission):
    """Allows the payment provider in with the shared X-Webhook-Token."""

    def has_permission(self, request, view):
        expected = fulfillment_setting('PAYMENT_WEBHOOK_TOKEN')
        provided = request.headers.get('X-Webhook-Token', '')
        if not expected:
            return False
        return hmac.compare_digest(str(expected), str(provided))
