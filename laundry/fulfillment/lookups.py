"""
Id lookups that raise the workflow's NotFoundException.
"""

from django.core.exceptions import ValidationError as DjangoValidationError

from .exceptions import NotFoundException


def get_or_not_found(queryset, entity_id, entity_type: str = None):
    """
    Fetch one row by primary key.

    Malformed ids are reported the same way as missing ones.
    """
    entity_type = entity_type or queryset.model.__name__
    try:
        return queryset.get(pk=entity_id)
    except (queryset.model.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundException(entity_type, entity_id)
