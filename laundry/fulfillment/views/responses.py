"""
Response helpers shared by the fulfillment views.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from ..exceptions import BusinessException

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    'NOT_FOUND': status.HTTP_404_NOT_FOUND,
    'ALREADY_CLAIMED': status.HTTP_409_CONFLICT,
    'ALREADY_PROCESSED': status.HTTP_409_CONFLICT,
    'STAGE_FROZEN': status.HTTP_409_CONFLICT,
    'INVALID_TRANSITION': status.HTTP_409_CONFLICT,
    'NOT_OWNER': status.HTTP_403_FORBIDDEN,
    'CAPABILITY_DENIED': status.HTTP_403_FORBIDDEN,
    'VALIDATION_ERROR': status.HTTP_400_BAD_REQUEST,
    'DRIVER_UNAVAILABLE': status.HTTP_400_BAD_REQUEST,
    'TRANSIENT_FAILURE': status.HTTP_503_SERVICE_UNAVAILABLE,
}


def success_response(data, http_status=status.HTTP_200_OK) -> Response:
    return Response({
        'success': True,
        'data': data
    }, status=http_status)


def error_response(exc: BusinessException) -> Response:
    """Turn a business error into the API's error envelope."""
    logger.warning(f"{exc.code}: {exc.message}")
    return Response({
        'success': False,
        'error': {
            'code': exc.code,
            'message': exc.message,
            'details': exc.details
        }
    }, status=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST))
