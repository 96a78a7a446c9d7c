from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class ValidationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Datos invalidos."
    default_code = "invalid"


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "La operacion no es valida para el estado actual."
    default_code = "conflict"


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Registro no encontrado."
    default_code = "not_found"


class ConfigurationError(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "No existe una configuracion de pago aplicable."
    default_code = "configuration_error"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(response.data, dict):
        detail = response.data.get("detail", "Request failed")
        fields = {k: v for k, v in response.data.items() if k != "detail"}
    else:
        detail = "Request failed"
        fields = {}

    response.data = {
        "code": getattr(exc, "default_code", "error"),
        "detail": detail,
        "fields": fields,
    }
    return response
