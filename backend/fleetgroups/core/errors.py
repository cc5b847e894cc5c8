# fleetgroups/core/errors.py
"""
Errores del dominio de grupos de dispositivos.

Cada error lleva un `kind` explícito para que la capa transaccional pueda decidir
si relanzar el error tal cual (validación) o envolverlo en un error genérico.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    INTERNAL = "internal"


class DeviceGroupError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, code: str = "unexpected_error", message: str = "", status_code: int = 500):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {"code": self.code, "error": self.message}


class MembershipValidationError(DeviceGroupError):
    """Los dispositivos solicitados no son elegibles para la operación (HTTP 400)."""
    kind = ErrorKind.VALIDATION

    def __init__(self, code: str = "invalid_input", message: str = "", status_code: int = 400):
        super().__init__(code, message, status_code)


class MembershipUpdateError(DeviceGroupError):
    """Fallo inesperado al aplicar cambios de membresía; la transacción ya fue revertida."""

    def __init__(self, message: str):
        super().__init__("unexpected_error", message, 500)


def error_kind(err: BaseException) -> ErrorKind:
    # Cualquier excepción ajena al dominio se considera interna
    return getattr(err, "kind", ErrorKind.INTERNAL)
