# inventario/core/exceptions.py

from typing import List, Optional


class StockValidationError(Exception):
    """
    Errores de validación local (duplicados, cantidades, stock insuficiente,
    destinatario). Se lanza ANTES de cualquier llamada a la API remota.
    """

    def __init__(self, result):
        self.result = result
        self.errors: List[str] = result.messages()
        super().__init__("La operación contiene errores de validación")


class ExternalApiError(Exception):
    """
    Fallo de la API remota: conexión, respuesta no exitosa o `errors[]`.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.errors = errors or []
        self.status_code = status_code
        super().__init__(message)


class DepartmentError(ValueError):
    pass
