import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from inventario.core.config import settings
from inventario.core.exceptions import ExternalApiError
from inventario.modules.logistics.quantity import normalize_products
from inventario.modules.logistics.schemas import (
    Department,
    Movement,
    Product,
    QuantityToAdd,
    QuantityToRemove,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class InventoryApiClient:
    """
    Cliente de la API remota de inventario (fuente de verdad del stock).
    Todos los fallos salen como ExternalApiError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout or settings.API_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Error de conexión con %s: %s", url, e)
            raise ExternalApiError("No se pudo conectar con el servidor de inventario") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            logger.error("%s %s -> %s %s", method, url, response.status_code, message)
            raise ExternalApiError(
                message or f"Error HTTP {response.status_code}",
                errors=errors,
                status_code=response.status_code
            )

        if isinstance(body, dict) and body.get("success") is False:
            raise ExternalApiError(
                body.get("message") or "La operación fue rechazada por el servidor",
                errors=body.get("errors"),
                status_code=response.status_code
            )

        return body

    @staticmethod
    def _data(body: Any) -> Any:
        # Algunas respuestas vienen en {"data": ...}, otras directas
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _parse_each(model: Type[T], records: Any) -> List[T]:
        # Un registro mal formado se descarta; no tumba la respuesta entera
        parsed = []
        for raw in records or []:
            try:
                parsed.append(model.model_validate(raw))
            except ValidationError as e:
                logger.warning("%s inválido descartado (%r): %s", model.__name__, raw, e)
        return parsed

    # ===============================
    # PRODUCTS
    # ===============================
    def get_products(self) -> List[Product]:
        return normalize_products(self._request("GET", "/api/products"))

    def update_product(self, product_id: str, data: Dict) -> Dict:
        return self._request("PUT", f"/api/products/{product_id}", json=data)

    def add_quantities(self, items: List[QuantityToAdd]) -> Dict:
        return self._request(
            "POST",
            "/products/add-quantities",
            json={"products": [i.model_dump(by_alias=True) for i in items]}
        )

    def remove_quantities(self, items: List[QuantityToRemove], taken_by: Optional[str] = None) -> Dict:
        payload = {"products": [i.model_dump(by_alias=True) for i in items]}
        if taken_by:
            payload["takenBy"] = taken_by
        return self._request("POST", "/products/remove-quantities", json=payload)

    # ===============================
    # MOVEMENTS
    # ===============================
    def create_movement(self, payload: Dict) -> Dict:
        return self._request("POST", "/api/movements", json=payload)

    def get_movements(
        self,
        type: Optional[str] = None,
        department: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Movement]:
        params = {
            "type": type if type != "all" else None,
            "departmentId": department if department != "all" else None,
            "startDate": start_date,
            "endDate": end_date,
            "page": page,
            "limit": limit or settings.HISTORY_PAGE_LIMIT,
        }
        params = {k: v for k, v in params.items() if v is not None}

        data = self._data(self._request("GET", "/api/movements", params=params))
        return self._parse_each(Movement, data)

    def get_all_movements(
        self,
        type: Optional[str] = None,
        start_date: Optional[str] = None,
        page_size: int = 100
    ) -> List[Movement]:
        """
        Recorre todas las páginas de /api/movements hasta que una venga
        incompleta. Se usa cuando el cálculo necesita el historial entero.
        """
        movements: List[Movement] = []
        page = 1

        while True:
            params = {"page": page, "limit": page_size}
            if type and type != "all":
                params["type"] = type
            if start_date:
                params["startDate"] = start_date

            data = self._data(self._request("GET", "/api/movements", params=params)) or []
            movements.extend(self._parse_each(Movement, data))

            if len(data) < page_size:
                return movements
            page += 1

    def get_statistics(self, period: str = "month") -> Dict:
        body = self._request("GET", "/api/movements/stats/overview", params={"period": period})
        return self._data(body) or {}

    # ===============================
    # DEPARTMENTS
    # ===============================
    def get_departments(self) -> List[Department]:
        data = self._data(self._request("GET", "/api/departments"))
        return self._parse_each(Department, data)

    def create_department(self, payload: Dict) -> Department:
        body = self._request("POST", "/api/departments", json=payload)
        try:
            return Department.model_validate(self._data(body))
        except ValidationError as e:
            logger.error("Respuesta inválida al crear departamento: %s", e)
            raise ExternalApiError("Respuesta inválida del servidor de inventario") from e
