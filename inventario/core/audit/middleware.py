import logging

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
from inventario.core.audit.service import log_audit_event

logger = logging.getLogger(__name__)


class AuditMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            self._audit(request, response.status_code)

        return response

    def _audit(self, request: Request, status_code: int):
        try:
            parts = request.url.path.strip("/").split("/")
            log_audit_event(
                action=request.method,
                endpoint=request.url.path,
                module=parts[0] if parts else "",
                status_code=status_code,
                payload=dict(request.query_params) or None,
                ip_address=request.client.host if request.client else None
            )
        except Exception:
            logger.exception("Error en auditoría")
