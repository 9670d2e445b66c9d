import json
import logging

audit_logger = logging.getLogger("inventario.audit")


def log_audit_event(
    *,
    action: str,
    endpoint: str,
    module: str,
    status_code: int,
    payload: dict | None = None,
    ip_address: str | None
):
    """
    Registro de auditoría de las operaciones que modifican stock.
    La persistencia la hace la API remota; aquí solo queda en el log.
    """
    audit_logger.info(
        json.dumps({
            "action": action,
            "endpoint": endpoint,
            "module": module,
            "status_code": status_code,
            "payload": payload,
            "ip_address": ip_address,
        }, ensure_ascii=False)
    )
