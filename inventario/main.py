import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inventario.core.audit.middleware import AuditMiddleware
from inventario.core.config import settings
from inventario.core.exceptions import DepartmentError, ExternalApiError, StockValidationError
from inventario.core.logging_config import configure_logging
from inventario.modules.logistics.router import router as logistics_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Inventario")

app.add_middleware(AuditMiddleware)

# Registrar routers
app.include_router(logistics_router)


@app.exception_handler(StockValidationError)
def stock_validation_handler(request: Request, exc: StockValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "errors": exc.errors}
    )


@app.exception_handler(DepartmentError)
def department_error_handler(request: Request, exc: DepartmentError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ExternalApiError)
def external_api_handler(request: Request, exc: ExternalApiError):
    logger.warning("API remota falló en %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=502,
        content={
            "detail": "No se pudo completar la operación. Inténtelo de nuevo.",
            "message": exc.message,
            "errors": exc.errors,
        }
    )


@app.get("/")
def root():
    return {"message": "Inventario running"}
