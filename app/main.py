# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from core.config import settings
from core.errors import AppError, ErrorCode, PartialLinkError, ProviderError
from core.logger import logger
from api.deps import Services
from api.users import router as users_router
from api.invite import router as invite_router
from api.account import router as account_router
from api.companies import router as companies_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = getattr(app.state, "services", None) is None
    if owned:
        app.state.services = Services.from_settings(settings)
        logger.info("Provider clients initialized")
    try:
        yield
    finally:
        if owned:
            app.state.services.close()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, ProviderError):
        logger.error(
            "Provider call failed",
            exc_info=exc,
            extra={"meta": {"provider": exc.provider, "detail": exc.detail, "path": request.url.path}},
        )
    elif isinstance(exc, PartialLinkError):
        logger.error(
            "Invite created an unlinked account",
            extra={"user_id": exc.account_id, "tenant_id": exc.company_id, "meta": {"detail": exc.detail}},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "error": "Requisição inválida.",
            "code": ErrorCode.VALIDATION_ERROR.value,
            "meta": {"fields": fields},
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"meta": {"path": request.url.path}})
    return JSONResponse(
        status_code=500,
        content={"error": "Erro interno do servidor.", "code": ErrorCode.INTERNAL_ERROR.value},
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Painel Empresas API", version="1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health", response_class=PlainTextResponse)
    def health():
        return "ok"

    app.include_router(users_router)
    app.include_router(invite_router)
    app.include_router(account_router)
    app.include_router(companies_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)
