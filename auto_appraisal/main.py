from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from auto_appraisal.config import Settings, settings as default_settings
from auto_appraisal.db.store import RemoteStore
from auto_appraisal.db.supabase_store import SupabaseStore
from auto_appraisal.errors import ClaimNotFound, LoginRequired, StoreError
from auto_appraisal.logging_conf import setup_logging
from auto_appraisal.middleware import RequestContextMiddleware
from auto_appraisal.routes.admin_claims import router as admin_claims_router
from auto_appraisal.routes.assets import router as assets_router
from auto_appraisal.routes.claim_detail import router as claim_detail_router
from auto_appraisal.routes.my_claims import router as my_claims_router
from auto_appraisal.routes.session import router as session_router
from auto_appraisal.services.geocoding import Geocoder

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a store handed to create_app belongs to the caller
    owns_store = app.state.store is None
    if owns_store:
        app.state.store = await SupabaseStore.connect(app.state.settings)
    try:
        yield
    finally:
        if owns_store:
            await app.state.store.close()
            app.state.store = None


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RemoteStore] = None,
    geocoder: Optional[Geocoder] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    app = FastAPI(title="Auto Appraisal", version="0.1.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.store = store
    app.state.geocoder = geocoder or Geocoder.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(LoginRequired)
    async def login_required(request: Request, exc: LoginRequired):
        return RedirectResponse("/login", status_code=303)

    @app.exception_handler(ClaimNotFound)
    async def claim_not_found(request: Request, exc: ClaimNotFound):
        return JSONResponse(status_code=404, content={"detail": f"Claim {exc} not found"})

    @app.exception_handler(StoreError)
    async def store_failed(request: Request, exc: StoreError):
        log.error("store.request_failed", path=request.url.path, code=exc.code, error=exc.message)
        return JSONResponse(status_code=502, content={"detail": exc.message, "code": exc.code})

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    app.include_router(session_router)
    app.include_router(admin_claims_router)
    app.include_router(my_claims_router)
    app.include_router(claim_detail_router)
    app.include_router(assets_router)
    return app


app = create_app()
