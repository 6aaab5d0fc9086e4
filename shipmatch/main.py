from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shipmatch.core.settings import S
from shipmatch.metrics import METRICS_ENABLED, metrics_endpoint, metrics_middleware, set_app_info
from shipmatch.routers.shipment_matching import router as shipment_matching_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

def create_app() -> FastAPI:
    app = FastAPI(title="Shipment Matching Service", version="0.1.0")

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in S.cors_allow_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if METRICS_ENABLED:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics")(metrics_endpoint)

    app.include_router(shipment_matching_router)

    return app

app = create_app()
