from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from .api import ROUTERS
from .api.deps import get_executor
from .auditor_executor import AuditorExecutor
from .settings import Settings, get_settings

log = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    executor: Optional[AuditorExecutor] = None,
    clock: Optional[Callable[[], int]] = None,
) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.logging.level, logging.INFO),
        format=settings.logging.format,
    )

    app = FastAPI(title="Auditor Node API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.executor = executor or AuditorExecutor.from_settings(settings, clock=clock)

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health")
    def health(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
        return ex.health()

    @app.get("/events")
    def events(
        limit: int = Query(100, ge=0, le=1000),
        ex: AuditorExecutor = Depends(get_executor),
    ) -> Dict[str, Any]:
        items = ex.events(limit)
        return {"count": len(items), "events": items}

    @app.get("/audit/stake")
    def stake_audit(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
        return ex.stake_audit()

    log.info(
        "auditor api ready program=%s persistence=%s",
        settings.node.program_account,
        settings.persistence.enabled,
    )
    return app
