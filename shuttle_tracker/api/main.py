"""
FastAPI app for the shuttle tracker.

HTTP layer over the store and the compute use cases (clusters, trip health).
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shuttle_tracker.api.router import router
from shuttle_tracker.application.config import ServiceSettings, load_settings
from shuttle_tracker.infrastructure.json_store import JsonPingStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[ServiceSettings] = None,
    store: Optional[JsonPingStore] = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    if store is None:
        store = JsonPingStore(settings.data_file)

    app = FastAPI(
        title="Shuttle Tracker API",
        description="Rider pings, shuttle clusters and trip health",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.store = store
    app.include_router(router, prefix="/api")

    @app.get("/")
    def root():
        """Endpoint raíz"""
        return {"message": "Shuttle Tracker API", "status": "ok"}

    return app


app = create_app()


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings: ServiceSettings = app.state.settings
    app.state.store.initialize()
    params = settings.cluster_params
    logger.info("Using data file: %s", settings.data_file)
    logger.info(
        "Clustering params: radius=%sm, min_size=%d, recent=%s",
        params.radius_m, params.min_cluster_size, params.recent_window,
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


# Bloque para ejecutar con uvicorn
if __name__ == "__main__":
    main()
