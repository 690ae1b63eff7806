"""Order notifications FastAPI application.

The app is built around an existing NotificationService:

    service = NotificationService.build(settings, order_notifications)
    app = create_app(service, sources=build_kafka_sources(settings))

Ingestion over ``sources`` starts with the app. On shutdown ingestion stops
first, then the service drains in-flight deliveries.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from order_notifications.api.routes import router, test_router
from order_notifications.ingestion.source import MessageSource
from order_notifications.service import NotificationService


def create_app(
    service: NotificationService,
    sources: list[MessageSource] | None = None,
    shutdown_service: bool = True,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sources is not None:
            service.start_ingestion(sources)
        yield
        if shutdown_service:
            service.shutdown()
        elif sources is not None:
            service.stop_ingestion()

    app = FastAPI(
        title="Order Notifications API",
        description="E-mail notifications for order lifecycle events",
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.include_router(test_router)

    @app.get("/health")
    async def health():
        ingestion = service.ingestion
        return JSONResponse(
            content={
                "status": "ok",
                "service": "order-notifications",
                "topic": service.settings.order_events_topic,
                "ingesting": ingestion is not None and ingestion.running,
            }
        )

    return app
