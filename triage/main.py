"""Main FastAPI application entry point."""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from triage import config
from triage.database import Base, SessionLocal
from triage.api.routes import router
from triage.api.schemas import ErrorResponse
from triage.logging_config import init_logging
# Import models to register them with SQLAlchemy Base
from triage.models.domain import Complaint, Notification
from triage.models.audit import AuditLogEntry
from triage.services.classifier import Classifier
from triage.services.feed import SnapshotFeed, FeedUnavailableError
from triage.services.lifecycle import LifecycleEngine
from triage.store import ComplaintStore, StoreWriteError


def create_app(session_factory=SessionLocal, classifier: Classifier = None) -> FastAPI:
    """Wire store, feed and lifecycle engine into a FastAPI app."""
    # Create database tables
    Base.metadata.create_all(bind=session_factory.kw["bind"])

    app = FastAPI(
        title="Complaint Triage",
        description="Intake, AI triage and tracking of municipal complaints, with public statistics.",
        version="0.1.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = ComplaintStore(session_factory)
    feed = SnapshotFeed(store).open()
    app.state.store = store
    app.state.feed = feed
    app.state.lifecycle = LifecycleEngine(feed, classifier or Classifier())

    @app.exception_handler(FeedUnavailableError)
    def feed_unavailable(request: Request, exc: FeedUnavailableError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ErrorResponse(message=exc.message).model_dump()
        )

    @app.exception_handler(StoreWriteError)
    def store_write_failed(request: Request, exc: StoreWriteError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ErrorResponse(message=exc.message).model_dump()
        )

    # Include API routes
    app.include_router(router, prefix="/api", tags=["Complaints"], responses={
        503: {"model": ErrorResponse, "description": "Complaint store unavailable"}
    })

    # Health check
    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "Complaint Triage"}

    return app


init_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
