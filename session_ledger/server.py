"""
Session Ledger HTTP API.

Thin FastAPI surface over LedgerService. Validation lives in the pydantic
schemas; the ledger errors are mapped onto HTTP status codes here.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from session_ledger import config
from session_ledger.errors import NotFound, StoreUnavailable
from session_ledger.schemas import (
    EventCreate,
    EventOut,
    SessionCreate,
    SessionOut,
    SessionWithEvents,
)
from session_ledger.service import LedgerService, open_ledger

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=config.log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(ledger: Optional[LedgerService] = None) -> FastAPI:
    """
    Build the API. Without an explicit ledger one is opened from config at
    startup and dropped at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "ledger", None) is None
        if owned:
            db_path = config.db_path()
            app.state.ledger = open_ledger(db_path, busy_timeout_ms=config.busy_timeout_ms())
            logger.info(f"Ledger database initialized at {db_path}")
        yield
        if owned:
            app.state.ledger = None

    app = FastAPI(
        title="Session Ledger API",
        description="Conversational sessions and their ordered events",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.ledger = ledger

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Store unavailable"},
        )

    _register_routes(app)
    return app


def get_ledger(request: Request) -> LedgerService:
    return request.app.state.ledger


def _register_routes(app: FastAPI) -> None:

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {
            "service": "Session Ledger",
            "version": VERSION,
            "status": "ok"
        }

    @app.get("/health")
    async def health(request: Request):
        """Detailed health check."""
        return {
            "status": "ok" if request.app.state.ledger is not None else "starting",
            "version": VERSION,
        }

    # ==================== Session Endpoints ====================

    @app.post("/sessions", response_model=SessionOut, status_code=status.HTTP_200_OK)
    def create_or_get_session(body: SessionCreate, ledger: LedgerService = Depends(get_ledger)):
        """Create a session, or return the existing one with the same sessionId."""
        session = ledger.create_or_get_session(
            session_id=body.session_id,
            language=body.language,
            status=body.status,
            started_at=body.started_at,
            metadata=body.metadata,
        )
        return session.to_dict()

    @app.post(
        "/sessions/{session_id}/events",
        response_model=EventOut,
        status_code=status.HTTP_201_CREATED,
    )
    def add_event(session_id: str, body: EventCreate, ledger: LedgerService = Depends(get_ledger)):
        """Append an event; repeating an eventId returns the stored event."""
        event = ledger.add_event(session_id, body.event_id, body.type, body.payload)
        return event.to_dict()

    @app.get("/sessions/{session_id}", response_model=SessionWithEvents)
    def get_session(
        session_id: str,
        offset: int = Query(0, ge=0),
        limit: Optional[int] = Query(None, ge=1),
        ledger: LedgerService = Depends(get_ledger),
    ):
        """Get a session with one page of its events, oldest first."""
        if limit is None:
            limit = config.default_page_limit()
        limit = min(limit, config.max_page_limit())
        page = ledger.get_session_with_events(session_id, offset=offset, limit=limit)
        return page.to_dict()

    @app.post("/sessions/{session_id}/complete", response_model=SessionOut)
    def complete_session(session_id: str, ledger: LedgerService = Depends(get_ledger)):
        """Mark a session completed."""
        return ledger.complete_session(session_id).to_dict()


app = create_app()
