# server/main.py
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional

import dateparser
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tools import tool_get_entries, tool_log_entry, tool_summarize
from tools.errors import InvalidDataFormatError, PersistenceError
from tools.health_schema import to_utc
from tools.log_entry import clamp_symptoms
from tools.service import SymptomLoggingService, build_service
from tools.settings import configure_logging, load_settings

settings = load_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="GutSafe Symptom API", version="0.1.0")
# one service per user so the report cache outlives a single request;
# least recently used sessions are dropped past settings.max_sessions
app.state.services = OrderedDict()
_services_lock = threading.Lock()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,   # using Bearer token; no cookies needed
    allow_methods=["*"],
    allow_headers=["*"],       # includes 'Authorization'
)

if settings.cors_origins == ["*"]:
    logger.warning("CORS is permissive ('*'). This is fine for dev but restrict in production via CORS_ORIGINS.")
else:
    logger.info("CORS allowed origins: %s", settings.cors_origins)

# --- Simple Bearer token auth ---
security = HTTPBearer(auto_error=False)


def auth_guard(creds: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """
    Enforce Bearer token authentication when ``API_TOKEN`` is configured.

    Raises HTTP 401 Unauthorized on a missing or mismatched token.
    """
    if not settings.api_token:
        return True
    if creds is None or creds.scheme.lower() != "bearer" or creds.credentials != settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return True


def get_service(user_id: str = Query(..., description="User identifier")) -> SymptomLoggingService:
    """
    Return the user's service, building and loading it on first use.

    At most ``settings.max_sessions`` services are kept; the least recently
    used one is evicted and reloads from the database on its next request.
    """
    services = app.state.services
    with _services_lock:
        service = services.get(user_id)
        if service is None:
            service = build_service(user_id, settings)
            services[user_id] = service
            while len(services) > settings.max_sessions:
                evicted, _ = services.popitem(last=False)
                logger.info("Evicted symptom service for user %s", evicted)
        else:
            services.move_to_end(user_id)
    return service


@app.exception_handler(PersistenceError)
def _persistence_error(request: Request, exc: PersistenceError):
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# --- Helpers ---
def _parse_when(value: Optional[str], name: str) -> Optional[datetime]:
    """
    Parse an ISO 8601 or natural-language date ("3 days ago") into an aware UTC datetime.

    Raises:
        HTTPException: 400 Bad Request if ``value`` cannot be parsed.
    """
    if not value:
        return None
    dt = dateparser.parse(value)
    if dt is None:
        raise HTTPException(status_code=400, detail=f"Invalid '{name}' datetime format.")
    return to_utc(dt)


def _dump(model) -> Any:
    return model.model_dump(mode="json", by_alias=True)


# --- Routes ---
@app.get("/health")
def health():
    return {"ok": True}


class LogRequest(BaseModel):
    """Entry fields besides ``user_id`` are passed through to the symptom schema."""

    model_config = ConfigDict(extra="allow")

    user_id: str
    symptoms: List[Dict[str, Any]] = Field(min_length=1)


@app.post("/log")
def api_log(payload: LogRequest, _auth=Depends(auth_guard)):
    """Store a new symptom entry and return it."""
    service = get_service(payload.user_id)
    try:
        saved = tool_log_entry(service, payload.model_dump(exclude={"user_id"}))
    except (ValidationError, ValueError, TypeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _dump(saved)


@app.get("/entries")
def api_entries(
    since: Optional[str] = Query(default=None, description="ISO8601 or natural language, UTC assumed if tz missing"),
    until: Optional[str] = Query(default=None),
    food: Optional[str] = Query(default=None, description="Case-insensitive food substring"),
    type: Optional[str] = Query(default=None, description="Symptom type"),
    limit: Optional[int] = Query(default=None, ge=1),
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    """List the user's entries, newest first."""
    try:
        return tool_get_entries(
            service,
            since=_parse_when(since, "since"),
            until=_parse_when(until, "until"),
            food=food,
            symptom_type=type,
            limit=limit,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.patch("/entries/{log_id}")
def api_update_entry(
    log_id: str,
    updates: Dict[str, Any] = Body(...),
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    try:
        if "symptoms" in updates:
            updates = {**updates, "symptoms": clamp_symptoms(updates["symptoms"])}
        updated = service.update_symptom_log(log_id, updates)
    except (ValidationError, ValueError, TypeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not updated:
        raise HTTPException(status_code=404, detail="Entry not found")
    return {"updated": True}


@app.delete("/entries/{log_id}")
def api_delete_entry(
    log_id: str,
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    if not service.delete_symptom_log(log_id):
        raise HTTPException(status_code=404, detail="Entry not found")
    return {"deleted": True}


@app.delete("/entries")
def api_clear_entries(_auth=Depends(auth_guard), service: SymptomLoggingService = Depends(get_service)):
    service.clear_all_data()
    return {"cleared": True}


@app.get("/insights")
def api_insights(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    """Pattern, trend, recommendation and risk analysis for a window (all logs by default)."""
    insights = service.analyze_symptom_patterns(_parse_when(start, "start"), _parse_when(end, "end"))
    return _dump(insights)


@app.get("/report")
def api_report(
    period: str = Query(default="month", pattern="^(week|month|quarter|year)$"),
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    return _dump(service.generate_symptom_report(period))


@app.get("/summary")
def api_summary(
    period: str = Query(default="week", pattern="^(week|month|quarter|year)$"),
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    """Plain-text summary of the period's report."""
    text = tool_summarize(service.generate_symptom_report(period))
    return {"summary": text}


@app.get("/export")
def api_export(_auth=Depends(auth_guard), service: SymptomLoggingService = Depends(get_service)):
    return Response(content=service.export_data(), media_type="application/json")


async def _raw_body(request: Request) -> bytes:
    return await request.body()


@app.post("/import")
def api_import(
    payload: bytes = Depends(_raw_body),
    _auth=Depends(auth_guard),
    service: SymptomLoggingService = Depends(get_service),
):
    """Replace the user's logs with an export document. Nothing changes on a bad payload."""
    try:
        count = service.import_data(payload)
    except InvalidDataFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"imported": count}
