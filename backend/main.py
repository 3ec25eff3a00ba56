# Kingston Parking Backend Service

from fastapi import FastAPI, Query, Depends, Request, Path
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any
from datetime import datetime
from zoneinfo import ZoneInfo
import asyncio
import uuid

from config import get_settings, Settings
from logging_config import setup_logging, get_logger
from exceptions import (
    KingstonParkingException, DataNotFoundException,
    exception_handler, generic_exception_handler
)
from catalog import ParkingCatalog
from chat import classify_question
from geometry import displayed_spot_positions
from models import Coordinates, LocationFilters, LocationKind, LocationView
from monitoring import MetricsMiddleware, chat_questions, metrics_endpoint
from sensors import SensorRelay, apply_sensor_update, run_drift, run_sensor_polling
from status import filter_locations, location_view, sort_most_open_first

# Initialize
settings = get_settings()
setup_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)

# Process-wide state, owned by this module for the lifetime of the service
catalog = ParkingCatalog.seeded()
sensor_relay = SensorRelay()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start background drift and sensor polling; cancel them on shutdown"""
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")
    tasks = []

    if settings.simulate_drift:
        skip = set(settings.sensor_backed_ids)
        tasks.append(asyncio.create_task(run_drift(catalog, settings.drift_interval, skip)))
        logger.info(f"Simulated drift every {settings.drift_interval}s (skipping {sorted(skip)})")

    if settings.sensor_feed_url:
        tasks.append(asyncio.create_task(run_sensor_polling(
            catalog,
            settings.sensor_feed_url,
            settings.sensor_poll_interval,
            set(settings.sensor_backed_ids),
            timeout=settings.sensor_feed_timeout,
        )))

    yield

    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    logger.info(f"Shutting down {settings.api_title}")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    openapi_url=f"{settings.api_prefix}/openapi.json"
)

app.add_exception_handler(KingstonParkingException, exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)

if settings.enable_compression:
    app.add_middleware(GZipMiddleware, minimum_size=1000)

if settings.metrics_enabled:
    app.middleware("http")(MetricsMiddleware())
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID for tracing"""
    request_id = str(uuid.uuid4())

    logger.info(
        f"Request started: {request.method} {request.url.path}",
        extra={"request_id": request_id}
    )

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        f"Request completed: {response.status_code}",
        extra={"request_id": request_id}
    )

    return response


# API models
class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime
    version: str
    locations: int
    available_spots: int
    total_spots: int


class SensorReading(BaseModel):
    """Body posted by an ESP32/Arduino board"""
    model_config = ConfigDict(populate_by_name=True)

    lot_id: str = Field(..., alias="lotId", min_length=1)
    available_spots: int = Field(..., alias="availableSpots")


class ChatRequest(BaseModel):
    question: str = Field(..., max_length=500)
    user_location: Optional[Coordinates] = None
    at: Optional[datetime] = Field(default=None, description="Evaluate against this instant instead of now")


class ChatResponse(BaseModel):
    answer: str
    intent: str


# Dependency injection
def get_catalog() -> ParkingCatalog:
    return catalog


def get_sensor_relay() -> SensorRelay:
    return sensor_relay


async def get_settings_dep() -> Settings:
    return settings


def resolve_instant(at: Optional[datetime], settings: Settings) -> datetime:
    """Requested instant in local time, or the current local time"""
    local_zone = ZoneInfo(settings.timezone)
    if at is None:
        return datetime.now(local_zone)
    # Naive instants are taken as local already
    return at.astimezone(local_zone) if at.tzinfo is not None else at


# API Endpoints
@app.get("/", tags=["General"])
async def root():
    """Root endpoint"""
    return {
        "message": settings.api_title,
        "version": settings.api_version,
        "docs": f"{settings.api_prefix}/docs"
    }


@app.get(
    f"{settings.api_prefix}/health",
    response_model=HealthResponse,
    tags=["General"]
)
async def health_check(catalog: ParkingCatalog = Depends(get_catalog)):
    """Health check endpoint with catalog totals"""
    available, total = catalog.totals()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        version=settings.api_version,
        locations=len(catalog),
        available_spots=available,
        total_spots=total
    )


@app.get(
    f"{settings.api_prefix}/locations",
    response_model=List[LocationView],
    tags=["Parking"],
    summary="List parking locations with live status"
)
async def list_locations(
    kind: Optional[LocationKind] = Query(None),
    free_parking: bool = Query(False),
    ev_charging: bool = Query(False),
    accessible_parking: bool = Query(False),
    min_height_clearance_m: float = Query(0, ge=0, le=5),
    sort: Optional[str] = Query(None, pattern="^most_open$"),
    at: Optional[datetime] = Query(None, description="Evaluate at this instant"),
    catalog: ParkingCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings_dep)
) -> List[LocationView]:
    """Status, price and hours for every location matching the filters"""
    instant = resolve_instant(at, settings)
    filters = LocationFilters(
        kind=kind,
        free_parking=free_parking,
        ev_charging=ev_charging,
        accessible_parking=accessible_parking,
        min_height_clearance_m=min_height_clearance_m,
    )

    locations = filter_locations(catalog, filters, instant)
    if sort == "most_open":
        locations = sort_most_open_first(locations, instant)

    return [location_view(loc, instant) for loc in locations]


@app.get(
    f"{settings.api_prefix}/locations/{{location_id}}",
    response_model=LocationView,
    tags=["Parking"]
)
async def get_location(
    location_id: str = Path(..., min_length=1),
    at: Optional[datetime] = Query(None),
    catalog: ParkingCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings_dep)
) -> LocationView:
    location = catalog.get(location_id)
    if location is None:
        raise DataNotFoundException("Parking location", location_id)
    return location_view(location, resolve_instant(at, settings))


@app.get(
    f"{settings.api_prefix}/locations/{{location_id}}/spots",
    response_model=List[Coordinates],
    tags=["Parking"],
    summary="Open spot markers along a street"
)
async def get_location_spots(
    location_id: str = Path(..., min_length=1),
    at: Optional[datetime] = Query(None),
    catalog: ParkingCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings_dep)
) -> List[Coordinates]:
    """One marker per displayed open spot; empty for lots and closed locations"""
    location = catalog.get(location_id)
    if location is None:
        raise DataNotFoundException("Parking location", location_id)

    view = location_view(location, resolve_instant(at, settings))
    return displayed_spot_positions(location, view.displayed_available)


@app.post(
    f"{settings.api_prefix}/chat",
    response_model=ChatResponse,
    tags=["Chat"],
    summary="Ask a parking question"
)
async def ask_question(
    request: ChatRequest,
    catalog: ParkingCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings_dep)
) -> ChatResponse:
    instant = resolve_instant(request.at, settings)
    intent, answer = classify_question(catalog, request.question, instant, request.user_location)
    chat_questions.labels(intent=intent).inc()
    return ChatResponse(answer=answer, intent=intent)


# Sensor relay: boards POST here, pollers GET the latest readings
@app.post("/api/parking", tags=["Sensors"])
async def post_sensor_reading(
    reading: SensorReading,
    catalog: ParkingCatalog = Depends(get_catalog),
    relay: SensorRelay = Depends(get_sensor_relay)
) -> Dict[str, Any]:
    stored = relay.record(reading.lot_id, reading.available_spots)
    apply_sensor_update(catalog, reading.lot_id, stored)
    return {"ok": True, "lotId": reading.lot_id, "availableSpots": stored}


@app.get("/api/parking", tags=["Sensors"])
async def get_sensor_readings(relay: SensorRelay = Depends(get_sensor_relay)) -> Dict[str, int]:
    return relay.snapshot()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers,
        log_level=settings.log_level.lower()
    )
