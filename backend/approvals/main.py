"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from approvals.config import settings
from approvals.database import Base, engine
from approvals.errors import ValidationError

# Import routers
from approvals.routers import leaves, career_requests, lab_bookings, research, audit

# Import all models so Base.metadata knows about them
from approvals.models.leave import LeaveRequest                 # noqa: F401
from approvals.models.career import CareerMovementRequest       # noqa: F401
from approvals.models.lab_booking import LabBooking             # noqa: F401
from approvals.models.research import ResearchAxis, ResearchTopic, ResearchProposal  # noqa: F401
from approvals.models.audit_entry import AuditEntry             # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Department Approvals",
    description="Request-approval core: leave, career movement, lab booking and research proposal workflows",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(leaves.router, prefix="/api/leaves", tags=["Leaves"])
app.include_router(career_requests.router, prefix="/api/career-requests", tags=["CareerRequests"])
app.include_router(lab_bookings.router, prefix="/api/lab-bookings", tags=["LabBookings"])
app.include_router(research.router, prefix="/api/research", tags=["Research"])
app.include_router(audit.router, prefix="/api/audit", tags=["Audit"])


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies use the same detail shape as service-level ValidationError."""
    errors = jsonable_encoder(exc.errors())
    fields = [".".join(str(p) for p in err["loc"] if p != "body") for err in errors]
    logger.info("Rejected malformed request to %s: %s", request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": {
            "error": ValidationError.kind,
            "message": f"Invalid request fields: {', '.join(fields)}",
            "errors": errors,
        }},
    )


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
