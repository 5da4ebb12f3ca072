import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from settlement.core.config import settings
from settlement.core.exceptions import InvariantViolationError
from settlement.routers import cashback, commissions, invoices, periods

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Periods", "description": "Two-week billing periods."},
    {"name": "Invoices", "description": "Generate period invoices and manage their lifecycle."},
    {"name": "Cashback", "description": "Process agent cashback against the ledger."},
    {"name": "Commissions", "description": "Clerk commission reporting."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Settlement of inspection revenue: billing periods, invoices, "
        "agent cashback and clerk commission."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.exception_handler(InvariantViolationError)
async def invariant_violation_handler(
    request: Request, exc: InvariantViolationError
) -> JSONResponse:
    logger.error(
        "Settlement invariant violated on %s %s: %s", request.method, request.url.path, exc
    )
    return JSONResponse(status_code=500, content={"detail": "Settlement invariant violated"})


app.include_router(periods.router, prefix="/v1/periods", tags=["Periods"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(cashback.router, prefix="/v1/cashback", tags=["Cashback"])
app.include_router(commissions.router, prefix="/v1/commissions", tags=["Commissions"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
