from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vetbilling.core.config import settings
from vetbilling.core.database import init_db
from vetbilling.routers import (
    exchange_rate,
    invoices,
    owners,
    patients,
    payment_methods,
    payments,
)

OPENAPI_TAGS = [
    {"name": "Owners", "description": "Pet owners, their credit balance and outstanding debt."},
    {"name": "Patients", "description": "Patients and their outstanding debt."},
    {"name": "Invoices", "description": "Register invoices and apply payments to them."},
    {"name": "Payments", "description": "Query, cancel and summarize payments."},
    {"name": "Payment Methods", "description": "Configure accepted payment methods."},
    {"name": "Exchange Rate", "description": "Current USD to local currency rate."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Invoice settlement API for a veterinary clinic. "
        "Applies dual-currency payments and owner credit to invoices, "
        "cancels payments and reports outstanding debt."
    ),
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(owners.router, prefix="/v1/owners", tags=["Owners"])
app.include_router(patients.router, prefix="/v1/patients", tags=["Patients"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])
app.include_router(
    payment_methods.router,
    prefix="/v1/payment_methods",
    tags=["Payment Methods"],
)
app.include_router(exchange_rate.router, prefix="/v1/exchange_rate", tags=["Exchange Rate"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
