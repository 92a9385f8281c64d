import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import dental_clinic.models  # ensure models are registered
from dental_clinic.core.config import CORS_ORIGINS
from dental_clinic.core.logging_config import setup_logging
from dental_clinic.initial_data import init_seed
from dental_clinic.utils.database import engine, Base
from dental_clinic.utils.ledger_engine import LedgerError

from dental_clinic.routers import (
    appointments_router,
    notifications_router,
    patients_router,
    payments_router,
    reports_router,
    settings_router,
)

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Dental Clinic Backend API", version="1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(patients_router.router)
app.include_router(appointments_router.router)
app.include_router(payments_router.router)
app.include_router(notifications_router.router)
app.include_router(reports_router.router)
app.include_router(settings_router.router)


@app.exception_handler(LedgerError)
def ledger_error_handler(request: Request, exc: LedgerError):
    # routers translate ledger errors themselves; this catches any that escape
    logger.error("Unhandled ledger error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)

    logger.info("Running initial database seeding")
    init_seed()
    logger.info("Seeding complete")


@app.get("/")
def root():
    return {"message": "Dental Clinic Backend is running!!"}
