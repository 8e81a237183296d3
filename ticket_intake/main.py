from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from ticket_intake.api.deps import close_field_service_client
from ticket_intake.api.intake import router as intake_router
from ticket_intake.logging import configure_logging
from ticket_intake.telemetry import setup_otel


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_field_service_client()


app = FastAPI(title="Ticket Intake", lifespan=lifespan)

configure_logging()
setup_otel(app)

app.include_router(intake_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.head("/health")
def head_health():
    return Response(status_code=200)


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
