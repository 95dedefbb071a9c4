from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from intake_api.config import settings
from intake_api.database import get_db
from intake_api.logging_config import setup_logging
from intake_api.models import ConversationSession, Tenant
from intake_api.routers import webhook

setup_logging(settings.log_level)

app = FastAPI(
    title="Patient Intake Router",
    description="Routes inbound WhatsApp patient messages to hospital intake conversations",
    version="0.1.0",
    debug=settings.debug,
)

cors_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(webhook.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/db-check")
def db_check(db: Session = Depends(get_db)):
    tenants_count = db.query(Tenant).count()
    conversations_count = db.query(ConversationSession).count()
    return {
        "status": "ok",
        "tenants": tenants_count,
        "conversations": conversations_count,
    }
