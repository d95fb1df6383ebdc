from fastapi import FastAPI

from ecoloop.db import Base, SessionLocal, engine
from ecoloop.api.api_v1.api import api_router
import ecoloop.models
from ecoloop.core.config import settings
from ecoloop.core.logging import setup_logging
from ecoloop.seed_data import seed_task_templates

setup_logging(json_logs=settings.LOG_JSON, log_file=settings.LOG_TO_FILE)

app = FastAPI(title=settings.PROJECT_NAME)

app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def on_startup():
    # Creates the tables (and the sqlite file) when missing
    Base.metadata.create_all(bind=engine)

    if settings.SEED_TASK_TEMPLATES:
        db = SessionLocal()
        try:
            seed_task_templates(db)
        finally:
            db.close()


@app.get("/", tags=["health"])
def read_root():
    return {"message": "ok"}
