from fastapi import FastAPI

from config import get_config
from database import Base, engine
from intake import IntakeRegistry
from logging_setup import configure_logging
from routes.assessment import router as assessment_router
from routes.session import router as session_router
import models  # noqa: F401  registers the tables on Base.metadata

configure_logging(get_config().logging.level)

app = FastAPI(title="Vocational Assessment API")

# Create tables (the occupations reference table is loaded by a separate job)
Base.metadata.create_all(bind=engine)

# In-progress intake sessions, one machine per session
app.state.intake = IntakeRegistry()

# Routers
app.include_router(assessment_router)
app.include_router(session_router)


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}
