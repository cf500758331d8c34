from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from salescoach.api import assessments, coachees, steps, teams, users
from salescoach.models.database import SessionLocal, engine
from salescoach.models import models
from salescoach.utils.rubric import seed_default_rubric

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")
SEED_DEFAULT_DATA = os.getenv("SEED_DEFAULT_DATA", "1").lower() not in ("0", "false", "no")

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create database tables
models.Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if SEED_DEFAULT_DATA:
        db = SessionLocal()
        try:
            created = seed_default_rubric(db)
            if created:
                logger.info("Seeded default rubric with %d behaviors", created)
        finally:
            db.close()
    yield


app = FastAPI(
    title="SalesCoach Assessment API",
    description="API for recording sales coaching sessions and calculating step proficiency levels",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(steps.router, prefix="/api/steps", tags=["steps"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(teams.router, prefix="/api/teams", tags=["teams"])
app.include_router(assessments.router, prefix="/api/assessments", tags=["assessments"])
app.include_router(coachees.router, prefix="/api/coachees", tags=["coachees"])

@app.get("/")
async def root():
    return {"message": "SalesCoach Assessment API", "version": "1.0.0"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
