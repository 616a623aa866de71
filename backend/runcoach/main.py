import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from runcoach.api.coach import router as coach_router
from runcoach.api.preferences import router as preferences_router
from runcoach.api.runs import registry
from runcoach.api.runs import router as runs_router
from runcoach.api.sessions import router as sessions_router
from runcoach.core.config import settings
from runcoach.db import Base, engine
from runcoach.models.kv_entry import KVEntry  # noqa: F401  (import ensures table is registered)
from runcoach.models.session import SessionRecord  # noqa: F401
from runcoach.models.session_split import SessionSplit  # noqa: F401
from runcoach.models.session_track import SessionTrack  # noqa: F401

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await registry.close()


app = FastAPI(lifespan=lifespan)

# Allow CORS for local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (sessions, kv, etc.) on startup
Base.metadata.create_all(bind=engine)

app.include_router(runs_router)
app.include_router(sessions_router)
app.include_router(coach_router)
app.include_router(preferences_router)


@app.get("/")
def root():
    return {"message": "RunCoach backend is running"}
