import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kids_scheduler.api import approvals, children, friendships, invitations, parents
from kids_scheduler.config import settings
from kids_scheduler.database import engine
from kids_scheduler.errors import WorkflowError
from kids_scheduler.models.base import Base

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
    yield


app = FastAPI(
    title="Kids Scheduler",
    description="Friend invitations and parental approvals for the Kids Scheduler app",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# REST API routes
app.include_router(parents.router)
app.include_router(children.router)
app.include_router(invitations.router)
app.include_router(approvals.router)
app.include_router(friendships.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "kids-scheduler"}
