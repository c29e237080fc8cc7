from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deepsearch.api.routes import research
from deepsearch.config import settings
from deepsearch.services.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("deepsearch starting")
    yield
    logger.info("deepsearch stopped")


app = FastAPI(
    title="DeepSearch",
    description="Topic research pipeline: deep research reports and summarized web search",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(research.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "deepsearch"}
