"""
Main API application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from api.exam_api import router as exam_router
from api.shared import cache_status, clear_cache, load_reference_data, load_skill_catalog

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting server - loading reference data from %s", config.DATA_DIR)

    reference_data = await load_reference_data()
    logger.info("Reference data ready for years %s", sorted(reference_data.positions))

    skill_catalog = await load_skill_catalog()
    logger.info("Loaded %d skill descriptions", len(skill_catalog))

    logger.info("Server is ready")

    yield

    # Shutdown
    logger.info("Shutting down server...")
    clear_cache()


app = FastAPI(
    title="Simulado TRI API",
    description="API to generate ENEM practice exams and score them with TRI",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(exam_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Simulado TRI API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    status = cache_status()
    return {"status": "degraded" if status["degraded"] else "healthy", **status}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
