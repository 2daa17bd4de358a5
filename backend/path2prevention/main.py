"""FastAPI application entrypoint for the Path2Prevention backend.

Sets up the application, middleware and routes and provides a lifespan
context manager that initializes the database on startup and disposes the
engine on shutdown.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from api.routes.admin import router as admin_router
from api.routes.assessments import router as assessments_router
from api.routes.chat import router as chat_router
from api.routes.programs import router as programs_router
from api.routes.tasks import router as tasks_router
from config.config import settings
from core.logging import logger
from db.session import engine, initialize_database
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

SERVICE_NAME = "CDC: Path2Prevention API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context to run startup and shutdown routines.

    On startup this will attempt to initialize database extensions and
    metadata tables, retrying a few times if the DB isn't ready yet. When
    the database never comes up the app still starts and the read
    endpoints answer from fallback data.

    Yields:
        None: Control is returned to FastAPI while the app is running.
    """

    logger.info("Starting up")

    max_retries = 5
    for attempt in range(max_retries):
        try:
            logger.info("Initializing database tables if not exist")
            await initialize_database()
            logger.info("Database tables created successfully")
            break
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(
                    "Database connection attempt {} failed: {}. Retrying..",
                    attempt + 1,
                    e,
                )
                await asyncio.sleep(2)
            else:
                logger.error(
                    "Failed to initialize database after {} attempts, "
                    "serving fallback data",
                    max_retries,
                )

    yield

    logger.info("Shutting down")
    await engine.dispose()


app = FastAPI(lifespan=lifespan, title=SERVICE_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/api/hello")
async def hello():
    return JSONResponse(
        {"message": f"Hello from {SERVICE_NAME}!", "timestamp": _now()}
    )


@app.get("/api/health")
async def health():
    """Return a simple health check response.

    Returns:
        JSONResponse: A JSON object signalling the backend is reachable.
    """

    return JSONResponse(
        {"status": "OK", "service": SERVICE_NAME, "timestamp": _now()}
    )


app.include_router(programs_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(tasks_router, prefix="/api")
app.include_router(assessments_router, prefix="/api")
app.include_router(chat_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=3006, reload=True)
