from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from vhallway.database import Base, SessionLocal, engine
import vhallway.models  # noqa: F401  # Ensure all SQLAlchemy models are registered
from vhallway.routers import meetings as meetings_router
from vhallway.utils.logging_config import setup_logging

logger = logging.getLogger("vhallway")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized.")
    yield
    logger.info("Application shutdown.")


app = FastAPI(
    title="vhallway",
    description="Cohort formation and ranked topic elections for small-group meetings",
    lifespan=lifespan,
)

app.include_router(meetings_router.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    # Extract just the error messages for a simpler, guaranteed-serializable response
    error_messages = [err["msg"] for err in errors]

    logger.warning(f"Validation error: {error_messages}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": error_messages},
    )


@app.get("/health", tags=["healthcheck"])
async def health_check():
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Health check database connection error: {e}")
        raise HTTPException(
            status_code=503, detail=f"Database connection failed: {str(e)}"
        )
