from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from event_manager.config import LOG_LEVEL
from event_manager.database import create_tables, engine
from event_manager.exceptions import DomainError
from event_manager.models import utcnow
from event_manager.routers import attendees, events, speakers
from contextlib import asynccontextmanager
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    logger.info("Creating database tables...")

    await create_tables()
    logger.info("Database tables created.")
    yield
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Database engine disposed.")

app = FastAPI(
    lifespan=lifespan,
    title="Event Management API",
    description="API for managing events, attendee registrations against capacity, and speakers.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


# Domain errors raised by the services carry their own status code
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

# Custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors(), "body": exc.body}),
    )

# Include routers
app.include_router(events.router, prefix="/api/v1")
app.include_router(attendees.router, prefix="/api/v1")
app.include_router(speakers.router, prefix="/api/v1")

@app.get("/", tags=["Root"])
async def read_root():
    return {"message": "Welcome to the Event Management API!"}

@app.get("/health", tags=["Root"])
async def health():
    return {"status": "ok", "timestamp": utcnow().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
