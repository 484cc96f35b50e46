from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from salon_booking.core.config import settings
from salon_booking.core.database import create_engine, create_schema, create_session_factory
from salon_booking.core.exceptions import DomainException, InternalException, ValidationException
from salon_booking.api import bookings
from salon_booking.core.logger import setup_logging, logger
from salon_booking.services.booking_service import BookingService
from salon_booking.services.booking_store import SqlBookingStore
from salon_booking.services.tenant_directory import build_tenant_directory
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting Salon Booking Engine")
    engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await create_schema(engine)
    store = SqlBookingStore(create_session_factory(engine))
    app.state.booking_service = BookingService(store, build_tenant_directory(settings), settings)
    yield
    # Shutdown
    await engine.dispose()
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

def error_response(status_code: int, error: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})

@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    if exc.status_code >= 500:
        logger.error(f"Server error on {request.method} {request.url.path}: {exc.code}")
    else:
        logger.info(f"Client error on {request.method} {request.url.path}: {exc.code} - {exc.message}")
    return error_response(exc.status_code, exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = ".".join(str(part) for part in errors[0]["loc"][1:]) if errors else None
    return error_response(400, ValidationException("Invalid request payload", field=field).to_dict())

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return error_response(500, InternalException().to_dict())

# Include routers
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Bookings"])

@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": "booking-service",
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now().isoformat()
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("salon_booking.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
