# backend/verifyme/main.py
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import time

from verifyme import __version__, config
from verifyme.database import create_pool, close_pool
from verifyme.errors import VerifyMeError
from verifyme.routers import auth, students, verification, scanner
from verifyme.scanner import OpenCVCamera, ScanDesk
from verifyme.services.verification import RecordView, VerificationService
from verifyme.store import PostgresRecordStore
from verifyme.utils.image_upload import CloudinaryUploader
from verifyme.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


# Lifespan context manager for startup/shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    print("🚀 Starting VerifyMe...")
    pool = await create_pool()
    app.state.pool = pool
    app.state.store = PostgresRecordStore(pool)
    app.state.scan_desk = ScanDesk(
        OpenCVCamera(),
        VerificationService(app.state.store, app.state.record_view),
    )
    print("✅ Database initialized successfully")
    yield
    # Shutdown
    print("🛑 Shutting down...")
    await app.state.scan_desk.close()
    await close_pool(pool)
    print("✅ Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="VerifyMe API",
    description="Student ID registration and QR code verification",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# Records the admin dashboard has seen; kept in step with every status write
app.state.record_view = RecordView()
app.state.uploader = CloudinaryUploader()

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"]
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Exception handlers
@app.exception_handler(VerifyMeError)
async def verifyme_exception_handler(request: Request, exc: VerifyMeError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "message": "Validation error"
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Internal server error",
            "detail": str(exc) if app.debug else "An error occurred"
        }
    )


# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(students.router, prefix="/api")
app.include_router(verification.router, prefix="/api")
app.include_router(scanner.router, prefix="/api")


# Health check endpoint
@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "VerifyMe API",
        "version": __version__,
        "status": "running",
        "docs": "/api/docs"
    }


@app.get("/api/health", tags=["Health"])
async def health_check(request: Request):
    pool = getattr(request.app.state, "pool", None)

    try:
        if pool:
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            db_status = "healthy"
        else:
            db_status = "disconnected"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    desk = getattr(request.app.state, "scan_desk", None)
    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "scanner": desk.pipeline.state.value if desk else "unavailable",
        "timestamp": time.time()
    }


# API Information
@app.get("/api/info", tags=["Information"])
async def api_info():
    return {
        "name": "VerifyMe",
        "version": __version__,
        "features": [
            "Student registration with photo upload",
            "QR code and printable ID card generation",
            "Admin authentication (JWT)",
            "Camera, image and manual QR scanning",
            "Verification status workflow (Pending, Verified, Rejected)",
            "Scan audit logging",
            "Search, filtering and CSV export"
        ],
        "endpoints": {
            "authentication": "/api/auth",
            "students": "/api/students",
            "verification": "/api/verification",
            "scanner": "/api/scanner"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "verifyme.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
