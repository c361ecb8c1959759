import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CORS_ORIGINS, LOG_LEVEL
from database import check_connection, init_db
from errors import MedLedgerError
from routers import auth_router, ledger_router, permissions_router, records_router, users_router

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Database tables created/verified")
    yield


def create_app(create_tables: bool = True) -> FastAPI:
    """Application factory"""
    app = FastAPI(title="MedLedger", lifespan=lifespan if create_tables else None)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MedLedgerError)
    async def domain_error_handler(request: Request, exc: MedLedgerError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.get("/api/health")
    async def health():
        db_ok = await check_connection()
        return {"status": "healthy" if db_ok else "degraded", "database": db_ok}

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(permissions_router)
    app.include_router(records_router)
    app.include_router(ledger_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
