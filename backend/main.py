from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from db.database import create_db_and_tables
from routers.companies import router as companies_router
from routers.health import router as health_router
from routers.inventory import router as inventory_router
from routers.reports import router as reports_router
from routers.setup import router as setup_router
from routers.transfer import router as transfer_router
from routers.users import router as admin_users_router
from routers.warehouses import router as warehouses_router
from core.auth import fastapi_users, auth_backend
from core.config import settings
from core.log import get_logger, setup_logging
from contextlib import asynccontextmanager
from schemas.users import UserRead, UserUpdate

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await create_db_and_tables()
    logger.info("Inventory API started")
    yield


app = FastAPI(
    title="Inventory Tracker API",
    description="API for tracking warehouse stock, movements and reports",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Authentication routes (fastapi-users)
app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"],)
app.include_router(fastapi_users.get_users_router(UserRead, UserUpdate), prefix="/users", tags=["users"])

# Administration
app.include_router(setup_router, prefix="/setup", tags=["setup"])
app.include_router(admin_users_router, prefix="/admin/users", tags=["admin"])
app.include_router(companies_router, prefix="/companies", tags=["companies"])

# Inventory routes
app.include_router(warehouses_router, prefix="/warehouses", tags=["warehouses"])
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(transfer_router, prefix="/inventory", tags=["import-export"])
app.include_router(reports_router, prefix="/reports", tags=["reports"])

app.include_router(health_router, prefix="/health", tags=["health"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
