"""
Main application entry point for DYHE Delivery backend.
Configures FastAPI app and wires up all route modules.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from config import (
    APP_TITLE, APP_VERSION, LOG_LEVEL, ALLOWED_ORIGINS,
    DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD,
)
from database import db, ensure_indexes
from errors import register_error_handlers
from models.enums import Gender, Role, Status
from routes import (
    auth_routes,
    user_routes,
    driver_routes,
    merchant_routes,
    package_routes,
    dashboard_routes,
    report_routes,
    settings_routes,
)
from services.settings_service import SettingsService
from utils.helpers import new_id, now_iso
from utils.security import hash_password

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_default_admin(database) -> bool:
    """Create the default super admin account if no super admin exists"""
    existing_admin = await database.users.find_one({"role": Role.SUPER_ADMIN.value}, {"_id": 0, "id": 1})
    if existing_admin:
        logger.info("Super admin account already exists")
        return False

    timestamp = now_iso()
    user_doc = {
        "id": new_id(),
        "username": DEFAULT_ADMIN_USERNAME,
        "name": "Super Admin",
        "email": DEFAULT_ADMIN_EMAIL,
        "phone": "",
        "password": hash_password(DEFAULT_ADMIN_PASSWORD),
        "gender": Gender.MALE.value,
        "role": Role.SUPER_ADMIN.value,
        "status": Status.ACTIVE.value,
        "created_at": timestamp,
        "updated_at": timestamp,
    }
    await database.users.insert_one(user_doc)

    logger.info(f"Created default super admin account: {DEFAULT_ADMIN_EMAIL}")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("Starting up DYHE Delivery API...")
    await ensure_indexes(db)
    await create_default_admin(db)
    await SettingsService(db).seed_defaults()
    yield
    # Shutdown
    logger.info("Shutting down DYHE Delivery API...")


# Create FastAPI app
app = FastAPI(title=APP_TITLE, version=APP_VERSION, lifespan=lifespan)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all route modules with /api prefix
app.include_router(auth_routes.router, prefix="/api", tags=["Authentication"])
app.include_router(user_routes.router, prefix="/api", tags=["Users"])
app.include_router(driver_routes.router, prefix="/api", tags=["Drivers"])
app.include_router(merchant_routes.router, prefix="/api", tags=["Merchants"])
app.include_router(package_routes.router, prefix="/api", tags=["Packages"])
app.include_router(dashboard_routes.router, prefix="/api", tags=["Dashboard"])
app.include_router(report_routes.router, prefix="/api", tags=["Reports"])
app.include_router(settings_routes.router, prefix="/api", tags=["Settings"])


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": APP_VERSION}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "DYHE Delivery API",
        "version": APP_VERSION,
        "docs": "/docs"
    }


# This block is only used for local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
