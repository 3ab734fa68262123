"""
Configuration module for DYHE Delivery backend.
Handles environment variables and application settings.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# MongoDB Configuration
MONGO_URL = os.environ['MONGO_URL']
DB_NAME = os.environ['DB_NAME']

# Application Settings
APP_TITLE = "DYHE Delivery API"
APP_VERSION = "1.0.0"
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# JWT Settings
JWT_SECRET = os.environ.get('JWT_SECRET', 'change-me-access-secret')
JWT_REFRESH_SECRET = os.environ.get('JWT_REFRESH_SECRET', 'change-me-refresh-secret')
JWT_EXPIRATION = os.environ.get('JWT_EXPIRATION', '15m')
JWT_REFRESH_EXPIRATION = os.environ.get('JWT_REFRESH_EXPIRATION', '7d')
JWT_ALGORITHM = "HS256"

# Password hashing cost
BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', '12'))

# Seeded super admin (created on startup when no SUPER_ADMIN exists)
DEFAULT_ADMIN_USERNAME = os.environ.get('DEFAULT_ADMIN_USERNAME', 'superadmin')
DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', 'admin@dyhe.com')
DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'Admin@123')

# Business timezone used for report day boundaries (Asia/Phnom_Penh)
REPORT_UTC_OFFSET_HOURS = 7

# CORS Settings
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get('CORS_ORIGINS', '*').split(',')
    if origin.strip()
]
