# backend/verifyme/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Database Configuration
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", 5432))
DB_NAME = os.getenv("DB_NAME", "verifyme")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASS = os.getenv("DB_PASS", "1234")
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 2))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 10))

# JWT Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "your-super-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Default admin (seeded on first start-up)
DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@verifyme.local")
DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "Admin@123")

# Image hosting (Cloudinary unsigned upload)
CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME", "")
CLOUDINARY_UPLOAD_PRESET = os.getenv("CLOUDINARY_UPLOAD_PRESET", "StudentQr")
CLOUDINARY_API_BASE = os.getenv("CLOUDINARY_API_BASE", "https://api.cloudinary.com/v1_1")
UPLOAD_TIMEOUT_SECONDS = float(os.getenv("UPLOAD_TIMEOUT_SECONDS", 30))
MAX_PHOTO_BYTES = 5 * 1024 * 1024

# Scanner / camera
CAMERA_ENABLED = os.getenv("CAMERA_ENABLED", "true").lower() in ("1", "true", "yes")
CAMERA_REAR_INDEX = int(os.getenv("CAMERA_REAR_INDEX", 0))
CAMERA_FRONT_INDEX = int(os.getenv("CAMERA_FRONT_INDEX", 1))
CAMERA_FRAME_WIDTH = 1280
CAMERA_FRAME_HEIGHT = 720
SCAN_FRAME_INTERVAL = float(os.getenv("SCAN_FRAME_INTERVAL", 0.1))

# Identity used when the authenticated admin has no email on record
UNKNOWN_IDENTITY = "unknown"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes")

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:8080",
    ).split(",")
    if origin.strip()
]

