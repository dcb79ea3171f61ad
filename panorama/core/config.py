"""
Application settings.

All values are read once from the environment (a local ``.env`` file is
loaded first) and exposed as module-level constants.

Environment variables:
    - MONGODB_URI: MongoDB connection string (default: mongodb://localhost:27017)
    - MONGODB_DB: Database name (default: edc_panorama)
    - SECRET_KEY: Key used to sign bearer tokens
    - ACCESS_TOKEN_MINUTES: Bearer token lifetime (default: 480)
    - GEMINI_API_KEY: Key for the generative AI endpoint
    - GEMINI_MODEL: Model name (default: gemini-2.5-flash)
    - GEMINI_API_URL: Base URL of the generative AI REST API
    - COMPANY_NAME: Company name used when no configuration is stored
    - DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD: Seeded administrator account
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ------------------------------------------------------------------------------
# Database
# ------------------------------------------------------------------------------

MONGO_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGODB_DB", "edc_panorama")

# ------------------------------------------------------------------------------
# Authentication
# ------------------------------------------------------------------------------

# HS256 keys shorter than 32 bytes are flagged as insecure by PyJWT.
SECRET_KEY = os.getenv("SECRET_KEY", "edc-panorama-development-secret-change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_MINUTES = int(os.getenv("ACCESS_TOKEN_MINUTES", "480"))

MAX_FAILED_LOGINS = 5
LOCKOUT_MINUTES = 15

DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@edc.cm")
DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")

# ------------------------------------------------------------------------------
# Generative AI
# ------------------------------------------------------------------------------

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_TIMEOUT_SECONDS = 60.0

# ------------------------------------------------------------------------------
# Inventory
# ------------------------------------------------------------------------------

COMPANY_NAME = os.getenv("COMPANY_NAME", "EDC Panorama")

ITEMS_PER_PAGE = 50
LOG_WINDOW = 100
DELETE_CHUNK_SIZE = 450
