# config.py
"""
Application settings read from the environment (.env supported).

Every value has a development default so the service and the test-suite
run without any configuration.
"""
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

SYSTEM_NAME = os.getenv("SYSTEM_NAME", "MedChain")

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./medledger.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))
WALLET_SIGNATURE_MAX_AGE_SECONDS = int(os.getenv("WALLET_SIGNATURE_MAX_AGE_SECONDS", "300"))

# CORS
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o]

# Blob storage: "local" or "azure"
BLOB_BACKEND = os.getenv("BLOB_BACKEND", "local").lower()
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "uploads"))
AZURE_STORAGE_ACCOUNT = os.getenv("AZURE_STORAGE_ACCOUNT")
AZURE_STORAGE_KEY = os.getenv("AZURE_STORAGE_KEY")
AZURE_STORAGE_CONTAINER = os.getenv("AZURE_STORAGE_CONTAINER", "medical-reports")

# Ledger
LEDGER_APPEND_MAX_ATTEMPTS = int(os.getenv("LEDGER_APPEND_MAX_ATTEMPTS", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
