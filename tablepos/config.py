import os

DB_PATH = os.getenv("TABLEPOS_DB_PATH")
DATABASE_URL = os.getenv("TABLEPOS_DATABASE_URL") or (
    f"sqlite:///{DB_PATH}" if DB_PATH else "sqlite:///./tablepos.sqlite"
)

TIMEZONE = os.getenv("TABLEPOS_TIMEZONE", "Asia/Ho_Chi_Minh")
LOG_LEVEL = os.getenv("TABLEPOS_LOG_LEVEL", "INFO").upper()
SEED_ON_STARTUP = os.getenv("TABLEPOS_SEED", "1").lower() not in ("0", "false", "no")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("TABLEPOS_CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

HOST = os.getenv("TABLEPOS_HOST", "0.0.0.0")
PORT = int(os.getenv("TABLEPOS_PORT", "5000"))
