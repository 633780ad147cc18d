# ============================================
#     RoomRelay — Global Configuration
# ============================================

import os

# =========================================
#   ENVIRONMENT
# =========================================
# Expected values: "dev", "prod"
ENV = os.getenv("ENV", "dev").lower()

IS_PROD = ENV == "prod"

# =========================================
#   PATHS
# =========================================
# Project root = one level above /relay
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DATA_DIR = (
    os.getenv("RELAY_DATA_DIR")
    or ("/var/data" if IS_PROD else os.path.join(PROJECT_ROOT, "var", "data"))
)

# Uploaded files (served back under /uploads/<name>)
UPLOAD_DIR = os.getenv("RELAY_UPLOAD_DIR") or os.path.join(DATA_DIR, "uploads")

# Client bundle (index.html, js, css)
STATIC_DIR = os.getenv("RELAY_STATIC_DIR") or os.path.join(PROJECT_ROOT, "public")

# Logs
LOG_DIR = os.path.join(DATA_DIR, "logs")
DEFAULT_LOG_FILE = os.path.join(LOG_DIR, "relay.log")
LOG_FILE = os.getenv("RELAY_LOG_FILE", DEFAULT_LOG_FILE)

# Ensure folders exist at startup
os.makedirs(UPLOAD_DIR, exist_ok=True)
os.makedirs(os.path.dirname(LOG_FILE) or LOG_DIR, exist_ok=True)

# =========================================
#   SERVER
# =========================================
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("SERVER_PORT") or os.getenv("PORT") or 3000)

CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")

# =========================================
#   GENERAL PARAMETERS
# =========================================
PUBLIC_ROOM = "public"          # Sentinel id of the global room
HISTORY_LIMIT = 100             # Max messages kept per room (and for public)
JOIN_DEBOUNCE_SECONDS = 2.0     # Window for suppressing repeated join announcements
CLEANUP_INTERVAL_SECONDS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "30"))
MAX_UPLOAD_BYTES = 50 * 1024 * 1024

# =========================================
#   CONNECTION FLAGS (literal string contract)
# =========================================
# Query values are compared as strings, exactly:
#   private=1    → private flag
#   creating=1   → room creator, access checks skipped
#   pass_need    → anything except "false" (or empty) means password required
FLAG_ON = "1"
PASS_NEED_OFF = "false"

# =========================================
#   AUTH FAILURE REASONS (clients branch on these)
# =========================================
AUTH_NEED_PASSWORD = "need_password"
AUTH_ROOM_NOT_FOUND = "房間不存在"
AUTH_WRONG_PASSWORD = "密碼錯誤"
