# Shared configuration and constants for the complaint desk

import os
import logging
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
PACKAGE_DIR = Path(__file__).resolve().parent
_project_dir = PACKAGE_DIR.parent
for _env_path in [PACKAGE_DIR / ".env", _project_dir / ".env", Path.cwd() / ".env"]:
    if _env_path.is_file():
        load_dotenv(_env_path, override=True)
        break
else:
    load_dotenv(override=True)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
DATA_FILE = Path(os.getenv("COMPLAINTDESK_DATA_FILE", str(_project_dir / "data" / "local_storage.json")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SUBMIT_DELAY_SECONDS = float(os.getenv("SUBMIT_DELAY_SECONDS", "0"))
MAX_MEDIA_BYTES = int(os.getenv("MAX_MEDIA_BYTES", str(10 * 1024 * 1024)))
LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
SUBMIT_RATE_LIMIT = os.getenv("SUBMIT_RATE_LIMIT", "20/minute")
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

TEMPLATE_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

# Keys in the local key-value store
USER_KEY = "user"
COMPLAINTS_KEY = "complaints"


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
