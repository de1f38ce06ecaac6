import os
import logging
from dotenv import load_dotenv

load_dotenv()

# ── Remote job runner ─────────────────────────────────────────────────────────
RUNNER_URL = os.getenv("RUNNER_URL", "").rstrip("/")
RUNNER_API_KEY = os.getenv("RUNNER_API_KEY", "")
# Empty means no client-side timeout (the remote call may then never settle)
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT")) if os.getenv("REQUEST_TIMEOUT") else None

# ── File Paths ─────────────────────────────────────────────────────────────────
OUTPUT_DIR = "output"

# ── Behavior ──────────────────────────────────────────────────────────────────
MAX_RESULT_LIMIT = 100
DEFAULT_RESULT_LIMIT = int(os.getenv("DEFAULT_RESULT_LIMIT", "20"))
PROGRESS_QUEUE_SIZE = int(os.getenv("PROGRESS_QUEUE_SIZE", "32"))
JOB_LIST_LIMIT = int(os.getenv("JOB_LIST_LIMIT", "20"))
# Artificial latency inside the runner, in seconds (the original service slept 2s)
RUNNER_SIMULATED_DELAY = float(os.getenv("RUNNER_SIMULATED_DELAY", "0"))

# ── Server ────────────────────────────────────────────────────────────────────
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]


def validate_config():
    missing = []
    if not RUNNER_URL:
        missing.append("RUNNER_URL")
    if not RUNNER_API_KEY:
        missing.append("RUNNER_API_KEY")
    if missing:
        logging.warning(f"Missing environment variables: {', '.join(missing)}")
    return missing


def validate_server_config():
    """Settings the job API itself depends on; the runner URL/key belong to the client."""
    missing = []
    if not CORS_ORIGINS:
        missing.append("CORS_ORIGINS")
    if missing:
        logging.warning(f"Missing environment variables: {', '.join(missing)}")
    return missing
