# config.py
# All configuration and environment variables live here.
# No hardcoded values anywhere in the services, api_server.py or worker.py

import logging
import os
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent / "data"

# ── Data Sources ──────────────────────────────────────────────────────────────
# Local path or http(s) URL
SALARY_CSV_SOURCE: str = os.getenv(
    "SALARY_CSV_SOURCE", str(_DATA_DIR / "simple_salary_dataset.csv")
)
TRAINING_CSV_SOURCE: str = os.getenv(
    "TRAINING_CSV_SOURCE", str(_DATA_DIR / "jira_export_minimal_HPS_tickets.csv")
)
RESOURCE_TIMEOUT_SECONDS: float = float(os.getenv("RESOURCE_TIMEOUT_SECONDS", "10"))

# ── Triage Rules ──────────────────────────────────────────────────────────────
MIN_DESCRIPTION_LENGTH: int = int(os.getenv("MIN_DESCRIPTION_LENGTH", "20"))
URGENT_DEADLINE_DAYS: int = int(os.getenv("URGENT_DEADLINE_DAYS", "3"))
DEFAULT_TEAM: str = "Triage"

# ── Naive Bayes ───────────────────────────────────────────────────────────────
TRIAGE_LABEL_COLUMN: str = "HPS Triage Class"

# ── Cost of Delay ─────────────────────────────────────────────────────────────
WORKING_DAYS_PER_MONTH: int = 20

# ── Ticket Store ──────────────────────────────────────────────────────────────
TICKET_STORE_BACKEND: str = os.getenv("TICKET_STORE_BACKEND", "memory")   # memory | redis
REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379")
REDIS_TICKETS_KEY: str = "triage:tickets"

# ── Notifications ─────────────────────────────────────────────────────────────
WEBHOOK_URL: str | None = os.getenv("WEBHOOK_URL")          # Slack/Discord
WEBHOOK_TIMEOUT_SECONDS: float = 5.0
NOTIFICATION_SENDER: str = "Ticket Triage System"

# ── Worker ────────────────────────────────────────────────────────────────────
COST_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("COST_SWEEP_INTERVAL_SECONDS", "3600"))

# ── API ───────────────────────────────────────────────────────────────────────
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
