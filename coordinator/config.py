"""Configuration settings for the Coordinator server."""

import os
from common.constants import COORDINATOR_PORT, SESSION_TTL_SECONDS, SESSION_SWEEP_INTERVAL_SECONDS


DATABASE_PATH = os.environ.get("PEERSHARE_DATABASE_PATH", "./data/coordinator.db")

COORDINATOR_HOST = os.environ.get("PEERSHARE_COORDINATOR_HOST", "0.0.0.0")

COORDINATOR_PORT = int(os.environ.get("PEERSHARE_COORDINATOR_PORT", str(COORDINATOR_PORT)))

SESSION_TTL = int(os.environ.get("PEERSHARE_SESSION_TTL_SECONDS", str(SESSION_TTL_SECONDS)))

SESSION_SWEEP_INTERVAL = int(
    os.environ.get("PEERSHARE_SESSION_SWEEP_INTERVAL", str(SESSION_SWEEP_INTERVAL_SECONDS))
)
