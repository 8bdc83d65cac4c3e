#!/usr/bin/env python3
"""Process bootstrap for the motion dashboard.

wsgi.py calls bootstrap(); serving always goes through run_server.py.
"""

import logging
import os
import sys
from pathlib import Path

import firebase_admin
from firebase_admin import credentials

from motion_dashboard.config import load_config
from motion_dashboard.constants import DISPLAY_DATETIME_FORMAT
from motion_dashboard.logging_utils import setup_logging
from motion_dashboard.orchestrator import DashboardOrchestrator

# Console output until setup_logging applies the configured level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt=DISPLAY_DATETIME_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("motion-dashboard")


def _load_version() -> str:
    # version.txt ships beside the package when installed, at the repo root in a checkout
    here = Path(__file__).resolve().parent
    for path in (here / "version.txt", here.parent.parent / "version.txt"):
        if not path.exists():
            continue
        try:
            return path.read_text().strip()
        except OSError:
            logger.warning("Could not read %s", path)
    return "unknown"


def _init_firebase(config: dict) -> None:
    """Create the default firebase_admin app pointed at FIREBASE_DATABASE_URL.

    A service account file is used when FIREBASE_CREDENTIALS names one that
    exists; otherwise Google application default credentials apply.
    """
    try:
        firebase_admin.get_app()
        return
    except ValueError:
        pass  # no default app yet

    database_url = config["FIREBASE_DATABASE_URL"]
    options = {"databaseURL": database_url}
    if project_id := (config.get("FIREBASE_PROJECT_ID") or "").strip():
        options["projectId"] = project_id

    creds_path = (config.get("FIREBASE_CREDENTIALS") or "").strip()
    if creds_path and os.path.isfile(creds_path):
        firebase_admin.initialize_app(credentials.Certificate(creds_path), options)
    else:
        if creds_path:
            logger.warning("Firebase credentials file %s missing; falling back to default credentials", creds_path)
        firebase_admin.initialize_app(options=options)
    logger.info("Firebase app ready for %s", database_url)


def bootstrap() -> tuple[dict, DashboardOrchestrator]:
    """Load config, apply logging, prepare the store SDK and build the orchestrator.

    Nothing is started here; the caller runs start_services().
    """
    config = load_config()
    setup_logging(config.get("LOG_LEVEL", "INFO"))
    logger.info("Motion dashboard version %s", _load_version())

    if config["STORE_BACKEND"] == "firebase":
        _init_firebase(config)

    return config, DashboardOrchestrator(config)


def main():
    logger.error("Start the dashboard with run_server.py; this module only provides bootstrap().")
    sys.exit(1)


if __name__ == "__main__":
    main()
