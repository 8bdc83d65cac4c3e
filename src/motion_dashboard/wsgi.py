"""Gunicorn application object.

The motion event ring, live status and subscriber registries are process
memory, so a second worker would serve a different dashboard. run_server.py
sets MOTION_DASHBOARD_SINGLE_WORKER=1 alongside ``-w 1``; anything else refuses
to load.
"""

import logging
import os
import signal

from motion_dashboard.main import bootstrap

logger = logging.getLogger("motion-dashboard")

_orchestrator = None


def _on_signal(signum: int, frame) -> None:
    logger.info("Signal %s received; stopping dashboard services", signum)
    if _orchestrator is not None:
        _orchestrator.stop()
    raise SystemExit(0)


def create_application():
    global _orchestrator

    if os.environ.get("MOTION_DASHBOARD_SINGLE_WORKER") != "1":
        raise RuntimeError(
            "Start the dashboard with run_server.py. It must run in a single Gunicorn "
            "worker (-w 1); when launching gunicorn by hand, also export "
            "MOTION_DASHBOARD_SINGLE_WORKER=1."
        )

    _, _orchestrator = bootstrap()
    _orchestrator.start_services()

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, _on_signal)

    return _orchestrator.flask_app


application = create_application()
