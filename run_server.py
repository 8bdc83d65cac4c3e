#!/usr/bin/env python3
"""Start the motion dashboard under Gunicorn.

Binds to FLASK_HOST:FLASK_PORT from the loaded config and replaces this
process with one Gunicorn worker, so container signals reach Gunicorn directly.
"""

import os
import sys

if __name__ == "__main__":
    _src = os.path.join(os.path.dirname(os.path.abspath(__file__)), "src")
    if os.path.isdir(_src) and _src not in sys.path:
        sys.path.insert(0, _src)

from motion_dashboard.config import load_config

# Each open SSE stream occupies one thread for as long as the browser stays connected
WORKER_THREADS = 16
APP_MODULE = "motion_dashboard.wsgi:application"


def gunicorn_argv(host: str, port: int) -> list[str]:
    return [
        sys.executable, "-m", "gunicorn",
        "--bind", f"{host}:{port}",
        "--workers", "1",
        "--threads", str(WORKER_THREADS),
        "--timeout", "0",
        "--capture-output",
        "--enable-stdio-inheritance",
        APP_MODULE,
    ]


def main() -> None:
    config = load_config()
    os.environ["MOTION_DASHBOARD_SINGLE_WORKER"] = "1"
    argv = gunicorn_argv(config.get("FLASK_HOST", "0.0.0.0"), config.get("FLASK_PORT", 5055))
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
