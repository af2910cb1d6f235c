# run_server.py
import faulthandler
import sys
from pathlib import Path

import uvicorn

from finledger.core.config import API_HOST, API_PORT, LOG_LEVEL

# fatal crashes (segfaults in native drivers) land next to the launcher
BASE_DIR = Path(sys.executable).resolve().parent if getattr(sys, "frozen", False) else Path(__file__).resolve().parent
CRASH_LOG = BASE_DIR / "backend_crash.log"


def main():
    with open(CRASH_LOG, "a", encoding="utf-8") as crash_log:
        faulthandler.enable(crash_log)

        # importing main configures logging and registers the routers
        from main import app

        uvicorn.run(app, host=API_HOST, port=API_PORT, reload=False, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
