"""Office check-in launcher.

Command to run:
    python3 -m venv .venv && . .venv/bin/activate
    pip install -e .
    python -m playwright install chromium
    python main.py --employee emp-1

Environment variables are read from .env (create a template with --init-env).
"""

import pathlib
import sys

SRC_PATH = pathlib.Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from office_checkin.cli import main

if __name__ == "__main__":
    sys.exit(main())
