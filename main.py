"""Campaign Sim - launcher. Loads .env from the repo root, then runs the CLI."""

import sys
from pathlib import Path

from dotenv import load_dotenv

from campaign_sim.cli import main

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")


if __name__ == "__main__":
    sys.exit(main())
