"""Vercel serverless handler for the Auction House API."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from auctionhouse.serverless import handler  # noqa: E402,F401
