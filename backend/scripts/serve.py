#!/usr/bin/env python3
"""Run the Eco Monitor alerts API with uvicorn."""
from __future__ import annotations

import sys
from pathlib import Path

# Allow running from a source checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from uvicorn import run


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000
    log_level = sys.argv[2] if len(sys.argv) > 2 else "info"
    run("ecomonitor.main:app", host="0.0.0.0", port=port, log_level=log_level)
