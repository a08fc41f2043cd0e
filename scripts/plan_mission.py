#!/usr/bin/env python3
"""
Plan a photogrammetry mission from a configuration file
"""

import sys
import os

# Add parent directory to path for imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from photoplan.planner import main


if __name__ == "__main__":
    # Example usage:
    # python scripts/plan_mission.py --config config/mission_config.yaml --pattern orbit
    sys.exit(main())
