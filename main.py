"""
Entry point for the study scheduler.

Run with:
    python main.py next
    python main.py record Q-ALG-001 --correct --time-ms 42000
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from study_scheduler.cli.main import run

if __name__ == "__main__":
    run()
