from pathlib import Path


# Repository root (src/platform/constant -> root)
BASE_DIR = Path(__file__).resolve().parents[3]

# Rotating log files written in DEBUG
LOG_DIR = BASE_DIR / 'logs'
