"""Launcher for EnRoute Backup.

Usage:
    python run.py
    python run.py --config config/config.json --select A --mode 1
    python run.py --all-drives --list
"""

import sys

from enroute_backup.cli.backup_cli import main

if __name__ == "__main__":
    sys.exit(main())
