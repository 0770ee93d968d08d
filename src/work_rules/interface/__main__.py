"""
Run the work-rules CLI.

Usage:
    python -m work_rules.interface <command> [options]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
