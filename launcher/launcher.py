#!/usr/bin/env python3
"""
7 Days to Die Dedicated Server launcher

Used as ExecStartPre of the systemd unit:
    launcher.py update
"""

import sys

from sdtd_launcher.cli import main

if __name__ == "__main__":
    sys.exit(main())
