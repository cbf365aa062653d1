#!/usr/bin/env python3
"""
WARP Endpoint Scan CLI - entry point for ``python -m warp_scan``
"""

from warp_scan.cli import main

if __name__ == "__main__":
    main()
