"""
CLI runner module.

Provides commands:
- init-config: Write a default config file
- inspect: Show column mapping and date layout for a file
- run: Headless end-to-end import
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
