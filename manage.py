#!/usr/bin/env python
"""
Command-line entry point for the quote service.

The settings module follows ENVIRONMENT (development, production or
test) unless DJANGO_SETTINGS_MODULE is set explicitly.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

from django.core.management import execute_from_command_line


def main() -> None:
    """Run a management command (migrate, runserver, createsuperuser, ...)."""
    environment = os.environ.get("ENVIRONMENT", "development")
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", f"core.settings.{environment}")
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
