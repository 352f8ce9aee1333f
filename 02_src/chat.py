"""Entry point for the Chat Stream console client."""

import asyncio
from pathlib import Path

from dotenv import load_dotenv

from chatstream.client import run_console
from chatstream.config import load_settings
from chatstream.logging_config import setup_logging


def main():
    """Run the console client."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    settings = load_settings()
    setup_logging(settings.log_level, console=False)

    try:
        asyncio.run(run_console(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
