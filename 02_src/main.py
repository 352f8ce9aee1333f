"""Main entry point for the Chat Stream server."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from chatstream.api import create_fastapi_app
from chatstream.app import Application
from chatstream.config import load_settings
from chatstream.logging_config import setup_logging


def main():
    """Run the server."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    settings = load_settings()
    setup_logging(settings.log_level)

    app = create_fastapi_app(Application(settings))

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
