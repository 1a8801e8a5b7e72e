"""Main entry point for Debt Tracker."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from debt_tracker.api import create_fastapi_app
from debt_tracker.api.routes import control
from debt_tracker.config import api_address
from debt_tracker.logging_config import setup_logging
from sim import Sim


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    api_host, api_port = api_address()
    api_url = f"http://{api_host}:{api_port}"

    # Set SIM instance for control router
    control.set_sim_instance(Sim(api_url=api_url))

    app = create_fastapi_app()

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
