"""
Application launchers for the ModredIP services.

This module provides command-line entry points for the Streamlit UI, the
backend API and the standalone Yakoa proxy.

Module Input:
    - Command-line invocation via setuptools entry points

Module Output:
    - Launches the requested server (blocking)

Usage:
    $ modred-app      # Streamlit UI
    $ modred-api      # FastAPI backend
    $ modred-proxy    # Yakoa CORS proxy

    Or directly:
    $ python -m MODRED.app_launcher
"""

import sys
from pathlib import Path


def main():
    """
    Launch the Streamlit application.

    Side Effects:
        - Modifies sys.argv for Streamlit CLI
        - Starts Streamlit server (blocking)
        - Exits with Streamlit's return code

    Raises:
        SystemExit: If Streamlit app not found or launch fails
    """
    import streamlit.web.cli as stcli

    app_path = Path(__file__).parent / "ui" / "streamlit_app.py"

    if not app_path.exists():
        print(f"Error: Streamlit app not found at {app_path}", file=sys.stderr)
        sys.exit(1)

    print(f"Launching ModredIP UI from {app_path}")

    sys.argv = [
        "streamlit",
        "run",
        str(app_path),
        "--server.port=8501",
        "--server.headless=true"
    ]

    sys.exit(stcli.main())


def run_api():
    """Start the backend API with uvicorn."""
    from MODRED.microservices.api import run_server

    run_server()


def run_proxy():
    """Start the Yakoa proxy with uvicorn."""
    from MODRED.microservices.yakoa_proxy import run_proxy as serve

    serve()


if __name__ == "__main__":
    main()
