"""Startup script for the Clinic Audit API.

Starts uvicorn with host and port from settings. API_WORKERS sets the
worker count.
"""

import os
import signal
import sys

# Add project root to path
sys.path.insert(0, ".")

from api.config import get_settings  # noqa: E402


def start_api() -> None:
    """Start the FastAPI application with uvicorn."""
    settings = get_settings()
    port = os.getenv("PORT", str(settings.api_port))
    workers = os.getenv("API_WORKERS", "1")
    host = settings.api_host

    print(f"Starting API server on {host}:{port} with {workers} worker(s)...")

    # Use exec to replace the current process
    os.execvp(
        "uvicorn",
        [
            "uvicorn",
            "api.main:app",
            "--host",
            host,
            "--port",
            port,
            "--workers",
            workers,
            "--proxy-headers",
            "--forwarded-allow-ips",
            "*",
        ],
    )


def signal_handler(signum: int, _frame: object) -> None:
    """Handle shutdown signals gracefully."""
    print(f"Received signal {signum}, shutting down...")
    sys.exit(0)


def main() -> None:
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)
    start_api()


if __name__ == "__main__":
    main()
