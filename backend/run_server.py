#!/usr/bin/env python3
"""
Start the storefront API.

Applies pending migrations in this process, then hands off to uvicorn.
Pass --reload for a development server that restarts on code changes.
"""
import os
import socket
import sys
import time
import traceback
from pathlib import Path

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)


def is_port_in_use(host, port):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return False
        except OSError:
            return True


def wait_for_port(host, port, attempts=3, delay=3):
    """Give a previous instance a few seconds to release the port."""
    for attempt in range(attempts):
        if not is_port_in_use(host, port):
            return True
        print(f"Port {port} is in use. Retrying in {delay}s ({attempt + 1}/{attempts})...", file=sys.stderr)
        time.sleep(delay)
    return not is_port_in_use(host, port)


if __name__ == "__main__":
    import uvicorn
    from app.core.config import settings
    from scripts.init_db import init_db

    if not wait_for_port(settings.HOST, settings.PORT):
        print(f"ERROR: Port {settings.PORT} is still in use. Another instance may be running.", file=sys.stderr)
        sys.exit(1)

    try:
        init_db()
    except Exception as e:
        print(f"ERROR: Migrations failed: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)

    try:
        uvicorn.run(
            "app.main:app",
            host=settings.HOST,
            port=settings.PORT,
            log_level="debug" if settings.DEBUG else "info",
            access_log=True,
            reload="--reload" in sys.argv[1:],
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")
