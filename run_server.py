"""Run the Council API with uvicorn (auto-reload on source changes)."""

import os
import socket
import sys

from dotenv import load_dotenv

load_dotenv()

from council.api.config import settings


def is_port_in_use(port):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex(('localhost', port)) == 0


if __name__ == "__main__":
    port = settings.api_port

    if is_port_in_use(port):
        print(f"Port {port} is already in use.")
        print("Stop the process holding it or set API_PORT in .env")
        sys.exit(1)

    print("=" * 80)
    print(f"Starting The Council API: http://{settings.api_host}:{port}")
    print(f"Docs: http://localhost:{port}/docs")
    print("=" * 80)

    import uvicorn

    project_root = os.path.dirname(os.path.abspath(__file__))
    package_dir = os.path.join(project_root, "council")

    try:
        uvicorn.run(
            "council.api.main:app",
            host=settings.api_host,
            port=port,
            log_level=os.getenv("UVICORN_LOG_LEVEL", "info"),
            access_log=True,
            reload=True,
            reload_dirs=[package_dir],
        )
    except KeyboardInterrupt:
        print("\n\nServer stopped")
