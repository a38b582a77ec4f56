"""Run the login service under uvicorn.

uvicorn handles SIGINT/SIGTERM and drains in-flight requests before exit.
"""
import uvicorn

from .config import load_settings
from .main import create_app


def main() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port,
                log_config=None)


if __name__ == "__main__":
    main()
