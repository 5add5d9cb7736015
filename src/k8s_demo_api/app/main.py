#!/usr/bin/env python3
import uvicorn

from k8s_demo_api.app.config import get_settings


def main() -> None:
    """Serve the demo API on all interfaces. Uvicorn handles SIGTERM and runs shutdown."""
    settings = get_settings()
    uvicorn.run(
        "k8s_demo_api.fast_api_server:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
