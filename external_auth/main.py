# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Process entry point for the external auth service."""

import os

import uvicorn

from .api import create_app

app = create_app()


def main() -> None:
    """Run the service with uvicorn."""
    from .logger import create_uvicorn_log_config

    port = int(os.getenv("PORT", "8090"))
    host = os.getenv("HOST", "0.0.0.0")
    log_level = os.getenv("LOG_LEVEL", "INFO")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_config=create_uvicorn_log_config("external-auth", log_level),
        access_log=True,
    )


if __name__ == "__main__":
    main()
