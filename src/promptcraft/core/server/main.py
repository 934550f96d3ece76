"""PromptCraft server entry point — ``python -m promptcraft.core.server.main``.

Serves Streamable HTTP on a loopback address by default. Set
``PROMPTCRAFT_TRANSPORT=stdio`` to run as a subprocess of an MCP client.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from promptcraft.core.config.settings import Settings, get_settings
from promptcraft.core.server.app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_bind(settings: Settings) -> None:
    if settings.promptcraft_transport == "stdio" or settings.promptcraft_allow_insecure_bind:
        return
    if not _is_loopback_host(settings.promptcraft_host):
        raise RuntimeError(
            f"Refusing to bind PromptCraft server to non-loopback host "
            f"{settings.promptcraft_host!r}: the MCP endpoint has no auth layer. "
            "Set PROMPTCRAFT_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )


def run() -> None:
    """Validate the bind address, build the app and serve it."""
    settings = get_settings()
    # Logs go to stderr, which keeps stdout free for the stdio transport.
    logging.basicConfig(
        level=getattr(logging, settings.promptcraft_log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    _check_bind(settings)

    mcp = create_app()
    if settings.promptcraft_transport == "stdio":
        logger.info("Starting PromptCraft server on stdio")
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting PromptCraft server on http://%s:%d",
        settings.promptcraft_host,
        settings.promptcraft_port,
    )
    mcp.run(
        transport="streamable-http",
        host=settings.promptcraft_host,
        port=settings.promptcraft_port,
    )


if __name__ == "__main__":
    run()
