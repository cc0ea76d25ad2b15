"""Entry point for the RemoteOps MCP server."""

import logging

from remoteops.dependencies import Dependencies
from remoteops.server import configure_logging, create_server

logger = logging.getLogger(__name__)


def run_server() -> None:
    """Run the MCP server with the configured transport.

    The server lifespan closes every pooled connection on shutdown.
    """
    deps = Dependencies.create()
    config = deps.config
    configure_logging(config.settings)
    logger.info(
        "Logging configured: level=%s, transport=%s",
        config.settings.log_level,
        config.transport,
    )

    mcp = create_server(deps)
    if config.transport == "stdio":
        logger.info("Starting RemoteOps server (transport=stdio)")
        mcp.run(transport="stdio")
    else:
        logger.info(
            "Starting RemoteOps server (transport=http, host=%s, port=%d)",
            config.http_host,
            config.http_port,
        )
        mcp.run(transport="http", host=config.http_host, port=config.http_port)


if __name__ == "__main__":
    run_server()
