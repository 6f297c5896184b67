import logging

from fastmcp import FastMCP

from clickup_time import config
from clickup_time.api_client import ClickUpClient
from clickup_time.logging_config import setup_logging
from clickup_time.operations import TimeTrackingOperations
from clickup_time.time_tracking import TimeTrackingService
from clickup_time.mcp.prompts import register_time_tracking_prompts
from clickup_time.mcp.resources import register_time_tracking_resources
from clickup_time.mcp.tools import register_time_tracking_tools

logger = logging.getLogger(__name__)


def create_server(ops: TimeTrackingOperations = None) -> FastMCP:
    """
    Build the MCP server. Without ``ops`` the ClickUp collaborators are
    constructed from the environment (fails fast on missing config).
    """
    if ops is None:
        config.require_config()
        client = ClickUpClient(
            api_token=config.CLICKUP_API_TOKEN,
            team_id=config.CLICKUP_TEAM_ID,
            base_url=config.BASE_URL,
            requests_per_minute=config.CLICKUP_RATE_LIMIT_PER_MIN,
        )
        ops = TimeTrackingOperations(
            TimeTrackingService(client), tz=config.get_timezone()
        )

    mcp = FastMCP(
        name="ClickUp Time Tracking MCP Server",
        instructions=(
            "Report, summarize and manage ClickUp time tracking. Tasks and "
            "lists can be referenced by id or by (case-insensitive) name."
        ),
    )

    register_time_tracking_tools(mcp, ops)
    register_time_tracking_resources(mcp, ops)
    register_time_tracking_prompts(mcp)
    return mcp


def main():
    setup_logging()
    mcp = create_server()

    if config.MCP_TRANSPORT == "stdio":
        logger.info("Starting ClickUp time tracking MCP server on stdio")
        mcp.run()
        return

    import uvicorn

    app = mcp.http_app(transport=config.MCP_TRANSPORT)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.MCP_HOST,
        port=config.MCP_PORT,
        timeout_keep_alive=300,
        timeout_graceful_shutdown=30,
        log_level=config.LOG_LEVEL.lower(),
    )
    server = uvicorn.Server(uvicorn_config)
    logger.info(
        "MCP Server ready on http://%s:%s (%s)",
        config.MCP_HOST,
        config.MCP_PORT,
        config.MCP_TRANSPORT,
    )
    server.run()


if __name__ == "__main__":
    main()
