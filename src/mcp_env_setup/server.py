"""MCP server implementation."""
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions
from mcp.server import stdio

from mcp_env_setup.config import DEFAULT_REQUIREMENTS_NAME, Settings
from mcp_env_setup.environments.environment import (
    check_environment,
    get_environment,
    remove_environment,
    setup_environment,
)
from mcp_env_setup.errors import EnvSetupError, UnknownEnvError, log_error
from mcp_env_setup.logging import configure_logging, get_logger
from mcp_env_setup.types import EnvKind, SetupOptions

logger = get_logger("server")

SERVER_NAME = "mcp-env-setup"
SERVER_VERSION = "0.1.0"

tools = [
    types.Tool(
        name="env_setup",
        description=(
            "Create a Python virtual or conda environment, install a requirements "
            "manifest and report outdated packages"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "root": {"type": "string", "description": "Environment root directory"},
                "requirements": {
                    "type": "string",
                    "description": "Requirements manifest (name==version per line)",
                },
                "conda": {
                    "type": "boolean",
                    "description": "Create a conda environment instead of a venv",
                },
                "report_path": {
                    "type": "string",
                    "description": "Where to write the outdated dependencies JSON report",
                },
            },
            "required": ["root"],
        },
    ),
    types.Tool(
        name="env_check_outdated",
        description="Re-check outdated packages in an environment and refresh its report",
        inputSchema={
            "type": "object",
            "properties": {
                "env_id": {"type": "string", "description": "Environment identifier"},
                "report_path": {
                    "type": "string",
                    "description": "Report file path (defaults to the one env_setup wrote)",
                },
                "requirements": {
                    "type": "string",
                    "description": "Only report packages from this manifest "
                    "(defaults to the env_setup manifest)",
                },
            },
            "required": ["env_id"],
        },
    ),
    types.Tool(
        name="env_remove",
        description="Remove an environment created by env_setup",
        inputSchema={
            "type": "object",
            "properties": {
                "env_id": {"type": "string", "description": "Environment identifier"}
            },
            "required": ["env_id"],
        },
    ),
]


def _text(payload: Dict[str, Any]) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload))]


async def handle_tool(
    name: str, arguments: Dict[str, Any], settings: Settings
) -> List[types.TextContent]:
    """Dispatch a tool call and wrap the outcome in a success/error payload."""
    try:
        if name == "env_setup":
            root = Path(arguments["root"])
            options = SetupOptions(
                root=root,
                requirements=Path(arguments.get("requirements", DEFAULT_REQUIREMENTS_NAME)),
                kind=EnvKind.CONDA if arguments.get("conda") else EnvKind.VENV,
                report_path=Path(arguments.get("report_path", settings.report_name)),
            )
            result = await setup_environment(options, settings)
            return _text({"success": True, "data": result.to_dict()})

        elif name == "env_check_outdated":
            env = get_environment(arguments["env_id"])
            if not env:
                raise UnknownEnvError(arguments["env_id"])
            report_path = arguments.get("report_path")
            requirements = arguments.get("requirements")
            result = await check_environment(
                env,
                settings,
                report_path=Path(report_path) if report_path else None,
                requirements_path=Path(requirements) if requirements else None,
            )
            return _text({"success": True, "data": result.to_dict()})

        elif name == "env_remove":
            env = get_environment(arguments["env_id"])
            if not env:
                raise UnknownEnvError(arguments["env_id"])
            await remove_environment(env)
            return _text({
                "success": True,
                "data": {"message": "Environment removed successfully"}
            })

        return _text({"success": False, "error": f"Unknown tool: {name}"})

    except EnvSetupError as e:
        log_error(e, {"tool": name}, logger)
        return _text({"success": False, "error": str(e), "details": e.details})
    except KeyError as e:
        return _text({"success": False, "error": f"Missing argument: {e.args[0]}"})


async def init_server(settings: Settings) -> Server:
    logger.info("registered_tools", tools=[t.name for t in tools])

    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug("tools_requested")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        logger.debug("tool_call_received", name=name, arguments=arguments)
        return await handle_tool(name, arguments or {}, settings)

    return server


async def serve(settings: Settings) -> None:
    configure_logging(settings.log_level, "json")
    logger.info("starting_server", name=SERVER_NAME)
    server = await init_server(settings)
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name=SERVER_NAME,
            server_version=SERVER_VERSION,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    """Run the MCP server."""
    asyncio.run(serve(Settings.from_env()))
