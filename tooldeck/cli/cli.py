"""tooldeck CLI - inspect, run and serve tool registries.

Usage:
    tooldeck tools                          - List the tool catalog
    tooldeck run weather '{"city": "Oslo"}' - Run a tool (privileged)
    tooldeck serve --port 8080              - Serve the HTTP endpoints

Every command accepts ``--tools module:attribute`` pointing at a
``ToolRegistry`` (or a function returning one). The demo registry is used
otherwise.
"""

import asyncio
import importlib
import json
import sys

import click
from pydantic_core import to_jsonable_python

from tooldeck.config import get_config
from tooldeck.core.errors import ToolDeckError, format_exception_chain
from tooldeck.core.logging import setup_logging
from tooldeck.tools.dispatcher import Dispatcher
from tooldeck.tools.registry import ToolRegistry


def load_registry(spec: str | None) -> ToolRegistry:
    """Resolve ``module:attribute`` to a registry."""
    if not spec:
        from tooldeck.tools.demo import demo_registry
        return demo_registry()

    module_name, _, attr = spec.partition(":")
    if not attr:
        raise click.BadParameter("expected module:attribute", param_hint="--tools")

    try:
        target = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {spec}: {e}", param_hint="--tools")

    registry = target() if callable(target) and not isinstance(target, ToolRegistry) else target
    if not isinstance(registry, ToolRegistry):
        raise click.BadParameter(f"{spec} is not a ToolRegistry", param_hint="--tools")
    return registry


tools_option = click.option("--tools", "tools_spec", default=None, help="Registry as module:attribute")


@click.group()
@click.version_option(version="0.1.0", prog_name="tooldeck")
def cli():
    """tooldeck - validated tool execution for UIs and AI agents."""
    config = get_config()
    setup_logging(
        level=config.log.level,
        format_type=config.log.format,
        log_dir=config.log.log_dir,
        console_enabled=config.log.console_enabled,
    )


@cli.command("tools")
@tools_option
def list_tools(tools_spec: str | None):
    """Print the tool catalog."""
    registry = load_registry(tools_spec)
    if not len(registry):
        click.echo("No tools registered.")
        return
    for descriptor in registry.descriptors():
        click.echo(descriptor.to_prompt_string())


@cli.command()
@click.argument("name")
@click.argument("payload", default="{}")
@tools_option
def run(name: str, payload: str, tools_spec: str | None):
    """Run tool NAME with a JSON PAYLOAD in the privileged environment."""
    registry = load_registry(tools_spec)

    try:
        tool_input = json.loads(payload)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="PAYLOAD")

    try:
        tool = registry.require(name)
        result = asyncio.run(Dispatcher(privileged=True).collect(tool, tool_input))
    except ToolDeckError as e:
        click.echo(format_exception_chain(e), err=True)
        sys.exit(1)

    click.echo(json.dumps(to_jsonable_python(result), indent=2))


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", type=int, default=None, help="Port to bind to")
@tools_option
def serve(host: str | None, port: int | None, tools_spec: str | None):
    """Serve the execute and confirm endpoints."""
    import uvicorn
    from tooldeck.web.server import create_app

    config = get_config()
    host = host or config.web.host
    port = port or config.web.port

    app = create_app(load_registry(tools_spec))
    click.echo(f"Starting tooldeck at http://{host}:{port}")
    click.echo("   Press Ctrl+C to stop")
    uvicorn.run(app, host=host, port=port, log_level="debug" if config.web.debug else "info")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
