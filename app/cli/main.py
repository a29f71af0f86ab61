#!/usr/bin/env python3
"""Main CLI entry point for Page Relay using Typer.

Commands render pages, capture screenshots, run a login attempt, or start
the HTTP API. Each command launches its own browser and closes it on exit.
"""

import asyncio
import logging
from enum import IntEnum
from pathlib import Path
from typing import Optional

import typer
import yaml
from typing_extensions import Annotated

from ..relay import __version__
from ..relay.capture.browser_factory import BrowserFactory
from ..relay.capture.page_renderer import PageRenderer
from ..relay.capture.screenshot import ScreenshotCapturer
from ..relay.config import RelayConfig, RelayConfigManager, get_config
from ..relay.errors import CaptureError, NavigationError, RelayError, ValidationError
from ..relay.login.orchestrator import LoginOrchestrator
from ..relay.models.results import LoginResult, RenderResult

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """CLI exit codes."""
    SUCCESS = 0
    FAILURE = 1          # Operation ran but did not succeed (login rejected, page failed)
    INVALID_INPUT = 2    # Malformed URL or arguments
    CONFIG_ERROR = 3     # Configuration could not be loaded
    RUNTIME_ERROR = 4    # Browser could not be started


# Create the main Typer app
app = typer.Typer(
    name="relay",
    help="Page Relay - headless browser rendering, screenshots and session login",
    add_completion=False,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
):
    """
    Page Relay - headless browser rendering, screenshots and session login.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"Page Relay CLI v{__version__}")


def load_relay_config(config_path: Optional[Path]) -> RelayConfig:
    """Load configuration, exiting with CONFIG_ERROR when it is unusable.

    The component sections are built once here so that an invalid browser,
    navigation or login section fails before any browser is started.
    """
    try:
        if config_path is not None:
            config = RelayConfigManager(config_path).load_config()
        else:
            config = get_config().config
        config.get_browser_config()
        config.get_navigation_config()
        config.get_login_flow_config()
        return config
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)


async def _render(config: RelayConfig, url: str) -> RenderResult:
    factory = BrowserFactory(config.get_browser_config())
    try:
        return await PageRenderer(factory, config.get_navigation_config()).render(url)
    finally:
        await factory.stop()


async def _screenshot(config: RelayConfig, url: str) -> bytes:
    factory = BrowserFactory(config.get_browser_config())
    try:
        return await ScreenshotCapturer(factory, config.get_navigation_config()).capture(url)
    finally:
        await factory.stop()


async def _login(config: RelayConfig, username: str, password: str, telemetry: bool) -> LoginResult:
    flow = config.get_login_flow_config()
    factory = BrowserFactory(config.get_browser_config())
    orchestrator = LoginOrchestrator(flow)
    try:
        async with factory.page(blocked_hosts=flow.blocked_hosts) as page:
            if telemetry:
                return await orchestrator.login_with_telemetry(page, username, password)
            return await orchestrator.login(page, username, password)
    finally:
        await factory.stop()


def _fail(message: str, code: ExitCode) -> typer.Exit:
    typer.echo(f"❌ {message}", err=True)
    return typer.Exit(code=code.value)


@app.command()
def render(
    url: Annotated[str, typer.Argument(help="Absolute http(s) URL to render")],
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Write sanitized HTML to this file instead of stdout")
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to relay configuration file")
    ] = None,
):
    """
    Render a page and print its sanitized HTML.
    """
    config = load_relay_config(config_path)

    try:
        result = asyncio.run(_render(config, url))
    except ValidationError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT)
    except NavigationError as e:
        details = f" ({e.details})" if config.expose_error_details and e.details else ""
        raise _fail(f"{e.message}{details}", ExitCode.FAILURE)
    except RelayError as e:
        raise _fail(str(e), ExitCode.RUNTIME_ERROR)

    if out is not None:
        out.write_text(result.content, encoding="utf-8")
        typer.echo(f"✅ Wrote {len(result.content)} characters from {result.url} to {out}")
    else:
        typer.echo(result.content)


@app.command()
def screenshot(
    url: Annotated[str, typer.Argument(help="Absolute http(s) URL to capture")],
    out: Annotated[
        Path,
        typer.Option("--out", "-o", help="PNG file to write")
    ],
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to relay configuration file")
    ] = None,
):
    """
    Capture a PNG screenshot of a page.
    """
    config = load_relay_config(config_path)

    try:
        image = asyncio.run(_screenshot(config, url))
    except ValidationError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT)
    except CaptureError as e:
        raise _fail(str(e), ExitCode.FAILURE)
    except RelayError as e:
        raise _fail(str(e), ExitCode.RUNTIME_ERROR)

    out.write_bytes(image)
    typer.echo(f"✅ Wrote {len(image)} bytes to {out}")


@app.command()
def login(
    username: Annotated[str, typer.Argument(help="Account username, email or phone")],
    password: Annotated[
        str,
        typer.Option(
            "--password", "-p",
            prompt=True,
            hide_input=True,
            envvar="RELAY_PASSWORD",
            help="Account password (prompted when omitted)",
        )
    ],
    telemetry: Annotated[
        bool,
        typer.Option("--telemetry", help="Record auth traffic and console errors in the log")
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to relay configuration file")
    ] = None,
):
    """
    Run one login attempt and print the result as JSON.

    Exits 0 when the session cookie was obtained and 1 otherwise.
    """
    config = load_relay_config(config_path)

    try:
        result = asyncio.run(_login(config, username, password, telemetry))
    except RelayError as e:
        raise _fail(str(e), ExitCode.RUNTIME_ERROR)

    typer.echo(result.model_dump_json(indent=2))

    if not result.success:
        raise typer.Exit(code=ExitCode.FAILURE.value)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", help="Port to listen on")] = 8000,
):
    """
    Start the HTTP API.
    """
    import uvicorn

    uvicorn.run(
        "app.api.main:app",
        host=host,
        port=port,
        log_level="info",
        access_log=True,
    )


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    app()
