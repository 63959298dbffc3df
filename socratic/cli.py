"""Click CLI: the interactive dialogue client and the proxy server."""

import asyncio
import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from socratic.healthcheck import check_proxy
from socratic.proxy_client import ProxyClient
from socratic.render.console import ConsoleRenderer
from socratic.session import GenerationOrchestrator, GenerationState

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # httpx logs full request URLs at INFO, and the upstream URL carries the API key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_or_exit() -> AppConfig:
    try:
        return load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


def _choose_position(config: AppConfig) -> str:
    console.print("\n[bold]Choose a resolution to debate:[/bold]")
    for key, text in config.prompts.resolutions.items():
        console.print(f"  [cyan]{key}[/cyan]  {text}")
    return click.prompt(
        "Position",
        type=click.Choice(list(config.prompts.resolutions)),
        show_choices=False,
    )


def _check_proxy_or_exit(config: AppConfig) -> None:
    console.print("\n[bold]Checking proxy...[/bold]")
    ok, err = asyncio.run(check_proxy(config.client))
    if ok:
        console.print(f"  [green]OK  [/green] {config.client.proxy_url}\n")
        return
    console.print(f"  [red]FAIL[/red] {config.client.proxy_url}: {err}")
    if not click.confirm("Continue anyway?", default=False):
        sys.exit(0)


def _reveal(orchestrator: GenerationOrchestrator) -> None:
    """Wait for Enter between steps until the done step is shown."""
    while orchestrator.state is GenerationState.REVEALING and orchestrator.has_next:
        click.prompt("Next", default="", show_default=False, prompt_suffix=" [Enter] ")
        orchestrator.next_step()


@click.command()
@click.option("--position", default=None, help="Resolution key to debate (asked interactively if omitted)")
@click.option("--proxy-url", default=None, help="Proxy endpoint (default: from config)")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the proxy preflight check at startup")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(position: str | None, proxy_url: str | None, skip_health_check: bool, verbose: bool) -> None:
    """Socratic Argument Bot -- step through a model dialogue between two debaters.

    \b
    Examples:
      socratic
      socratic --position net-good
      socratic --proxy-url http://127.0.0.1:8787 --skip-health-check
    """
    load_dotenv()
    _setup_logging(verbose)
    config = _load_or_exit()

    if proxy_url:
        config.client.proxy_url = proxy_url

    if not skip_health_check:
        _check_proxy_or_exit(config)

    renderer = ConsoleRenderer(console)
    orchestrator = GenerationOrchestrator(
        client=ProxyClient(config.client),
        renderer=renderer,
        prompts=config.prompts,
        throttle_sec=config.client.throttle_sec,
    )

    console.print("[bold cyan]Socratic Argument Bot[/bold cyan] | Social media and democracy")
    pending = position
    while True:
        key = pending or _choose_position(config)
        pending = None
        state = asyncio.run(orchestrator.generate(key))
        _reveal(orchestrator)

        if orchestrator.state is GenerationState.DONE:
            if not click.confirm("Would you like to try again?", default=True):
                break
            orchestrator.restart()
        elif state is GenerationState.THROTTLED:
            if not click.confirm("Choose another position?", default=True):
                break
        elif not click.confirm("Try again?", default=True):
            break


@click.command()
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", default=None, type=int, help="Bind port (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def serve(host: str | None, port: int | None, verbose: bool) -> None:
    """Run the edge proxy that holds the Gemini API key."""
    import uvicorn

    from socratic.proxy import create_app

    load_dotenv()
    _setup_logging(verbose)
    config = _load_or_exit()

    app = create_app(config.proxy)
    uvicorn.run(
        app,
        host=host or config.proxy.host,
        port=port or config.proxy.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
