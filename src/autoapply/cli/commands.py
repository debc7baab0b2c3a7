"""CLI commands using Typer."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from autoapply.automation.backends.gateway import AutomationBackendGateway, select_automation_mode
from autoapply.automation.classifier import PlatformClassifier
from autoapply.automation.models import ApplicantProfile
from autoapply.automation.poller import PollerState, ProgressPoller
from autoapply.automation.session_vault import SessionVault
from autoapply.automation.status import ApplicationStatus, HttpStatusClient
from autoapply.automation.strategies import PlatformStrategyRegistry
from autoapply.config import get_settings
from autoapply.exceptions import ConfigurationError
from autoapply.logging_config import configure_logging

app = typer.Typer(
    name="autoapply",
    help="Auto-apply automation CLI",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    ApplicationStatus.PENDING: "yellow",
    ApplicationStatus.PROCESSING: "cyan",
    ApplicationStatus.COMPLETED: "green",
    ApplicationStatus.FAILED: "red",
    ApplicationStatus.NOT_FOUND: "magenta",
}


@app.callback()
def main(
    log_level: Annotated[str | None, typer.Option("--log-level", help="Override LOG_LEVEL")] = None,
):
    configure_logging(log_level)


@app.command()
def classify(url: Annotated[str, typer.Argument(help="Application URL")]):
    """
    Detect the hiring platform for an application URL.

    Example:
        autoapply classify https://boards.greenhouse.io/acme/jobs/123
    """
    detection = PlatformClassifier().classify(url)
    style = "green" if detection.is_supported else "yellow"
    lines = [
        f"[bold]Platform:[/bold] [{style}]{detection.display_name}[/{style}] ({detection.platform})",
        f"[bold]Confidence:[/bold] {detection.confidence:.2f}",
        f"[bold]Requires login:[/bold] {'yes' if detection.requires_auth else 'no'}",
        f"[bold]Auth strategy:[/bold] {detection.auth_strategy.value}",
    ]
    if detection.login_url:
        lines.append(f"[bold]Login URL:[/bold] {detection.login_url}")
    console.print(Panel("\n".join(lines), title="Platform Detection"))


@app.command()
def map_fields(
    name: Annotated[str, typer.Option("--name", "-n", help="Full name")],
    email: Annotated[str, typer.Option("--email", "-e", help="Email address")],
    phone: Annotated[str, typer.Option("--phone", help="Phone number")],
    platform: Annotated[str, typer.Option("--platform", "-p", help="Platform name")] = "generic",
    linkedin: Annotated[str | None, typer.Option("--linkedin", help="LinkedIn profile URL")] = None,
    github: Annotated[str | None, typer.Option("--github", help="GitHub profile URL")] = None,
    location: Annotated[str | None, typer.Option("--location", help="Location")] = None,
):
    """
    Show the form fields a platform strategy produces for a profile.

    Example:
        autoapply map-fields -p greenhouse -n "Jane Doe" -e jane@example.com --phone 555
    """
    profile = ApplicantProfile(
        full_name=name,
        email=email,
        phone=phone,
        linkedin=linkedin,
        github=github,
        location=location,
    )
    strategy = PlatformStrategyRegistry.resolve(platform)
    values = strategy.map_fields(profile)

    table = Table(title=f"{strategy.display_name} fields")
    table.add_column("Field")
    table.add_column("Value")
    table.add_column("Selector", style="dim")
    for mapping in strategy.field_mappings(values):
        table.add_row(mapping.field_name, mapping.value or "[dim](empty, skipped)[/dim]", mapping.selector)
    console.print(table)


@app.command()
def mode(
    check: Annotated[bool, typer.Option("--check", help="Run the backend health check")] = False,
):
    """Show which automation backend this process would use."""
    settings = get_settings()
    try:
        selected = select_automation_mode(settings)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="Automation backends")
    table.add_column("Backend")
    table.add_column("Configured")
    table.add_row("managed", "yes" if settings.managed_browser_configured else "no")
    table.add_row("external", "yes" if settings.external_browser_configured else "no")
    table.add_row("simulation", "yes" if settings.simulation_enabled else "no")
    console.print(table)
    console.print(f"[bold]Selected mode:[/bold] [green]{selected.value}[/green]")

    if check:

        async def run_check() -> bool:
            gateway = AutomationBackendGateway.from_settings(settings)
            try:
                return await gateway.test_connection()
            finally:
                await gateway.aclose()

        healthy = asyncio.run(run_check())
        console.print("[green]Backend reachable[/green]" if healthy else "[red]Backend unreachable[/red]")
        if not healthy:
            raise typer.Exit(1)


def _render_state(state: PollerState) -> None:
    style = STATUS_STYLES.get(state.status, "white")
    step = state.current_step or ""
    console.print(
        f"[dim]#{state.poll_count} {state.phase_message} {state.elapsed_seconds}s[/dim] "
        f"[{style}]{state.status.value}[/{style}] {state.progress}% {step}"
    )


@app.command()
def poll(
    application_id: Annotated[str, typer.Argument(help="Application id returned by /start")],
    api_url: Annotated[str | None, typer.Option("--api-url", help="Status API base URL")] = None,
    simulate: Annotated[bool, typer.Option("--simulate", help="Simulate instead of polling")] = False,
):
    """
    Follow an application's progress until it completes.

    Polls quickly at first, then more slowly, then switches to manual refresh.

    Example:
        autoapply poll 3f0c...-... --api-url http://localhost:8000
    """

    async def run_poll() -> PollerState:
        poller = ProgressPoller(HttpStatusClient(api_url), application_id, on_update=_render_state)
        if simulate:
            poller.simulate()
        else:
            poller.start()
        state = await poller.wait()
        while not state.is_terminal and typer.confirm("Automatic polling stopped. Refresh now?", default=True):
            state = await poller.refresh()
        return state

    state = asyncio.run(run_poll())

    if state.status == ApplicationStatus.COMPLETED:
        console.print(Panel(f"[bold green]{state.result_message}[/bold green]"))
    elif state.status == ApplicationStatus.FAILED:
        console.print(Panel(f"[bold red]{state.error}[/bold red]"))
        raise typer.Exit(1)
    elif state.status == ApplicationStatus.NOT_FOUND:
        console.print(Panel(f"[bold magenta]{state.error}[/bold magenta]"))
        raise typer.Exit(2)


@app.command()
def cleanup_sessions():
    """Delete expired platform sessions from the vault."""
    from autoapply.db.session import init_db

    async def run_cleanup() -> int:
        await init_db()
        return await SessionVault().cleanup_expired()

    deleted = asyncio.run(run_cleanup())
    console.print(f"[green]Removed {deleted} expired session(s)[/green]")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port")] = 8000,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on changes")] = False,
):
    """Start the auto-apply API server."""
    import uvicorn

    console.print(Panel(f"[bold]Starting Auto-Apply API[/bold]\n\nhttp://{host}:{port}", title="Auto-Apply"))
    uvicorn.run("autoapply.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
