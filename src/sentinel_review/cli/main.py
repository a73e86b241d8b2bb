"""sentinel-review CLI - main entry point."""

import asyncio

import click

from .ui import console, print_error, print_info, print_success, setup_logging, stats_table
from ..config import CONFIG_FILE, SETTABLE_KEYS, Config
from ..gateway.client import FirewallAPIError, FirewallClient


@click.group()
@click.version_option(package_name="sentinel-review")
@click.option("--api-url", help="Firewall API address (overrides config)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, api_url: str, verbose: bool):
    """sentinel-review - Human review for DDoS traffic classification."""
    setup_logging(verbose)

    config = Config.load()
    if api_url:
        try:
            config = config.with_value("api_url", api_url)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--api-url")

    ctx.obj = config


def _client(config: Config) -> FirewallClient:
    return FirewallClient(config.api_url, timeout=config.request_timeout)


@cli.command()
@click.pass_obj
def review(config: Config):
    """Review pending anomaly samples interactively.

    Shows one sample at a time. Confirm the classifier's action or pick
    the correct one; corrections feed the continuous-learning loop.
    The queue and statistics refresh in the background.

    Examples:

        sentinel-review review

        sentinel-review --api-url http://firewall:5002 review
    """
    from ..review import ReviewController, ReviewTUI

    async def run_session() -> dict:
        async with _client(config) as gateway:
            async with ReviewController(gateway, config) as controller:
                return await ReviewTUI(controller).run()

    try:
        results = asyncio.run(run_session())
    except KeyboardInterrupt:
        console.print("\n[dim]Review interrupted.[/dim]")
        return

    console.print(
        f"\n[bold]Session complete:[/bold] {results['reviewed']} reviewed, "
        f"{results['pending']} pending"
    )


@cli.command()
@click.pass_obj
def stats(config: Config):
    """Show current model statistics.

    Examples:

        sentinel-review stats
    """

    async def fetch():
        async with _client(config) as gateway:
            return await gateway.get_stats()

    try:
        snapshot = asyncio.run(fetch())
    except FirewallAPIError as e:
        print_error(f"Error connecting to Firewall API: {e}")
        raise SystemExit(1)

    if not snapshot.success:
        print_error("Firewall API did not return statistics.")
        raise SystemExit(1)

    console.print(stats_table(snapshot.stats))


@cli.command()
@click.pass_obj
def retrain(config: Config):
    """Force a model retraining run.

    Examples:

        sentinel-review retrain
    """

    async def trigger():
        async with _client(config) as gateway:
            return await gateway.trigger_retraining()

    try:
        ack = asyncio.run(trigger())
    except FirewallAPIError as e:
        print_error(f"Failed to trigger retraining: {e}")
        raise SystemExit(1)

    print_success(ack.message or "Retraining requested.")


@cli.group("config")
def config_group():
    """Manage sentinel-review configuration."""
    pass


@config_group.command("show")
@click.pass_obj
def config_show(config: Config):
    """Show current configuration.

    Examples:

        sentinel-review config show
    """
    console.print("\n[bold]sentinel-review Configuration[/bold]\n")
    console.print(f"  API URL:               {config.api_url}")
    console.print(f"  Refresh interval:      {config.refresh_interval:g}s")
    console.print(f"  Notification duration: {config.notification_duration:g}s")
    console.print(f"  Request timeout:       {config.request_timeout:g}s")

    console.print("\n[bold]Actions:[/bold]")
    for action, style in sorted(config.actions.items()):
        console.print(
            f"  {int(action)}  [{style.color}]{style.icon} {style.label}[/{style.color}]"
        )

    console.print(f"\n[dim]Config file: {CONFIG_FILE}[/dim]")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a configuration value.

    Keys:

        api_url                Firewall API address

        refresh_interval       Seconds between queue refreshes

        notification_duration  Seconds a notification stays visible

        request_timeout        Per-request timeout in seconds

    Examples:

        sentinel-review config set api_url http://firewall:5002

        sentinel-review config set refresh_interval 15
    """
    if key not in SETTABLE_KEYS:
        print_error(f"Unknown key: {key}")
        console.print(f"\nValid keys: {', '.join(SETTABLE_KEYS)}")
        raise SystemExit(1)

    # Start from the file, not env overrides, so they aren't persisted
    config = Config.load_file()
    try:
        config = config.with_value(key, value)
        config.save()
    except ValueError as e:
        print_error(str(e))
        raise SystemExit(1)

    print_success(f"{key} set to {value}.")
    print_info(f"Saved to {CONFIG_FILE}")


def main():
    cli()


if __name__ == "__main__":
    main()
