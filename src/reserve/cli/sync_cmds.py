"""CLI commands for cloud sync."""

from __future__ import annotations

import click

from reserve.cli.helpers import json_envelope, open_store, output_error, require_admin
from reserve.cli.main import cli
from reserve.storage.operations import Repository
from reserve.sync.config import is_configured, load_cloud_config, mask_key, save_cloud_config
from reserve.sync.engine import Synchronizer, run_sync

_FAILURE_CODES = {
    "not_configured": "NOT_CONFIGURED",
    "fetch_failed": "FETCH_FAILED",
    "push_failed": "PUSH_FAILED",
    "failed": "SYNC_FAILED",
}


@cli.group()
def sync() -> None:
    """Mirror local data to the shared cloud document."""


@sync.command("config")
@click.option("--enable/--disable", "enabled", default=None, help="Turn cloud sync on or off.")
@click.option("--api-key", default=None, help="Master key for the shared bin.")
@click.option("--bin-id", default=None, help="Identifier of the shared bin.")
def sync_config(enabled: bool | None, api_key: str | None, bin_id: str | None) -> None:
    """Set the cloud document every device must share (admin only)."""
    store = open_store()
    require_admin(Repository(store), False)

    config = load_cloud_config(store)
    if enabled is not None:
        config["enabled"] = enabled
    if api_key is not None:
        config["apiKey"] = api_key.strip()
    if bin_id is not None:
        config["binId"] = bin_id.strip()
    save_cloud_config(store, config)

    click.echo("Cloud sync configuration saved.")
    if config["enabled"] and not is_configured(config):
        click.echo("Sync is enabled but the API key or bin id is missing.", err=True)


@sync.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def sync_status(as_json: bool) -> None:
    """Show the cloud sync configuration."""
    store = open_store(as_json)
    config = load_cloud_config(store)

    if as_json:
        data = {
            "enabled": config["enabled"],
            "configured": is_configured(config),
            "api_key": mask_key(config["apiKey"]),
            "bin_id": config["binId"],
        }
        click.echo(json_envelope(True, data=data))
        return

    click.echo(f"Enabled: {'yes' if config['enabled'] else 'no'}")
    click.echo(f"API key: {mask_key(config['apiKey']) or 'not set'}")
    click.echo(f"Bin ID: {config['binId'] or 'not set'}")
    if not is_configured(config):
        click.echo("Sync is not configured; local changes stay on this device.")


@sync.command("now")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def sync_now(as_json: bool) -> None:
    """Run one sync in the foreground and report the outcome."""
    store = open_store(as_json)
    outcome = run_sync(Synchronizer(store))

    if not outcome.ok:
        output_error(outcome.message, _FAILURE_CODES[outcome.status], as_json)

    if as_json:
        click.echo(json_envelope(True, data=outcome.to_dict()))
    else:
        click.echo(outcome.message)
