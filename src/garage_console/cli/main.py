"""garage-console CLI.

Commands:
    serve           Run the console BFF (uvicorn)
    keygen          Print a fresh encryption key and signing secret
    cluster add     Register a cluster, encrypting its tokens
    cluster list    Show registered clusters (never tokens)
    cluster remove  Delete a cluster
"""

from __future__ import annotations

import json
import sys
from dataclasses import replace

import click

from garage_console import __version__
from garage_console.clusters.service import ClusterService
from garage_console.config import (
    ConfigError,
    ConsoleConfig,
    configure_logging,
    generate_encryption_key,
    generate_signing_secret,
    load_config,
)
from garage_console.crypto.cipher import TokenCipher
from garage_console.db.connection import Database
from garage_console.db.migrations import run_migrations


def _load(config_path: str | None) -> ConsoleConfig:
    """Load config or exit with every problem listed."""
    try:
        return load_config(config_path)
    except (ConfigError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


def _cluster_service(config: ConsoleConfig) -> ClusterService:
    db = Database(config.db_path)
    run_migrations(db)
    return ClusterService(db, TokenCipher(config.encryption_key_bytes))


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to garage-console.yaml (default: auto-discover).",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """garage-console: admin BFF for Garage clusters."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# --- serve command ---


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides config).")
@click.option("--port", default=None, type=int, help="Port (overrides config).")
@click.option("--dev", is_flag=True, help="Enable CORS for the Vite dev server.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, dev: bool) -> None:
    """Run the console BFF."""
    config = _load(ctx.obj["config_path"])
    config = replace(
        config,
        host=host or config.host,
        port=port or config.port,
        dev_mode=dev or config.dev_mode,
    )
    try:
        config.validate()
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    configure_logging(config.log_level)

    import uvicorn

    from garage_console.app import create_app

    app = create_app(config)
    click.echo(f"Starting garage-console on http://{config.host}:{config.port}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level,
        access_log=config.access_log,
    )


# --- keygen command ---


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def keygen(as_json: bool) -> None:
    """Print a fresh encryption key and session signing secret."""
    keys = {
        "GARAGE_CONSOLE_ENCRYPTION_KEY": generate_encryption_key(),
        "GARAGE_CONSOLE_JWT_SECRET": generate_signing_secret(),
    }
    if as_json:
        click.echo(json.dumps(keys, indent=2))
        return
    for name, value in keys.items():
        click.echo(f"{name}={value}")


# --- cluster commands ---


@cli.group()
def cluster() -> None:
    """Manage registered clusters."""


@cluster.command("add")
@click.argument("name")
@click.argument("endpoint")
@click.option("--admin-token", required=True, help="Admin API bearer token.")
@click.option("--metric-token", default=None, help="Metrics-only bearer token.")
@click.pass_context
def cluster_add(
    ctx: click.Context,
    name: str,
    endpoint: str,
    admin_token: str,
    metric_token: str | None,
) -> None:
    """Register a cluster."""
    svc = _cluster_service(_load(ctx.obj["config_path"]))
    info = svc.create_cluster(
        name=name, endpoint=endpoint, admin_token=admin_token, metric_token=metric_token,
    )
    click.echo(info.id)


@cluster.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cluster_list(ctx: click.Context, as_json: bool) -> None:
    """Show registered clusters."""
    svc = _cluster_service(_load(ctx.obj["config_path"]))
    clusters = svc.list_clusters()
    if as_json:
        click.echo(json.dumps([c.model_dump(by_alias=True) for c in clusters], indent=2))
        return
    if not clusters:
        click.echo("No clusters registered.")
        return
    for c in clusters:
        metric = "yes" if c.has_metric_token else "no"
        click.echo(f"{c.id}  {c.name:<24} {c.endpoint}  metric-token={metric}")


@cluster.command("remove")
@click.argument("cluster_id")
@click.pass_context
def cluster_remove(ctx: click.Context, cluster_id: str) -> None:
    """Delete a cluster."""
    svc = _cluster_service(_load(ctx.obj["config_path"]))
    if not svc.delete_cluster(cluster_id):
        click.echo(f"Error: cluster not found: {cluster_id}", err=True)
        sys.exit(1)
    click.echo(f"Removed {cluster_id}")


if __name__ == "__main__":
    cli()
