"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반 CLI. Resolves IPs against cloud provider ranges.

명령어 구조:
    clouddetect --version             # 버전 표시
    clouddetect resolve IP [IP ...]   # IP 조회
    clouddetect refresh               # 캐시 강제 갱신
    clouddetect status                # 캐시 상태

Common options (before the sub command):
    --cache-file PATH   shared snapshot path ("" for memory only,
                        default ~/.cache/clouddetect/ip_ranges/clouddetect.json)
    --ttl-hours N       cache lifetime
    -v, --verbose       debug logging

Exit codes:
    0  success
    1  IP not in any cloud range / invalid input
    2  refresh failed
"""

from __future__ import annotations

import ipaddress
import logging
import sys
from dataclasses import replace
from datetime import datetime, timedelta

import click
from rich.console import Console
from rich.table import Table

from clouddetect import Client, ClientConfig, CloudDetectError, NotCloudIPError
from clouddetect.config import get_version
from clouddetect.exceptions import format_error_for_user
from clouddetect.tools.cache.path import get_snapshot_path

# WARNING 레벨로 설정하여 INFO 로그가 도구 출력에 섞이지 않도록 함
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

console = Console()

EXIT_NOT_FOUND = 1
EXIT_REFRESH_FAILED = 2

PROVIDER_STYLE = {
    "Amazon Web Services": "bold yellow",
    "Google Cloud": "bold blue",
    "Microsoft Azure": "bold cyan",
}


def _build_client(cache_file: str | None, ttl_hours: float | None) -> Client:
    config = ClientConfig.from_env()
    changes: dict = {}
    if cache_file is not None:
        changes["cache_file_path"] = cache_file
    elif not config.cache_file_path:
        changes["cache_file_path"] = get_snapshot_path()
    if ttl_hours is not None:
        changes["ttl"] = timedelta(hours=ttl_hours)
    return Client(replace(config, **changes))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=get_version(), prog_name="clouddetect")
@click.option("--cache-file", default=None, help="Snapshot file shared between processes (empty: memory only)")
@click.option("--ttl-hours", type=click.FloatRange(min=0, min_open=True), default=None, help="Cache lifetime in hours")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, cache_file: str | None, ttl_hours: float | None, verbose: bool) -> None:
    """Detect whether IP addresses belong to a public cloud provider."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        ctx.obj = _build_client(cache_file, ttl_hours)
    except CloudDetectError as e:
        raise click.UsageError(format_error_for_user(e)) from e
    except OSError as e:
        raise click.UsageError(f"Cannot prepare cache directory: {e} (use --cache-file or CLOUDDETECT_CACHE_DIR)") from e


@cli.command()
@click.argument("ips", nargs=-1, required=True)
@click.pass_obj
def resolve(client: Client, ips: tuple[str, ...]) -> None:
    """Look up one or more IP addresses."""
    table = Table(show_header=True, header_style="bold magenta", box=None)
    table.add_column("IP", style="cyan")
    table.add_column("Provider")
    table.add_column("Region", style="white")
    table.add_column("Subnet", style="yellow")

    missing = 0
    for raw in ips:
        try:
            address = ipaddress.ip_address(raw.strip())
        except ValueError:
            console.print(f"[red]{raw} is not a valid IP[/red]")
            missing += 1
            continue

        try:
            record = client.resolve(address)
        except NotCloudIPError:
            table.add_row(str(address), "[dim]-[/dim]", "-", "-")
            missing += 1
            continue
        except CloudDetectError as e:
            console.print(f"[red]Error resolving {address}: {format_error_for_user(e)}[/red]")
            sys.exit(EXIT_REFRESH_FAILED)

        style = PROVIDER_STYLE.get(record.provider_name, "white")
        table.add_row(
            str(address),
            f"[{style}]{record.provider_name}[/{style}]",
            record.region or "-",
            str(record.subnet),
        )

    if table.row_count:
        console.print(table)
    if missing:
        sys.exit(EXIT_NOT_FOUND)


@cli.command()
@click.pass_obj
def refresh(client: Client) -> None:
    """Refresh the cached ranges now."""
    try:
        with console.status("[bold yellow]Refreshing cloud IP ranges...[/bold yellow]"):
            source = client.refresh_cache()
    except CloudDetectError as e:
        console.print(f"[red]Refresh failed: {format_error_for_user(e)}[/red]")
        sys.exit(EXIT_REFRESH_FAILED)

    console.print(f"[green]Loaded {client.count()} ranges[/green] [dim](source: {source.value})[/dim]")


@cli.command()
@click.pass_obj
def status(client: Client) -> None:
    """Show the shared snapshot status without fetching anything."""
    info = client.status()

    console.print("\n[bold cyan]Cache status[/bold cyan]")
    console.print(f"  File:     {info['cache_file_path'] or '[dim]memory only[/dim]'}")

    disk = info["disk"]
    if disk is None:
        return
    if not disk["exists"]:
        console.print("  Snapshot: [dim]none[/dim]")
    elif "error" in disk:
        console.print(f"  Snapshot: [red]unreadable[/red] [dim]({disk['error']})[/dim]")
    else:
        written = datetime.fromtimestamp(disk["mtime"]).strftime("%Y-%m-%d %H:%M")
        valid = "[green]valid[/green]" if disk["valid"] else "[yellow]expired[/yellow]"
        console.print(f"  Snapshot: {disk['count']} ranges, written {written} ({valid})")

    if info["lease_age"] is not None:
        console.print(f"  Lease:    held for {info['lease_age']:.0f}s")


if __name__ == "__main__":
    cli()
