"""Command-line interface for domaincat."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from domaincat.categories import Category, categories_in
from domaincat.config import apply_overrides, find_config_file, load_config, merge_cli_options
from domaincat.errors import DomainCatError, MalformedArtifact
from domaincat.pipeline import build_artifact, count_by_category, resolve_sources
from domaincat.sources import SourceFetcher, Tier
from domaincat.store import CategoryStore
from domaincat.succinct import DomainMap, write_artifact
from domaincat.urls import get_host_from_url

console = Console()

CATEGORY_CHOICES = click.Choice([c.value for c in Category])
TIER_CHOICES = click.Choice([t.value for t in Tier])

CATEGORY_STYLES = {
    "bad": "red bold",
    "ads": "yellow",
    "tracking": "blue",
    "gambling": "magenta",
    "networking": "cyan",
}


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to config file (default: searches standard locations)",
)
@click.option(
    "--artifact",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the dictionary artifact",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config: Path | None, artifact: Path | None, verbose: bool) -> None:
    """domaincat - Domain categorization dictionary builder and matcher."""
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Load config file; CLI --artifact overrides it
    cfg = merge_cli_options(load_config(config), artifact=artifact)
    ctx.obj["config"] = cfg

    config_path = config or find_config_file()
    if config_path:
        ctx.obj["config_path"] = config_path


@main.command()
@click.option("--tier", type=TIER_CHOICES, default=None, help="Source tier (default: small)")
@click.option(
    "--category",
    type=CATEGORY_CHOICES,
    multiple=True,
    help="Category to include (can specify multiple; default: all)",
)
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Output artifact path")
@click.option("--offline", is_flag=True, help="Use cached lists only, never download")
@click.pass_context
def build(
    ctx: click.Context,
    tier: str | None,
    category: tuple[str, ...],
    output: Path | None,
    offline: bool,
) -> None:
    """Fetch domain lists and build the dictionary artifact."""
    cfg = merge_cli_options(ctx.obj["config"], tier=tier, category=category, artifact=output)

    if "config_path" in ctx.obj:
        console.print(f"[dim]Config: {ctx.obj['config_path']}[/dim]")

    fetcher = SourceFetcher(
        cfg.cache_dir,
        update_interval_hours=cfg.update_interval_hours,
        timeout_seconds=cfg.timeout_seconds,
        offline=offline,
    )

    sources = resolve_sources(
        cfg.source_catalog(), cfg.directory_catalog(), fetcher, cfg.categories, cfg.tier
    )
    if not sources:
        console.print("[yellow]No sources selected for these categories and tier[/yellow]")
        sys.exit(1)

    categories = ", ".join(c.value for c in cfg.categories)
    console.print(f"[cyan]Building from {len(sources)} sources (tier: {cfg.tier.value}; {categories})...[/cyan]")

    try:
        data, report = build_artifact(sources, fetcher, cfg.whitelist(), cfg.categories)
        write_artifact(cfg.artifact_path, data)
    except (DomainCatError, OSError) as e:
        console.print(f"[red]Build failed: {e}[/red]")
        sys.exit(1)

    for name, reason in report.sources_skipped.items():
        console.print(f"[yellow]Skipped {name}: {reason}[/yellow]")

    table = Table(title="Dictionary Build")
    table.add_column("Category")
    table.add_column("Listed", justify="right")
    table.add_column("Entries", justify="right")
    for cat in Category:
        table.add_row(
            cat.value,
            f"{report.domains_per_category.get(cat, 0):,}",
            f"{report.entries_per_category.get(cat, 0):,}",
        )
    console.print(table)

    console.print(f"  Sources used: {len(report.sources_used)}")
    console.print(f"  Whitelisted: {report.whitelisted:,}")
    console.print(f"  Pruned subdomains: {report.pruned_entries:,}")
    console.print(f"[green]Wrote {report.final_entries:,} entries to {cfg.artifact_path} "
                  f"({report.artifact_bytes:,} bytes)[/green]")


@main.command()
@click.argument("urls", nargs=-1, required=True)
@click.pass_context
def check(ctx: click.Context, urls: tuple[str, ...]) -> None:
    """Show the categories of one or more URLs or hosts."""
    cfg = ctx.obj["config"]

    store = CategoryStore.from_path(cfg.artifact_path)
    apply_overrides(store, cfg)

    try:
        store.load()
    except MalformedArtifact as e:
        console.print(f"[red]Cannot load dictionary: {e}[/red]")
        console.print("[yellow]Run 'domaincat build' first.[/yellow]")
        sys.exit(1)

    table = Table(title="Domain Categories")
    table.add_column("URL")
    table.add_column("Host")
    table.add_column("Categories")

    for url in urls:
        host = get_host_from_url(url)
        if host is None:
            table.add_row(url, "[dim]-[/dim]", "[dim]no host[/dim]")
            continue

        tags = store.categories_for(host)
        if tags:
            labels = []
            for tag in tags:
                name = tag.value if isinstance(tag, Category) else tag
                style = CATEGORY_STYLES.get(name, "white")
                labels.append(f"[{style}]{name}[/{style}]")
            table.add_row(url, host, ", ".join(labels))
        else:
            table.add_row(url, host, "[green]clean[/green]")

    console.print(table)


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show dictionary artifact statistics."""
    cfg = ctx.obj["config"]

    try:
        domain_map = DomainMap.from_path(cfg.artifact_path)
    except (MalformedArtifact, OSError) as e:
        console.print(f"[red]Cannot load dictionary: {e}[/red]")
        sys.exit(1)

    console.print("[cyan]Dictionary[/cyan]")
    console.print(f"  Path: {cfg.artifact_path}")
    console.print(f"  Size: {cfg.artifact_path.stat().st_size:,} bytes")
    console.print(f"  Entries: {len(domain_map):,}")
    known = ", ".join(c.value for c in categories_in(domain_map.category_mask))
    console.print(f"  Categories: {known}")

    counts = count_by_category(dict(domain_map.items()))
    table = Table(title="Entries per Category")
    table.add_column("Category")
    table.add_column("Entries", justify="right")
    for cat, count in counts.items():
        table.add_row(cat.value, f"{count:,}")
    console.print(table)


@main.command()
@click.option("--tier", type=TIER_CHOICES, default=None, help="Source tier (default: small)")
@click.option("--category", type=CATEGORY_CHOICES, multiple=True, help="Category filter")
@click.pass_context
def sources(ctx: click.Context, tier: str | None, category: tuple[str, ...]) -> None:
    """List the sources a build would use."""
    cfg = merge_cli_options(ctx.obj["config"], tier=tier, category=category)
    fetcher = SourceFetcher(cfg.cache_dir, update_interval_hours=cfg.update_interval_hours, offline=True)
    selected = resolve_sources(
        cfg.source_catalog(), cfg.directory_catalog(), fetcher, cfg.categories, cfg.tier
    )

    for directory in cfg.directory_catalog():
        if cfg.tier.includes(directory.tier) and not fetcher.listing_file(directory).exists():
            console.print(f"[dim]{directory.name}: file list not cached yet (run 'domaincat build')[/dim]")

    if not selected:
        console.print("[yellow]No sources selected[/yellow]")
        return

    table = Table(title=f"Sources (tier: {cfg.tier.value})")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Dialect")
    table.add_column("Tier")
    table.add_column("Cached")

    for source in selected:
        if source.is_remote:
            cached = "yes" if fetcher.cache_file(source).exists() else "[dim]no[/dim]"
        else:
            cached = "[dim]local[/dim]"
        table.add_row(source.name, source.category.value, source.dialect.value, source.tier.value, cached)

    console.print(table)


if __name__ == "__main__":
    main()
