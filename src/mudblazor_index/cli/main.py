"""Main CLI for the MudBlazor component index."""

import asyncio
import time
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import DEFAULT_CONFIG_PATH, load_config
from ..errors import ErrorTranslator, MudIndexError
from ..indexing.indexer import MAX_SEARCH_RESULTS, ComponentIndexer
from ..indexing.models import RelationshipKind
from ..repository.git_repository import GitRepositoryService, LocalSourceTree
from ..utils.rich_logging import setup_logging


console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=str(DEFAULT_CONFIG_PATH), help="Config file (YAML)")
@click.option("--source", "-s", type=click.Path(file_okay=False), help="Index a local source tree instead of the git checkout")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config_path, source, verbose):
    """MudBlazor component index - parse, categorise and query component docs."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path)
    ctx.obj["source"] = Path(source) if source else None
    ctx.obj["verbose"] = verbose


def _load(ctx):
    try:
        config = load_config(ctx.obj["config_path"])
    except (ValidationError, ValueError, OSError) as e:
        _fail(e)
    setup_logging(
        log_level="DEBUG" if ctx.obj["verbose"] else config.log_level,
        log_file=config.log_file,
    )
    return config


def _make_indexer(ctx) -> ComponentIndexer:
    config = _load(ctx)
    if ctx.obj["source"] is not None:
        source_tree = LocalSourceTree(ctx.obj["source"])
    else:
        source_tree = GitRepositoryService.from_config(config.repository)
    return ComponentIndexer(source_tree, config=config)


def _fail(error: Exception):
    translator = ErrorTranslator()
    console.print(translator.format_for_cli(translator.translate(error)))
    raise SystemExit(1)


def _run_query(ctx, query):
    """Build the index, then call ``query(indexer)`` against it."""
    indexer = _make_indexer(ctx)

    async def _go():
        async with indexer:
            await indexer.build()
            return query(indexer)

    try:
        return asyncio.run(_go())
    except MudIndexError as e:
        _fail(e)


def _component_table(components, title=None) -> Table:
    table = Table(title=title)
    table.add_column("Component")
    table.add_column("Category")
    table.add_column("Summary")
    for component in components:
        table.add_row(
            escape(component.name),
            escape(component.category or "-"),
            escape(component.summary),
        )
    return table


@cli.command()
@click.option("--refresh", is_flag=True, help="Delete the git checkout and clone it again first")
@click.pass_context
def build(ctx, refresh):
    """Build the index once and report what was found."""
    indexer = _make_indexer(ctx)
    source_tree = indexer.source_tree
    if refresh and not isinstance(source_tree, GitRepositoryService):
        console.print("[yellow]--refresh only applies to the git checkout, ignoring it[/]")
        refresh = False

    async def _go():
        async with indexer:
            started = time.monotonic()
            if refresh:
                await source_tree.force_refresh()
            snapshot = await indexer.build()
            return snapshot, time.monotonic() - started, indexer.cache.statistics()

    try:
        snapshot, duration, stats = asyncio.run(_go())
    except MudIndexError as e:
        _fail(e)

    console.print(f"[green]✓ Index built in {duration:.1f}s[/]")
    table = Table()
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Components", str(len(snapshot.components)))
    table.add_row("Categories", str(len(snapshot.categories)))
    table.add_row("API references", str(len(snapshot.api_references)))
    table.add_row("Examples", str(sum(len(c.examples) for c in snapshot.components)))
    table.add_row("Generation", str(snapshot.generation))
    table.add_row("Cached items", str(stats.item_count))
    console.print(table)


@cli.command()
@click.argument("query")
@click.option("--fields", "-f", default="all", help="Comma-separated: name, description, parameters, examples, all")
@click.option("--max", "-n", "max_results", default=10, type=int, help=f"Max results (1-{MAX_SEARCH_RESULTS})")
@click.pass_context
def search(ctx, query, fields, max_results):
    """Search components by name, description, parameters or examples."""
    results = _run_query(ctx, lambda idx: idx.search(query, fields=fields, max_results=max_results))
    if not results:
        console.print(f"[yellow]No components match '{escape(query)}'[/]")
        return
    console.print(_component_table(results, title=f"{len(results)} result(s)"))


@cli.command()
@click.option("--category", "-k", help="Only components in this category")
@click.pass_context
def components(ctx, category):
    """List indexed components."""
    if category:
        results = _run_query(ctx, lambda idx: idx.require_category(category))
    else:
        results = _run_query(ctx, lambda idx: idx.get_all_components())
    console.print(_component_table(results, title=f"{len(results)} component(s)"))


@cli.command()
@click.pass_context
def categories(ctx):
    """List categories and how many components each holds."""
    results = _run_query(ctx, lambda idx: idx.get_categories())
    table = Table()
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("Components", justify="right")
    for category in results:
        table.add_row(
            escape(category.name),
            escape(category.title or category.name),
            str(len(category.component_names)),
        )
    console.print(table)


@cli.command()
@click.argument("name")
@click.pass_context
def show(ctx, name):
    """Show one component's parameters, events and methods."""
    component = _run_query(ctx, lambda idx: idx.require_component(name))

    console.print(f"[bold]{escape(component.full_name)}[/]")
    if component.base_type:
        console.print(f"[dim]Inherits {escape(component.base_type)}[/]")
    console.print(f"Category: {escape(component.category or '-')}")
    console.print(escape(component.summary))
    if component.description:
        console.print(f"\n{escape(component.description)}")
    if component.is_deprecated:
        console.print("[yellow]Deprecated[/]")

    if component.parameters:
        table = Table(title="Parameters")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Default")
        table.add_column("Description")
        for p in component.parameters:
            name_cell = f"{p.name} [red]*[/]" if p.is_required else p.name
            table.add_row(name_cell, escape(p.type), escape(p.default_value or ""), escape(p.description or ""))
        console.print(table)

    if component.events:
        table = Table(title="Events")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Description")
        for e in component.events:
            table.add_row(e.name, escape(e.type), escape(e.description or ""))
        console.print(table)

    if component.methods:
        table = Table(title="Methods")
        table.add_column("Signature")
        table.add_column("Description")
        for m in component.methods:
            table.add_row(escape(m.signature), escape(m.description or ""))
        console.print(table)

    if component.documentation_url:
        console.print(f"\nDocs: {component.documentation_url}")


@cli.command()
@click.argument("name")
@click.option("--code", is_flag=True, help="Print the full example source")
@click.pass_context
def examples(ctx, name, code):
    """List a component's documentation examples."""
    results = _run_query(ctx, lambda idx: idx.get_examples(name))
    if not results:
        console.print(f"[yellow]No examples for {escape(name)}[/]")
        return
    for example in results:
        features = f" [dim]({', '.join(example.features)})[/]" if example.features else ""
        console.print(f"[bold]{escape(example.title)}[/]{features}")
        if example.description:
            console.print(f"  {escape(example.description)}")
        if code:
            console.print(escape(example.full_code), highlight=False)
            console.print()


@cli.command()
@click.argument("name")
@click.option(
    "--kind", "-k", default=RelationshipKind.ALL.value,
    type=click.Choice([k.value for k in RelationshipKind], case_sensitive=False),
    help="Relationship to follow",
)
@click.pass_context
def related(ctx, name, kind):
    """Show components related to NAME."""
    results = _run_query(ctx, lambda idx: idx.get_related(name, kind))
    if not results:
        console.print(f"[yellow]No related components for {escape(name)}[/]")
        return
    console.print(_component_table(results, title=f"Related to {escape(name)} ({kind})"))


@cli.command()
@click.argument("type_name")
@click.pass_context
def api(ctx, type_name):
    """Show the API reference for a type or enum."""
    reference = _run_query(ctx, lambda idx: idx.get_api_reference(type_name))
    if reference is None:
        console.print(f"[yellow]No API reference for {escape(type_name)}[/]")
        raise SystemExit(1)

    console.print(f"[bold]{escape(reference.full_name)}[/] [dim]({reference.kind})[/]")
    if reference.summary:
        console.print(escape(reference.summary))

    if reference.enum_values:
        table = Table(title="Values")
        table.add_column("Name")
        table.add_column("Value")
        table.add_column("Description")
        for v in reference.enum_values:
            table.add_row(v.name, v.value or "", escape(v.description or ""))
        console.print(table)

    if reference.members:
        table = Table(title="Members")
        table.add_column("Kind")
        table.add_column("Name")
        table.add_column("Type")
        for m in reference.members:
            name_cell = f"{m.name}({m.parameter_signature or ''})" if m.member_type == "Method" else m.name
            table.add_row(m.member_type, escape(name_cell), escape(m.return_type))
        console.print(table)


if __name__ == "__main__":
    cli()
