# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import json
import logging

from typing import Any

import rich_click as click

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from urlfilter.codec import decode_filters, encode_filters, validate_filters
from urlfilter.component import FilterComponent
from urlfilter.config import FilterSettings
from urlfilter.links import add_filter_url, remove_filter_url
from urlfilter.registry import TypeRegistry
from urlfilter.schema import StaticSchemaProvider
from urlfilter.types import FilterError
from urlfilter.url import NamedUrl


logger = logging.getLogger("urlfilter.cli")
console = Console()


class CliContext:
    """CLI context containing settings and the filter component."""

    def __init__(self, settings: FilterSettings, component: FilterComponent):
        self.settings = settings
        self.component = component

    @property
    def registry(self) -> TypeRegistry:
        return self.component.registry


pass_cli_context = click.make_pass_decorator(CliContext)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_json(value: str | None, option_name: str) -> Any:
    if not value:
        return None

    try:
        if value.lstrip().startswith(("{", "[")):
            return json.loads(value)

        with open(value, encoding="utf-8") as fp:
            return json.load(fp)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint=option_name)


def _load_settings(config: str | None, env_file: str | None) -> FilterSettings:
    env_options = {"_env_file": env_file} if env_file else {}

    try:
        if config and not config.lstrip().startswith(("{", "[")):
            return FilterSettings.from_json_file(config, **env_options)

        overrides = _load_json(config, "--config") or {}

        if not isinstance(overrides, dict):
            raise click.BadParameter("Filter settings must be a JSON object", param_hint="--config")

        return FilterSettings(**env_options, **overrides)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--config")
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config")


@click.group()
@click.option("--env-file", default=None, help="The environment file to load settings from.")
@click.option("--config", "config", default=None, help="Filter settings as JSON, inline or file path.")
@click.option("--schema", "schema", default=None, help="Entity schemas as JSON, inline or file path.")
@click.pass_context
def cli(ctx: click.Context, env_file: str | None, config: str | None, schema: str | None):
    """URL filters CLI"""
    settings = _load_settings(config, env_file)

    setup_logging(settings.log_level.value)

    schema_data = _load_json(schema, "--schema")
    schema_provider = StaticSchemaProvider(schema_data) if schema_data else None

    try:
        component = FilterComponent.from_settings(settings, schema_provider)
    except FilterError as e:
        raise click.ClickException(str(e))

    ctx.obj = CliContext(settings, component)


@cli.command()
@pass_cli_context
def operators(ctx: CliContext):
    """List the available operators"""
    table = Table(title="Operators")
    table.add_column("Id", style="cyan")
    table.add_column("Label")
    table.add_column("Condition")
    table.add_column("Format")

    for operator in ctx.registry.operators:
        table.add_row(
            operator.id,
            operator.label,
            repr(operator.condition_operator),
            operator.value_format.template,
        )

    console.print(table)


@cli.command()
@pass_cli_context
def types(ctx: CliContext):
    """List the configured filter types"""
    table = Table(title="Filter types")
    table.add_column("Type", style="cyan")
    table.add_column("Label")
    table.add_column("Params")
    table.add_column("Operators")

    registry = ctx.registry

    for config in registry:
        table.add_row(
            config.name,
            config.label,
            ", ".join(f"{role}={code}" for role, code in config.params.items()),
            ", ".join(sorted(registry.allowed_operator_ids(config.name))),
        )

    console.print(table)


@cli.command()
@click.argument("url")
@click.option("--data", "data", required=True, help="Posted filter data as JSON, inline or file path.")
@pass_cli_context
def encode(ctx: CliContext, url: str, data: str):
    """Encode posted filter data into the URL"""
    posted = _load_json(data, "--data")

    click.echo(
        encode_filters(
            posted,
            url,
            ctx.registry,
            ctx.settings.pagination_params,
            ctx.settings.add_filter_param,
        )
    )


@cli.command()
@click.argument("url")
@click.option("--primary", "primary", default=None, help="The listed entity, used to validate fields.")
@pass_cli_context
def decode(ctx: CliContext, url: str, primary: str | None):
    """Decode and validate the filters of a URL"""
    filter_set = decode_filters(NamedUrl.parse(url).named, ctx.registry)
    valid, rejected = validate_filters(filter_set, ctx.registry, primary)

    table = Table(title="Filters")
    table.add_column("Type", style="cyan")
    table.add_column("Index")
    table.add_column("Field")
    table.add_column("Operator")
    table.add_column("Value")
    table.add_column("Status")

    rejections = {(item.entry.type, item.entry.index): item.reason for item in rejected}

    for entry in filter_set:
        reason = rejections.get((entry.type, entry.index))
        table.add_row(
            entry.type,
            str(entry.index),
            entry.field_key or "",
            entry.operator_id or "",
            entry.value or "",
            f"[red]{reason}[/red]" if reason else "[green]valid[/green]",
        )

    console.print(table)
    console.print(f"{len(valid)} valid, {len(rejected)} rejected")


@cli.command()
@click.argument("url")
@click.option("--primary", "primary", default=None, help="The listed entity.")
@pass_cli_context
def conditions(ctx: CliContext, url: str, primary: str | None):
    """Print the query conditions of the filters of a URL as JSON"""
    component = ctx.component
    state = component.apply(component.extract(url), primary)

    click.echo(json.dumps(state.conditions.to_dict(), indent=2))


@cli.command("remove-link")
@click.argument("url")
@click.argument("type_name")
@click.argument("index", type=int)
@pass_cli_context
def remove_link(ctx: CliContext, url: str, type_name: str, index: int):
    """Print the URL without the filter at INDEX of TYPE_NAME"""
    try:
        click.echo(remove_filter_url(url, type_name, index, ctx.registry))
    except ValueError as e:
        raise click.ClickException(str(e))


@cli.command("add-link")
@click.argument("url")
@click.argument("type_name")
@pass_cli_context
def add_link(ctx: CliContext, url: str, type_name: str):
    """Print the URL extended with a blank filter of TYPE_NAME"""
    try:
        click.echo(add_filter_url(url, type_name, ctx.registry))
    except ValueError as e:
        raise click.ClickException(str(e))


def main():
    cli()


__all__ = [
    "CliContext",
    "setup_logging",
    "cli",
    "main",
]
