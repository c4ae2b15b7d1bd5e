"""CLI main entry point."""

import asyncio
import json
import logging
import os
from pathlib import Path

import click

from .config import Config
from .consts import CONFIG_FILE_DEFAULT
from .errors import BlockBuilderException
from .form import FormController
from .i18n import gettext as _
from .i18n import initialize
from .log import setup as setup_log
from .paths import order_keys
from .registry import load_components
from .schema import load_form_schema

logger = logging.getLogger(__name__)


def load_config(config_path: str) -> Config:
    """Config from ``config_path``; defaults plus environment when it is absent."""
    if Path(config_path).exists():
        return Config.load_from_file(config_path)
    logger.debug(f"Configuration file {config_path} not found, using defaults")
    return Config()


def read_value(value_path: str | None) -> dict:
    if value_path is None:
        return {}
    try:
        value = json.loads(Path(value_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read value file {value_path}: {e}")
    if not isinstance(value, dict):
        raise click.ClickException(f"Value file {value_path} must hold a JSON object")
    return value


@click.group()
@click.option("--config", "-c", default=CONFIG_FILE_DEFAULT, help="Configuration file path")
@click.pass_context
def cli(ctx, config: str):
    """BlockBuilder - block editor forms with nested repeatable fields."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config

    try:
        cfg = load_config(config)
    except BlockBuilderException as e:
        raise click.ClickException(str(e))

    setup_log(cfg.log_file, cfg.log_level)
    initialize(ui_language=cfg.language)
    ctx.obj["config"] = cfg


@cli.command(name="render")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--value", "value_file", default=None, help="JSON file with the form value")
@click.option("--output", "-o", default=None, help="Write HTML here instead of stdout")
@click.pass_context
def render(ctx, schema_file: str, value_file: str | None, output: str | None):
    """Render a form schema to HTML."""
    cfg = ctx.obj["config"]

    try:
        schema = load_form_schema(schema_file)
    except BlockBuilderException as e:
        raise click.ClickException(str(e))

    controller = FormController(schema, read_value(value_file), editor=cfg.editor)
    try:
        markup = controller.render()
    finally:
        controller.destroy()

    if output:
        Path(output).write_text(markup, encoding="utf-8")
        logger.info(f"Form written to {output}")
    else:
        click.echo(markup)


@cli.command(name="validate")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("value_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, schema_file: str, value_file: str):
    """Validate a JSON value against a form schema and show the first error."""
    cfg = ctx.obj["config"]

    try:
        schema = load_form_schema(schema_file)
    except BlockBuilderException as e:
        raise click.ClickException(str(e))

    editor = cfg.editor.model_copy(update={"settle_delay_ms": 0})
    controller = FormController(schema, read_value(value_file), editor=editor)
    try:
        errors = controller.validate()
        if not errors:
            click.echo(_("Value is valid"))
            return

        route, _viewport = asyncio.run(controller.route_errors(errors))
    finally:
        controller.destroy()

    for key in order_keys(errors):
        for message in errors[key]:
            click.echo(f"{key}: {message}")
    if route is not None:
        click.echo(_("First error: {key}").format(key=route.key))
    ctx.exit(1)


@cli.command(name="components")
@click.pass_context
def components(ctx):
    """List the block types of the configured components file."""
    cfg = ctx.obj["config"]
    if not cfg.components_file:
        raise click.ClickException("components_file is not configured")

    try:
        registry = load_components(cfg.components_file)
    except BlockBuilderException as e:
        raise click.ClickException(str(e))

    click.echo("type\ttitle\tfields")
    for component in registry.list():
        click.echo(f"{component.type}\t{component.title}\t{len(component.fields)}")


@cli.command(name="serve")
@click.option("--host", "-h", default=None, help="Override host from config")
@click.option("--port", "-p", default=None, type=int, help="Override port from config")
@click.option("--reload/--no-reload", default=None, help="Enable/disable auto reload")
@click.pass_context
def serve(ctx, host, port, reload):
    """Start the HTTP API server."""
    import uvicorn

    config_path = ctx.obj["config_path"]
    cfg = ctx.obj["config"]

    if not Path(config_path).exists():
        raise click.ClickException(f"Configuration file not found: {config_path}")

    host = host or cfg.web.host
    port = port or cfg.web.port
    reload = cfg.web.reload if reload is None else reload

    os.environ["CONFIG_FILE"] = str(Path(config_path).resolve())
    logger.info(f"Starting BlockBuilder API on http://{host}:{port}")

    uvicorn.run(
        "blockbuilder.api:create_app",
        host=host,
        port=port,
        factory=True,
        reload=reload,
    )


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
