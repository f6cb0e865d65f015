#!/usr/bin/env python3
"""
multido – run a multi‑statement SQL file as one batch.

• ``multido split FILE``            show how FILE is split into statements
• ``multido run FILE -e ENV``       execute FILE against a configured database

Environments are declared in ``multido.config.yml`` (see :mod:`multido.config`).
Bind values for ``run`` come from a YAML list, one entry per statement::

    - null
    - [1, Nevada]
    - null
    - [1, Las Vegas, 1]
"""
from __future__ import annotations

import logging
import pathlib
import sys
import typing as t

import click
import yaml

from multido import __version__
from multido.batch import Batch
from multido.config import Environment, load, ConfigError
from multido.driver import connection
from multido.splitter import Splitter


def _load_env(ctx, _param, value) -> Environment:
    try:
        return load(ctx.obj["config_path"], value)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)


def _load_binds(path: str | None) -> list[t.Any] | None:
    if path is None:
        return None
    try:
        data = yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        click.echo(f"{path}: invalid YAML: {exc}", err=True)
        sys.exit(1)
    if data is None:
        return None
    if not isinstance(data, list) or not all(b is None or isinstance(b, list) for b in data):
        click.echo(f"{path}: bind values must be a list of lists (or nulls)", err=True)
        sys.exit(1)
    return data


@click.group()
@click.option(
    "-c", "--config", "config_path", type=click.Path(), help="env config YAML"
)
@click.option("-v", "--verbose", is_flag=True, help="log every statement")
@click.pass_context
def main(ctx, config_path, verbose):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = {"config_path": pathlib.Path(config_path) if config_path else None}


@main.command()
def version():
    click.echo(__version__)


@main.command("split")
@click.argument("sql_file", type=click.File("r", encoding="utf-8"))
@click.option("--keep-terminator", is_flag=True)
@click.option("--keep-extra-spaces", is_flag=True)
@click.option("--keep-empty-statements", is_flag=True)
@click.option("--keep-comments", is_flag=True)
@click.option("--placeholders", is_flag=True, help="show bind placeholder counts")
def split_cmd(sql_file, placeholders, **options):
    splitter = Splitter(**options)
    statements, counts = splitter.split_with_placeholders(sql_file.read())
    for idx, (stmt, count) in enumerate(zip(statements, counts), start=1):
        header = f"-- [{idx}]"
        if placeholders:
            header += f" placeholders={count}"
        click.echo(header)
        click.echo(stmt)
    click.echo(f"-- {len(statements)} statement(s)")


@main.command("run")
@click.argument("sql_file", type=click.File("r", encoding="utf-8"))
@click.option("-e", "--env", callback=_load_env, expose_value=True)
@click.option("--no-rollback", is_flag=True, help="disable the automatic transaction")
@click.option(
    "-b", "--binds", "binds_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML list of bind values, one entry per statement",
)
def run_cmd(sql_file, env, no_rollback, binds_file):
    sql = sql_file.read()
    bind_values = _load_binds(binds_file)

    with connection(env) as conn:
        batch = Batch(
            conn,
            rollback=env.rollback and not no_rollback,
            splitter_options=env.splitter_options,
        )
        statements = batch.splitter.split(sql)
        results = batch.execute(statements, bind_values=bind_values)

    if len(results) != len(statements):
        click.echo(f"Batch failed: {batch.errstr}", err=True)
        if not batch.rollback:
            click.echo(f"{len(results)} of {len(statements)} statements executed.", err=True)
        sys.exit(1)

    click.echo(f"{len(results)} statements successfully executed!")
