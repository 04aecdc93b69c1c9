"""
CLI commands for the SurrealDB testsuite.

Uses click for command-line argument parsing.
"""

import logging
import sys

import click

from ..testing import MocksMixins, ModelTestSuite
from ..utils import import_object


def load_class(path: str) -> type:
    """Import a ``module:Class`` path, exiting with an error if it is not a class."""
    try:
        obj = import_object(path)
    except ImportError as e:
        click.echo(f"Error importing {path}: {e}", err=True)
        sys.exit(1)
    if not isinstance(obj, type):
        click.echo(f"Error: {path} is not a class", err=True)
        sys.exit(1)
    return obj


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """SurrealDB model relation and scope testing helpers."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
def relations() -> None:
    """List relation-declaring methods and the relation class each returns."""
    width = max(len(name) for name in ModelTestSuite.RELATIONS)
    for name, relation_class in ModelTestSuite.RELATIONS.items():
        click.echo(f"{name:<{width}}  {relation_class.__module__}.{relation_class.__qualname__}")


@cli.command()
@click.argument("target")
@click.option("--mixin", "-m", "mixins", multiple=True, help="Class the target forwards to (module:Class)")
def methods(target: str, mixins: tuple[str, ...]) -> None:
    """
    List the methods a mixin mock of TARGET (module:Class) accepts.

    Each name is marked "own" when TARGET defines it, "mixin" otherwise.
    """
    target_class = load_class(target)
    mixin_classes = [load_class(path) for path in mixins]

    names = MocksMixins.get_mixin_mockable_methods([target_class, *mixin_classes])
    if not names:
        click.echo("No mockable methods found.")
        return

    own = set(MocksMixins.get_mixin_mockable_methods([target_class]))
    width = max(len(name) for name in names)
    for name in names:
        click.echo(f"{name:<{width}}  {'own' if name in own else 'mixin'}")
