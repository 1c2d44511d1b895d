"""
Management commands for the unit catalog and ad hoc conversions
"""
import click
from flask.cli import with_appcontext

from .extensions import get_engine, get_registry
from .seeders import seed_units
from .services.unit_conversion.errors import MeasurementError


@click.command('seed-units')
@with_appcontext
def seed_units_command():
    """Register the system unit catalog"""
    created = seed_units(get_registry())
    click.echo(f"Seeded {created} units ({len(get_registry())} registered).")


@click.command('list-units')
@click.option('--type', 'unit_type', default=None, help='Only list units of this type (e.g. WEIGHT).')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive units.')
@with_appcontext
def list_units_command(unit_type, include_inactive):
    """List registered units"""
    try:
        units = get_registry().list_units(unit_type=unit_type, include_inactive=include_inactive)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--type')

    if not units:
        click.echo("No units registered.")
        return
    for unit in units:
        flags = []
        if unit.is_base_unit:
            flags.append('base')
        if not unit.is_active:
            flags.append('inactive')
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"{unit.id:<20} {unit.symbol:<8} {unit.unit_type.value:<12}{suffix}")


@click.command('convert')
@click.argument('value', type=float)
@click.argument('from_unit')
@click.argument('to_unit')
@click.option('--precision', type=int, default=None, help='Decimal places for the result.')
@with_appcontext
def convert_command(value, from_unit, to_unit, precision):
    """Convert VALUE from FROM_UNIT to TO_UNIT (unit ids)"""
    try:
        result = get_engine().convert(value, from_unit, to_unit, precision=precision)
    except MeasurementError as e:
        raise click.ClickException(f"{e.code}: {e.context}")
    click.echo(f"{result.formatted_value} ({result.conversion_path.value}, factor={result.conversion_factor}, offset={result.conversion_offset})")


def register_commands(app):
    for command in (seed_units_command, list_units_command, convert_command):
        app.cli.add_command(command)
