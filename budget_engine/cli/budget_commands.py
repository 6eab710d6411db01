"""
Budget CLI Commands - Validate and import budget spreadsheets.

Usage:
    budget-engine validate budget.xlsx
    budget-engine import budget.xlsx --location-id 12 --output items.json
    budget-engine columns

Commands:
    validate  Check a sheet and print every error and warning
    import    Run the full pipeline and write the budget items as JSON
    columns   Show the template columns and valid cost codes
"""
import json
import logging
from pathlib import Path
from typing import Optional

import click

from budget_engine import __version__
from budget_engine.config import get_config
from budget_engine.domain.entities import BUDGET_COLUMNS
from budget_engine.domain.exceptions import DomainError
from budget_engine.domain.services import BudgetImportService
from budget_engine.modules.cost_codes import valid_cost_codes
from budget_engine.modules.etl import file_hash, load_sheet

logger = logging.getLogger(__name__)


def _print_report(validation) -> None:
    """Echo every validation error and warning."""
    for error in validation.errors:
        click.echo(click.style(f"  Row {error.row} [{error.column}]: {error.message}", fg='red'))
    for warning in validation.warnings:
        click.echo(click.style(f"  Warning: {warning}", fg='yellow'))


@click.group()
@click.version_option(version=__version__)
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='Path to a budget_engine_config.yaml')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool):
    """Budget spreadsheet import tools.

    Validate construction budget sheets, apply the budget formulas and
    export the resulting line items.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    ctx.ensure_object(dict)
    ctx.obj['config'] = get_config(config_path)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--layout', default=None, help='Column layout name (detected from the header if omitted)')
@click.option('--sheet', 'sheet_name', default=None, help='Worksheet name (Excel only)')
@click.pass_context
def validate(ctx, file: str, layout: Optional[str], sheet_name: Optional[str]):
    """Validate a budget sheet without importing it."""
    config = ctx.obj['config']
    try:
        sheet = load_sheet(file, sheet_name, config)
        service = BudgetImportService(config)
        resolved = service.resolve_layout(sheet, layout)
        result = service.process(sheet, resolved)
    except DomainError as e:
        raise click.ClickException(e.message)

    validation = result.validation
    click.echo(f"Layout: {resolved.name}")
    click.echo(f"Data rows: {validation.row_count}")
    if validation.is_valid:
        click.echo(click.style("✓ Sheet is valid", fg='green'))
        _print_report(validation)
        return

    click.echo(click.style(f"✗ {len(validation.errors)} error(s) found", fg='red'))
    _print_report(validation)
    ctx.exit(1)


@cli.command(name='import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--location-id', type=int, required=True, help='Location receiving the budget')
@click.option('--layout', default=None, help='Column layout name (detected from the header if omitted)')
@click.option('--sheet', 'sheet_name', default=None, help='Worksheet name (Excel only)')
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Write JSON here instead of stdout')
@click.pass_context
def import_sheet(ctx, file: str, location_id: int, layout: Optional[str],
                 sheet_name: Optional[str], output: Optional[str]):
    """Import a budget sheet for a location and emit the line items as JSON."""
    config = ctx.obj['config']
    logger.info(f"Importing {file} (md5 {file_hash(Path(file))}) for location {location_id}")
    try:
        sheet = load_sheet(file, sheet_name, config)
        result = BudgetImportService(config).import_location(sheet, location_id, layout)
    except DomainError as e:
        raise click.ClickException(e.message)

    if not result.is_valid:
        click.echo(click.style("Import rejected - fix these problems first:", fg='red'), err=True)
        for error in result.validation.errors:
            click.echo(f"  Row {error.row} [{error.column}]: {error.message}", err=True)
        ctx.exit(1)

    payload = json.dumps([item.to_dict() for item in result.items], indent=2)
    if output:
        Path(output).write_text(payload)
        click.echo(click.style(f"✓ Wrote {len(result.items)} budget items to {output}", fg='green'))
    else:
        click.echo(payload)


@cli.command()
@click.pass_context
def columns(ctx):
    """Show the budget template columns and valid cost codes."""
    config = ctx.obj['config']
    click.echo(click.style('Template columns', fg='cyan', bold=True))
    for i, column in enumerate(BUDGET_COLUMNS, start=1):
        required = ' (Required)' if column.required else ''
        click.echo(f"  {i}. {column.header}{required} - {column.description}")

    click.echo(click.style('\nValid cost codes', fg='cyan', bold=True))
    for code in valid_cost_codes(config):
        click.echo(f"  • {code}")

    click.echo(f"\nLabor rate: ${config.labor_rate}/hr")


def main():
    cli(obj={})
