"""Main CLI entry point for Repository Migration Tool."""

import sys
import asyncio
from typing import Optional
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..api.bitbucket import BitbucketClient
from ..api.circleci import CircleCIClient
from ..api.github import GitHubClient
from ..config.config import Config, create_template
from ..migration.engine import MigrationState, MigrationSummary, Migrator
from ..migration.exceptions import ActionFailedError, MigrationCancelled
from ..migration.plan import MigrationPlan
from ..utils.logging import setup_logging

console = Console()

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.repo-migrate.yaml']


@click.group()
@click.version_option(version=__version__, prog_name='repo-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Repository Migration Tool - Replay migration plans from Bitbucket to GitHub and CircleCI."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Refined once a configuration is loaded
    setup_logging('DEBUG' if verbose else 'INFO')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Repository Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your Bitbucket, GitHub and CircleCI details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.argument('plan', type=click.Path(dir_okay=False))
@click.pass_context
def describe(ctx: click.Context, plan: str) -> None:
    """Print the actions of a migration plan."""
    try:
        migration_plan = MigrationPlan.load(plan)
    except Exception as e:
        console.print(f'[red]✗[/red] Cannot read migration plan: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    console.print(migration_plan.describe(), markup=False, highlight=False)


@cli.command(name='new-plan')
@click.option(
    '--output',
    '-o',
    default='migration.json',
    help='Output migration plan path',
)
def new_plan(output: str) -> None:
    """Write an empty migration plan for this version of the tool."""
    try:
        path = MigrationPlan().save(output, confirm_overwrite=_confirm_overwrite)
    except MigrationCancelled as e:
        console.print(f'[yellow]{e}[/yellow]')
        return
    except Exception as e:
        console.print(f'[red]✗[/red] Failed to write migration plan: {e}')
        sys.exit(1)

    console.print(f'[green]✓[/green] Empty migration plan (version {__version__}) written to: {path}')


@cli.command()
@click.argument('plan', type=click.Path(dir_okay=False))
@click.option(
    '--yes',
    '-y',
    is_flag=True,
    help='Do not ask for confirmation',
)
@click.pass_context
def migrate(ctx: click.Context, plan: str, yes: bool) -> None:
    """Execute a migration plan."""
    console.print(
        Panel.fit(
            '[bold blue]Repository Migration Tool[/bold blue]\n'
            f'Executing {plan}...',
            border_style='blue',
        )
    )

    def confirm(description: str) -> bool:
        console.print(description, markup=False, highlight=False)
        if yes:
            return True
        return click.confirm('Do you want to start the migration?', default=False)

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        migrator = Migrator(plan, confirm, config=config)
        summary = asyncio.run(migrator.migrate())

    except ActionFailedError as e:
        _display_migration_summary(migrator.summary)
        console.print(f'[red]✗[/red] Migration failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)
    except Exception as e:
        console.print(f'[red]✗[/red] Migration failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    if summary.state == MigrationState.ABORTED:
        console.print('[yellow]Migration cancelled, nothing was changed[/yellow]')
        return

    _display_migration_summary(summary)
    console.print('[green]✓[/green] Migration completed')


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check connectivity to the configured hosts."""
    console.print(
        Panel.fit(
            '[bold cyan]Repository Migration Tool[/bold cyan]\nValidating configuration...',
            border_style='cyan',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        clients = [
            ('Bitbucket', BitbucketClient(config.bitbucket)),
            ('GitHub', GitHubClient(config.github)),
        ]
        if config.circleci is not None:
            clients.append(
                ('CircleCI', CircleCIClient(config.circleci, config.github.web_url))
            )

        table = Table(title='Connectivity')
        table.add_column('Host', style='cyan')
        table.add_column('Status')

        failed = False
        for name, client in clients:
            with client:
                ok = client.test_connection()
            failed = failed or not ok
            table.add_row(name, '[green]✓[/green]' if ok else '[red]✗[/red]')

        console.print(table)

    except Exception as e:
        console.print(f'[red]✗[/red] Validation failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    if failed:
        console.print('[red]✗[/red] Connectivity validation failed')
        sys.exit(1)

    console.print('[green]✓[/green] Connectivity validation passed')


def _confirm_overwrite(path: Path) -> bool:
    return click.confirm(f'{path} already exists, overwrite it?', default=False)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    # Fall back to environment variables
    try:
        return Config.from_env()
    except ValueError as e:
        raise FileNotFoundError(
            'No configuration found. Use --config to specify a file or run '
            f'"repo-migrate init" to create one.\n{e}'
        ) from e


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    # Verbose flag overrides the configured level
    log_level = 'DEBUG' if verbose else config.logging.level

    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def _display_migration_summary(summary: MigrationSummary) -> None:
    """Display migration summary results."""
    table = Table(title='Migration Summary')
    table.add_column('#', style='cyan', justify='right')
    table.add_column('Action', style='blue')
    table.add_column('Status')
    table.add_column('Elapsed', justify='right')

    for result in summary.actions:
        table.add_row(
            str(result.index),
            result.description.splitlines()[0],
            '[green]done[/green]' if result.success else '[red]failed[/red]',
            f'{result.elapsed_seconds:.1f}s',
        )

    console.print(table)

    if summary.repository_failures:
        failures = summary.repository_failures
        console.print(f'\n[red]Repository failures ({len(failures)}):[/red]')
        for failure in failures:
            console.print(f'  • {failure.full_name}: {failure.error_message}')
            if failure.work_dir:
                console.print(f'    clone kept in {failure.work_dir}')

    console.print(
        f'\n[blue]Migration Duration:[/blue] {summary.duration_seconds:.1f} seconds'
    )


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
