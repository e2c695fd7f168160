#!/usr/bin/env python3
"""
Command-line entry point for scoopi.

Commands:
  crawl URL   Scoop a documentation site into Markdown files
  config      Inspect or edit persisted settings

Global options:
  --config PATH       User settings file (default: ~/.scoopi/config.yaml)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Also write logs to this file
  --version, -v       Show the scoopi version

Example:
  scoopi crawl https://docs.example.com --depth 2 --output ./docs --exclude '*/changelog*'
"""
import sys
import asyncio
import traceback
from pathlib import Path

import click

from scoopi import __version__
from scoopi.config import CONFIG_CATEGORIES, SettingsStore
from scoopi.crawler.link_filter import normalize_url
from scoopi.engine import start_crawl
from scoopi.logger import configure, set_level

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='scoopi, version %(version)s')
@click.option(
    '--config', '-c', 'settings_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='User settings file (YAML or JSON). Default: ~/.scoopi/config.yaml'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (console only if omitted)'
)
@click.pass_context
def cli(ctx, settings_path, log_level, log_file):
    """Scoop documentation websites into local Markdown files."""
    configure(level=log_level, log_file=str(log_file) if log_file else None)
    ctx.ensure_object(dict)
    ctx.obj['store'] = SettingsStore(settings_path)


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--depth', '-d', 'max_depth', type=int, default=None, help='Maximum crawl depth')
@click.option('--output', '-o', 'output_dir', default=None, help='Output directory')
@click.option('--include', 'include_patterns', default=None,
              help='URL patterns to include (comma-separated, * is a wildcard)')
@click.option('--exclude', 'exclude_patterns', default=None,
              help='URL patterns to exclude (comma-separated, * is a wildcard)')
@click.option('--delay', 'delay_ms', type=int, default=None, help='Delay between requests (ms)')
@click.option('--timeout', 'timeout_ms', type=int, default=None, help='Page load timeout (ms)')
@click.option('--renderer', type=click.Choice(['browser', 'http']), default=None,
              help='Headless browser or plain HTTP fetching')
@click.option('--headful', is_flag=True, help='Show the browser window')
@click.option('--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def crawl(ctx, url, headful, verbose, **options):
    """Scoop a documentation website and convert it to Markdown."""
    store = ctx.obj['store']
    # unset flags fall through to the settings file
    options['headless'] = False if headful else None
    options['verbose'] = True if verbose else None
    try:
        cfg = store.effective(options)
    except Exception as e:
        print_error(f'Configuration error: {e}')

    if normalize_url(url) is None or not url.lower().startswith(('http://', 'https://')):
        print_error(f'Invalid URL: {url}')

    if cfg.verbose:
        set_level('DEBUG')

    try:
        report = asyncio.run(start_crawl(cfg, url))
    except Exception as e:
        if cfg.verbose:
            click.echo(traceback.format_exc(), err=True)
        print_error(f'Scooping failed: {e}')

    if report.interrupted:
        click.secho(f'Crawl interrupted after {report.visited} pages', fg='yellow')
    else:
        click.secho(
            f'Documentation successfully scooped to {cfg.output_dir} ({report.visited} pages)',
            fg='green',
        )
    if report.failed:
        click.secho(f'{len(report.failed)} pages failed', fg='yellow')


def _format_value(value):
    if isinstance(value, list):
        return '[' + ', '.join(str(v) for v in value) + ']'
    return str(value)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.option('--show', is_flag=True, help='Show the effective configuration')
@click.option('--get', 'get_key', default=None, help='Show the value of one key')
@click.option('--set', 'set_key', default=None, help='Key to update (use with --value)')
@click.option('--value', default=None, help='New value for --set')
@click.option('--reset', is_flag=True, help='Reset settings to defaults')
@click.option('--path', 'show_path', is_flag=True, help='Print the settings file location')
@click.pass_context
def config_cmd(ctx, show, get_key, set_key, value, reset, show_path):
    """Manage persisted scoopi settings."""
    store = ctx.obj['store']
    try:
        if show_path:
            click.echo(str(store.path))
        elif show:
            _show_config(store)
        elif get_key:
            try:
                current, customized = store.get_value(get_key)
            except KeyError:
                print_error(f"Configuration key '{get_key}' not found")
            marker = '(custom)' if customized else '(default)'
            click.echo(f'{get_key}: {_format_value(current)} {marker}')
        elif set_key and value is not None:
            parsed = store.set_value(set_key, value)
            click.secho('Configuration updated:', fg='green')
            click.echo(f'  {set_key}: {_format_value(parsed)}')
        elif reset:
            if not store.exists():
                click.secho('No configuration file found. Nothing to reset.', fg='yellow')
                return
            store.reset()
            click.secho('Configuration reset to defaults', fg='green')
        else:
            print_error('Please specify --show, --get KEY, --set KEY --value VALUE, --reset or --path')
    except (ValueError, TypeError) as e:
        print_error(f'Configuration error: {e}')


def _show_config(store: SettingsStore) -> None:
    user = store.load()
    effective = store.effective().model_dump(mode='json')
    status = 'exists' if store.exists() else 'not found (using defaults)'
    click.echo(f'Config file: {store.path}')
    click.echo(f'Status: {status}')
    click.echo('')
    for category, keys in CONFIG_CATEGORIES.items():
        click.secho(f'{category.upper()}:', fg='cyan')
        for key in keys:
            marker = '(custom)' if key in user else '(default)'
            click.echo(f'  {key:<18}: {_format_value(effective[key])} {marker}')
        click.echo('')
    if user:
        click.echo(f'{len(user)} custom configuration(s) set')
    else:
        click.echo('All configurations are using default values.')


if __name__ == "__main__":
    cli()
