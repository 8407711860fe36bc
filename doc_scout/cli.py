# === FILE: doc_scout/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of DocScout.

Commands:
  scan URL          Load a page, discover document links, print/save them
  download URL...   Download documents (falls back to a browser tab)
  mode HOST         Show the activation mode as seen from HOST
  whitelist         Show the whitelist
  clear-whitelist   Empty the whitelist and enable all sites
  enable-host HOST  Enable DocScout only on HOST (whitelist mode)
  disable-host HOST Remove HOST from the whitelist
  enable-all        Enable DocScout on all sites
  toggle-deep HOST  Flip the persisted deep-mode preference
  menu HOST         List the actions available on HOST
  config            Show the effective configuration

Common options:
  --config PATH       YAML/JSON config (default: configs/default.yaml if present)
  --state-file PATH   Where mode/whitelist/deepMode are persisted
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only if omitted)
  --log-format FORMAT Logging format string

Example:
  doc-scout scan https://school.example.edu/course/42 --json report.json --pretty
"""
import asyncio
import functools
import json
import sys
from pathlib import Path

import click

from doc_scout import __version__
from doc_scout.actions import ClipboardUnavailable, download_url, system_clipboard
from doc_scout.config import load_config
from doc_scout.engine import MENU_LABELS, menu_names, start_scan
from doc_scout.logger import init_logging
from doc_scout.page.session import PageSession
from doc_scout.policy import SiteActivationPolicy
from doc_scout.report import render_list
from doc_scout.report.html_report import render_html
from doc_scout.report.json_report import render_json
from doc_scout.storage import JsonFileStorage
from doc_scout.utils import host_of

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _policy(ctx, host: str) -> SiteActivationPolicy:
    return SiteActivationPolicy(ctx.obj['storage'], host_of(host))


def state_command(func):
    """Report an unreadable state file in red instead of a traceback."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ValueError, TypeError) as e:
            print_error(f'Failed to read state file: {e}')
    return wrapper


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='DocScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML/JSON configuration file.'
)
@click.option(
    '--state-file', 'state_file',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Activation state file (overrides state_file from the config)'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr only if omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(name)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, state_file, log_level, log_file, log_format):
    """DocScout: find PowerPoint and PDF links on web pages."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg
    ctx.obj['storage'] = JsonFileStorage(state_file or cfg.state_file)


@cli.command('scan', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save a JSON report to this file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save an HTML report to this file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Folder with report.html.j2 (the bundled template if omitted)'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.option('--list', 'as_list', is_flag=True, help='Print a numbered list instead of JSON')
@click.option('--copy', 'copy_links', is_flag=True, help='Copy all links to the clipboard')
@click.option(
    '--request', '-r', 'extra_requests',
    multiple=True,
    help='Extra background request the page issues after load (repeatable)'
)
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Timeout for the whole scan (seconds)'
)
@click.pass_context
def scan(ctx, url, json_output, html_output, template_dir, pretty, as_list, copy_links,
         extra_requests, scan_timeout):
    """Scan URL for document links."""
    cfg = ctx.obj['config']
    messages = []
    coro = start_scan(
        cfg, url, ctx.obj['storage'],
        extra_requests=extra_requests,
        notify=messages.append,
        clipboard=_clipboard_or_stdout,
    )
    try:
        if scan_timeout:
            report, scout = asyncio.run(asyncio.wait_for(coro, timeout=scan_timeout))
        else:
            report, scout = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Scan did not finish within {scan_timeout} seconds')
    except Exception as e:
        print_error(f'Scan failed: {e}')

    if copy_links and report.enabled:
        scout.copy_all()

    for message in messages:
        click.secho(message, fg='yellow', err=True)

    if not report.enabled:
        click.secho(f'DocScout is not enabled for {report.host}.', fg='yellow', err=True)
        click.echo('Available actions: ' + ', '.join(menu_names(False)), err=True)

    if not json_output and not html_output:
        if as_list:
            click.echo(render_list(scout.store.all()))
        else:
            click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Failed to save JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML: {e}')


def _clipboard_or_stdout(text: str) -> None:
    try:
        system_clipboard(text)
    except ClipboardUnavailable as e:
        click.secho(f'Clipboard unavailable ({e}), printing links instead:', fg='yellow', err=True)
        click.echo(text)


@cli.command('download', context_settings=CONTEXT_SETTINGS)
@click.argument('urls', nargs=-1, required=True)
@click.option(
    '--dest', '-d', 'dest',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Target folder (download_dir from the config if omitted)'
)
@click.pass_context
def download(ctx, urls, dest):
    """Download documents by URL."""
    cfg = ctx.obj['config']
    target_dir = dest or cfg.download_dir

    async def _run():
        async with PageSession(cfg) as session:
            return [await download_url(u, session.session, target_dir) for u in urls]

    for url, saved in zip(urls, asyncio.run(_run())):
        if saved is None:
            click.secho(f'Opened in browser: {url}', fg='yellow')
        else:
            click.echo(f'Saved: {saved}')


@cli.command('mode', context_settings=CONTEXT_SETTINGS)
@click.argument('host')
@click.pass_context
@state_command
def show_mode(ctx, host):
    """Show the activation mode as seen from HOST."""
    click.echo(_policy(ctx, host).status_text())


@cli.command('whitelist', context_settings=CONTEXT_SETTINGS)
@click.pass_context
@state_command
def show_whitelist(ctx):
    """Show the whitelisted hosts."""
    click.echo(SiteActivationPolicy(ctx.obj['storage'], '').whitelist_text())


@cli.command('clear-whitelist', context_settings=CONTEXT_SETTINGS)
@click.confirmation_option(prompt='Clear the whitelist?')
@click.pass_context
@state_command
def clear_whitelist(ctx):
    """Empty the whitelist and enable all sites."""
    click.echo(SiteActivationPolicy(ctx.obj['storage'], '').clear_whitelist())


@cli.command('enable-host', context_settings=CONTEXT_SETTINGS)
@click.argument('host')
@click.pass_context
@state_command
def enable_host(ctx, host):
    """Enable DocScout only on HOST (switches to whitelist mode)."""
    click.echo(_policy(ctx, host).enable_only_this_host())


@cli.command('disable-host', context_settings=CONTEXT_SETTINGS)
@click.argument('host')
@click.pass_context
@state_command
def disable_host(ctx, host):
    """Remove HOST from the whitelist."""
    click.echo(_policy(ctx, host).disable_this_host())


@cli.command('enable-all', context_settings=CONTEXT_SETTINGS)
@click.pass_context
@state_command
def enable_all(ctx):
    """Enable DocScout on all sites (the whitelist is kept)."""
    click.echo(SiteActivationPolicy(ctx.obj['storage'], '').enable_all())


@cli.command('toggle-deep', context_settings=CONTEXT_SETTINGS)
@click.argument('host')
@click.pass_context
@state_command
def toggle_deep(ctx, host):
    """Flip the persisted deep-mode preference (applies on the next scan)."""
    policy = _policy(ctx, host)
    requested = not policy.deep_mode_requested
    policy.set_deep_mode(requested)
    state = 'on' if requested else 'off'
    if policy.is_enabled_for_host():
        click.echo(f'Deep mode {state}')
    else:
        click.echo(f'Deep mode {state} (not enabled for {policy.host})')


@cli.command('menu', context_settings=CONTEXT_SETTINGS)
@click.argument('host')
@click.pass_context
@state_command
def show_menu(ctx, host):
    """List the actions offered on HOST."""
    enabled = _policy(ctx, host).is_enabled_for_host()
    for name in menu_names(enabled):
        click.echo(f'{name:16} {MENU_LABELS[name]}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(json.dumps(cfg.model_dump(mode='json'), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
