"""
Gaia Storage CLI - Main entry point

This module provides the command-line interface for reading, writing and
listing files in an app's Gaia bucket.
"""

import asyncio
import sys
from typing import Optional

import aiofiles
import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from .. import __version__
from ..auth import AppConfig, UserData
from ..client.client import UserSession
from ..config import configure_logging, get_settings
from ..core.crypto import KeyManager
from ..core.errors import GaiaStorageError
from ..core.options import GetFileOptions, PutFileOptions

console = Console()


def _session(ctx) -> UserSession:
    app_domain = ctx.obj['app_domain']
    keypair = KeyManager(app_domain).load_keypair()
    if keypair is None:
        raise click.ClickException(f"No key stored for {app_domain}; run 'keygen' first")
    app_config = AppConfig(app_domain=app_domain, hub_url=ctx.obj['hub_url'],
                           zone_file_lookup_url=ctx.obj['zone_file_lookup_url'])
    return UserSession(app_config, UserData(app_private_key=keypair.private_key))


def _run(coro):
    try:
        return asyncio.run(coro)
    except GaiaStorageError as e:
        console.print(f"❌ {type(e).__name__}: {e}")
        sys.exit(1)
    except httpx.HTTPError as e:
        console.print(f"❌ Network error: {e}")
        sys.exit(1)


@click.group()
@click.option('--app-domain', '-a', default=None, help='App origin owning the bucket')
@click.option('--hub-url', default=None, help='Gaia hub to write to')
@click.option('--zone-file-lookup-url', default=None, help='Profile lookup endpoint')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def cli(ctx, app_domain: Optional[str], hub_url: Optional[str],
        zone_file_lookup_url: Optional[str], verbose: bool):
    """Gaia Storage - read, write and list files in an app bucket"""
    settings = get_settings()
    configure_logging('DEBUG' if verbose else settings.LOG_LEVEL,
                      RichHandler(console=console, show_path=False))
    ctx.ensure_object(dict)
    ctx.obj['app_domain'] = app_domain or settings.APP_DOMAIN
    ctx.obj['hub_url'] = hub_url or settings.HUB_URL
    ctx.obj['zone_file_lookup_url'] = zone_file_lookup_url or settings.ZONE_FILE_LOOKUP_URL
    ctx.obj['verbose'] = verbose

    if ctx.invoked_subcommand != 'version' and not ctx.obj['app_domain']:
        raise click.UsageError("An app domain is required (--app-domain or GAIA_APP_DOMAIN)")
    if verbose:
        console.print(f"[dim]App: {ctx.obj['app_domain']}  Hub: {ctx.obj['hub_url']}[/dim]")


@cli.command()
@click.pass_context
def keygen(ctx):
    """Generate an app private key and store it in the keyring"""
    app_domain = ctx.obj['app_domain']
    key_manager = KeyManager(app_domain)

    existing = key_manager.load_keypair()
    if existing and not click.confirm(f"A key for {app_domain} exists. Replace it?"):
        keypair = existing
    else:
        keypair = key_manager.generate_and_save_keypair()
        console.print("✅ Generated and saved app key")

    console.print(f"Public key: {keypair.public_key}")
    console.print(f"Address:    {keypair.address}")


@cli.command()
@click.pass_context
def address(ctx):
    """Show the gaia address of the stored app key"""
    keypair = KeyManager(ctx.obj['app_domain']).load_keypair()
    if keypair is None:
        raise click.ClickException("No key stored; run 'keygen' first")
    console.print(keypair.address)


@cli.command()
@click.argument('path')
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.option('--encrypt/--no-encrypt', default=True, help='Encrypt with the app key')
@click.option('--sign', is_flag=True, help='Sign with the app key')
@click.option('--text', is_flag=True, help='Upload SOURCE as text rather than bytes')
@click.pass_context
def put(ctx, path: str, source: str, encrypt: bool, sign: bool, text: bool):
    """Upload SOURCE to PATH in the bucket"""

    async def run_put():
        async with aiofiles.open(source, 'r' if text else 'rb') as f:
            content = await f.read()
        async with _session(ctx) as session:
            url = await session.put_file(path, content,
                                         PutFileOptions(encrypt=encrypt, sign=sign))
        console.print(f"✅ Stored {path}")
        console.print(url)

    _run(run_put())


@cli.command()
@click.argument('path')
@click.option('--decrypt/--no-decrypt', default=True, help='Decrypt with the app key')
@click.option('--verify', is_flag=True, help='Verify the signature')
@click.option('--username', '-u', default=None, help='Read from this user\'s bucket')
@click.option('--app', default=None, help='App origin of the other user\'s bucket')
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Write the file here instead of printing it')
@click.pass_context
def get(ctx, path: str, decrypt: bool, verify: bool, username: Optional[str],
        app: Optional[str], output: Optional[str]):
    """Download PATH from the bucket"""

    async def run_get():
        options = GetFileOptions(decrypt=decrypt, verify=verify, username=username, app=app)
        async with _session(ctx) as session:
            content = await session.get_file(path, options)
        if content is None:
            console.print(f"[yellow]{path} not found[/yellow]")
            sys.exit(2)
        if output:
            async with aiofiles.open(output, 'w' if isinstance(content, str) else 'wb') as f:
                await f.write(content)
            console.print(f"✅ Wrote {output}")
        elif isinstance(content, str):
            console.print(content, markup=False, highlight=False)
        else:
            console.print(f"[dim]{len(content)} bytes of binary content; use --output[/dim]")

    _run(run_get())


@cli.command(name='ls')
@click.option('--limit', '-l', default=0, help='Stop after this many entries (0 = all)')
@click.pass_context
def list_files(ctx, limit: int):
    """List the files in the bucket"""

    async def run_list():
        shown = [0]

        def show(name: str) -> bool:
            console.print(name, markup=False, highlight=False)
            shown[0] += 1
            return not limit or shown[0] < limit

        async with _session(ctx) as session:
            count = await session.list_files(show)
        console.print(f"[dim]{count} file(s)[/dim]")

    _run(run_list())


@cli.command(name='bucket-url')
@click.pass_context
def bucket_url(ctx):
    """Show the public read URL of the app bucket"""

    async def run_bucket_url():
        async with _session(ctx) as session:
            console.print(await session.get_app_bucket_url())

    _run(run_bucket_url())


@cli.command()
def version():
    """Show version information"""
    console.print(Panel.fit(f"Gaia Storage v{__version__}", style="bold blue"))


def main():
    """Main entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        sys.exit(130)


if __name__ == '__main__':
    main()
