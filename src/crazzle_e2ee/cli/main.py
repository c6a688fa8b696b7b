"""CLI entry point for crazzle-e2ee.

Invoked as::

    crazzle-e2ee [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m crazzle_e2ee.cli.main

Commands
--------
keys generate      Generate and publish a key pair for an identity
keys show          Show an identity's public key and fingerprint
keys list          List identities in the directory
verify             Show the safety number for two identities
message encrypt    Encrypt a text message for a recipient
message decrypt    Decrypt a ciphertext token
"""
from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from crazzle_e2ee.config import E2EESettings
from crazzle_e2ee.errors import E2EEError, InvalidPublicKey
from crazzle_e2ee.messenger import SecureMessenger
from crazzle_e2ee.verification import fingerprint, safety_number

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="crazzle-e2ee")
@click.option(
    "--key-store-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding local private keys (env: CRAZZLE_KEY_STORE_DIR).",
)
@click.option(
    "--directory-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON file acting as the public-key profile store (env: CRAZZLE_DIRECTORY_FILE).",
)
@click.option(
    "--audit-log",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append JSONL audit events to this file (env: CRAZZLE_AUDIT_LOG).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Python logging level (env: CRAZZLE_LOG_LEVEL).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    key_store_dir: str | None,
    directory_file: str | None,
    audit_log: str | None,
    log_level: str | None,
) -> None:
    """End-to-end encryption tools for the Crazzle messenger"""
    settings = E2EESettings.from_env(
        key_store_dir=key_store_dir,
        directory_file=directory_file,
        audit_log=audit_log,
        log_level=log_level,
    )
    if settings.log_level is not None:
        logging.basicConfig(level=getattr(logging, settings.log_level))
    ctx.obj = settings


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from crazzle_e2ee import __version__

    console.print(f"[bold]crazzle-e2ee[/bold] v{__version__}")


# ------------------------------------------------------------------
# keys command group
# ------------------------------------------------------------------


@cli.group(name="keys")
def keys_group() -> None:
    """Manage identity key pairs."""


@keys_group.command(name="generate")
@click.argument("identity_id")
@click.option("--name", "-n", default=None, help="Display name stored on the profile.")
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite an existing key pair. Messages under the old key become unreadable.",
)
@click.pass_obj
def generate_command(
    settings: E2EESettings,
    identity_id: str,
    name: str | None,
    force: bool,
) -> None:
    """Generate a key pair for IDENTITY_ID and publish its public key."""
    messenger = SecureMessenger.from_settings(settings)

    try:
        exists = asyncio.run(messenger.key_manager.has_key_pair(identity_id))
    except E2EEError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if not force and exists:
        console.print(
            f"[red]Error:[/red] identity [bold]{identity_id}[/bold] already has a key pair. "
            "Use --force to overwrite it."
        )
        sys.exit(1)

    try:
        pair = asyncio.run(messenger.register_identity(identity_id, name=name))
    except (E2EEError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print(f"[green]Generated[/green] key pair for [bold]{identity_id}[/bold]")
    console.print(f"  Fingerprint: {fingerprint(pair.public_key)}", soft_wrap=True)
    console.print(f"  Key store:   {settings.key_store_dir}")
    console.print(f"  Directory:   {settings.directory_file}")


@keys_group.command(name="show")
@click.argument("identity_id")
@click.option("--raw", is_flag=True, default=False, help="Print only the public key text.")
@click.pass_obj
def show_command(settings: E2EESettings, identity_id: str, raw: bool) -> None:
    """Show the published public key of IDENTITY_ID."""
    messenger = SecureMessenger.from_settings(settings)
    try:
        public_key = messenger.directory.lookup(identity_id)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    if not public_key:
        console.print(f"[red]Error:[/red] identity [bold]{identity_id}[/bold] has no published key.")
        sys.exit(1)

    if raw:
        click.echo(public_key)
        return
    try:
        key_fingerprint = fingerprint(public_key)
    except InvalidPublicKey as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    console.print(f"[bold]{identity_id}[/bold]")
    console.print(f"  Fingerprint: {key_fingerprint}", soft_wrap=True)
    console.print("  Public key:")
    click.echo(public_key)


@keys_group.command(name="list")
@click.pass_obj
def list_command(settings: E2EESettings) -> None:
    """List identities in the directory."""
    messenger = SecureMessenger.from_settings(settings)
    try:
        profiles = messenger.directory.list_profiles()
        local = set(messenger.key_manager.key_store.list_identities())
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if not profiles:
        console.print("[yellow]No identities in the directory.[/yellow]")
        return

    table = Table(title="Identities", show_header=True)
    table.add_column("Identity", style="cyan")
    table.add_column("Name")
    table.add_column("Fingerprint")
    table.add_column("Local key", justify="center")

    for profile in profiles:
        if profile.public_key:
            try:
                shown = fingerprint(profile.public_key).short()
            except InvalidPublicKey:
                shown = "[red]invalid[/red]"
        else:
            shown = "[dim](none)[/dim]"
        table.add_row(
            profile.id,
            profile.name or "-",
            shown,
            "yes" if profile.id in local else "no",
        )

    console.print(table)


# ------------------------------------------------------------------
# verify
# ------------------------------------------------------------------


@cli.command(name="verify")
@click.argument("identity_id")
@click.argument("contact_id")
@click.pass_obj
def verify_command(settings: E2EESettings, identity_id: str, contact_id: str) -> None:
    """Show the safety number shared by IDENTITY_ID and CONTACT_ID."""
    messenger = SecureMessenger.from_settings(settings)
    try:
        own_key = messenger.directory.lookup(identity_id)
        contact_key = messenger.directory.lookup(contact_id)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    try:
        number = safety_number(own_key or "", contact_key or "")
    except InvalidPublicKey as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    console.print(f"Safety number for [bold]{identity_id}[/bold] ↔ [bold]{contact_id}[/bold]:")
    console.print(f"  {number}")
    console.print("Compare it with your contact over a trusted channel.")


# ------------------------------------------------------------------
# message command group
# ------------------------------------------------------------------


@cli.group(name="message")
def message_group() -> None:
    """Encrypt and decrypt text messages."""


@message_group.command(name="encrypt")
@click.argument("sender_id")
@click.argument("recipient_id")
@click.argument("text")
@click.pass_obj
def encrypt_command(settings: E2EESettings, sender_id: str, recipient_id: str, text: str) -> None:
    """Encrypt TEXT from SENDER_ID to RECIPIENT_ID and print the token."""
    messenger = SecureMessenger.from_settings(settings)
    try:
        token = asyncio.run(messenger.encrypt_for(sender_id, recipient_id, text))
    except E2EEError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    click.echo(token)


@message_group.command(name="decrypt")
@click.argument("local_id")
@click.argument("counterpart_id")
@click.argument("token")
@click.pass_obj
def decrypt_command(settings: E2EESettings, local_id: str, counterpart_id: str, token: str) -> None:
    """Decrypt TOKEN exchanged between LOCAL_ID and COUNTERPART_ID."""
    messenger = SecureMessenger.from_settings(settings)
    try:
        plaintext = asyncio.run(messenger.decrypt_from(local_id, counterpart_id, token))
    except E2EEError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    click.echo(plaintext)


if __name__ == "__main__":
    cli()
