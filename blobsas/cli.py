"""
blobsas Command-Line Interface

Issues SAS tokens from the shell. Credentials come from options or from the
BLOBSAS_ACCOUNT_NAME / BLOBSAS_ACCOUNT_KEY environment variables.

Author: blobsas contributors
"""

import json
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from pydantic import ValidationError

from blobsas import __version__
from blobsas.auth.credentials import SharedKeyCredential
from blobsas.core.config_manager import ConfigManager
from blobsas.core.logging_config import setup_logging
from blobsas.exceptions import SasError
from blobsas.generator import SasUrlGenerator


def _fail(message: str) -> None:
    click.echo(f"[ERROR] {message}", err=True)
    sys.exit(1)


def _read_paths(paths: Tuple[str, ...], paths_file: Optional[Path]) -> list:
    collected = list(paths)
    if paths_file:
        collected.extend(paths_file.read_text(encoding="utf-8").splitlines())
    return collected


@click.group()
@click.version_option(version=__version__, prog_name="blobsas")
@click.option("--account-name", envvar="BLOBSAS_ACCOUNT_NAME", required=True, help="Storage account name")
@click.option(
    "--account-key",
    envvar="BLOBSAS_ACCOUNT_KEY",
    required=True,
    help="Base64 account key (prefer the BLOBSAS_ACCOUNT_KEY environment variable)",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--api-version",
    default=None,
    help="Storage service API version used for signing",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default from configuration: INFO)",
)
@click.pass_context
def cli(ctx, account_name: str, account_key: str, config: Optional[Path], api_version: Optional[str], log_level: Optional[str]):
    """
    blobsas - issue Shared Access Signature URLs for blob storage.
    """
    overrides = {}
    if api_version:
        overrides.setdefault("sas", {})["api_version"] = api_version
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level.upper()

    try:
        settings = ConfigManager().load(config_file=str(config) if config else None, overrides=overrides)
    except (ValidationError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")

    setup_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        log_file=settings.logging.file,
        rotation_size=settings.logging.rotation_size,
        rotation_count=settings.logging.rotation_count,
        module_levels=settings.logging.module_levels,
    )

    try:
        credential = ctx.with_resource(SharedKeyCredential(account_name, account_key))
        ctx.obj = SasUrlGenerator(credential, config=settings)
    except SasError as e:
        _fail(e.message)


@cli.command()
@click.argument("container")
@click.option("--permissions", "-p", default="rl", show_default=True, help="Permission letters, e.g. rl")
@click.option("--minutes", "-m", type=int, default=None, help="Validity in minutes")
@click.pass_obj
def container(generator: SasUrlGenerator, container: str, permissions: str, minutes: Optional[int]):
    """
    Print a container SAS query string.

    Examples:
        blobsas container uploads
        blobsas container uploads -p racwdl -m 60
    """
    try:
        click.echo(generator.build_container_sas(container, permissions, minutes))
    except SasError as e:
        _fail(e.message)


@cli.command()
@click.argument("container")
@click.argument("blob_path")
@click.option("--permissions", "-p", default="r", show_default=True, help="Permission letters, e.g. r")
@click.option("--minutes", "-m", type=int, default=None, help="Validity in minutes")
@click.pass_obj
def blob(generator: SasUrlGenerator, container: str, blob_path: str, permissions: str, minutes: Optional[int]):
    """
    Print a blob URL with SAS.

    Examples:
        blobsas blob uploads "seller/3683/contract.pdf"
    """
    try:
        click.echo(generator.build_blob_sas_url(container, blob_path, permissions, minutes))
    except SasError as e:
        _fail(e.message)


@cli.command()
@click.argument("container")
@click.argument("paths", nargs=-1)
@click.option(
    "--from-file",
    "paths_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File with one blob path per line",
)
@click.option("--permissions", "-p", default="r", show_default=True, help="Permission letters")
@click.option("--minutes", "-m", type=int, default=None, help="Validity in minutes")
@click.pass_obj
def batch(
    generator: SasUrlGenerator,
    container: str,
    paths: Tuple[str, ...],
    paths_file: Optional[Path],
    permissions: str,
    minutes: Optional[int],
):
    """
    Print a JSON object mapping blob paths to SAS URLs.

    No existence checks are made; every non-blank path gets a URL.
    """
    try:
        result = generator.build_many_sas_urls(container, _read_paths(paths, paths_file), permissions, minutes)
    except SasError as e:
        _fail(e.message)
    click.echo(json.dumps(dict(result.items()), indent=2))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
