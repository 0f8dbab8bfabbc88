"""CLI for privstore."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .codec import Codec
from .config import StoreConfig, TransportMode, load_config
from .content_store import ContentAddressedStorage, transaction_storage
from .errors import ConfigError, PrivStoreError
from .hashing import make_digest_function
from .models import TransactionPair
from .storage import make_key_value_store


app = typer.Typer(help="""\
Content-addressed storage for private transaction pairs. Records are
stored under a digest of their content in the configured backend.""")

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

_state = {"config_path": None}


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: $PRIVSTORE_CONFIG or ./privstore.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Store and retrieve transaction pairs."""
    _state["config_path"] = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config() -> StoreConfig:
    try:
        return load_config(_state["config_path"])
    except ConfigError as e:
        _fail(str(e))


def _fail(message: str):
    err_console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(1)


def _read_record(path: Path) -> TransactionPair:
    """Read a TransactionPair from a JSON file ("-" for stdin)."""
    try:
        text = typer.get_text_stream("stdin").read() if str(path) == "-" else path.read_text()
    except OSError as e:
        _fail(f"Cannot read {path}: {e}")
    try:
        return TransactionPair.model_validate(json.loads(text))
    except json.JSONDecodeError as e:
        _fail(f"{path} is not valid JSON: {e}")
    except ValidationError as e:
        _fail(f"{path} is not a valid transaction pair: {e.error_count()} validation error(s)")


def _print_record(record: TransactionPair) -> None:
    console.print_json(record.model_dump_json(by_alias=True))


def _open_storage(config: StoreConfig) -> ContentAddressedStorage[TransactionPair]:
    store = make_key_value_store(config.storage)
    return transaction_storage(store, config.codec.content_type, config.digest.algorithm)


def _run(coro_fn):
    """Run an async command body against the configured storage."""
    config = _load_config()

    async def runner():
        async with _open_storage(config) as storage:
            return await coro_fn(storage)

    try:
        return asyncio.run(runner())
    except PrivStoreError as e:
        _fail(str(e))


@app.command()
def put(
    file: Path = typer.Argument(..., help="JSON file with from/to/payload ('-' for stdin)"),
):
    """Store a record and print its digest."""
    record = _read_record(file)

    async def body(storage):
        return await storage.put(record)

    digest = _run(body)
    console.print(digest)


@app.command()
def get(
    digest: str = typer.Argument(..., help="Digest returned by put"),
):
    """Print the record stored under DIGEST."""
    async def body(storage):
        return await storage.get(digest)

    record = _run(body)
    if record is None:
        _fail(f"No record for {digest}")
    _print_record(record)


@app.command()
def update(
    digest: str = typer.Argument(..., help="Digest to overwrite"),
    file: Path = typer.Argument(..., help="JSON file with the new record ('-' for stdin)"),
):
    """Overwrite the record under DIGEST and print the previous one."""
    record = _read_record(file)

    async def body(storage):
        # aclose() on exit waits for the background write
        return await storage.update(digest, record)

    previous = _run(body)
    if previous is None:
        console.print(f"[dim]No previous record for {escape(digest)}[/dim]")
    else:
        _print_record(previous)


@app.command()
def digest(
    file: Path = typer.Argument(..., help="JSON file with from/to/payload ('-' for stdin)"),
):
    """Print the digest a record would be stored under."""
    record = _read_record(file)
    config = _load_config()
    codec = Codec(config.codec.content_type, TransactionPair)
    generate_digest = make_digest_function(codec, config.digest.algorithm)
    try:
        console.print(generate_digest(record))
    except PrivStoreError as e:
        _fail(str(e))


@app.command()
def transport():
    """Show the configured transport mode."""
    config = _load_config()
    if config.transport is None:
        _fail("No transport configured (set transport.domain_socket_path, http_port or https_port)")
    settings = config.transport
    if settings.mode is TransportMode.UNIX:
        console.print(f"unix {settings.domain_socket_path}")
    elif settings.mode is TransportMode.HTTPS:
        console.print(f"https :{settings.https_port}")
    else:
        console.print(f"http :{settings.http_port}")


if __name__ == "__main__":
    app()
