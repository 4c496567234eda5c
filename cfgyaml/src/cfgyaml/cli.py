"""cfgyaml command-line interface.

What:
  Provide a Typer application to validate, canonicalise and inspect
  configuration documents against a Python schema type. Commands: ``check``,
  ``fmt``, ``describe`` and ``settings``.

Why:
  Hand-edited configuration should be validated in CI with the same decoder
  the application uses at runtime, and rewritten into canonical form by the
  same encoder, so no second YAML implementation disagrees with the first.

How:
  Resolve the schema from ``--schema module:Type`` (or the ``schema`` entry
  of the settings file), run the document through
  :func:`~cfgyaml.api.decode_bytes` / :func:`~cfgyaml.api.encode_value`, and
  report outcomes as JSON log lines on stderr. Standard output only ever
  carries document text.

Interfaces:
  ``app`` (Typer application), ``check``, ``fmt``, ``describe``,
  ``show_settings``, ``resolve_schema``, ``main``.

Invariants & Safety:
  - Exit codes: ``0`` success, ``1`` document error or pending reformat,
    ``2`` usage or settings error.
  - Log entries never include document content, only paths, keys and
    offsets.
"""
from __future__ import annotations

import importlib
import shutil
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from .api import decode_bytes, encode_value, write_file
from .config import Settings, SettingsError, load_settings
from .errors import YamlError
from .shape import describe_shape, shape_of
from .utils import JsonLogger, checksum, get_logger


app = typer.Typer(help="Validate and format cfgyaml configuration documents")


class SchemaResolutionError(Exception):
    """Raised when a ``module:Type`` reference cannot be imported."""


def resolve_schema(reference: str) -> Any:
    """Import the type named by ``module:Qualified.Name``.

    Raises:
      SchemaResolutionError: If the reference is malformed or not importable.
    """

    module_name, sep, qualname = reference.partition(":")
    if not sep or not module_name or not qualname:
        raise SchemaResolutionError(f"schema reference must look like module:Type, got {reference!r}")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise SchemaResolutionError(f"cannot import module {module_name!r}: {exc}") from exc
    for part in qualname.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise SchemaResolutionError(f"{module_name!r} has no attribute {qualname!r}") from exc
    return target


def _bootstrap(config: Optional[Path]) -> tuple[Settings, JsonLogger]:
    try:
        settings = load_settings(config, reload=config is not None)
    except SettingsError as exc:
        get_logger("cfgyaml", stream=sys.stderr).error("Settings unavailable", error=str(exc))
        raise typer.Exit(code=2) from exc
    return settings, get_logger(settings.log_component, stream=sys.stderr)


def _schema(reference: Optional[str], settings: Settings, logger: JsonLogger) -> Any:
    reference = reference or settings.schema_ref
    if not reference:
        logger.error("No schema given; pass --schema or set 'schema' in the settings file")
        raise typer.Exit(code=2)
    try:
        target = resolve_schema(reference)
        shape_of(target)
    except (SchemaResolutionError, YamlError) as exc:
        logger.error("Schema unusable", schema=reference, error=str(exc))
        raise typer.Exit(code=2) from exc
    return target


def _read(path: Path, logger: JsonLogger) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        logger.error("Unable to read document", path=str(path), error=exc.strerror or str(exc))
        raise typer.Exit(code=1) from exc


def _decode(path: Path, data: bytes, target: Any, logger: JsonLogger) -> Any:
    try:
        return decode_bytes(data, target)
    except YamlError as exc:
        logger.error(
            "Invalid document",
            path=str(path),
            kind=type(exc).__name__,
            key=exc.name,
            offset=exc.offset,
            error=exc.reason,
        )
        raise typer.Exit(code=1) from exc


@app.command("check")
def check(
    path: Path = typer.Argument(..., help="Document to validate"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Schema as module:Type"),
    config: Optional[Path] = typer.Option(None, "--config", help="Settings file to use"),
) -> None:
    """Decode PATH against the schema and report the result."""

    settings, logger = _bootstrap(config)
    target = _schema(schema, settings, logger)
    data = _read(path, logger)
    _decode(path, data, target, logger)
    logger.info("Document valid", path=str(path), checksum=checksum(data))


@app.command("fmt")
def fmt(
    path: Path = typer.Argument(..., help="Document to canonicalise"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Schema as module:Type"),
    write: bool = typer.Option(False, "--write", "-w", help="Rewrite the file in place"),
    check_only: bool = typer.Option(False, "--check", help="Exit 1 if the file is not canonical"),
    config: Optional[Path] = typer.Option(None, "--config", help="Settings file to use"),
) -> None:
    """Decode PATH and print (or write back) its canonical encoding."""

    settings, logger = _bootstrap(config)
    target = _schema(schema, settings, logger)
    data = _read(path, logger)
    value = _decode(path, data, target, logger)
    try:
        canonical = encode_value(value)
    except YamlError as exc:
        logger.error("Unable to encode document", path=str(path), error=str(exc))
        raise typer.Exit(code=1) from exc

    if check_only:
        if canonical != data:
            logger.warning("Document is not canonical", path=str(path), checksum=checksum(data))
            raise typer.Exit(code=1)
        logger.info("Document is canonical", path=str(path), checksum=checksum(data))
        return
    if not write:
        typer.echo(canonical.decode("utf-8"), nl=False)
        return
    if canonical == data:
        logger.info("Document unchanged", path=str(path), checksum=checksum(data))
        return
    try:
        if settings.backup_suffix:
            shutil.copy2(path, path.with_name(path.name + settings.backup_suffix))
        write_file(path, value, mode=settings.mode)
    except (OSError, YamlError) as exc:
        logger.error("Unable to write document", path=str(path), error=str(exc))
        raise typer.Exit(code=1) from exc
    logger.info("Document rewritten", path=str(path), checksum=checksum(canonical))


@app.command("describe")
def describe(
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Schema as module:Type"),
    config: Optional[Path] = typer.Option(None, "--config", help="Settings file to use"),
) -> None:
    """Print the shape tree derived from the schema type."""

    settings, logger = _bootstrap(config)
    target = _schema(schema, settings, logger)
    for line in describe_shape(shape_of(target)):
        typer.echo(line)


@app.command("settings")
def show_settings(
    config: Optional[Path] = typer.Option(None, "--config", help="Settings file to use"),
) -> None:
    """Print the effective settings in canonical form."""

    settings, _ = _bootstrap(config)
    typer.echo(encode_value(settings).decode("utf-8"), nl=False)


def main() -> None:
    """Console-script entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
