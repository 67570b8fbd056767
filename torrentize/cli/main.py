"""Command-line interface for torrentize.

Usage::

    torrentize [OPTIONS] TRACKER_URL... INPUT...

Leading arguments that look like tracker URLs are trackers; everything
after them is an input file or directory. One torrent is written per
input.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

import click
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape

from torrentize import __version__
from torrentize.cli.verbosity import VerbosityManager
from torrentize.config.config import ConfigManager
from torrentize.core.metainfo import create_torrent_file
from torrentize.models import Config, FileEntry, OrderingPolicy, TorrentOptions
from torrentize.utils.exceptions import (
    ConfigurationError,
    FileSystemError,
    TorrentError,
)
from torrentize.utils.logging_config import log_exception, setup_logging
from torrentize.utils.rich_logging import create_console

logger = logging.getLogger(__name__)

TRACKER_PREFIXES = ("http://", "https://", "udp://")
TORRENT_SUFFIX = ".torrent"


def split_arguments(args: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split positional arguments into leading tracker URLs and inputs."""
    count = 0
    for arg in args:
        if not arg.startswith(TRACKER_PREFIXES):
            break
        count += 1
    return list(args[:count]), list(args[count:])


def normalize_input(arg: str) -> str | None:
    """Strip trailing slashes from an input argument.

    Returns None for an argument that is empty.

    Raises:
        ConfigurationError: If the argument names the filesystem root

    """
    if not arg:
        return None
    stripped = arg.rstrip("/")
    if not stripped:
        msg = "won't torrent the root directory"
        raise ConfigurationError(msg, {"input": arg})
    return stripped


def default_display_name(input_path: str) -> str:
    """Basename of the input; ``.`` and ``..`` resolve to the real name."""
    name = input_path.rsplit("/", 1)[-1]
    if name in (".", ".."):
        name = Path(input_path).resolve().name
    return name


def derive_output_path(input_path: str, output: Path | None, input_count: int) -> Path:
    """Where the torrent for ``input_path`` is written.

    Without ``output`` the torrent goes next to the input. With a single
    input ``output`` is the file itself; with several it is a directory.
    """
    if output is None:
        return Path(input_path + TORRENT_SUFFIX)
    if input_count == 1:
        return output
    return output / (default_display_name(input_path) + TORRENT_SUFFIX)


def build_options(
    config: Config,
    trackers: list[str],
    piece_size: int | None,
    ignore: Sequence[str],
    private: bool,
    sort_by_ext: bool,
    rename: str | None,
    output: Path | None,
    quiet: bool,
) -> TorrentOptions:
    """Merge CLI values over configuration defaults and validate them."""
    defaults = config.create
    try:
        return TorrentOptions(
            piece_size_kb=piece_size if piece_size is not None else defaults.piece_size_kb,
            private=private or defaults.private,
            ordering=(
                OrderingPolicy.EXTENSION_FIRST if sort_by_ext else defaults.ordering
            ),
            ignore_patterns=[*defaults.ignore_patterns, *ignore],
            trackers=[*trackers, *defaults.trackers],
            name=rename,
            output=output,
            quiet=quiet or defaults.quiet,
        )
    except PydanticValidationError as e:
        reasons = "; ".join(str(err.get("ctx", {}).get("error", err["msg"])) for err in e.errors())
        raise ConfigurationError(reasons) from e


def _printable(text: str) -> str:
    """Console-safe form of a name that may hold surrogate escapes."""
    return escape(os.fsencode(text).decode("utf-8", "replace"))


def _print_file(console: Console, entry: FileEntry) -> None:
    console.print(
        f"[dim]hashing[/dim] {_printable(entry.relative_path)} "
        f"[dim]({decimal(entry.size_bytes)})[/dim]"
    )


@click.command(
    "torrentize",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("args", nargs=-1, metavar="TRACKER_URL... INPUT...")
@click.option(
    "--piece-size",
    "-b",
    "piece_size",
    type=int,
    help="Piece size in KiB (default: 256)",
)
@click.option(
    "--ignore",
    "-i",
    "ignore",
    multiple=True,
    help="Ignore files and directories matching this wildcard pattern (repeatable)",
)
@click.option(
    "--output-name",
    "-o",
    "output",
    type=click.Path(path_type=Path),
    help="Output file, or output directory when several inputs are given",
)
@click.option("--private", "-p", is_flag=True, help="Mark torrent private")
@click.option("--quiet", "-q", is_flag=True, help="Don't print progress lines")
@click.option(
    "--rename",
    "-R",
    "rename",
    type=str,
    help="Name of the file or top directory inside the torrent",
)
@click.option(
    "--tracker",
    "-t",
    "extra_trackers",
    multiple=True,
    help="Additional tracker announce URL (repeatable)",
)
@click.option(
    "--sort-by-ext",
    is_flag=True,
    help="Order files by directory, then extension, then name",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Configuration file (default: torrentize.toml lookup)",
)
@click.version_option(__version__, prog_name="torrentize")
@click.pass_context
def cli(
    ctx: click.Context,
    args: tuple[str, ...],
    piece_size: int | None,
    ignore: tuple[str, ...],
    output: Path | None,
    private: bool,
    quiet: bool,
    rename: str | None,
    extra_trackers: tuple[str, ...],
    sort_by_ext: bool,
    verbose: int,
    config_file: Path | None,
) -> None:
    """Create BitTorrent metainfo files.

    Examples:
        # One torrent for a directory, two trackers
        torrentize http://a.example/announce udp://b.example:6969 ./photos

        # Two torrents written into ./out, 1 MiB pieces
        torrentize -b 1024 -o out http://a.example/announce x.iso y.iso

    """
    console = Console(highlight=False, soft_wrap=True)

    try:
        config = ConfigManager(config_file).config
        trackers, raw_inputs = split_arguments(args)
        trackers.extend(extra_trackers)
        if not raw_inputs:
            msg = "no input file given"
            raise ConfigurationError(msg)
        options = build_options(
            config,
            trackers,
            piece_size,
            ignore,
            private,
            sort_by_ext,
            rename,
            output,
            quiet,
        )
        inputs = []
        for arg in raw_inputs:
            normalized = normalize_input(arg)
            if normalized is None:
                console.print("[yellow]Warning: ignoring empty argument[/yellow]")
                continue
            inputs.append(normalized)
    except ConfigurationError as e:
        raise click.UsageError(e.message, ctx=ctx) from e

    verbosity = VerbosityManager.from_flags(verbose, options.quiet)
    configured_level = logging.getLevelName(config.observability.log_level.value)
    setup_logging(
        config.observability,
        level=verbosity.resolve_logging_level(configured_level),
        console=create_console(),
    )

    on_file = None if verbosity.is_quiet() else lambda entry: _print_file(console, entry)
    failures = 0
    for input_path in inputs:
        output_path = derive_output_path(input_path, options.output, len(inputs))
        display_name = options.name or default_display_name(input_path)
        try:
            summary = create_torrent_file(
                output_path, input_path, display_name, options, on_file=on_file
            )
        except ConfigurationError as e:
            raise click.UsageError(e.message, ctx=ctx) from e
        except (FileSystemError, TorrentError) as e:
            # one failed input does not stop the batch
            failures += 1
            log_exception(logger, e, f"Failed to create torrent for {input_path}")
            console.print(f"[red]Error: {_printable(e.message)}[/red]")
            continue

        if not verbosity.is_quiet():
            console.print(
                f"[green]Created {_printable(str(output_path))}[/green]: "
                f"{summary.file_count} file(s), {decimal(summary.total_bytes)}, "
                f"{summary.piece_count} piece(s) of {decimal(summary.piece_length)}"
            )

    if failures:
        ctx.exit(1)


def main() -> None:
    """Console script entry point."""
    cli()


__all__ = [
    "build_options",
    "cli",
    "default_display_name",
    "derive_output_path",
    "main",
    "normalize_input",
    "split_arguments",
]
