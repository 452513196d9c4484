"""Command-line interface using Click."""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .core.config import BACKENDS, PlayerConfig
from .core.errors import AudioError, DecodeError, LyricsError
from .core.hangul import char_class, decode_string, decompose_text
from .core.log import setup_logging
from .core.models import Decomposition
from .core.romanize import romanize_jamos

logger = logging.getLogger(__name__)


def char_info(a) -> str:
    """One `decode` output row: the character, its code point and its jamo."""
    start = f"ch={a.char} ({a.codepoint:#x}) {char_class(a.char).value}"
    if not isinstance(a, Decomposition):
        return start
    row = (
        f"{start} initial={a.leading.compat} ({ord(a.leading.conjoining):#x})"
        f" medial={a.vowel.compat} ({ord(a.vowel.conjoining):#x})"
    )
    if a.trailing is not None:
        row += f" final={a.trailing.compat} ({ord(a.trailing.conjoining):#x})"
    return row


@click.group()
@click.version_option(__version__, prog_name="hangul-fun")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging on stderr")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path),
              help="Also write log records to this file")
@click.pass_context
def cli(ctx, verbose, log_file):
    """A program to help one analyze and learn Hangul."""
    ctx.ensure_object(dict)
    try:
        config = PlayerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    setup_logging(config.log_level, log_file=log_file, verbose=verbose)
    ctx.obj["config"] = config


@cli.command()
@click.argument("string")
@click.option("--json", "as_json", is_flag=True, help="Print the analysis as JSON")
def decode(string, as_json):
    """Decode a string into its Hangul jamo.

    Lengths in the summary line count UTF-8 bytes.
    """
    try:
        analysis = decode_string(string)
    except DecodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps([a.as_dict() for a in analysis], ensure_ascii=False))
        return

    for a in analysis:
        click.echo(char_info(a))
    decomposed = decompose_text(string)
    original_len = len(string.encode("utf-8"))
    decomposed_len = len(decomposed.encode("utf-8"))
    click.echo(
        f"decomposed: {decomposed} (original length={original_len}, decomposed length={decomposed_len})"
    )
    click.echo(f"romanized: {romanize_jamos(decomposed)}")


@cli.command()
@click.argument("audio", type=click.Path(dir_okay=False))
@click.option("--lrc", "lrc_path", type=click.Path(dir_okay=False),
              help="Lyric file to use instead of the sibling .lrc")
@click.option("--backend", type=click.Choice(BACKENDS), help="Audio backend")
@click.option("--mpv-path", type=click.Path(dir_okay=False), help="mpv executable")
@click.pass_context
def play(ctx, audio: str, lrc_path: Optional[str], backend: Optional[str], mpv_path: Optional[str]):
    """Play an audio file along with its synced lyrics."""
    from .library.lyrics_source import load_song

    config: PlayerConfig = ctx.obj["config"]
    if backend:
        config = replace(config, backend=backend)
    if mpv_path:
        config = replace(config, mpv_path=mpv_path)

    try:
        song = load_song(audio, lrc_path)
        from .ui.app import run_player

        run_player(song, config)
    except (AudioError, LyricsError) as e:
        logger.debug("play failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def main() -> int:
    cli(prog_name="hangul-fun")
    return 0


if __name__ == "__main__":
    main()
