# src/hangul_fun/library/lyrics_source.py
from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis

from hangul_fun.core.errors import AudioError, LyricsError, ParseError
from hangul_fun.core.lrc import parse_lrc
from hangul_fun.core.models import Song
from hangul_fun.core.utils import read_text_file

logger = logging.getLogger(__name__)

LRC_EXTS = (".lrc", ".LRC")

# Tag names lyric taggers commonly use for synced (LRC) lyrics.
VORBIS_SYNCED_KEY = "LYRICS"
ID3_SYNCED_DESC = "LYRICS"
MP4_PLAIN_KEY = "\xa9lyr"
MP4_SYNCED_KEY = "----:com.lrclib:LYRICS"

_SYNCED_RE = re.compile(r"^\s*\[\d+:\d{2}", re.MULTILINE)


def _looks_synced(text: Optional[str]) -> bool:
    return bool(text) and bool(_SYNCED_RE.search(text))


def sibling_lyrics_path(audio_path: str) -> Optional[Path]:
    """song.mp3 -> song.lrc in the same directory, if it exists."""
    base = Path(audio_path).with_suffix("")
    for ext in LRC_EXTS:
        candidate = base.with_name(base.name + ext)
        if candidate.is_file():
            return candidate
    return None


def _first_text(values) -> Optional[str]:
    if isinstance(values, (list, tuple)) and values:
        first = values[0]
        if isinstance(first, (bytes, bytearray)):
            return first.decode("utf-8", errors="replace")
        return str(first)
    if isinstance(values, str):
        return values
    return None


def read_embedded_synced_lyrics(path: str) -> Optional[str]:
    """
    Synced LRC stored in the audio file's own tags, or None.

      - MP3: ID3 TXXX:LYRICS, or a USLT frame whose text carries timestamps
      - FLAC/Vorbis/Opus: the LYRICS comment
      - MP4/M4A: the custom lrclib atom, or a timestamped ©lyr
    """
    ext = Path(path).suffix.lower()
    candidates: List[Optional[str]] = []

    try:
        if ext == ".mp3":
            try:
                tags = ID3(path)
            except ID3NoHeaderError:
                return None
            for frame in tags.getall("TXXX"):
                if getattr(frame, "desc", "") == ID3_SYNCED_DESC:
                    candidates.append(_first_text(frame.text))
            for frame in tags.getall("USLT"):
                candidates.append(getattr(frame, "text", None))

        elif ext == ".flac":
            candidates.append(_first_text(FLAC(path).get(VORBIS_SYNCED_KEY)))
        elif ext in {".ogg", ".oga"}:
            candidates.append(_first_text(OggVorbis(path).get(VORBIS_SYNCED_KEY)))
        elif ext == ".opus":
            candidates.append(_first_text(OggOpus(path).get(VORBIS_SYNCED_KEY)))

        elif ext in {".m4a", ".mp4"}:
            audio = MP4(path)
            candidates.append(_first_text(audio.get(MP4_SYNCED_KEY)))
            candidates.append(_first_text(audio.get(MP4_PLAIN_KEY)))

        else:
            audio = MutagenFile(path)
            tags = getattr(audio, "tags", None) if audio is not None else None
            if tags is not None:
                for key in (VORBIS_SYNCED_KEY, VORBIS_SYNCED_KEY.lower()):
                    if key in tags:
                        candidates.append(_first_text(tags[key]))
    except (MutagenError, OSError) as e:
        logger.warning("Could not read embedded lyrics from %s: %s", path, e)
        return None

    for text in candidates:
        if _looks_synced(text):
            return text.strip()
    return None


def load_song(audio_path: str, lrc_path: Optional[str] = None,
              errors: Optional[List[ParseError]] = None) -> Song:
    """
    Resolve and parse the lyrics for `audio_path`:
    explicit lrc_path, then the sibling .lrc file, then embedded tags.
    """
    if not os.path.isfile(audio_path):
        raise AudioError(f"Audio file does not exist: {audio_path}")

    source: Optional[str] = None
    if lrc_path is not None:
        if not os.path.isfile(lrc_path):
            raise LyricsError(f"LRC file does not exist: {lrc_path}")
        raw = read_text_file(lrc_path)
        source = str(lrc_path)
    else:
        sibling = sibling_lyrics_path(audio_path)
        if sibling is not None:
            raw = read_text_file(sibling)
            source = str(sibling)
        else:
            raw = read_embedded_synced_lyrics(audio_path)
            if raw is None:
                expected = Path(audio_path).with_suffix(".lrc")
                raise LyricsError(f"LRC file does not exist: {expected}")
            logger.info("Using lyrics embedded in %s", audio_path)

    timeline = parse_lrc(raw, errors)
    if not len(timeline):
        raise LyricsError(f"LRC file contains no lyrics: {source or audio_path}")
    logger.debug("Loaded %d lyric lines from %s", len(timeline), source or audio_path)
    return Song(audio_path=str(audio_path), timeline=timeline, lyrics_path=source)
