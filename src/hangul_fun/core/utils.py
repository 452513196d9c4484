import re
from pathlib import Path


def collapse(s: str) -> str:
    """
    Combine runs of whitespace into a single space and trim both ends.
    """
    return re.sub(r'\s+', ' ', s).strip()


def read_text_file(path) -> str:
    """
    Read a lyric file as UTF-8. A leading BOM is dropped and undecodable
    bytes are replaced instead of failing the whole file.
    """
    return Path(path).read_text(encoding="utf-8-sig", errors="replace")
