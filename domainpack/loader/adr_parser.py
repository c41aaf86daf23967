"""
ADR front-matter parser.

Reads Markdown ADR files and turns the YAML block between the leading
``---`` delimiters into AdrRecord objects. The body after the block is
kept with Markdown formatting stripped, for text search.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

import yaml

from ..errors import ModelLoadError
from ..model.types import AdrRecord

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---\r?\n(.*?)\r?\n---', re.DOTALL)

REQUIRED_KEYS = ('id', 'title', 'status', 'date')

_MARKDOWN_RULES = [
    (re.compile(r'^(`{3,}|~{3,}).*$', re.MULTILINE), ''),   # code fences
    (re.compile(r'^#{1,6}\s+', re.MULTILINE), ''),          # headings
    (re.compile(r'!\[([^\]]*)\]\([^)]*\)'), r'\1'),         # images
    (re.compile(r'\[([^\]]*)\]\([^)]*\)'), r'\1'),          # links
    (re.compile(r'\*{1,3}([^*]+)\*{1,3}'), r'\1'),          # bold / italic
    (re.compile(r'_{1,3}([^_]+)_{1,3}'), r'\1'),
    (re.compile(r'`([^`]*)`'), r'\1'),                      # inline code
    (re.compile(r'\s+'), ' '),
]


def strip_markdown(text: str) -> str:
    """Remove Markdown syntax while keeping the readable text."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def parse_adr_frontmatter(markdown: str, source: Union[str, Path] = "<string>") -> Optional[AdrRecord]:
    """
    Parse the front matter of an ADR document.

    Returns:
        The AdrRecord, or None when there is no front matter or it lacks
        one of id, title, status, date
    """
    match = FRONTMATTER_RE.match(markdown)
    if not match:
        return None

    raw = yaml.safe_load(match.group(1))
    if not isinstance(raw, dict):
        return None

    if any(not raw.get(key) for key in REQUIRED_KEYS):
        logger.debug(f"Skipping ADR without complete front matter: {source}")
        return None

    body = markdown[match.end():].strip()
    if body:
        raw['body'] = strip_markdown(body)

    try:
        return AdrRecord.from_dict(raw)
    except (ValueError, TypeError) as e:
        raise ModelLoadError(source, str(e)) from e


def parse_adr_file(path: Union[str, Path]) -> Optional[AdrRecord]:
    """Read an ADR Markdown file and parse its front matter."""
    try:
        content = Path(path).read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise ModelLoadError(path, f"not valid UTF-8 ({e.reason} at byte {e.start})") from e
    return parse_adr_frontmatter(content, source=path)
