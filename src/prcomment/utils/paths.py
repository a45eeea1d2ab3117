"""File layout shared by the in and out steps."""

from __future__ import annotations

from pathlib import Path


VERSION_FILE = "version.json"
METADATA_FILE = "metadata.json"
DEFAULT_COMMENT_FILE = "comment.txt"
DEFAULT_SOURCE_PATH = "source"


def resolve_within(base: Path, name: str) -> Path:
    """Join ``name`` onto ``base``, refusing anything that escapes ``base``.

    Metadata field names and comment file names come from user configuration
    (regex group names, params), so they are treated as untrusted paths.
    """
    if not name or not name.strip():
        raise ValueError("File name cannot be empty")
    root = base.resolve()
    target = (root / name).resolve()
    if target == root or root not in target.parents:
        raise ValueError(f"Path escapes {root}: {name}")
    return target


def write_text(base: Path, name: str, content: str) -> Path:
    """Write ``content`` to ``base/name`` verbatim, creating parents."""
    target = resolve_within(base, name)
    target.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps CRLF bodies byte-for-byte
    with open(target, "w", encoding="utf-8", newline="") as fh:
        fh.write(content)
    return target
