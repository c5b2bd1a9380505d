"""Pitch files: markdown/plain text with optional YAML frontmatter."""

from dataclasses import dataclass
from pathlib import Path

import frontmatter


@dataclass
class PitchFile:
    text: str
    source: str
    turns: int | None = None
    investors: list[str] | None = None


def parse_investors(raw: object) -> list[str] | None:
    """Accept a comma-separated string or a YAML list."""
    if raw is None:
        return None
    if isinstance(raw, str):
        items = raw.split(",")
    else:
        items = [str(item) for item in raw]
    return [item.strip() for item in items if item.strip()]


def parse_turns(raw: object) -> int | None:
    """Validate the ``turns`` frontmatter value.

    Raises:
        ValueError: If the value is not a whole number of at least 1.
    """
    if raw is None:
        return None
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise ValueError(f"'turns' must be a whole number, got {raw!r}")
    try:
        turns = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"'turns' must be a whole number, got {raw!r}") from None
    if turns < 1:
        raise ValueError(f"'turns' must be at least 1, got {turns}")
    return turns


def parse_pitch_file(file_path: Path) -> PitchFile:
    """Parse a pitch file.

    Recognized frontmatter keys: ``turns`` (int) and ``investors`` (list or
    comma-separated string). Other keys are ignored.

    Raises:
        ValueError: If ``turns`` is not a positive whole number.
    """
    post = frontmatter.load(str(file_path))
    return PitchFile(
        text=post.content.strip(),
        source=str(file_path),
        turns=parse_turns(post.metadata.get("turns")),
        investors=parse_investors(post.metadata.get("investors")),
    )
