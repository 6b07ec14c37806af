"""Utilities for importing the question pool from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    NAME: The prompt shown to the user. Additional lines until the next
          marker are treated as part of the name.
    MEANING: The correct answer for this prompt
    ID: stable identifier (optional — defaults to the NAME text)

Example:

    NAME: Ar-Rahman (ٱلرَّحْمَٰنُ)
    MEANING: The Beneficent

    NAME: Ar-Rahim (ٱلرَّحِيمُ)
    MEANING: The Merciful

Every other item's meaning doubles as a distractor, so a pool needs at least
four items with distinct meanings before any question can be shown.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from quiz_bot.core.models import QuizItem


class QuizImportError(Exception):
    """Raised when a question pool definition cannot be parsed."""


@dataclass(slots=True)
class ImportedPool:
    """Container for imported pool metadata and items."""

    source_path: Path
    items: list[QuizItem]


_MARKERS = ("NAME", "MEANING", "ID")


def load_pool_from_file(file_path: Path) -> ImportedPool:
    text = file_path.read_text(encoding="utf-8")
    items = parse_pool_text(text)
    if not items:
        raise QuizImportError("Pool file did not contain any items.")
    return ImportedPool(source_path=file_path, items=items)


def parse_pool_text(text: str) -> list[QuizItem]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped.startswith("#"):
            continue
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    items: list[QuizItem] = []
    seen_ids: set[str] = set()
    for block in blocks:
        item = _parse_block(block)
        if item.id in seen_ids:
            raise QuizImportError(f"Duplicate item id '{item.id}'.")
        seen_ids.add(item.id)
        items.append(item)
    return items


def _parse_block(block: str) -> QuizItem:
    sections: dict[str, list[str]] = {}
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        marker, separator, value = line.partition(":")
        marker = marker.strip().upper()
        if separator and marker in _MARKERS:
            if marker in sections:
                raise QuizImportError(f"{marker} appears twice in one block.")
            sections[marker] = [value.strip()]
            current_section = marker
            continue

        if current_section in ("NAME", "MEANING"):
            sections[current_section].append(line)
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    name = "\n".join(sections.get("NAME", [])).strip()
    meaning = "\n".join(sections.get("MEANING", [])).strip()
    if not name:
        raise QuizImportError("Item name missing (NAME: ...)")
    if not meaning:
        raise QuizImportError(f"Meaning missing for '{name}' (MEANING: ...)")

    item_id = "\n".join(sections.get("ID", [])).strip() or name
    return QuizItem(id=item_id, prompt=name, correct_meaning=meaning)
