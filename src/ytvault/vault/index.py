"""Vault indexing: scan notes once, parse front matter, build a tag index."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

import yaml

from ..errors import FrontmatterError

logger = logging.getLogger(__name__)

NOTE_EXTENSION = ".md"
CONTROL_DIR = ".obsidian"

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a note into (front matter, body).

    Raises:
        yaml.YAMLError: front matter is not valid YAML.
        ValueError: front matter is valid YAML but not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    metadata = yaml.safe_load(match.group(1)) or {}
    if not isinstance(metadata, dict):
        raise ValueError(f"expected a mapping, got {type(metadata).__name__}")
    return metadata, text[match.end():]


def _tag(value: Any) -> str:
    return "#" + str(value).lstrip("#")


@dataclass(frozen=True)
class Note:
    """A single vault note. `path` is relative to the vault root, POSIX style."""
    path: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_path(cls, vault_path: Path, relative_path: str) -> "Note":
        """Read and parse a note. Raises FrontmatterError if it can't be parsed."""
        file_path = vault_path / relative_path
        try:
            text = file_path.read_text(encoding="utf-8")
            metadata, content = parse_frontmatter(text)
        except (UnicodeDecodeError, yaml.YAMLError, ValueError) as e:
            raise FrontmatterError(relative_path, str(e)) from e
        return cls(path=relative_path, content=content, metadata=metadata)

    @property
    def base_filename(self) -> str:
        return os.path.basename(self.path)

    @property
    def title(self) -> str:
        return self.base_filename[: -len(NOTE_EXTENSION)] if self.base_filename.endswith(NOTE_EXTENSION) else self.base_filename

    @property
    def folder(self) -> str:
        return os.path.dirname(self.path) or "."

    @property
    def stereotype(self) -> str | None:
        return self.metadata.get("stereotype") or None

    @property
    def tags(self) -> list[str]:
        """Declared tags plus the stereotype, each with a leading '#'."""
        declared = self.metadata.get("tags") or []
        if isinstance(declared, (str, int, float)):
            declared = [declared]
        tags = [_tag(t) for t in declared if t is not None and str(t).strip("#")]
        if self.stereotype:
            tags.append(_tag(self.stereotype))
        return list(dict.fromkeys(tags))

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key) or default


class VaultIndex:
    """Read-only snapshot of a vault's notes and tags, built once per run."""

    def __init__(self, vault_path: str | Path, notes: list[Note] | None = None):
        self.vault_path = Path(vault_path)
        self.notes: list[Note] = []
        self.notes_by_tag: dict[str, list[Note]] = {}
        self._by_path: dict[str, Note] = {}
        self._by_data: dict[str, dict[str, Note]] = {}
        for note in notes or []:
            self._add(note)

    def _add(self, note: Note) -> None:
        self.notes.append(note)
        self._by_path[note.path] = note
        self._by_data.clear()
        for tag in note.tags:
            self.notes_by_tag.setdefault(tag, []).append(note)

    @classmethod
    def scan(cls, vault_path: str | Path, exclude: Iterable[str] = ()) -> "VaultIndex":
        """Scan `vault_path` for notes, skipping excluded folders and unparseable files."""
        index = cls(vault_path)
        excluded = {e.strip("/") for e in exclude}
        for relative_path in walk_notes(index.vault_path, excluded):
            try:
                note = Note.from_path(index.vault_path, relative_path)
            except FrontmatterError as e:
                logger.warning(f"Skipping note: {e}")
                continue
            index._add(note)
        logger.info(f"Indexed {len(index.notes)} note(s), {len(index.notes_by_tag)} tag(s) in {index.vault_path}")
        return index

    def __len__(self) -> int:
        return len(self.notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(self.notes)

    @property
    def tags(self) -> list[str]:
        return list(self.notes_by_tag)

    def get(self, path: str) -> Note | None:
        return self._by_path.get(path)

    def file_exists(self, filename: str) -> bool:
        """True if any note has this base filename (e.g. 'Some Note.md')."""
        return any(note.base_filename == filename for note in self.notes)

    def find(self, predicate: Callable[[Note], bool]) -> list[Note]:
        return [note for note in self.notes if predicate(note)]

    def map(self, fn: Callable[[Note], Any]) -> list[Any]:
        return [fn(note) for note in self.notes]

    def search(self, tags: Iterable[str]) -> list[Note]:
        """Notes carrying at least one of `tags`, in scan order."""
        wanted = {_tag(t) for t in tags}
        return [note for note in self.notes if wanted.intersection(note.tags)]

    def find_by_data(self, key: str, value: Any) -> Note | None:
        """First note whose front matter `key` equals `value` (compared as strings)."""
        if key not in self._by_data:
            lookup: dict[str, Note] = {}
            for note in self.notes:
                found = note.metadata.get(key)
                if found is not None:
                    lookup.setdefault(str(found), note)
            self._by_data[key] = lookup
        return self._by_data[key].get(str(value))


def walk_notes(vault_path: Path, excluded: set[str]) -> Iterator[str]:
    """Yield vault-relative note paths, a folder's own notes before its subfolders'."""
    for dirpath, dirnames, filenames in os.walk(vault_path):
        rel_dir = Path(dirpath).relative_to(vault_path).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir
        dirnames[:] = sorted(
            d for d in dirnames
            if not _is_excluded(f"{rel_dir}/{d}" if rel_dir else d, d, excluded)
        )
        for filename in sorted(filenames):
            if filename.endswith(NOTE_EXTENSION):
                yield f"{rel_dir}/{filename}" if rel_dir else filename


def _is_excluded(relative_dir: str, name: str, excluded: set[str]) -> bool:
    return name == CONTROL_DIR or relative_dir in excluded
