"""Write templated notes to the Obsidian vault."""

import logging
import re
from pathlib import Path
from typing import Any

from .templates import TemplateRenderer

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_|.,?!@\"&'$() ]")


def make_safe_filename(filename: str) -> str:
    """Sanitize a string for use as a vault filename."""
    filename = filename.replace("’", "'")
    filename = filename.replace("[", "(").replace("]", ")")
    filename = filename.replace(":", " -")
    filename = re.sub(r"/+", "-", filename)
    filename = filename.replace("#", "")
    return UNSAFE_FILENAME_CHARS.sub("_", filename)


class NoteWriter:
    """Renders data through a template and writes the result into the vault."""

    def __init__(self, vault_path: str | Path, renderer: TemplateRenderer | None = None):
        self.vault_path = Path(vault_path)
        self.renderer = renderer or TemplateRenderer()

    def write(self, template_ref: str, folder: str, filename: str, data: dict[str, Any]) -> Path:
        """Render and write `{vault}/{folder}/{safe filename}`, replacing any existing file.

        Returns the path of the written file.
        """
        content = self.renderer.render(template_ref, data)
        file_path = self.vault_path / folder / make_safe_filename(filename)
        self._write_file(file_path, content)
        return file_path

    def write_to(self, relative_path: str, template_ref: str, data: dict[str, Any]) -> Path:
        """Re-render an existing note in place, keeping its current location and name."""
        content = self.renderer.render(template_ref, data)
        file_path = self.vault_path / relative_path
        self._write_file(file_path, content)
        return file_path

    def _write_file(self, file_path: Path, content: str) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote {file_path}")
