"""Vault access: note index, templates and writer."""

from .index import Note, VaultIndex
from .templates import TemplateRenderer
from .writer import NoteWriter, make_safe_filename

__all__ = ["Note", "VaultIndex", "TemplateRenderer", "NoteWriter", "make_safe_filename"]
