"""Note templates: Jinja2 templates loaded from disk, compiled once per renderer."""

from pathlib import Path
from typing import Any

import jinja2
import yaml

from ..errors import TemplateError

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "default_templates"


def yaml_scalar(value: Any) -> str:
    """Render a value as an inline YAML scalar, for use inside front matter."""
    if value is None:
        return "null"
    dumped = yaml.safe_dump(value, default_flow_style=True, allow_unicode=True, width=float("inf"))
    # safe_dump terminates documents with "\n" or "\n...\n" for bare scalars
    return dumped.removesuffix("\n").removesuffix("\n...").strip()


def resolve_template(template_ref: str | Path) -> Path:
    """Find a template by path, falling back to the packaged defaults."""
    path = Path(template_ref).expanduser()
    if path.is_file():
        return path
    bundled = DEFAULT_TEMPLATE_DIR / str(template_ref)
    if bundled.is_file():
        return bundled
    raise TemplateError(str(template_ref), "file not found")


class TemplateRenderer:
    """Loads and compiles templates on first use and keeps them for its own lifetime."""

    def __init__(self):
        self.env = jinja2.Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=jinja2.Undefined,
        )
        self.env.filters["yaml"] = yaml_scalar
        self._templates: dict[str, jinja2.Template] = {}

    def get_template(self, template_ref: str | Path) -> jinja2.Template:
        key = str(template_ref)
        if key not in self._templates:
            path = resolve_template(template_ref)
            try:
                source = path.read_text(encoding="utf-8")
                self._templates[key] = self.env.from_string(source)
            except jinja2.TemplateSyntaxError as e:
                raise TemplateError(key, f"line {e.lineno}: {e.message}") from e
        return self._templates[key]

    def render(self, template_ref: str | Path, data: dict[str, Any]) -> str:
        template = self.get_template(template_ref)
        try:
            return template.render(**data)
        except jinja2.TemplateError as e:
            raise TemplateError(str(template_ref), str(e)) from e

    @property
    def compiled_count(self) -> int:
        return len(self._templates)
