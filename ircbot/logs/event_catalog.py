"""Human-readable text for ``(domain, action)`` log events.

Templates live in ``event_templates.json`` next to this module, one object
per domain::

    {"irc": {"connect_start": "Connecting to {host}:{port}"}}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

TEMPLATE_FILE = Path(__file__).with_name("event_templates.json")


class TemplateCatalog:
    """Loaded template table. A file that cannot be read leaves the table
    empty and records why in ``error``; events then fall back to their
    derived ``domain: action`` text."""

    def __init__(self, path: Path = TEMPLATE_FILE) -> None:
        self.path = path
        self.error: str | None = None
        self._templates: dict[tuple[str, str], str] = {}
        self.reload()

    def reload(self) -> None:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._templates, self.error = {}, f"{type(e).__name__}: {e}"
            return
        if not isinstance(raw, Mapping):
            self._templates, self.error = {}, "top level is not an object"
            return
        self._templates = {
            (domain, action): text
            for domain, actions in raw.items()
            if isinstance(actions, Mapping)
            for action, text in actions.items()
            if isinstance(text, str)
        }
        self.error = None

    def template_for(self, domain: str, action: str) -> str | None:
        return self._templates.get((domain, action))

    def render(self, domain: str, action: str, fields: Mapping[str, object]) -> str | None:
        """Fill the template from ``fields``; a field the caller did not
        pass leaves the template text as written."""
        template = self.template_for(domain, action)
        if template is None:
            return None
        try:
            return template.format_map(fields)
        except (KeyError, IndexError, ValueError):
            return template

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    def __len__(self) -> int:
        return len(self._templates)


catalog = TemplateCatalog()
