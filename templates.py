"""File-backed HTML templates with a fixed fallback page."""

from __future__ import annotations

import html
import logging
from pathlib import Path

from config import TEMPLATE_DIR, TEMPLATE_FALLBACK

logger = logging.getLogger(__name__)


class TemplateLoader:
    def __init__(self, template_dir: str = TEMPLATE_DIR, fallback: str = TEMPLATE_FALLBACK) -> None:
        self._template_dir = Path(template_dir)
        self._fallback = fallback

    def load(self, name: str, *, fallback: str | None = None) -> str:
        """Read a template, returning the fallback page if it cannot be loaded."""
        template_path = self._template_dir / name
        try:
            return template_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to load template %s: %s", template_path, exc)
            return self._fallback if fallback is None else fallback

    def render(self, name: str, **values: str) -> str:
        text = self.load(name)
        for key, value in values.items():
            text = text.replace("{{" + key + "}}", html.escape(value))
        return text
