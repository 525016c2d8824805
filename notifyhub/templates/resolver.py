"""Template resolution with a fixed English fallback, and payload rendering."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from ..exceptions import TemplateNotFoundError, TemplateRenderError
from .models import NotificationTemplate
from .service import TemplateStore

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    subject: str | None
    body: str


class TemplateResolver:
    """Resolve (code, locale, channel) to an active template.

    Lookup order is the exact locale, then ``FALLBACK_LOCALE``. There is no
    further chain (no "pt-BR" -> "pt" step).
    """

    def __init__(self, store: TemplateStore) -> None:
        self._store = store
        self._env = SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)

    def resolve(self, code: str, locale: str, channel: str) -> NotificationTemplate:
        logger.debug("Resolving template: code=%s, locale=%s, channel=%s", code, locale, channel)
        template = self._store.find_template(channel, code, locale)
        if template is None and locale != FALLBACK_LOCALE:
            logger.debug("Template missing for locale=%s, falling back to %s", locale, FALLBACK_LOCALE)
            template = self._store.find_template(channel, code, FALLBACK_LOCALE)
        if template is None:
            raise TemplateNotFoundError(channel, code, locale)
        logger.debug("Template resolved: id=%s, channel=%s, locale=%s", template.id, template.channel, template.locale)
        return template

    def render(self, template: NotificationTemplate, payload: Mapping[str, Any]) -> RenderedMessage:
        """Render subject and body against ``payload``. Missing variables render empty."""
        try:
            subject = (
                self._env.from_string(template.subject_template).render(**payload)
                if template.subject_template
                else None
            )
            body = self._env.from_string(template.body_template).render(**payload)
        except TemplateError as exc:
            raise TemplateRenderError(f"Cannot render template {template.template_code!r}: {exc}") from exc
        return RenderedMessage(subject=subject, body=body)
