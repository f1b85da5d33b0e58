from __future__ import annotations

import logging
from typing import Mapping

from notiproof.pipeline.engine.errors import ConfigurationError

logger = logging.getLogger(__name__)

GENERIC_TEMPLATE = "{{user_name}} just took an action"

# Used when no stored template matches (event_type, integration_type).
FALLBACK_TEMPLATES: dict[str, str] = {
    "purchase": "{{user_name}} from {{user_location}} just bought {{product_name}}",
    "subscription": "{{user_name}} from {{user_location}} just subscribed to {{plan_name}}",
    "review": "{{user_name}} left a {{rating}}-star review",
    "signup": "{{user_name}} from {{user_location}} just signed up",
    "form_submission": "{{user_name}} from {{user_location}} submitted {{form_name}}",
    "form_capture": "{{user_name}} from {{user_location}} just signed up",
    "newsletter_signup": "{{user_name}} from {{user_location}} subscribed to the newsletter",
    "download": "{{user_name}} from {{user_location}} downloaded a resource",
    "testimonial": '{{user_name}}: "{{message}}"',
    "announcement": "{{title}}",
    "live_visitors": "{{visitor_count}} people are viewing this page right now",
}

TemplateKey = tuple[str, str]


def fallback_template(event_type: str) -> str:
    try:
        return FALLBACK_TEMPLATES[event_type]
    except KeyError as e:
        raise ConfigurationError(
            f"No fallback template for event_type={event_type}",
            reason="no_fallback_template",
            details={"event_type": event_type},
        ) from e


def resolve_message_template(
    event_type: str,
    integration_type: str,
    stored: Mapping[TemplateKey, str] | None = None,
) -> str:
    """
    Resolution order:
      1) stored template for (event_type, integration_type) (already highest-priority active)
      2) fixed fallback keyed on event_type
      3) generic template
    """
    if stored:
        tmpl = stored.get((event_type, integration_type))
        if tmpl:
            return tmpl

    try:
        return fallback_template(event_type)
    except ConfigurationError as e:
        logger.warning("%s, using generic template", e)
        return GENERIC_TEMPLATE
