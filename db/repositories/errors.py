"""
Repository-layer exceptions for template and rate card persistence.
"""

from __future__ import annotations


class RateRepositoryError(Exception):
    """Base exception for rate template storage failures."""


class TemplateNotFoundError(RateRepositoryError, LookupError):
    """Raised when a referenced carrier rate template does not exist."""

    def __init__(self, template_id: object) -> None:
        super().__init__(f"Carrier rate template not found: {template_id}")
        self.template_id = template_id


class TemplatePayloadError(RateRepositoryError, ValueError):
    """Raised when a template definition cannot be accepted for storage."""


class RateCardPersistenceError(RateRepositoryError, RuntimeError):
    """Raised when the rate card and usage update cannot be committed together."""


class TemplatePersistenceError(RateRepositoryError, RuntimeError):
    """Raised when a new template or a usage update cannot be committed."""
