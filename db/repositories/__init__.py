"""
Repository layer exports.
"""

from db.repositories.errors import (
    RateCardPersistenceError,
    RateRepositoryError,
    TemplateNotFoundError,
    TemplatePayloadError,
    TemplatePersistenceError,
)

__all__ = [
    "RateCardPersistenceError",
    "RateRepositoryError",
    "TemplateNotFoundError",
    "TemplatePayloadError",
    "TemplatePersistenceError",
]
