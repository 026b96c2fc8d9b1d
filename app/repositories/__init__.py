"""
app/repositories package marker.
"""

from app.repositories.rate_card_repository import (
    RateCardRecord,
    RateCardRepository,
    TemplateUsageIncrement,
)
from app.repositories.template_repository import CarrierTemplateRepository

__all__ = [
    "CarrierTemplateRepository",
    "RateCardRecord",
    "RateCardRepository",
    "TemplateUsageIncrement",
]
