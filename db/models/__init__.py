"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.carrier_rate_template import CarrierRateTemplate, CarrierTemplateType
from db.models.rate_card import RateCard, RateCardType

__all__ = [
    "CarrierRateTemplate",
    "CarrierTemplateType",
    "RateCard",
    "RateCardType",
]
