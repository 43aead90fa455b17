"""Marketplace settings aggregate — the configuration provider for commission.

A single record keyed ``marketplace`` holds the platform commission
percentage. Until an admin saves one, the rate comes from the
``MARKETLEDGER_COMMISSION_RATE`` environment variable (default 5%).
"""

import os
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, String
from protean.utils.globals import current_domain

from ordering.domain import ordering

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "marketplace"
DEFAULT_COMMISSION_RATE = 5.0


def default_commission_rate():
    return float(os.environ.get("MARKETLEDGER_COMMISSION_RATE", DEFAULT_COMMISSION_RATE))


@ordering.aggregate
class MarketplaceSettings:
    key = String(identifier=True, max_length=50)
    commission_rate = Float(required=True, min_value=0.0, max_value=100.0)
    updated_at = DateTime()

    @classmethod
    def create(cls, commission_rate):
        return cls(key=SETTINGS_KEY, commission_rate=commission_rate, updated_at=datetime.now(UTC))

    def change_commission_rate(self, commission_rate):
        self.commission_rate = commission_rate
        self.updated_at = datetime.now(UTC)


def current_commission_rate():
    """Commission percentage in effect right now."""
    try:
        settings = current_domain.repository_for(MarketplaceSettings).get(SETTINGS_KEY)
    except ObjectNotFoundError:
        return default_commission_rate()
    return settings.commission_rate


@ordering.command(part_of="MarketplaceSettings")
class UpdateCommissionRate:
    commission_rate = Float(required=True, min_value=0.0, max_value=100.0)


@ordering.command_handler(part_of=MarketplaceSettings)
class MarketplaceSettingsHandler:
    @handle(UpdateCommissionRate)
    def update_commission_rate(self, command):
        repo = current_domain.repository_for(MarketplaceSettings)
        try:
            settings = repo.get(SETTINGS_KEY)
            settings.change_commission_rate(command.commission_rate)
        except ObjectNotFoundError:
            settings = MarketplaceSettings.create(command.commission_rate)
        repo.add(settings)
        logger.info("Commission rate updated", commission_rate=settings.commission_rate)
        return settings.commission_rate
