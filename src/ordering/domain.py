"""Ordering bounded context — multi-seller order ledger.

Splits a checkout into per-seller orders, keeps a buyer-side and a
seller-side copy of every order in the owners' private partitions, moves
those copies through the fulfillment lifecycle, fans out inbox
notifications, and reports platform commission on completed escrow sales.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
