"""Partition store — per-owner order partitions over the OrderCopy repository.

Each owner (buyer or seller) has a private partition: the list of order
copies stored under their ``owner_id``. Partitions share no transaction
boundary; a write touches exactly one owner's copies.

Besides the ``read``/``write`` pair, the store keeps two lookups:
``owners_of`` (order id → owners holding a copy) replaces a scan over every
user, and ``save_copy`` is a compare-and-swap on the copy's ``revision`` so
a stale in-memory copy can never overwrite a newer stored one.
"""

import structlog
from protean.exceptions import ValidationError

from ordering.domain import ordering
from ordering.order.order import OrderCopy

logger = structlog.get_logger(__name__)

# Upper bound for a single partition query
_MAX_RECORDS = 100_000


@ordering.repository(part_of=OrderCopy)
class PartitionStore:
    def _query(self, **filters):
        return self._dao.query.filter(**filters).limit(_MAX_RECORDS).all().items

    # -------------------------------------------------------------------
    # Partition access
    # -------------------------------------------------------------------
    def read(self, owner_id) -> list[OrderCopy]:
        """Return the owner's copies in placement order."""
        copies = self._query(owner_id=str(owner_id))
        return sorted(copies, key=lambda copy: (copy.placed_at, copy.order_id))

    def write(self, owner_id, copies) -> None:
        """Replace the owner's partition with exactly ``copies``.

        Callers append by writing ``read(owner_id) + [new_copy]``.
        """
        owner_id = str(owner_id)
        foreign = [copy.order_id for copy in copies if str(copy.owner_id) != owner_id]
        if foreign:
            raise ValidationError({"owner_id": [f"Copies {foreign} do not belong to partition {owner_id}"]})

        kept_ids = {str(copy.id) for copy in copies}
        for stored in self._query(owner_id=owner_id):
            if str(stored.id) not in kept_ids:
                self._dao.delete(stored)

        for copy in copies:
            self.add(copy)

        logger.debug("Partition written", owner_id=owner_id, count=len(copies))

    def append(self, owner_id, new_copies) -> None:
        self.write(owner_id, self.read(owner_id) + list(new_copies))

    def list_all_owner_ids(self) -> list[str]:
        """Every owner holding at least one order copy, in stable order."""
        owners = {str(copy.owner_id) for copy in self._dao.query.limit(_MAX_RECORDS).all().items}
        return sorted(owners)

    # -------------------------------------------------------------------
    # Order-id index
    # -------------------------------------------------------------------
    def owners_of(self, order_id) -> list[str]:
        """Owners whose partitions hold a copy of ``order_id``, in user-list order."""
        return sorted({str(copy.owner_id) for copy in self._query(order_id=str(order_id))})

    def find_copy(self, owner_id, order_id) -> OrderCopy | None:
        copies = self._query(owner_id=str(owner_id), order_id=str(order_id))
        return copies[0] if copies else None

    # -------------------------------------------------------------------
    # Versioned write
    # -------------------------------------------------------------------
    def save_copy(self, copy, expected_revision) -> bool:
        """Persist ``copy`` only if the stored revision is still ``expected_revision``."""
        stored = self.find_copy(copy.owner_id, copy.order_id)
        if stored is not None and stored.revision != expected_revision:
            logger.warning(
                "Stale order copy rejected",
                order_id=copy.order_id,
                owner_id=str(copy.owner_id),
                expected_revision=expected_revision,
                stored_revision=stored.revision,
            )
            return False

        self.add(copy)
        return True
