"""Django ORM implementation of the TicketLedger.

Each operation locks the ticket row with ``select_for_update()`` and then
counts purchases, so two writers on one ticket are linearised by the
database rather than by an in-process mutex. On SQLite, where row locks do
not exist, the same guarantee comes from ``BEGIN IMMEDIATE`` transactions
(see ``DATABASES`` in settings).
"""

import logging
from datetime import datetime

from django.db import transaction

from events import models
from events.domain import Purchase, PurchaseId, Ticket, TicketId
from events.domain.errors import (
    CapacityExceededError,
    InvalidTicketError,
    PurchaseNotFoundError,
    TicketNotFoundError,
)
from events.stores.django_store import to_purchase, to_ticket
from events.stores.interfaces import TicketLedger

logger = logging.getLogger(__name__)


class DjangoTicketLedger(TicketLedger):
    """Ticket ledger backed by row-level locks."""

    def _lock_ticket(self, ticket_id: TicketId) -> models.Ticket:
        row = models.Ticket.objects.select_for_update().filter(pk=ticket_id.value).first()
        if row is None:
            raise TicketNotFoundError(str(ticket_id))
        return row

    @staticmethod
    def _store_sold_out(row: models.Ticket, sold: int) -> None:
        sold_out = sold >= row.count
        if row.is_sold_out != sold_out:
            row.is_sold_out = sold_out
            row.save(update_fields=["is_sold_out"])

    def reserve(
        self,
        ticket_id: TicketId,
        buyer_id: int,
        quantity: int,
        *,
        purchased_at: datetime,
        fallback_refund_date_count: int | None = None,
        payment_reference: str = "",
    ) -> list[Purchase]:
        if quantity < 1:
            raise ValueError("quantity must be positive")

        with transaction.atomic():
            row = self._lock_ticket(ticket_id)
            sold = row.purchases.count()
            if sold + quantity > row.count:
                logger.info(
                    "Rejected reservation of %s x ticket %s (%s/%s sold)",
                    quantity,
                    ticket_id,
                    sold,
                    row.count,
                )
                raise CapacityExceededError(str(ticket_id), quantity, max(0, row.count - sold))

            refund_date_count = row.refund_date_count
            if refund_date_count is None:
                refund_date_count = fallback_refund_date_count

            created = models.Purchase.objects.bulk_create(
                models.Purchase(
                    ticket=row,
                    buyer_id=buyer_id,
                    price=row.price,
                    valid_from=row.valid_from,
                    valid_to=row.valid_to,
                    refund_date_count=refund_date_count,
                    purchase_time=purchased_at,
                    payment_reference=payment_reference,
                )
                for _ in range(quantity)
            )
            self._store_sold_out(row, sold + quantity)

        logger.debug("Reserved %s x ticket %s for buyer %s", quantity, ticket_id, buyer_id)
        return [to_purchase(purchase, row.event_id) for purchase in created]

    def release(self, purchase_id: PurchaseId) -> Purchase:
        ticket_pk = (
            models.Purchase.objects.filter(pk=purchase_id.value).values_list("ticket_id", flat=True).first()
        )
        if ticket_pk is None:
            raise PurchaseNotFoundError(str(purchase_id))

        with transaction.atomic():
            row = self._lock_ticket(TicketId(ticket_pk))
            purchase = models.Purchase.objects.select_for_update().filter(pk=purchase_id.value).first()
            if purchase is None:
                # Released concurrently while we waited for the ticket lock.
                raise PurchaseNotFoundError(str(purchase_id))
            released = to_purchase(purchase, row.event_id)
            purchase.delete()
            self._store_sold_out(row, row.purchases.count())

        logger.debug("Released purchase %s of ticket %s", purchase_id, row.pk)
        return released

    def sold_count(self, ticket_id: TicketId) -> int:
        return models.Purchase.objects.filter(ticket_id=ticket_id.value).count()

    def resize(self, ticket_id: TicketId, count: int) -> Ticket:
        if count < 1:
            raise InvalidTicketError("Ticket count must be a positive integer")
        with transaction.atomic():
            row = self._lock_ticket(ticket_id)
            sold = row.purchases.count()
            if count < sold:
                raise InvalidTicketError(f"Ticket count cannot be lower than the {sold} already sold")
            row.count = count
            row.is_sold_out = sold >= count
            row.save(update_fields=["count", "is_sold_out"])
        return to_ticket(row)

    def sync_sold_out(self, ticket_id: TicketId) -> bool:
        with transaction.atomic():
            row = self._lock_ticket(ticket_id)
            self._store_sold_out(row, row.purchases.count())
        return row.is_sold_out
