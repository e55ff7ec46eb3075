"""Django signals for cache invalidation.

Keys are dropped once the surrounding transaction commits, so a concurrent
read cannot cache rows from before the write.
"""

from functools import partial

from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from events import cache_keys
from events.models import Event, Purchase, Ticket


def _invalidate_on_commit(keys: list[str]) -> None:
    transaction.on_commit(partial(cache.delete_many, keys))


@receiver([post_save, post_delete], sender=Event)
def invalidate_event_cache(sender, instance, **kwargs):
    """Invalidate caches when an event is saved or deleted."""
    _invalidate_on_commit(cache_keys.for_event(instance.pk))


@receiver([post_save, post_delete], sender=Ticket)
def invalidate_ticket_cache(sender, instance, **kwargs):
    """Invalidate caches when a ticket tier is saved or deleted."""
    _invalidate_on_commit(cache_keys.for_event(instance.event_id))


@receiver([post_save, post_delete], sender=Purchase)
def invalidate_purchase_cache(sender, instance, **kwargs):
    """Invalidate availability caches when a purchase is saved or deleted."""
    event_id = Ticket.objects.filter(pk=instance.ticket_id).values_list("event_id", flat=True).first()
    if event_id is None:
        _invalidate_on_commit([cache_keys.EVENT_LIST])
        return
    _invalidate_on_commit(cache_keys.for_event(event_id))
