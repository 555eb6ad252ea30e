"""
Cache invalidation signals
Drop the cached public catalogue tree when catalogue data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from ssuniforms.core.cache_utils import invalidate_catalogue_tree
from .models import Catalogue, Item, ItemSize

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Catalogue)
@receiver([post_save, post_delete], sender=Item)
@receiver([post_save, post_delete], sender=ItemSize)
def invalidate_catalogue_cache(sender, instance, **kwargs):
    if kwargs.get('raw'):
        return
    logger.debug(f"{sender.__name__} {instance.pk} changed; invalidating catalogue tree")
    invalidate_catalogue_tree()
