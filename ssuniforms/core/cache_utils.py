"""
Caching helpers for expensive read paths.
Uses Redis (django-redis) when configured, the local-memory cache otherwise.
"""
from django.core.cache import cache
from django.db import transaction
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
CATALOGUE_TREE_CACHE_TTL = 300  # 5 minutes

CATALOGUE_TREE_CACHE_KEY = 'catalogue_tree'


def get_catalogue_tree():
    data = cache.get(CATALOGUE_TREE_CACHE_KEY)
    if data is not None:
        logger.debug("Cache HIT for catalogue_tree")
    else:
        logger.debug("Cache MISS for catalogue_tree")
    return data


def set_catalogue_tree(tree):
    cache.set(CATALOGUE_TREE_CACHE_KEY, tree, CATALOGUE_TREE_CACHE_TTL)


def _delete_catalogue_tree():
    try:
        cache.delete(CATALOGUE_TREE_CACHE_KEY)
        logger.info("Invalidated catalogue tree cache")
    except Exception as e:
        logger.warning(f"Could not invalidate catalogue tree cache: {str(e)}")


def invalidate_catalogue_tree():
    """
    Drop the cached tree now and again once the surrounding transaction
    commits, so a read racing the write cannot re-cache stale rows.
    """
    _delete_catalogue_tree()
    transaction.on_commit(_delete_catalogue_tree)
