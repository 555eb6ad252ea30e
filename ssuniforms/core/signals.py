"""
Profile bootstrap: every new identity gets a staff profile
"""
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import User, Profile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def create_profile_for_new_user(sender, instance, created, **kwargs):
    if not created or kwargs.get('raw'):
        return
    name = instance.get_full_name() or instance.email.split('@')[0]
    Profile.objects.get_or_create(user=instance, defaults={'name': name})
    logger.info(f"Created staff profile for user {instance.pk}")
