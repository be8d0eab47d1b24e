"""
Django signals for the users app.

Every user gets a profile so the workflow always has a role to check.
"""

from django.db.models.signals import post_save
from django.dispatch import receiver
from .models import CustomUser, Profile


@receiver(post_save, sender=CustomUser)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Automatically create a Profile when a new user is created.

    Superusers start as admins, everyone else as an author.
    """
    if created:
        Profile.objects.create(
            user=instance,
            display_name=f"{instance.first_name} {instance.last_name}".strip(),
            role='admin' if instance.is_superuser else 'author',
        )
