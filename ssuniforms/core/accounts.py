"""
Privileged account management: creating and deleting identities.

Used by the create-admin / create-user / delete-user functions and by
self-service signup. Identity creation and role assignment happen in one
transaction, so a failed role update never leaves an orphaned identity.
"""
import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction, IntegrityError

from .models import Profile

logger = logging.getLogger(__name__)

User = get_user_model()

VALID_ROLES = (Profile.ROLE_ADMIN, Profile.ROLE_STAFF)


class AccountError(Exception):
    """Account could not be created or deleted; message is user-facing"""


def admin_exists():
    return Profile.objects.filter(role=Profile.ROLE_ADMIN).exists()


def create_account(email, password, name, role=Profile.ROLE_STAFF):
    """Create an identity with its profile set to the given role"""
    if not all(isinstance(value, str) and value.strip() for value in (email, password, name)):
        raise AccountError('Email, password, and name are required')
    if role not in VALID_ROLES:
        raise AccountError("Invalid role. Must be 'admin' or 'staff'")

    email = User.objects.normalize_email(email.strip())
    try:
        validate_email(email)
        validate_password(password)
    except ValidationError as e:
        raise AccountError(' '.join(e.messages))

    if User.objects.filter(email__iexact=email).exists():
        raise AccountError('A user with this email address has already been registered')

    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, password=password, first_name=name)
            updated = Profile.objects.filter(user=user).update(name=name, role=role)
            if not updated:
                Profile.objects.create(user=user, name=name, role=role)
    except IntegrityError as e:
        logger.error(f"Failed to create account for {email}: {str(e)}")
        raise AccountError('Failed to set user role')

    logger.info(f"Created {role} account {user.pk} for {email}")
    return user


def delete_account(user_id, acting_user=None):
    """Delete an identity; its profile goes with it"""
    if acting_user is not None and str(acting_user.pk) == str(user_id):
        raise AccountError('Cannot delete your own account')

    try:
        user = User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError):
        raise AccountError('User not found')

    user.delete()
    logger.info(f"Deleted account {user_id}")
    return True
