"""
Identity Resolver
=================

Maps an OAuth provider identity onto the canonical Member.

LOOKUP ORDER:
-------------
1. Completed member with (provider, provider_account_id)
   → return it. Pure lookup, nothing is written.

2. Newest pending member registered for this provider
   → bind the provider account, copy email/avatar, mark completed.
   → If another provider's completed member already owns the chosen
     app_user_id, the pending one is renamed to provider_accountId.

3. Nothing pending
   → auto-provision a completed member named provider_accountId.

POLICY:
-------
- Two providers sharing an email are two identities. Email is copied onto the
  member for display, never used as a lookup key.
- Resolution never blocks sign-in. If linking loses a race we retry step 1,
  and finally fall back to step 3.

Two things make "same account always resolves to the same member" hold under
concurrent sign-ins:
- Linking is a conditional UPDATE on a row that is still pending, so only one
  sign-in can claim a pending registration. The loser sees 0 rows changed.
- The partial unique indexes on Member (see models.py) reject duplicate
  bindings; those surface here as IntegrityError.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Literal, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from .exceptions import Conflict, NotFound, ValidationFailed
from .models import Member
from .validators import clean_text, validate_app_user_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderIdentity:
    """What the OAuth provider tells us about the signed-in account."""
    provider: str
    provider_account_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class IdentityResolution:
    """Result of resolve_identity()."""
    def __init__(
        self,
        member: Member,
        outcome: Literal['existing', 'linked', 'provisioned'],
        renamed: bool = False
    ):
        self.member = member
        self.outcome = outcome
        self.renamed = renamed


def generated_app_user_id(provider: str, provider_account_id: str) -> str:
    return f"{provider}_{provider_account_id}"


def _find_completed(identity: ProviderIdentity) -> Optional[Member]:
    return Member.objects.completed().filter(
        provider=identity.provider,
        provider_account_id=identity.provider_account_id,
    ).first()


def _id_taken(app_user_id: str, provider: str, exclude_pk=None) -> bool:
    """Taken globally by a completed member, or by anyone under this provider."""
    qs = Member.objects.filter(
        Q(oauth_completed=True) | Q(provider=provider),
        app_user_id=app_user_id,
    )
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def _free_app_user_id(base: str, provider: str, exclude_pk=None) -> str:
    candidate = base
    while _id_taken(candidate, provider, exclude_pk):
        candidate = f"{base}_{uuid.uuid4().hex[:6]}"
    return candidate


def _link_pending(pending: Member, identity: ProviderIdentity) -> Optional[IdentityResolution]:
    """Bind a pending member to the account. None if another sign-in claimed it first."""
    renamed = False
    owned_elsewhere = Member.objects.completed().filter(
        app_user_id=pending.app_user_id,
    ).exclude(provider=identity.provider).exists()

    if owned_elsewhere:
        old_id = pending.app_user_id
        pending.app_user_id = _free_app_user_id(
            generated_app_user_id(identity.provider, identity.provider_account_id),
            identity.provider,
            exclude_pk=pending.pk,
        )
        renamed = True
        logger.info(
            "app_user_id %s already owned by another provider, renamed to %s",
            old_id, pending.app_user_id
        )

    changes = {
        'app_user_id': pending.app_user_id,
        'provider_account_id': identity.provider_account_id,
        'oauth_completed': True,
        'updated_at': timezone.now(),
    }
    if identity.email:
        changes['email'] = identity.email
    if identity.avatar_url:
        changes['avatar_url'] = identity.avatar_url

    # Only a still-pending row may be claimed; a concurrent link wins otherwise
    with transaction.atomic():
        claimed = Member.objects.filter(pk=pending.pk, oauth_completed=False).update(**changes)
    if not claimed:
        return None

    pending.refresh_from_db()
    return IdentityResolution(pending, 'linked', renamed)


def _provision(identity: ProviderIdentity) -> IdentityResolution:
    base = generated_app_user_id(identity.provider, identity.provider_account_id)
    display_name = (
        identity.display_name
        or (identity.email.split('@')[0] if identity.email else '')
        or base
    )
    for _ in range(3):
        app_user_id = _free_app_user_id(base, identity.provider)
        try:
            with transaction.atomic():
                member = Member.objects.create(
                    app_user_id=app_user_id,
                    display_name=display_name[:100],
                    provider=identity.provider,
                    provider_account_id=identity.provider_account_id,
                    email=identity.email or None,
                    avatar_url=identity.avatar_url or '',
                    oauth_completed=True,
                )
        except IntegrityError:
            # Either the account was bound concurrently or the id was grabbed
            existing = _find_completed(identity)
            if existing is not None:
                return IdentityResolution(existing, 'existing')
            continue
        logger.info("Provisioned member %s for %s account", member.app_user_id, identity.provider)
        return IdentityResolution(member, 'provisioned')

    raise Conflict('Could not allocate a user id for this account.')


def resolve_identity(identity: ProviderIdentity) -> IdentityResolution:
    """
    Resolve a provider identity to its Member, linking or provisioning
    as needed. See the module docstring for the lookup order.
    """
    member = _find_completed(identity)
    if member is not None:
        return IdentityResolution(member, 'existing')

    pending = Member.objects.pending().filter(
        provider=identity.provider,
    ).order_by('-created_at', '-id').first()

    if pending is not None:
        try:
            linked = _link_pending(pending, identity)
        except IntegrityError:
            linked = None
            logger.warning(
                "Linking pending member %s to %s account failed, falling back",
                pending.app_user_id, identity.provider, exc_info=True
            )
        if linked is not None:
            return linked
        member = _find_completed(identity)
        if member is not None:
            return IdentityResolution(member, 'existing')

    return _provision(identity)


# ============================================================================
# REGISTRATION
# ============================================================================

def register_pending(app_user_id, display_name, provider) -> Member:
    """
    Reserve an app_user_id before the OAuth round trip.

    Raises ValidationFailed for a bad id, empty name or unknown provider,
    and Conflict if the id is already in use for this provider.
    """
    app_user_id = validate_app_user_id(app_user_id)
    display_name = clean_text(display_name, 'Display name')
    if provider not in settings.OAUTH_PROVIDERS:
        raise ValidationFailed(f"Unknown provider '{provider}'.")

    if Member.objects.filter(app_user_id=app_user_id, provider=provider).exists():
        raise Conflict('This user ID is already taken.')

    try:
        with transaction.atomic():
            member = Member.objects.create(
                app_user_id=app_user_id,
                display_name=display_name[:100],
                provider=provider,
            )
    except IntegrityError:
        raise Conflict('This user ID is already taken.')

    logger.info("Registered pending member %s (%s)", app_user_id, provider)
    return member


def lookup_providers(app_user_id) -> list[Member]:
    """
    Which provider(s) own an app_user_id: completed members first, otherwise
    the newest pending registration.
    """
    completed = list(Member.objects.completed().filter(app_user_id=app_user_id))
    if completed:
        return completed
    pending = Member.objects.pending().filter(
        app_user_id=app_user_id
    ).order_by('-created_at', '-id').first()
    if pending is None:
        raise NotFound('User not found.')
    return [pending]


def verify_app_user_ids(app_user_ids) -> dict:
    """Map each requested id to whether a completed member holds it."""
    requested = [str(i) for i in app_user_ids]
    existing = set(
        Member.objects.completed()
        .filter(app_user_id__in=requested)
        .values_list('app_user_id', flat=True)
    )
    return {app_user_id: app_user_id in existing for app_user_id in requested}
