"""
Identity token authentication.

The OAuth provider integration signs the provider's view of the account
({provider, provider_account_id, email, name, image}) with
IDENTITY_TOKEN_SECRET and hands it to the client. Every API request sends it
back as:

    Authorization: Bearer <token>

We verify signature and age, then run the Identity Resolver, so request.user
is always a completed social.Member.
"""

import logging

from django.conf import settings
from django.core import signing
from rest_framework import authentication, exceptions

from .identity import ProviderIdentity, resolve_identity

logger = logging.getLogger(__name__)

TOKEN_SALT = 'social.identity-token'
KEYWORD = 'Bearer'


def issue_identity_token(identity: ProviderIdentity) -> str:
    payload = {
        'provider': identity.provider,
        'provider_account_id': identity.provider_account_id,
        'email': identity.email,
        'name': identity.display_name,
        'image': identity.avatar_url,
    }
    return signing.dumps(payload, key=settings.IDENTITY_TOKEN_SECRET, salt=TOKEN_SALT)


def read_identity_token(token: str) -> ProviderIdentity:
    try:
        payload = signing.loads(
            token,
            key=settings.IDENTITY_TOKEN_SECRET,
            salt=TOKEN_SALT,
            max_age=settings.IDENTITY_TOKEN_MAX_AGE,
        )
    except signing.SignatureExpired:
        raise exceptions.AuthenticationFailed('Identity token expired.')
    except signing.BadSignature:
        raise exceptions.AuthenticationFailed('Invalid identity token.')

    if not isinstance(payload, dict):
        raise exceptions.AuthenticationFailed('Invalid identity token.')

    provider = payload.get('provider')
    account_id = payload.get('provider_account_id')
    if not provider or not account_id:
        raise exceptions.AuthenticationFailed('Identity token is missing the provider account.')
    if provider not in settings.OAUTH_PROVIDERS:
        raise exceptions.AuthenticationFailed(f"Provider '{provider}' is not enabled.")

    return ProviderIdentity(
        provider=provider,
        provider_account_id=str(account_id),
        email=payload.get('email') or None,
        display_name=payload.get('name') or None,
        avatar_url=payload.get('image') or None,
    )


class IdentityTokenAuthentication(authentication.BaseAuthentication):
    """
    DRF authentication class: Bearer identity token → Member.

    Requests without an Authorization header stay anonymous, so AllowAny
    views keep working; IsAuthenticated views answer 401.
    """

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != KEYWORD.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed('Invalid Authorization header.')

        try:
            token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid identity token.')

        identity = read_identity_token(token)
        resolution = resolve_identity(identity)
        if resolution.outcome != 'existing':
            logger.info(
                "Identity %s/%s %s as %s",
                identity.provider, identity.provider_account_id,
                resolution.outcome, resolution.member.app_user_id
            )
        return (resolution.member, identity)

    def authenticate_header(self, request):
        return f'{KEYWORD} realm="api"'
