"""
Shared fixtures for the social tests.
"""
from social.authentication import issue_identity_token
from social.identity import ProviderIdentity
from social.models import Member
from social.realtime import Notifier


def make_member(app_user_id, provider='google', **extra):
    """A completed member whose provider account id equals its app_user_id."""
    defaults = {
        'display_name': app_user_id.title(),
        'provider_account_id': app_user_id,
        'oauth_completed': True,
    }
    defaults.update(extra)
    return Member.objects.create(app_user_id=app_user_id, provider=provider, **defaults)


def bearer(member=None, identity=None):
    """Authorization header kwargs for APIClient calls."""
    if identity is None:
        identity = ProviderIdentity(member.provider, member.provider_account_id)
    return {'HTTP_AUTHORIZATION': f'Bearer {issue_identity_token(identity)}'}


class RecordingNotifier(Notifier):
    """Keeps every published event in memory."""

    def __init__(self):
        self.events = []

    def send(self, channel, event, payload):
        self.events.append((channel, event, payload))

    def names(self):
        return [event for _, event, _ in self.events]
