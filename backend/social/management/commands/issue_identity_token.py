"""
Mint an identity token for development.

Usage:
    python manage.py issue_identity_token google 1234567 --email ana@example.com --name Ana

Then call the API with  Authorization: Bearer <token>
"""

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from social.authentication import issue_identity_token
from social.identity import ProviderIdentity


class Command(BaseCommand):
    help = 'Print a signed identity token for a provider account'

    def add_arguments(self, parser):
        parser.add_argument('provider', help='OAuth provider, e.g. google')
        parser.add_argument('provider_account_id', help="The provider's account id")
        parser.add_argument('--email', default=None)
        parser.add_argument('--name', default=None)
        parser.add_argument('--image', default=None)

    def handle(self, *args, **options):
        if options['provider'] not in settings.OAUTH_PROVIDERS:
            raise CommandError(
                f"Provider '{options['provider']}' is not in OAUTH_PROVIDERS "
                f"({', '.join(settings.OAUTH_PROVIDERS)})"
            )
        token = issue_identity_token(ProviderIdentity(
            provider=options['provider'],
            provider_account_id=options['provider_account_id'],
            email=options['email'],
            display_name=options['name'],
            avatar_url=options['image'],
        ))
        self.stdout.write(token)
