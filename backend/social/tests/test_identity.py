"""
Tests for identity resolution and registration.

Focus areas:
1. The same provider account always resolves to the same member
2. Pending registrations are linked, renamed on collision
3. Auto-provisioning never blocks sign-in
"""

from unittest.mock import patch

from django.test import TestCase, override_settings
from django.core import signing
from rest_framework.exceptions import AuthenticationFailed

from social.authentication import issue_identity_token, read_identity_token
from social.exceptions import Conflict, NotFound, ValidationFailed
from social.identity import (
    ProviderIdentity,
    _link_pending,
    lookup_providers,
    register_pending,
    resolve_identity,
    verify_app_user_ids,
)
from social.models import Member

from .helpers import make_member


class ResolveIdentityTestCase(TestCase):

    def test_repeated_sign_ins_resolve_to_same_member(self):
        identity = ProviderIdentity('google', '1001', email='ana@example.com', display_name='Ana')

        first = resolve_identity(identity)
        second = resolve_identity(identity)
        third = resolve_identity(identity)

        self.assertEqual(first.member.pk, second.member.pk)
        self.assertEqual(second.member.app_user_id, third.member.app_user_id)
        self.assertEqual(second.outcome, 'existing')
        self.assertEqual(Member.objects.count(), 1)

    def test_existing_member_lookup_writes_nothing(self):
        member = make_member('ana')
        before = member.updated_at

        result = resolve_identity(ProviderIdentity('google', 'ana', email='new@example.com'))

        member.refresh_from_db()
        self.assertEqual(result.outcome, 'existing')
        self.assertEqual(member.updated_at, before)
        self.assertIsNone(member.email)

    def test_pending_registration_is_linked(self):
        register_pending('ana_b', 'Ana B', 'google')

        result = resolve_identity(ProviderIdentity(
            'google', '555', email='ana@example.com', avatar_url='https://img.example.com/a.png'
        ))

        self.assertEqual(result.outcome, 'linked')
        self.assertFalse(result.renamed)
        self.assertEqual(result.member.app_user_id, 'ana_b')
        self.assertEqual(result.member.display_name, 'Ana B')
        self.assertTrue(result.member.oauth_completed)
        self.assertEqual(result.member.provider_account_id, '555')
        self.assertEqual(result.member.email, 'ana@example.com')
        self.assertEqual(result.member.avatar_url, 'https://img.example.com/a.png')

    def test_newest_pending_registration_wins(self):
        register_pending('older', 'Older', 'github')
        register_pending('newer', 'Newer', 'github')

        result = resolve_identity(ProviderIdentity('github', '77'))

        self.assertEqual(result.member.app_user_id, 'newer')
        self.assertFalse(Member.objects.get(app_user_id='older').oauth_completed)

    def test_pending_for_other_provider_is_ignored(self):
        register_pending('ana', 'Ana', 'github')

        result = resolve_identity(ProviderIdentity('google', '9'))

        self.assertEqual(result.outcome, 'provisioned')
        self.assertEqual(result.member.app_user_id, 'google_9')

    def test_id_owned_by_other_provider_is_rewritten(self):
        make_member('ana', provider='github')
        register_pending('ana', 'Ana Again', 'google')

        result = resolve_identity(ProviderIdentity('google', '999'))

        self.assertEqual(result.outcome, 'linked')
        self.assertTrue(result.renamed)
        self.assertEqual(result.member.app_user_id, 'google_999')
        # The original owner keeps the id
        self.assertTrue(Member.objects.filter(app_user_id='ana', provider='github').exists())
        self.assertEqual(Member.objects.completed().filter(app_user_id='ana').count(), 1)

    def test_provisioned_member_names(self):
        from_email = resolve_identity(ProviderIdentity('github', '42', email='dev@example.com'))
        from_name = resolve_identity(ProviderIdentity('github', '43', display_name='Dev Two'))
        bare = resolve_identity(ProviderIdentity('github', '44'))

        self.assertEqual(from_email.outcome, 'provisioned')
        self.assertEqual(from_email.member.app_user_id, 'github_42')
        self.assertEqual(from_email.member.display_name, 'dev')
        self.assertEqual(from_name.member.display_name, 'Dev Two')
        self.assertEqual(bare.member.display_name, 'github_44')

    def test_provisioned_id_is_suffixed_when_taken(self):
        make_member('github_42', provider='google')

        result = resolve_identity(ProviderIdentity('github', '42'))

        self.assertEqual(result.outcome, 'provisioned')
        self.assertNotEqual(result.member.app_user_id, 'github_42')
        self.assertTrue(result.member.app_user_id.startswith('github_42_'))

    def test_stale_pending_copies_link_only_once(self):
        pending = register_pending('ana', 'Ana', 'google')
        # Two sign-ins that both read the row while it was still pending
        first_copy = Member.objects.get(pk=pending.pk)
        second_copy = Member.objects.get(pk=pending.pk)

        first = _link_pending(first_copy, ProviderIdentity('google', 'acct-A'))
        second = _link_pending(second_copy, ProviderIdentity('google', 'acct-B'))

        self.assertEqual(first.member.app_user_id, 'ana')
        self.assertIsNone(second)
        pending.refresh_from_db()
        self.assertEqual(pending.provider_account_id, 'acct-A')

        again = resolve_identity(ProviderIdentity('google', 'acct-A'))
        self.assertEqual(again.outcome, 'existing')
        self.assertEqual(again.member.pk, pending.pk)

    def test_lost_link_race_falls_back_to_provisioning(self):
        pending = register_pending('ana', 'Ana', 'google')
        resolve_identity(ProviderIdentity('google', 'acct-A'))

        with patch('social.identity.Member.objects.pending') as pending_qs:
            pending_qs.return_value.filter.return_value.order_by.return_value.first.return_value = pending
            result = resolve_identity(ProviderIdentity('google', 'acct-B'))

        self.assertEqual(result.outcome, 'provisioned')
        self.assertEqual(result.member.app_user_id, 'google_acct-B')
        pending.refresh_from_db()
        self.assertEqual(pending.provider_account_id, 'acct-A')

    def test_providers_sharing_email_are_different_members(self):
        google = resolve_identity(ProviderIdentity('google', '1', email='same@example.com'))
        github = resolve_identity(ProviderIdentity('github', '1', email='same@example.com'))

        self.assertNotEqual(google.member.pk, github.member.pk)
        self.assertNotEqual(google.member.app_user_id, github.member.app_user_id)


class RegistrationTestCase(TestCase):

    def test_short_id_rejected(self):
        with self.assertRaises(ValidationFailed):
            register_pending('ab', 'Ab', 'google')

    def test_allowed_charset_accepted(self):
        member = register_pending('abc-123_XY', 'Someone', 'google')
        self.assertEqual(member.app_user_id, 'abc-123_XY')
        self.assertFalse(member.oauth_completed)
        self.assertIsNone(member.provider_account_id)

    def test_bad_characters_and_length_rejected(self):
        for bad in ['has space', 'dot.ted', 'a' * 21, '']:
            with self.assertRaises(ValidationFailed):
                register_pending(bad, 'Name', 'google')

    def test_empty_display_name_rejected(self):
        with self.assertRaises(ValidationFailed):
            register_pending('valid_id', '   ', 'google')

    def test_unknown_provider_rejected(self):
        with self.assertRaises(ValidationFailed):
            register_pending('valid_id', 'Name', 'myspace')

    def test_duplicate_for_same_provider_conflicts(self):
        register_pending('taken', 'First', 'google')
        with self.assertRaises(Conflict):
            register_pending('taken', 'Second', 'google')

    def test_completed_id_conflicts(self):
        make_member('taken', provider='google')
        with self.assertRaises(Conflict):
            register_pending('taken', 'Second', 'google')

    def test_same_id_under_another_provider_is_allowed_while_pending(self):
        register_pending('shared', 'One', 'google')
        member = register_pending('shared', 'Two', 'github')
        self.assertEqual(member.provider, 'github')


class ProviderLookupTestCase(TestCase):

    def test_completed_members_listed(self):
        make_member('ana', provider='github')
        register_pending('ana', 'Ana', 'google')

        members = lookup_providers('ana')

        self.assertEqual([m.provider for m in members], ['github'])

    def test_pending_returned_when_nothing_completed(self):
        register_pending('bob', 'Bob', 'google')

        members = lookup_providers('bob')

        self.assertEqual(len(members), 1)
        self.assertFalse(members[0].oauth_completed)

    def test_unknown_id(self):
        with self.assertRaises(NotFound):
            lookup_providers('nobody')

    def test_verify_app_user_ids(self):
        make_member('ana')
        register_pending('bob', 'Bob', 'google')

        result = verify_app_user_ids(['ana', 'bob', 'zed'])

        self.assertEqual(result, {'ana': True, 'bob': False, 'zed': False})


class IdentityTokenTestCase(TestCase):

    def test_token_carries_identity(self):
        token = issue_identity_token(ProviderIdentity(
            'google', '123', email='a@example.com', display_name='A', avatar_url='https://x.example.com/a.png'
        ))

        identity = read_identity_token(token)

        self.assertEqual(identity.provider, 'google')
        self.assertEqual(identity.provider_account_id, '123')
        self.assertEqual(identity.email, 'a@example.com')
        self.assertEqual(identity.display_name, 'A')

    def test_tampered_token_rejected(self):
        token = issue_identity_token(ProviderIdentity('google', '123'))
        with self.assertRaises(AuthenticationFailed):
            read_identity_token(token + 'a')

    def test_token_signed_with_other_secret_rejected(self):
        token = signing.dumps(
            {'provider': 'google', 'provider_account_id': '1'},
            key='some-other-secret',
            salt='social.identity-token',
        )
        with self.assertRaises(AuthenticationFailed):
            read_identity_token(token)

    @override_settings(IDENTITY_TOKEN_MAX_AGE=-1)
    def test_expired_token_rejected(self):
        token = issue_identity_token(ProviderIdentity('google', '123'))
        with self.assertRaises(AuthenticationFailed):
            read_identity_token(token)

    def test_disabled_provider_rejected(self):
        token = issue_identity_token(ProviderIdentity('myspace', '1'))
        with self.assertRaises(AuthenticationFailed):
            read_identity_token(token)
