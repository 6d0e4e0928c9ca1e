"""
Tests for follow / unfollow / is_following.
"""

from django.test import TestCase

from social.exceptions import NotFound, ValidationFailed
from social.graph import follow, is_following, unfollow
from social.identity import register_pending
from social.models import Follow
from social.queries import follow_sets

from .helpers import make_member


class FollowTestCase(TestCase):

    def setUp(self):
        self.ana = make_member('ana')
        self.bob = make_member('bob', provider='github')

    def test_follow_then_is_following(self):
        result = follow(self.ana, 'bob')

        self.assertTrue(result.following)
        self.assertTrue(result.changed)
        self.assertEqual(result.followers_count, 1)
        self.assertTrue(is_following(self.ana, 'bob'))
        # Direction matters
        self.assertFalse(is_following(self.bob, 'ana'))

    def test_unfollow_then_not_following(self):
        follow(self.ana, 'bob')

        result = unfollow(self.ana, 'bob')

        self.assertFalse(result.following)
        self.assertTrue(result.changed)
        self.assertFalse(is_following(self.ana, 'bob'))

    def test_follow_self_rejected(self):
        with self.assertRaises(ValidationFailed):
            follow(self.ana, 'ana')
        self.assertEqual(Follow.objects.count(), 0)

    def test_follow_is_idempotent(self):
        follow(self.ana, 'bob')
        second = follow(self.ana, 'bob')

        self.assertFalse(second.changed)
        self.assertEqual(Follow.objects.filter(follower=self.ana, followee=self.bob).count(), 1)

    def test_unfollow_is_idempotent(self):
        result = unfollow(self.ana, 'bob')
        self.assertFalse(result.changed)
        self.assertFalse(is_following(self.ana, 'bob'))

    def test_missing_target(self):
        with self.assertRaises(NotFound):
            follow(self.ana, 'nobody')

    def test_pending_target_cannot_be_followed(self):
        register_pending('waiting', 'Waiting', 'google')
        with self.assertRaises(NotFound):
            follow(self.ana, 'waiting')

    def test_is_following_for_anonymous_and_self(self):
        self.assertFalse(is_following(None, 'bob'))
        self.assertFalse(is_following(self.ana, 'ana'))

    def test_both_sides_read_from_one_edge(self):
        follow(self.ana, 'bob')

        self.assertEqual(follow_sets(self.ana), {'following': ['bob'], 'followers': []})
        self.assertEqual(follow_sets(self.bob), {'following': [], 'followers': ['ana']})
