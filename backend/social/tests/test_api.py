"""
HTTP tests: envelope, status codes and the identity token round trip.
"""

from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from social.identity import ProviderIdentity
from social.models import Draft, Member, Message, Post

from .helpers import bearer, make_member


class UrlConfTestCase(TestCase):
    """The URLconf imports cleanly together with the DRF authentication setting."""

    def test_reverse_routes(self):
        import social.urls  # noqa: F401

        self.assertEqual(reverse('post-list'), '/api/posts/')
        self.assertEqual(reverse('user-profile', args=['ana']), '/api/users/ana/')
        self.assertEqual(reverse('conversation', args=['bob']), '/api/messages/bob/')

    def test_exception_handler_is_importable(self):
        from rest_framework.settings import api_settings
        from social.exceptions import envelope_exception_handler

        self.assertIs(api_settings.EXCEPTION_HANDLER, envelope_exception_handler)


class AuthenticationApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_anonymous_write_is_401_in_envelope(self):
        response = self.client.post('/api/posts/', {'content': 'hi'}, format='json')

        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])
        self.assertIn('message', response.json())

    def test_bad_token_is_401(self):
        response = self.client.get('/api/auth/whoami/', HTTP_AUTHORIZATION='Bearer not-a-token')
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])

    def test_first_sign_in_provisions_member(self):
        identity = ProviderIdentity('github', '8080', email='octo@example.com')

        response = self.client.get('/api/auth/whoami/', **bearer(identity=identity))

        body = response.json()
        self.assertTrue(body['authenticated'])
        self.assertEqual(body['user']['app_user_id'], 'github_8080')
        self.assertEqual(body['user']['display_name'], 'octo')
        self.assertEqual(Member.objects.count(), 1)

    def test_sign_in_links_pending_registration(self):
        response = self.client.post('/api/users/register/', {
            'app_user_id': 'newbie',
            'display_name': 'New Bie',
            'provider': 'google',
        }, format='json')
        self.assertEqual(response.status_code, 201)

        response = self.client.get(
            '/api/auth/whoami/', **bearer(identity=ProviderIdentity('google', 'g-1'))
        )

        self.assertEqual(response.json()['user']['app_user_id'], 'newbie')

    def test_anonymous_whoami(self):
        response = self.client.get('/api/auth/whoami/')
        self.assertEqual(response.json(), {'success': True, 'authenticated': False, 'user': None})


class PostApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.ana = make_member('ana')
        self.bob = make_member('bob', provider='github')

    def test_create_and_list(self):
        response = self.client.post('/api/posts/', {'content': 'hello'}, format='json', **bearer(self.ana))

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['post']['content'], 'hello')
        self.assertEqual(body['post']['author']['app_user_id'], 'ana')

        listing = self.client.get('/api/posts/').json()
        self.assertEqual(listing['posts'][0]['id'], body['post']['id'])
        self.assertFalse(listing['posts'][0]['liked'])

    def test_whitespace_post_is_400(self):
        response = self.client.post('/api/posts/', {'content': '   '}, format='json', **bearer(self.ana))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_missing_field_is_400_with_errors(self):
        response = self.client.post('/api/posts/', {}, format='json', **bearer(self.ana))
        body = response.json()
        self.assertEqual(response.status_code, 400)
        self.assertIn('content', body['errors'])

    def test_unknown_filter_is_400(self):
        response = self.client.get('/api/posts/?filter=trending')
        self.assertEqual(response.status_code, 400)

    def test_wrong_method_is_405(self):
        response = self.client.patch('/api/posts/', {}, format='json', **bearer(self.ana))
        self.assertEqual(response.status_code, 405)
        self.assertFalse(response.json()['success'])

    def test_missing_post_is_404(self):
        response = self.client.get('/api/posts/4040/')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['success'], False)

    def test_delete_by_non_author_is_403(self):
        post = Post.objects.create(author=self.ana, content='mine')

        response = self.client.delete(f'/api/posts/{post.pk}/', **bearer(self.bob))

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Post.objects.filter(pk=post.pk).exists())

    def test_edit_and_delete_by_author(self):
        post = Post.objects.create(author=self.ana, content='mine')

        response = self.client.put(
            f'/api/posts/{post.pk}/', {'content': 'edited'}, format='json', **bearer(self.ana)
        )
        self.assertEqual(response.json()['post']['content'], 'edited')

        response = self.client.delete(f'/api/posts/{post.pk}/', **bearer(self.ana))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['deleted_ids'], [post.pk])

    def test_like_repost_bookmark_comment(self):
        post = Post.objects.create(author=self.ana, content='react to me')
        auth = bearer(self.bob)

        like = self.client.post(f'/api/posts/{post.pk}/like/', **auth).json()
        repost = self.client.post(f'/api/posts/{post.pk}/repost/', **auth).json()
        bookmark = self.client.post(f'/api/posts/{post.pk}/bookmark/', **auth).json()
        comment = self.client.post(
            f'/api/posts/{post.pk}/comments/', {'content': 'nice'}, format='json', **auth
        ).json()

        self.assertEqual((like['liked'], like['likes_count']), (True, 1))
        self.assertEqual((repost['reposted'], repost['repost_count']), (True, 1))
        self.assertEqual(repost['repost']['original']['author'], 'ana')
        self.assertTrue(bookmark['bookmarked'])
        self.assertEqual(len(comment['comments']), 1)

        detail = self.client.get(f'/api/posts/{post.pk}/', **auth).json()
        self.assertTrue(detail['post']['liked'])
        self.assertTrue(detail['post']['reposted'])
        self.assertTrue(detail['post']['bookmarked'])
        self.assertEqual(detail['liked_by'], ['bob'])

        bookmarks = self.client.get('/api/posts/bookmarks/', **auth).json()
        self.assertEqual([p['id'] for p in bookmarks['posts']], [post.pk])

        comments = self.client.get(f'/api/posts/{post.pk}/comments/').json()
        self.assertEqual(comments['comments'][0]['author']['app_user_id'], 'bob')

    def test_delete_mine(self):
        Post.objects.create(author=self.ana, content='one')
        Post.objects.create(author=self.ana, content='two')

        response = self.client.delete('/api/posts/mine/', **bearer(self.ana))

        self.assertEqual(response.json()['deleted_count'], 2)
        self.assertFalse(Post.objects.filter(author=self.ana).exists())

    def test_unexpected_error_is_generic_500(self):
        with patch('social.views.queries.list_posts', side_effect=RuntimeError('boom')):
            with self.assertLogs('social.exceptions', level='ERROR'):
                response = self.client.get('/api/posts/')

        self.assertEqual(response.status_code, 500)
        self.assertNotIn('boom', response.content.decode())
        self.assertFalse(response.json()['success'])


class UserApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.ana = make_member('ana')
        self.bob = make_member('bob', provider='github')

    def test_register_conflict_is_409(self):
        payload = {'app_user_id': 'fresh', 'display_name': 'Fresh', 'provider': 'google'}
        self.assertEqual(self.client.post('/api/users/register/', payload, format='json').status_code, 201)

        response = self.client.post('/api/users/register/', payload, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()['success'])

    def test_register_short_id_is_400(self):
        response = self.client.post('/api/users/register/', {
            'app_user_id': 'ab', 'display_name': 'Ab', 'provider': 'google',
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_follow_flow(self):
        auth = bearer(self.ana)

        response = self.client.post('/api/users/bob/follow/', **auth)
        self.assertEqual(response.json()['followers_count'], 1)

        check = self.client.get('/api/users/bob/check-follow/', **auth).json()
        self.assertTrue(check['is_following'])
        self.assertFalse(check['is_own_profile'])

        profile = self.client.get('/api/users/bob/').json()
        self.assertEqual(profile['user']['followers'], ['ana'])

        self.client.delete('/api/users/bob/follow/', **auth)
        check = self.client.get('/api/users/bob/check-follow/', **auth).json()
        self.assertFalse(check['is_following'])

    def test_follow_self_is_400(self):
        response = self.client.post('/api/users/ana/follow/', **bearer(self.ana))
        self.assertEqual(response.status_code, 400)

    def test_check_follow_own_profile_and_anonymous(self):
        own = self.client.get('/api/users/ana/check-follow/', **bearer(self.ana)).json()
        self.assertEqual((own['is_following'], own['is_own_profile']), (False, True))

        anonymous = self.client.get('/api/users/ana/check-follow/').json()
        self.assertFalse(anonymous['is_following'])

    def test_update_profile_only_own(self):
        response = self.client.put('/api/users/ana/update/', {'bio': 'hi'}, format='json', **bearer(self.bob))
        self.assertEqual(response.status_code, 403)

        response = self.client.put('/api/users/ana/update/', {'bio': 'hi'}, format='json', **bearer(self.ana))
        self.assertEqual(response.json()['user']['bio'], 'hi')

    def test_users_list_and_provider_lookup(self):
        users = self.client.get('/api/users/').json()['users']
        self.assertEqual([u['app_user_id'] for u in users], ['bob', 'ana'])

        lookup = self.client.get('/api/users/bob/provider/').json()
        self.assertEqual(lookup['providers'], ['github'])

        self.assertEqual(self.client.get('/api/users/nobody/provider/').status_code, 404)

    def test_verify(self):
        response = self.client.post('/api/users/verify/', {'app_user_ids': ['ana', 'zed']}, format='json')
        self.assertEqual(response.json()['results'], {'ana': True, 'zed': False})

    def test_delete_account(self):
        Post.objects.create(author=self.ana, content='bye')

        response = self.client.delete('/api/users/delete-account/', **bearer(self.ana))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['deleted']['posts'], 1)
        self.assertFalse(Member.objects.filter(pk=self.ana.pk).exists())


class MessageAndDraftApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.ana = make_member('ana')
        self.bob = make_member('bob')

    def test_message_flow(self):
        response = self.client.post(
            '/api/messages/', {'receiver': 'bob', 'content': 'hi bob'}, format='json', **bearer(self.ana)
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['message_data']['receiver'], 'bob')

        inbox = self.client.get('/api/messages/', **bearer(self.bob)).json()
        self.assertEqual(inbox['conversations'][0]['member']['app_user_id'], 'ana')
        self.assertEqual(inbox['conversations'][0]['unread_count'], 1)

        thread = self.client.get('/api/messages/ana/', **bearer(self.bob)).json()
        self.assertEqual([m['content'] for m in thread['messages']], ['hi bob'])
        self.assertTrue(Message.objects.get().read)

    def test_message_to_unknown_is_404(self):
        response = self.client.post(
            '/api/messages/', {'receiver': 'ghost', 'content': 'boo'}, format='json', **bearer(self.ana)
        )
        self.assertEqual(response.status_code, 404)

    def test_messages_require_identity(self):
        self.assertEqual(self.client.get('/api/messages/').status_code, 401)

    def test_draft_flow(self):
        auth = bearer(self.ana)
        created = self.client.post('/api/drafts/', {'content': 'later'}, format='json', **auth).json()
        draft_id = created['draft']['id']

        listing = self.client.get('/api/drafts/', **auth).json()
        self.assertEqual([d['id'] for d in listing['drafts']], [draft_id])

        # Someone else's draft looks missing
        response = self.client.delete(f'/api/drafts/?id={draft_id}', **bearer(self.bob))
        self.assertEqual(response.status_code, 404)

        response = self.client.delete(f'/api/drafts/?id={draft_id}', **auth)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Draft.objects.exists())
