"""
DRF Views
=========

API endpoints for Chirpline. Every response uses the envelope

    {"success": true, ...payload}

Errors are raised as social.exceptions.SocialError subclasses and rendered
by the envelope exception handler, so views contain no try/except.

AUTHENTICATION NOTE:
--------------------
request.user is a social.Member resolved from the Bearer identity token
(see authentication.py). Reads of public data are open to anonymous
callers; every mutation requires an identity.

REALTIME NOTE:
--------------
Views hand the process-wide notifier to the services explicitly. The
services never look it up themselves.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import drafts, graph, identity, messaging, queries, services
from .realtime import get_notifier
from .serializers import (
    CommentSerializer,
    ContentInputSerializer,
    ConversationSerializer,
    DraftSerializer,
    MemberListSerializer,
    MemberSerializer,
    MessageInputSerializer,
    MessageSerializer,
    PostSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    ProviderSerializer,
    RegisterSerializer,
    VerifySerializer,
)


def viewer_of(request):
    """The calling Member, or None for anonymous requests."""
    return request.user if request.user.is_authenticated else None


def validated(serializer_class, request):
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def ok(payload=None, status_code=status.HTTP_200_OK, message=None):
    body = {'success': True}
    if message:
        body['message'] = message
    if payload:
        body.update(payload)
    return Response(body, status=status_code)


# ============================================================================
# POSTS
# ============================================================================

class PostListView(APIView):
    """
    GET  /api/posts/?filter=all|following
    POST /api/posts/   {"content": "..."}

    QUERY COUNT (GET): 1-2
    1. Followee ids (filter=following only)
    2. Posts with author, counts and viewer flags (see queries.annotated_posts)
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request):
        feed_filter = request.query_params.get('filter', 'all')
        posts = queries.list_posts(viewer_of(request), feed_filter)
        return ok({
            'filter': feed_filter,
            'posts': PostSerializer(posts, many=True).data,
        })

    def post(self, request):
        data = validated(ContentInputSerializer, request)
        post = services.create_post(request.user, data['content'], notifier=get_notifier())
        return ok(
            {'post': PostSerializer(post).data},
            status_code=status.HTTP_201_CREATED,
            message='Post created.',
        )


class PostDetailView(APIView):
    """
    GET    /api/posts/<id>/   post, comments, liked_by
    PUT    /api/posts/<id>/   {"content": "..."}   author only
    DELETE /api/posts/<id>/   author only; reposts of it go too
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, post_id):
        detail = queries.get_post_detail(post_id, viewer_of(request))
        return ok({
            'post': PostSerializer(detail['post']).data,
            'comments': CommentSerializer(detail['comments'], many=True).data,
            'liked_by': detail['liked_by'],
        })

    def put(self, request, post_id):
        data = validated(ContentInputSerializer, request)
        post = services.update_post(request.user, post_id, data['content'], notifier=get_notifier())
        return ok({'post': PostSerializer(post).data}, message='Post updated.')

    def delete(self, request, post_id):
        removed = services.delete_post(request.user, post_id, notifier=get_notifier())
        return ok({'deleted_ids': removed}, message='Post deleted.')


class PostLikeView(APIView):
    """
    POST /api/posts/<id>/like/

    Toggle. Returns the new state and the resulting like count.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, post_id):
        result = services.toggle_like(request.user, post_id, notifier=get_notifier())
        return ok({'liked': result.liked, 'likes_count': result.likes_count})


class PostRepostView(APIView):
    """POST /api/posts/<id>/repost/   toggle the caller's repost"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, post_id):
        result = services.toggle_repost(request.user, post_id, notifier=get_notifier())
        payload = {
            'reposted': result.reposted,
            'repost_count': result.repost_count,
            'original_id': result.original.pk,
        }
        if result.repost is not None:
            payload['repost'] = PostSerializer(result.repost).data
        return ok(payload)


class PostCommentsView(APIView):
    """
    GET  /api/posts/<id>/comments/
    POST /api/posts/<id>/comments/   {"content": "..."}
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, post_id):
        comments = queries.get_post_comments(post_id)
        return ok({'comments': CommentSerializer(comments, many=True).data})

    def post(self, request, post_id):
        data = validated(ContentInputSerializer, request)
        comment, comments = services.add_comment(
            request.user, post_id, data['content'], notifier=get_notifier()
        )
        return ok(
            {
                'comment': CommentSerializer(comment).data,
                'comments': CommentSerializer(comments, many=True).data,
            },
            status_code=status.HTTP_201_CREATED,
        )


class PostBookmarkView(APIView):
    """POST /api/posts/<id>/bookmark/   toggle"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, post_id):
        bookmarked = services.toggle_bookmark(request.user, post_id)
        return ok({'bookmarked': bookmarked})


class BookmarkListView(APIView):
    """GET /api/posts/bookmarks/"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        posts = queries.list_bookmarks(request.user)
        return ok({'posts': PostSerializer(posts, many=True).data})


class OwnPostsView(APIView):
    """DELETE /api/posts/mine/   delete every post by the caller"""
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request):
        count = services.delete_own_posts(request.user, notifier=get_notifier())
        return ok({'deleted_count': count}, message=f'Deleted {count} posts.')


# ============================================================================
# MESSAGES
# ============================================================================

class MessageListView(APIView):
    """
    GET  /api/messages/   conversations, most recent first
    POST /api/messages/   {"receiver": "<app_user_id>", "content": "..."}
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        conversations = messaging.list_conversations(request.user)
        return ok({'conversations': ConversationSerializer(conversations, many=True).data})

    def post(self, request):
        data = validated(MessageInputSerializer, request)
        message = messaging.send_message(
            request.user, data['receiver'], data['content'], notifier=get_notifier()
        )
        return ok({'message_data': MessageSerializer(message).data}, status_code=status.HTTP_201_CREATED)


class ConversationView(APIView):
    """
    GET /api/messages/<app_user_id>/

    Side effect: the counterpart's messages to the caller become read.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, app_user_id):
        thread = messaging.get_conversation(request.user, app_user_id)
        return ok({'messages': MessageSerializer(thread, many=True).data})


# ============================================================================
# DRAFTS
# ============================================================================

class DraftView(APIView):
    """
    GET    /api/drafts/
    POST   /api/drafts/        {"content": "..."}
    DELETE /api/drafts/?id=<draft id>
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return ok({'drafts': DraftSerializer(drafts.list_drafts(request.user), many=True).data})

    def post(self, request):
        data = validated(ContentInputSerializer, request)
        draft = drafts.save_draft(request.user, data['content'])
        return ok({'draft': DraftSerializer(draft).data}, status_code=status.HTTP_201_CREATED)

    def delete(self, request):
        drafts.delete_draft(request.user, request.query_params.get('id'))
        return ok(message='Draft deleted.')


# ============================================================================
# USERS
# ============================================================================

class MemberListView(APIView):
    """GET /api/users/   completed members, newest first"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        members = queries.list_members()
        return ok({'users': MemberListSerializer(members, many=True).data})


class RegisterView(APIView):
    """
    POST /api/users/register/
    {"app_user_id": "...", "display_name": "...", "provider": "google"}

    Reserves the id before the OAuth round trip. 409 if already taken.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        data = validated(RegisterSerializer, request)
        member = identity.register_pending(data['app_user_id'], data['display_name'], data['provider'])
        return ok(
            {'user': ProviderSerializer(member).data},
            status_code=status.HTTP_201_CREATED,
            message='Registration pending sign-in.',
        )


class VerifyView(APIView):
    """POST /api/users/verify/   {"app_user_ids": [...]} → {id: exists}"""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        data = validated(VerifySerializer, request)
        return ok({'results': identity.verify_app_user_ids(data['app_user_ids'])})


class DeleteAccountView(APIView):
    """DELETE /api/users/delete-account/"""
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request):
        counts = services.delete_account(request.user, notifier=get_notifier())
        return ok({'deleted': counts}, message='Account deleted.')


class ProfileView(APIView):
    """
    GET /api/users/<app_user_id>/

    Profile plus the member's latest posts.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, app_user_id):
        member = queries.get_completed_member(app_user_id)
        posts = queries.list_member_posts(member, viewer_of(request))
        return ok({
            'user': ProfileSerializer(member, context={'follow_sets': queries.follow_sets(member)}).data,
            'posts': PostSerializer(posts, many=True).data,
        })


class ProviderLookupView(APIView):
    """
    GET /api/users/<app_user_id>/provider/

    Which provider(s) to send the user to at sign-in.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, app_user_id):
        members = identity.lookup_providers(app_user_id)
        return ok({
            'providers': [m.provider for m in members],
            'users': ProviderSerializer(members, many=True).data,
        })


class ProfileUpdateView(APIView):
    """PUT /api/users/<app_user_id>/update/   own profile only"""
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, app_user_id):
        data = validated(ProfileUpdateSerializer, request)
        member = services.update_profile(request.user, app_user_id, **data)
        return ok(
            {'user': ProfileSerializer(member, context={'follow_sets': queries.follow_sets(member)}).data},
            message='Profile updated.',
        )


class FollowView(APIView):
    """
    POST   /api/users/<app_user_id>/follow/
    DELETE /api/users/<app_user_id>/follow/

    Both idempotent.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, app_user_id):
        result = graph.follow(request.user, app_user_id)
        return ok({'following': result.following, 'followers_count': result.followers_count})

    def delete(self, request, app_user_id):
        result = graph.unfollow(request.user, app_user_id)
        return ok({'following': result.following, 'followers_count': result.followers_count})


class CheckFollowView(APIView):
    """GET /api/users/<app_user_id>/check-follow/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, app_user_id):
        viewer = viewer_of(request)
        return ok({
            'is_following': graph.is_following(viewer, app_user_id),
            'is_own_profile': viewer is not None and viewer.app_user_id == app_user_id,
        })


class WhoAmIView(APIView):
    """
    GET /api/auth/whoami/

    Returns the member the identity token resolved to.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        if request.user.is_authenticated:
            return ok({
                'authenticated': True,
                'user': MemberSerializer(request.user).data,
                'provider': request.user.provider,
            })
        return ok({'authenticated': False, 'user': None})
