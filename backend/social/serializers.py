"""
DRF Serializers
===============

Serializers handle:
1. Shape checks on incoming data (types, required keys)
2. Transformation of model instances to JSON

Business validation (empty content, weighted length, ownership) lives in
the service layer so that it holds no matter who calls it. Input
serializers here only make sure the fields are there.

DESIGN DECISIONS:
-----------------
1. Counts and viewer flags come from queryset annotations
   (queries.annotated_posts); SerializerMethodField falls back to a query
   only for instances that were not annotated, e.g. a freshly created post.
2. Members are referenced by app_user_id in every payload, never by pk.
"""

from rest_framework import serializers

from .models import Comment, Draft, Member, Message, Post


class MemberSerializer(serializers.ModelSerializer):
    """Minimal member representation for embedding in other objects."""

    class Meta:
        model = Member
        fields = ['app_user_id', 'display_name', 'avatar_url']
        read_only_fields = fields


class MemberListSerializer(serializers.ModelSerializer):
    followers_count = serializers.SerializerMethodField()
    following_count = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = [
            'app_user_id',
            'display_name',
            'avatar_url',
            'bio',
            'followers_count',
            'following_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_followers_count(self, obj):
        value = getattr(obj, 'num_followers', None)
        return value if value is not None else obj.follower_edges.count()

    def get_following_count(self, obj):
        value = getattr(obj, 'num_following', None)
        return value if value is not None else obj.following_edges.count()


class ProfileSerializer(serializers.ModelSerializer):
    """
    Full profile.

    `following` / `followers` are lists of app_user_ids, passed in the
    context as 'follow_sets' (see queries.follow_sets).
    """
    following = serializers.SerializerMethodField()
    followers = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = [
            'app_user_id',
            'display_name',
            'provider',
            'avatar_url',
            'banner_url',
            'bio',
            'oauth_completed',
            'following',
            'followers',
            'created_at',
        ]
        read_only_fields = fields

    def get_following(self, obj):
        return self.context.get('follow_sets', {}).get('following', [])

    def get_followers(self, obj):
        return self.context.get('follow_sets', {}).get('followers', [])


class ProviderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Member
        fields = ['app_user_id', 'display_name', 'provider', 'oauth_completed']
        read_only_fields = fields


class PostSerializer(serializers.ModelSerializer):
    """
    Post as it appears in feeds, bookmarks and detail views.

    Reposts carry `original`, the snapshot taken at repost time.
    """
    author = MemberSerializer(read_only=True)
    is_repost = serializers.BooleanField(read_only=True)
    original = serializers.SerializerMethodField()
    likes_count = serializers.SerializerMethodField()
    comments_count = serializers.SerializerMethodField()
    liked = serializers.SerializerMethodField()
    reposted = serializers.SerializerMethodField()
    bookmarked = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id',
            'author',
            'content',
            'is_repost',
            'repost_of',
            'original',
            'likes_count',
            'comments_count',
            'repost_count',
            'liked',
            'reposted',
            'bookmarked',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_original(self, obj):
        if not obj.repost_of_id:
            return None
        return {
            'id': obj.repost_of_id,
            'author': obj.original_author_app_user_id,
            'author_name': obj.original_author_name,
            'content': obj.original_content,
            'created_at': serializers.DateTimeField().to_representation(obj.original_created_at)
            if obj.original_created_at else None,
        }

    def get_likes_count(self, obj):
        value = getattr(obj, 'num_likes', None)
        return value if value is not None else obj.likes.count()

    def get_comments_count(self, obj):
        value = getattr(obj, 'num_comments', None)
        return value if value is not None else obj.comments.count()

    def get_liked(self, obj):
        return bool(getattr(obj, 'viewer_liked', False))

    def get_reposted(self, obj):
        return bool(getattr(obj, 'viewer_reposted', False))

    def get_bookmarked(self, obj):
        return bool(getattr(obj, 'viewer_bookmarked', False))


class CommentSerializer(serializers.ModelSerializer):
    """Append-only comment; no nesting."""
    author = MemberSerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'post', 'author', 'content', 'created_at']
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    sender = serializers.SlugRelatedField(slug_field='app_user_id', read_only=True)
    receiver = serializers.SlugRelatedField(slug_field='app_user_id', read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'sender', 'receiver', 'content', 'read', 'created_at']
        read_only_fields = fields


class ConversationSerializer(serializers.Serializer):
    """Entry produced by messaging.list_conversations()."""
    member = MemberSerializer(read_only=True)
    last_message = MessageSerializer(read_only=True)
    unread_count = serializers.IntegerField(read_only=True)


class DraftSerializer(serializers.ModelSerializer):
    class Meta:
        model = Draft
        fields = ['id', 'content', 'created_at']
        read_only_fields = fields


# ============================================================================
# INPUT
# ============================================================================

class ContentInputSerializer(serializers.Serializer):
    """Body of post, comment and draft writes: {"content": "..."}"""
    content = serializers.CharField(allow_blank=True)


class MessageInputSerializer(serializers.Serializer):
    receiver = serializers.CharField()
    content = serializers.CharField(allow_blank=True)


class RegisterSerializer(serializers.Serializer):
    app_user_id = serializers.CharField(max_length=64)
    display_name = serializers.CharField(allow_blank=True, max_length=100)
    provider = serializers.CharField(max_length=32)


class VerifySerializer(serializers.Serializer):
    app_user_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=True,
        max_length=200,
    )


class ProfileUpdateSerializer(serializers.Serializer):
    display_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    bio = serializers.CharField(required=False, allow_blank=True, max_length=160)
    avatar_url = serializers.CharField(required=False, allow_blank=True, max_length=500)
    banner_url = serializers.CharField(required=False, allow_blank=True, max_length=500)
