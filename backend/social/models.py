"""
Data Models for Chirpline
=========================

Design Philosophy:
------------------
1. Member is the application-level identity, separate from Django's auth User
   - One row per (provider, provider account) once OAuth completes
   - A row starts "pending" at registration and is bound to a provider
     account on first sign-in (see identity.py)
   - app_user_id uniqueness is enforced by partial unique indexes, not by
     application code, so two concurrent completions cannot both win

2. Likes, bookmarks and follows are rows with unique constraints
   - These are sets keyed by member id: adding twice is rejected by the DB
   - Counting is a COUNT(*) on an indexed FK, no denormalized like counter

3. A repost is a Post row pointing at its original
   - Snapshot of the original (author, content, timestamp) is copied at
     repost time so the repost still renders if the original is edited
   - repost_count on the original IS denormalized (F() updates)
   - Reposts are deleted together with their original (CASCADE)

4. Every content row carries a stable owner FK
   - Ownership checks compare primary keys, never emails or display names

Indexes Strategy:
-----------------
- post.created_at: feed ordering
- post.author + post.created_at: "following" feed
- message.receiver + message.read: unread counts
- message.sender + message.receiver + created_at: conversation reads
"""

from django.db import models
from django.db.models import Q, F
from django.utils import timezone


class MemberQuerySet(models.QuerySet):
    def completed(self):
        return self.filter(oauth_completed=True)

    def pending(self):
        return self.filter(oauth_completed=False)


class Member(models.Model):
    """
    A user of the network.

    Lifecycle: pending (registered, no provider account yet) -> completed
    (provider account bound). The transition is one-way.

    Uniqueness rules:
    - app_user_id is unique per provider, pending or not
    - app_user_id is globally unique among completed members
    - (provider, provider_account_id) is unique once bound
    """
    app_user_id = models.CharField(max_length=64, db_index=True)
    display_name = models.CharField(max_length=100)
    provider = models.CharField(max_length=32)
    # Filled in when the provider confirms the account
    provider_account_id = models.CharField(max_length=255, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    avatar_url = models.URLField(max_length=500, blank=True, default='')
    bio = models.CharField(max_length=160, blank=True, default='')
    banner_url = models.URLField(max_length=500, blank=True, default='')
    oauth_completed = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MemberQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'app_user_id'],
                name='unique_app_user_id_per_provider',
            ),
            models.UniqueConstraint(
                fields=['app_user_id'],
                condition=Q(oauth_completed=True),
                name='unique_completed_app_user_id',
            ),
            models.UniqueConstraint(
                fields=['provider', 'provider_account_id'],
                condition=Q(provider_account_id__isnull=False),
                name='unique_provider_account',
            ),
        ]

    def __str__(self):
        state = 'completed' if self.oauth_completed else 'pending'
        return f"{self.app_user_id} ({self.provider}, {state})"

    # DRF treats whatever the authentication class returns as request.user
    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False


class Follow(models.Model):
    """
    A directed follow edge.

    The follower's `following` set and the followee's `followers` set are both
    read from this one row, so the two sides can't drift apart.
    """
    follower = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='following_edges',
    )
    followee = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='follower_edges',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['follower', 'followee'],
                name='unique_follow_edge',
            ),
            models.CheckConstraint(
                condition=~Q(follower=F('followee')),
                name='no_self_follow',
            ),
        ]

    def __str__(self):
        return f"{self.follower.app_user_id} -> {self.followee.app_user_id}"


class Post(models.Model):
    """
    A post or a repost.

    Reposts have empty content and carry a snapshot of the original.
    """
    author = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='posts',
    )
    content = models.TextField(blank=True, default='')
    repost_of = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='reposts',
    )
    # Snapshot of the original at repost time
    original_author_app_user_id = models.CharField(max_length=64, blank=True, default='')
    original_author_name = models.CharField(max_length=100, blank=True, default='')
    original_content = models.TextField(blank=True, default='')
    original_created_at = models.DateTimeField(null=True, blank=True)

    # Denormalized, maintained with F() in services.py and signals.py
    repost_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['author', '-created_at'], name='post_author_created_idx'),
        ]
        constraints = [
            # At most one active repost per (author, original)
            models.UniqueConstraint(
                fields=['author', 'repost_of'],
                condition=Q(repost_of__isnull=False),
                name='unique_repost_per_author',
            ),
        ]

    def __str__(self):
        if self.repost_of_id:
            return f"repost of {self.repost_of_id} by {self.author.app_user_id}"
        return f"{self.content[:50]} by {self.author.app_user_id}"

    @property
    def is_repost(self):
        return self.repost_of_id is not None


class Like(models.Model):
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='likes')
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='likes')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['member', 'post'], name='unique_like_per_member'),
        ]

    def __str__(self):
        return f"{self.member.app_user_id} liked {self.post_id}"


class Bookmark(models.Model):
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='bookmarks')
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='bookmarks')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['member', 'post'], name='unique_bookmark_per_member'),
        ]

    def __str__(self):
        return f"{self.member.app_user_id} bookmarked {self.post_id}"


class Comment(models.Model):
    """Append-only comment on a post. No edit, no delete."""
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='comments')
    content = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['post', 'created_at'], name='comment_post_created_idx'),
        ]

    def __str__(self):
        return f"Comment by {self.author.app_user_id} on {self.post_id}"


class Message(models.Model):
    """
    Direct message.

    `read` only moves false -> true, when the receiver opens the conversation.
    """
    sender = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='sent_messages')
    receiver = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='received_messages')
    content = models.TextField()
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['receiver', 'read'], name='message_receiver_read_idx'),
            models.Index(fields=['sender', 'receiver', 'created_at'], name='message_thread_idx'),
        ]

    def __str__(self):
        return f"{self.sender.app_user_id} -> {self.receiver.app_user_id}"


class Draft(models.Model):
    """Private scratch text. Visible to its owner only."""
    owner = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='drafts')
    content = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Draft {self.pk} of {self.owner.app_user_id}"


# ============================================================================
# LIMITS
# ============================================================================
MAX_POST_WEIGHT = 280
FEED_LIMIT = 50
DRAFT_LIST_LIMIT = 50
