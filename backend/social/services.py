"""
Content Service
===============

Posts, likes, reposts, comments, bookmarks, and account-level deletes.

Every mutation takes the caller (a Member) explicitly and an optional
realtime notifier. The notifier is best-effort: a failed broadcast is logged
inside realtime.py and never reaches the caller.

CONCURRENCY STRATEGY:
---------------------
Problem: Two requests toggling the same like at the same moment
Naive: Check if exists → Create if not → RACE CONDITION!

We rely on Unique Constraint + IntegrityError (optimistic):
    - Try to insert inside transaction.atomic()
    - DB rejects duplicate (unique constraint violation)
    - Catch IntegrityError, treat the row as already there

Likes, bookmarks and reposts are high-write, low-conflict, and the
constraints are already needed for data integrity.

COUNTERS:
---------
Like and comment counts are COUNT(*) at read time. repost_count is
denormalized: incremented with F() in the same transaction that creates the
repost, decremented by the post_delete signal (see signals.py) so that every
path removing a repost, including cascades, keeps it in step.

OWNERSHIP:
----------
Ownership is a primary key comparison on the author FK. No fallback matching
on email or display name.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from . import realtime
from .exceptions import AuthorizationDenied, NotFound, ValidationFailed
from .models import Bookmark, Comment, Follow, Like, Member, Message, Post
from .validators import clean_post_content, clean_text

logger = logging.getLogger(__name__)


class LikeResult:
    """Result of a like toggle."""
    def __init__(self, liked: bool, likes_count: int):
        self.liked = liked
        self.likes_count = likes_count


class RepostResult:
    """Result of a repost toggle. `repost` is the new repost, if one was made."""
    def __init__(self, reposted: bool, repost_count: int, original: Post, repost: Optional[Post] = None):
        self.reposted = reposted
        self.repost_count = repost_count
        self.original = original
        self.repost = repost


def post_event_payload(post: Post) -> dict:
    """Wire shape of a post inside realtime events."""
    return {
        'id': post.pk,
        'author': post.author.app_user_id,
        'author_name': post.author.display_name,
        'author_avatar': post.author.avatar_url,
        'content': post.content,
        'repost_of': post.repost_of_id,
        'original_author': post.original_author_app_user_id,
        'original_author_name': post.original_author_name,
        'original_content': post.original_content,
        'original_created_at': post.original_created_at,
        'repost_count': post.repost_count,
        'created_at': post.created_at,
        'updated_at': post.updated_at,
    }


def _get_post(post_id) -> Post:
    try:
        return Post.objects.select_related('author', 'repost_of').get(pk=post_id)
    except (Post.DoesNotExist, ValueError, TypeError):
        raise NotFound('Post not found.')


def _broadcast_deleted(notifier, post_ids):
    for post_id in post_ids:
        realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.DELETE_POST, {'post_id': post_id})


# ============================================================================
# POSTS
# ============================================================================

def create_post(author: Member, content, notifier=None) -> Post:
    content = clean_post_content(content)
    post = Post.objects.create(author=author, content=content)
    logger.debug("Post %s created by %s", post.pk, author.app_user_id)
    realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.NEW_POST, post_event_payload(post))
    return post


def update_post(caller: Member, post_id, content, notifier=None) -> Post:
    post = _get_post(post_id)
    if post.author_id != caller.pk:
        raise AuthorizationDenied('You can only edit your own posts.')
    if post.is_repost:
        raise ValidationFailed('Reposts cannot be edited.')

    post.content = clean_post_content(content)
    post.updated_at = timezone.now()
    post.save(update_fields=['content', 'updated_at'])

    realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.UPDATE_POST, {
        'post_id': post.pk,
        'content': post.content,
        'updated_at': post.updated_at,
    })
    return post


def delete_post(caller: Member, post_id, notifier=None) -> list[int]:
    """
    Hard-delete a post. Reposts of it go with it (CASCADE).

    Returns the ids of every removed post, the original first.
    """
    post = _get_post(post_id)
    if post.author_id != caller.pk:
        raise AuthorizationDenied('You can only delete your own posts.')

    removed = [post.pk] + list(post.reposts.values_list('id', flat=True))
    post.delete()

    logger.info("Post %s deleted by %s (%d reposts cascaded)", removed[0], caller.app_user_id, len(removed) - 1)
    _broadcast_deleted(notifier, removed)
    return removed


def delete_own_posts(member: Member, notifier=None) -> int:
    """Delete every post by `member`. Returns how many of their posts went."""
    own_ids = list(Post.objects.filter(author=member).values_list('id', flat=True))
    removed = own_ids + list(
        Post.objects.filter(repost_of__in=own_ids)
        .exclude(author=member)
        .values_list('id', flat=True)
    )
    count = len(own_ids)
    Post.objects.filter(pk__in=own_ids).delete()
    _broadcast_deleted(notifier, removed)
    return count


# ============================================================================
# LIKES / REPOSTS / BOOKMARKS
# ============================================================================

def toggle_like(member: Member, post_id, notifier=None) -> LikeResult:
    """
    Flip the caller's like on a post.

    IMPORTANT: check-then-act is not atomic across the toggle. The
    race is benign: the unique constraint keeps likes a set, and the
    worst case is two concurrent toggles cancelling out.
    """
    post = _get_post(post_id)

    deleted, _ = Like.objects.filter(member=member, post=post).delete()
    if deleted:
        liked = False
    else:
        try:
            with transaction.atomic():
                Like.objects.create(member=member, post=post)
        except IntegrityError:
            # A concurrent request liked it first
            pass
        liked = True

    result = LikeResult(liked=liked, likes_count=post.likes.count())
    realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.UPDATE_LIKE, {
        'post_id': post.pk,
        'likes_count': result.likes_count,
        'member': member.app_user_id,
        'liked': result.liked,
    })
    return result


def toggle_repost(member: Member, post_id, notifier=None) -> RepostResult:
    """
    Create or remove the caller's repost of a post.

    Reposting a repost targets its original, so a chain never forms.
    """
    post = _get_post(post_id)
    original = post.repost_of if post.is_repost else post

    existing = Post.objects.filter(author=member, repost_of=original).first()
    if existing is not None:
        repost_id = existing.pk
        existing.delete()  # signals.py decrements original.repost_count
        original.refresh_from_db(fields=['repost_count'])
        _broadcast_deleted(notifier, [repost_id])
        return RepostResult(False, original.repost_count, original)

    repost = None
    try:
        with transaction.atomic():
            repost = Post.objects.create(
                author=member,
                content='',
                repost_of=original,
                original_author_app_user_id=original.author.app_user_id,
                original_author_name=original.author.display_name,
                original_content=original.content,
                original_created_at=original.created_at,
            )
            Post.objects.filter(pk=original.pk).update(repost_count=F('repost_count') + 1)
    except IntegrityError:
        # Duplicate request: the repost already exists
        repost = None

    original.refresh_from_db(fields=['repost_count'])
    if repost is not None:
        repost.repost_of = original
        realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.NEW_POST, post_event_payload(repost))
    return RepostResult(True, original.repost_count, original, repost)


def toggle_bookmark(member: Member, post_id) -> bool:
    """Flip the caller's bookmark. Returns True when the post is now bookmarked."""
    post = _get_post(post_id)
    deleted, _ = Bookmark.objects.filter(member=member, post=post).delete()
    if deleted:
        return False
    try:
        with transaction.atomic():
            Bookmark.objects.create(member=member, post=post)
    except IntegrityError:
        pass
    return True


# ============================================================================
# COMMENTS
# ============================================================================

def add_comment(member: Member, post_id, content, notifier=None):
    """
    Append a comment to a post.

    Returns (comment, comments) where comments is the post's full list,
    oldest first.
    """
    content = clean_text(content, 'Comment')
    post = _get_post(post_id)
    comment = Comment.objects.create(post=post, author=member, content=content)

    comments = list(post.comments.select_related('author').order_by('created_at', 'id'))
    realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.NEW_COMMENT, {
        'post_id': post.pk,
        'comment': {
            'id': comment.pk,
            'author': member.app_user_id,
            'author_name': member.display_name,
            'content': comment.content,
            'created_at': comment.created_at,
        },
        'comments_count': len(comments),
    })
    return comment, comments


# ============================================================================
# ACCOUNT
# ============================================================================

_url_validator = URLValidator()


def update_profile(caller: Member, app_user_id, display_name=None, bio=None,
                   avatar_url=None, banner_url=None) -> Member:
    target = Member.objects.completed().filter(app_user_id=app_user_id).first()
    if target is None:
        raise NotFound('User not found.')
    if target.pk != caller.pk:
        raise AuthorizationDenied('You can only edit your own profile.')

    if display_name is not None:
        target.display_name = clean_text(display_name, 'Display name')[:100]
    if bio is not None:
        bio = bio.strip()
        if len(bio) > 160:
            raise ValidationFailed('Bio must be 160 characters or fewer.')
        target.bio = bio
    for field, value in (('avatar_url', avatar_url), ('banner_url', banner_url)):
        if value is None:
            continue
        value = value.strip()
        if value:
            try:
                _url_validator(value)
            except DjangoValidationError:
                raise ValidationFailed(f'{field}: enter a valid URL.')
        setattr(target, field, value)

    target.save()
    return target


def delete_account(member: Member, notifier=None) -> dict:
    """
    Remove a member and everything they own.

    Returns how many rows of each kind went. Their likes disappear from other
    people's posts, so those posts get a fresh like count broadcast.
    """
    own_posts = list(Post.objects.filter(author=member).values_list('id', flat=True))
    removed_posts = own_posts + list(
        Post.objects.filter(repost_of__in=own_posts)
        .exclude(author=member)
        .values_list('id', flat=True)
    )
    liked_elsewhere = list(
        Like.objects.filter(member=member)
        .exclude(post__author=member)
        .values_list('post_id', flat=True)
    )

    counts = {
        'posts': len(own_posts),
        'comments': Comment.objects.filter(author=member).count(),
        'likes': Like.objects.filter(member=member).count(),
        'bookmarks': Bookmark.objects.filter(member=member).count(),
        'messages': (
            Message.objects.filter(sender=member).count()
            + Message.objects.filter(receiver=member).exclude(sender=member).count()
        ),
        'drafts': member.drafts.count(),
        'follows': (
            Follow.objects.filter(follower=member).count()
            + Follow.objects.filter(followee=member).count()
        ),
    }

    app_user_id = member.app_user_id
    with transaction.atomic():
        member.delete()
    logger.info("Account %s deleted: %s", app_user_id, counts)

    _broadcast_deleted(notifier, removed_posts)
    for post in Post.objects.filter(id__in=liked_elsewhere).exclude(id__in=removed_posts):
        realtime.broadcast(notifier, realtime.POSTS_CHANNEL, realtime.UPDATE_LIKE, {
            'post_id': post.pk,
            'likes_count': post.likes.count(),
            'member': app_user_id,
            'liked': False,
        })
    return counts
