"""
Read Models
===========

Feed listing, post detail, bookmarks and member lookups.

THE N+1 PROBLEM:
----------------
A feed of 50 posts rendered naively costs 1 query for the posts, then per
post one for the author, one to count likes, one to count comments and one
each to ask "did the viewer like / repost / bookmark this?". That is 300+
queries for one page.

OUR APPROACH:
-------------
1. select_related('author', 'repost_of') → one JOIN
2. Count() annotations for likes and comments
3. Exists() subqueries for the three viewer flags

One query per feed page, whatever the page holds.
"""

from typing import Optional

from django.db.models import BooleanField, Count, Exists, OuterRef, Value

from .exceptions import NotFound, ValidationFailed
from .models import Bookmark, Comment, FEED_LIMIT, Follow, Like, Member, Post

FEED_FILTERS = ('all', 'following')


def get_completed_member(app_user_id) -> Member:
    member = Member.objects.completed().filter(app_user_id=app_user_id).first()
    if member is None:
        raise NotFound('User not found.')
    return member


def list_members(limit: Optional[int] = None) -> list[Member]:
    """Completed members, newest first, with follower/following counts."""
    queryset = (
        Member.objects.completed()
        .annotate(
            num_followers=Count('follower_edges', distinct=True),
            num_following=Count('following_edges', distinct=True),
        )
        .order_by('-created_at', '-id')
    )
    if limit:
        queryset = queryset[:limit]
    return list(queryset)


def follow_sets(member: Member) -> dict:
    """app_user_ids on both sides of a member's follow edges. 2 queries."""
    return {
        'following': list(
            Follow.objects.filter(follower=member)
            .values_list('followee__app_user_id', flat=True)
        ),
        'followers': list(
            Follow.objects.filter(followee=member)
            .values_list('follower__app_user_id', flat=True)
        ),
    }


def annotated_posts(viewer: Optional[Member] = None):
    """
    Posts with counts and viewer flags attached.

    Anonymous viewers get the flags as constant False.
    """
    queryset = Post.objects.select_related('author', 'repost_of').annotate(
        num_likes=Count('likes', distinct=True),
        num_comments=Count('comments', distinct=True),
    )
    if viewer is None or not getattr(viewer, 'pk', None):
        false = Value(False, output_field=BooleanField())
        return queryset.annotate(viewer_liked=false, viewer_reposted=false, viewer_bookmarked=false)

    return queryset.annotate(
        viewer_liked=Exists(Like.objects.filter(post=OuterRef('pk'), member=viewer)),
        viewer_reposted=Exists(Post.objects.filter(repost_of=OuterRef('pk'), author=viewer)),
        viewer_bookmarked=Exists(Bookmark.objects.filter(post=OuterRef('pk'), member=viewer)),
    )


def list_posts(viewer: Optional[Member] = None, feed_filter: str = 'all') -> list[Post]:
    """
    Newest FEED_LIMIT posts.

    `all` is everyone; `following` is authors the viewer follows, and empty
    when the viewer follows nobody.
    """
    if feed_filter not in FEED_FILTERS:
        raise ValidationFailed(f"Unknown filter '{feed_filter}'. Use 'all' or 'following'.")

    queryset = annotated_posts(viewer)
    if feed_filter == 'following':
        if viewer is None or not getattr(viewer, 'pk', None):
            return []
        followee_ids = list(Follow.objects.filter(follower=viewer).values_list('followee_id', flat=True))
        if not followee_ids:
            return []
        queryset = queryset.filter(author_id__in=followee_ids)

    return list(queryset.order_by('-created_at', '-id')[:FEED_LIMIT])


def list_member_posts(member: Member, viewer: Optional[Member] = None) -> list[Post]:
    return list(
        annotated_posts(viewer).filter(author=member).order_by('-created_at', '-id')[:FEED_LIMIT]
    )


def get_post_detail(post_id, viewer: Optional[Member] = None) -> dict:
    """
    Post, its comments (oldest first) and the ids of members who liked it.

    Query: 3 (post with annotations, comments JOIN author, liker ids)
    """
    post = annotated_posts(viewer).filter(pk=post_id).first()
    if post is None:
        raise NotFound('Post not found.')
    return {
        'post': post,
        'comments': get_comments(post),
        'liked_by': list(post.likes.values_list('member__app_user_id', flat=True)),
    }


def get_comments(post) -> list[Comment]:
    return list(
        Comment.objects.filter(post=post)
        .select_related('author')
        .order_by('created_at', 'id')
    )


def get_post_comments(post_id) -> list[Comment]:
    if not Post.objects.filter(pk=post_id).exists():
        raise NotFound('Post not found.')
    return get_comments(post_id)


def list_bookmarks(member: Member) -> list[Post]:
    """Posts the member bookmarked, newest post first."""
    return list(
        annotated_posts(member)
        .filter(bookmarks__member=member)
        .order_by('-created_at', '-id')
    )
