"""
Social graph: follow, unfollow, is_following.

A follow is one Follow row. The follower's `following` set and the
followee's `followers` set are both read from it, so a follow is a single
atomic insert and both mutations are idempotent.
"""

import logging

from django.db import IntegrityError, transaction

from .exceptions import NotFound, ValidationFailed
from .models import Follow, Member

logger = logging.getLogger(__name__)


class FollowResult:
    def __init__(self, following: bool, changed: bool, followers_count: int):
        self.following = following
        self.changed = changed
        self.followers_count = followers_count


def _target(app_user_id) -> Member:
    target = Member.objects.completed().filter(app_user_id=app_user_id).first()
    if target is None:
        raise NotFound('User not found.')
    return target


def follow(caller: Member, app_user_id) -> FollowResult:
    if caller.app_user_id == app_user_id:
        raise ValidationFailed('You cannot follow yourself.')
    target = _target(app_user_id)

    try:
        with transaction.atomic():
            _, created = Follow.objects.get_or_create(follower=caller, followee=target)
    except IntegrityError:
        # Lost a race with an identical follow
        created = False

    if created:
        logger.debug("%s followed %s", caller.app_user_id, target.app_user_id)
    return FollowResult(True, created, target.follower_edges.count())


def unfollow(caller: Member, app_user_id) -> FollowResult:
    if caller.app_user_id == app_user_id:
        raise ValidationFailed('You cannot unfollow yourself.')
    target = _target(app_user_id)

    deleted, _ = Follow.objects.filter(follower=caller, followee=target).delete()
    return FollowResult(False, bool(deleted), target.follower_edges.count())


def is_following(caller, app_user_id) -> bool:
    """
    Membership test on the caller's following set.

    False for anonymous callers and for the caller's own id.
    """
    if caller is None or not getattr(caller, 'pk', None):
        return False
    if caller.app_user_id == app_user_id:
        return False
    return Follow.objects.filter(
        follower=caller,
        followee__app_user_id=app_user_id,
        followee__oauth_completed=True,
    ).exists()
