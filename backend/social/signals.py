"""
Django Signals for maintaining the denormalized repost counter.

Trade-off Discussion:
---------------------
repost_count is incremented in services.toggle_repost with an F() update in
the same transaction as the repost insert. The decrement lives here, on
post_delete, because reposts disappear along several paths:

- toggle_repost removing the caller's repost
- delete_own_posts / delete_account removing the reposter's posts
- the CASCADE when an original is deleted (the original goes too, so the
  update below touches nothing)

IMPORTANT: post_delete fires per row for model and QuerySet deletes, but NOT
for QuerySet.update() or raw SQL.
"""

from django.db.models import F
from django.db.models.functions import Greatest
from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import Post


@receiver(post_delete, sender=Post)
def decrement_repost_count(sender, instance, **kwargs):
    """
    When a repost is deleted, decrement the original's repost count,
    floored at 0.
    """
    if instance.repost_of_id is None:
        return
    Post.objects.filter(id=instance.repost_of_id).update(
        repost_count=Greatest(F('repost_count') - 1, 0)
    )
