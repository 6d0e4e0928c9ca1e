"""
Drafts: private scratch text, visible only to its owner.
"""

from .exceptions import NotFound
from .models import DRAFT_LIST_LIMIT, Draft, Member
from .validators import clean_text


def save_draft(owner: Member, content) -> Draft:
    return Draft.objects.create(owner=owner, content=clean_text(content, 'Draft'))


def list_drafts(owner: Member) -> list[Draft]:
    return list(Draft.objects.filter(owner=owner).order_by('-created_at', '-id')[:DRAFT_LIST_LIMIT])


def delete_draft(owner: Member, draft_id) -> None:
    """Owner-scoped: someone else's draft is reported exactly like a missing one."""
    try:
        deleted, _ = Draft.objects.filter(owner=owner, pk=int(draft_id)).delete()
    except (TypeError, ValueError):
        deleted = 0
    if not deleted:
        raise NotFound('Draft not found.')
