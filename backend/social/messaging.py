"""
Direct Messages
===============

CONVERSATION LIST:
------------------
One query fetches every message touching the caller (newest first, with
sender and receiver JOINed). A single O(n) pass in Python groups them by
counterpart: the first message seen for a counterpart is its latest, and
unread counts accumulate as we go. Dict insertion order then IS the
"most recent activity first" order, so no sort is needed.

READ RECEIPTS:
--------------
`read` only moves false → true, and only in get_conversation(), for
messages the counterpart sent to the caller.
"""

import logging

from django.db.models import Q

from . import realtime
from .exceptions import NotFound, ValidationFailed
from .models import Member, Message
from .validators import clean_text

logger = logging.getLogger(__name__)


def _counterpart(app_user_id) -> Member:
    member = Member.objects.completed().filter(app_user_id=app_user_id).first()
    if member is None:
        raise NotFound('User not found.')
    return member


def send_message(sender: Member, receiver_app_user_id, content, notifier=None) -> Message:
    content = clean_text(content, 'Message')
    if not receiver_app_user_id:
        raise ValidationFailed('A receiver is required.')
    if receiver_app_user_id == sender.app_user_id:
        raise ValidationFailed('You cannot message yourself.')
    receiver = _counterpart(receiver_app_user_id)

    message = Message.objects.create(sender=sender, receiver=receiver, content=content)

    realtime.broadcast(notifier, realtime.user_channel(receiver.app_user_id), realtime.NEW_MESSAGE, {
        'id': message.pk,
        'sender': sender.app_user_id,
        'sender_name': sender.display_name,
        'receiver': receiver.app_user_id,
        'content': message.content,
        'created_at': message.created_at,
    })
    return message


def list_conversations(member: Member) -> list[dict]:
    """
    One entry per counterpart: the latest message and how many of the
    counterpart's messages the caller has not read.

    Query: 1
    """
    messages = (
        Message.objects
        .filter(Q(sender=member) | Q(receiver=member))
        .select_related('sender', 'receiver')
        .order_by('-created_at', '-id')
    )

    conversations = {}
    for message in messages:
        incoming = message.receiver_id == member.pk
        other = message.sender if incoming else message.receiver
        entry = conversations.get(other.pk)
        if entry is None:
            entry = {
                'member': other,
                'last_message': message,
                'unread_count': 0,
            }
            conversations[other.pk] = entry
        if incoming and not message.read:
            entry['unread_count'] += 1

    return list(conversations.values())


def get_conversation(member: Member, counterpart_app_user_id) -> list[Message]:
    """
    Full chronological thread with a counterpart.

    Side effect: marks the counterpart's messages to the caller as read.
    The list is evaluated before the update, so it shows the read state as
    it was when the caller opened the thread.
    """
    other = _counterpart(counterpart_app_user_id)
    thread = list(
        Message.objects
        .filter(
            Q(sender=member, receiver=other) | Q(sender=other, receiver=member)
        )
        .select_related('sender', 'receiver')
        .order_by('created_at', 'id')
    )

    marked = Message.objects.filter(sender=other, receiver=member, read=False).update(read=True)
    if marked:
        logger.debug("%s read %d messages from %s", member.app_user_id, marked, other.app_user_id)
    return thread
