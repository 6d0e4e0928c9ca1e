"""
Input validation shared by the services and the serializers.
"""
import re

from .exceptions import ValidationFailed
from .models import MAX_POST_WEIGHT

APP_USER_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{3,20}$')

URL_PATTERN = re.compile(r'(https?://[^\s]+|www\.[^\s]+)')
TAG_PATTERN = re.compile(r'[#@]\w+')

# Links are shortened by clients, so every link costs the same
URL_WEIGHT = 23


def weighted_length(text: str) -> int:
    """
    Length of a post as the composer counts it.

    Each URL counts as URL_WEIGHT characters, hashtags and mentions are free,
    and the remaining text is counted after trimming.
    """
    urls = URL_PATTERN.findall(text)
    rest = URL_PATTERN.sub('', text)
    rest = TAG_PATTERN.sub('', rest)
    return len(urls) * URL_WEIGHT + len(rest.strip())


def clean_post_content(content) -> str:
    content = (content or '').strip()
    if not content:
        raise ValidationFailed('Post content cannot be empty.')
    if weighted_length(content) > MAX_POST_WEIGHT:
        raise ValidationFailed(f'Post exceeds {MAX_POST_WEIGHT} characters.')
    return content


def clean_text(content, what='Content') -> str:
    content = (content or '').strip()
    if not content:
        raise ValidationFailed(f'{what} cannot be empty.')
    return content


def validate_app_user_id(app_user_id) -> str:
    app_user_id = (app_user_id or '').strip()
    if not APP_USER_ID_PATTERN.match(app_user_id):
        raise ValidationFailed(
            'User ID must be 3-20 characters: letters, digits, underscores or hyphens.'
        )
    return app_user_id
