import string
import time

from django.utils import timezone
from django.utils.crypto import get_random_string

AGENT_CODE_CHARS = string.ascii_uppercase + string.digits


def generate_agent_code():
    return "UGC-" + get_random_string(6, AGENT_CODE_CHARS)


def generate_card_id():
    """Membership card id: UGC-M-<epoch milliseconds>."""
    return f"UGC-M-{int(time.time() * 1000)}"


def default_welcome_message(name, circle):
    return (
        f"Welcome to the Ubuntium Global Commons, {name}! "
        f"We are thrilled to have you join the {circle} Circle. I am because we are."
    )


def snippet(text, limit=50):
    """Shorten text for notification previews."""
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


def format_time_ago(value):
    if not value:
        return ""
    delta = timezone.now() - value
    seconds = int(delta.total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        minutes = seconds // 60
        return f"{minutes}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if delta.days < 7:
        return f"{delta.days}d ago"
    return value.strftime("%b %d, %Y")


def normalize_email(email):
    return (email or "").strip().lower()
