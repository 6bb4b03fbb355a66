import json
import logging
from functools import wraps

from django.http import JsonResponse

from .exceptions import CommonsError

logger = logging.getLogger(__name__)


def role_required(*roles):
    """Answer 403 JSON unless request.user has one of `roles`.

    Stack under @login_required.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.user.role not in roles:
                return JsonResponse({"error": "You do not have permission to do that."}, status=403)
            return view(request, *args, **kwargs)
        return wrapper
    return decorator


def json_errors(view):
    """Turn domain errors and malformed JSON bodies into {"error": ...} responses."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except CommonsError as e:
            logger.debug(f"{view.__name__}: {e.message}")
            return JsonResponse({"error": e.message}, status=e.status)
        except json.JSONDecodeError:
            return JsonResponse({"error": "Invalid JSON body"}, status=400)
    return wrapper
