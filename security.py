from functools import wraps
from flask import request, g

from errors import ValidationError

# The browser UI keeps its generated id in this cookie for a year.
USER_COOKIE = "userId"

def json_body():
    """The request's JSON object, or {} when the body is absent or not an object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def current_user_id():
    """
    Client-supplied user id: JSON body, then query string, then cookie.
    Trusted as-is; nothing here verifies who the caller is.
    """
    uid = json_body().get("userId")
    if not uid:
        uid = request.args.get("userId")
    if not uid:
        uid = request.cookies.get(USER_COOKIE)
    uid = str(uid).strip() if uid is not None else ""
    return uid or None


def user_required(fn):
    @wraps(fn)
    def w(*a, **k):
        uid = current_user_id()
        if not uid:
            raise ValidationError("Missing userId")
        g.user_id = uid
        return fn(*a, **k)
    return w
