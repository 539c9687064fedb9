"""Key formats for records owned by the key-value store.

Existing deployments already hold data under these exact keys, so the mixed
``kind:userId`` / ``kind_userId`` spellings are kept as-is.
"""

from datetime import datetime


def profile_key(user_id: str) -> str:
    return f"profile:{user_id}"


def snapshot_key(user_id: str) -> str:
    return f"snapshot_{user_id}"


def next_task_key(user_id: str) -> str:
    return f"nextAdaptedTask_{user_id}"


def momentum_mirror_key(user_id: str) -> str:
    return f"momentumMirror_{user_id}"


def dashboard_teaser_key(user_id: str) -> str:
    return f"dashboardTeaser_{user_id}"


def history_prefix(user_id: str) -> str:
    return f"history:{user_id}:"


def history_key(user_id: str, at: datetime) -> str:
    return f"{history_prefix(user_id)}{at.isoformat()}"


def is_history_key(user_id: str, key: str) -> bool:
    """True only for ``history:{user_id}:<timestamp>``.

    User ids may contain ``:``, so a prefix match alone would also accept
    ``history:{user_id}:other:<timestamp>`` from another user.
    """
    prefix = history_prefix(user_id)
    if not key.startswith(prefix):
        return False
    try:
        datetime.fromisoformat(key[len(prefix) :])
    except ValueError:
        return False
    return True


def rate_limit_key(prefix: str, client_id: str, window_start: int) -> str:
    return f"ratelimit:{prefix}:{client_id}:{window_start}"
