"""Topic names that session snapshots are published on.

Per-player topics carry the join handshake (one player learns about a
lobby they created, a request they sent or received, and its outcome);
once both players are seated, every update goes to the per-session topic.
"""

TOPIC_PREFIX = "game."


def created(login: str) -> str:
    return f"{TOPIC_PREFIX}created.{login}"


def join_pending(login: str) -> str:
    return f"{TOPIC_PREFIX}join.pending.{login}"


def join_request(login: str) -> str:
    return f"{TOPIC_PREFIX}join.request.{login}"


def connected(login: str) -> str:
    return f"{TOPIC_PREFIX}connected.{login}"


def join_rejected(login: str) -> str:
    return f"{TOPIC_PREFIX}join.rejected.{login}"


def updated(login: str) -> str:
    return f"{TOPIC_PREFIX}updated.{login}"


def session(game_id: str) -> str:
    return f"{TOPIC_PREFIX}{game_id}"
