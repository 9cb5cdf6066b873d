"""
State Channels

A channel is a named slot of graph state with a reducer that merges a
node's partial update into the current value, plus a factory for the
default value. Each pipeline declares its channels explicitly.
"""

from dataclasses import dataclass
from typing import Any, Callable


Reducer = Callable[[Any, Any], Any]


def replace_latest(current: Any, update: Any) -> Any:
    """Latest non-None value wins."""
    return update if update is not None else current


def merge_records(current: Any, update: Any) -> dict:
    """Shallow dict merge; keys in the update win."""
    return {**(current or {}), **(update or {})}


def concat_lists(current: Any, update: Any) -> list:
    """Append the update (a list, or a single item) to the current list."""
    if update is None:
        return list(current or [])
    items = list(update) if isinstance(update, (list, tuple)) else [update]
    return [*(current or []), *items]


@dataclass(frozen=True)
class Channel:
    reducer: Reducer = replace_latest
    default: Callable[[], Any] = lambda: None

    @classmethod
    def value(cls) -> "Channel":
        """Single value, replaced by each non-None update."""
        return cls(replace_latest, lambda: None)

    @classmethod
    def record(cls) -> "Channel":
        """Dict, merged key by key."""
        return cls(merge_records, dict)

    @classmethod
    def appending(cls) -> "Channel":
        """List, concatenated on every update."""
        return cls(concat_lists, list)
