"""Dotted/bracketed field addresses into JSON documents.

Supported syntax:
  - key        (mapping key)
  - a.b        (nested key)
  - a[2]       (sequence index)
  - a.b[2].c   (any mix of the above)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import InvalidParentError, MalformedAddressError


@dataclass(frozen=True)
class Key:
    name: str


@dataclass(frozen=True)
class Index:
    position: int


Step = Union[Key, Index]
Address = tuple[Step, ...]

_MISSING = object()


def parse(address: str) -> Address:
    """Split *address* into key and index steps.

    ``parse("a.b[2].c")`` gives ``(Key("a"), Key("b"), Index(2), Key("c"))``.
    """
    if not address:
        raise MalformedAddressError(address, "empty address")

    steps: list[Step] = []
    rest = address
    while rest:
        key, rest = _next_segment(address, rest)
        steps.append(Key(key))
        while rest.startswith("["):
            index, rest = _next_index(address, rest)
            steps.append(Index(index))
        if rest.startswith("."):
            rest = rest[1:]
            if not rest:
                raise MalformedAddressError(address, "trailing '.'")
        elif rest:
            raise MalformedAddressError(address, f"unexpected {rest[0]!r}")
    return tuple(steps)


def _next_segment(address: str, path: str) -> tuple[str, str]:
    """Extract the next key from path. Returns (key, remaining)."""
    end = len(path)
    for i, ch in enumerate(path):
        if ch in ".[]":
            end = i
            break
    if end == 0:
        raise MalformedAddressError(address, "empty segment")
    return path[:end], path[end:]


def _is_digits(text: str) -> bool:
    # str.isdigit() also accepts superscripts and other non-ASCII digits.
    return text.isascii() and text.isdigit()


def _next_index(address: str, path: str) -> tuple[int, str]:
    end = path.find("]")
    if end == -1:
        raise MalformedAddressError(address, "unclosed bracket")
    index_str = path[1:end]
    if not _is_digits(index_str):
        raise MalformedAddressError(address, f"bad index [{index_str}]")
    return int(index_str), path[end + 1 :]


def describe(address: Address) -> str:
    """Render a parsed address back to its dotted form."""
    out = ""
    for step in address:
        if isinstance(step, Index):
            out += f"[{step.position}]"
        else:
            out += f".{step.name}" if out else step.name
    return out


def label(address: str | Address) -> str:
    """Return the last key of *address*, ignoring trailing indices."""
    steps = _coerce(address)
    for step in reversed(steps):
        if isinstance(step, Key):
            return step.name
    return describe(steps)


def _coerce(address: str | Address) -> Address:
    return parse(address) if isinstance(address, str) else tuple(address)


def _lookup(container: object, step: Step) -> object:
    """Return the child of *container* at *step*, or ``_MISSING``."""
    if isinstance(container, dict):
        key = step.name if isinstance(step, Key) else str(step.position)
        return container.get(key, _MISSING)
    if isinstance(container, list):
        if isinstance(step, Index):
            pos = step.position
        elif _is_digits(step.name):
            pos = int(step.name)
        else:
            return _MISSING
        if 0 <= pos < len(container):
            return container[pos]
    return _MISSING


def get(document: object, address: str | Address, default: object = None) -> object:
    """Get the value at *address*, or *default* if any step is absent."""
    current = document
    for step in _coerce(address):
        current = _lookup(current, step)
        if current is _MISSING:
            return default
    return current


def set(document: object, address: str | Address, value: object) -> None:
    """Assign *value* at *address*, mutating *document* in place.

    Every step but the last must already exist and lead to a mapping or
    sequence. Missing intermediate containers are never created.
    """
    steps = _coerce(address)
    if not steps:
        raise MalformedAddressError("", "empty address")
    parent = document
    for i, step in enumerate(steps[:-1]):
        parent = _lookup(parent, step)
        if parent is _MISSING:
            raise InvalidParentError(describe(steps), f"{describe(steps[: i + 1])} does not exist")

    last = steps[-1]
    where = describe(steps[:-1]) or "<root>"
    if isinstance(parent, dict):
        parent[last.name if isinstance(last, Key) else str(last.position)] = value
    elif isinstance(parent, list):
        if isinstance(last, Index):
            pos = last.position
        elif _is_digits(last.name):
            pos = int(last.name)
        else:
            raise InvalidParentError(describe(steps), f"{where} is a sequence, not a mapping")
        if pos < len(parent):
            parent[pos] = value
        elif pos == len(parent):
            parent.append(value)
        else:
            raise InvalidParentError(
                describe(steps), f"index {pos} is past the end of {where} (length {len(parent)})"
            )
    else:
        raise InvalidParentError(
            describe(steps), f"{where} is a {type(parent).__name__}, not a container"
        )
