"""Small lookup and merge helpers shared by columns, providers and renderers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def _lookup(model: Any, key: str, default: Any) -> Any:
    if isinstance(model, Mapping):
        return model.get(key, default)
    if isinstance(model, Sequence) and not isinstance(model, (str, bytes)) and key.isdigit():
        index = int(key)
        return model[index] if index < len(model) else default
    return getattr(model, key, default)


def get_value(model: Any, key: str, default: Any = None) -> Any:
    """Read a field from a row that may be a mapping, a sequence or an object.

    ``key`` may be a dotted path (``"author.name"``) to reach into nested
    rows. An exact key match on a mapping wins over the dotted
    interpretation, so ``{"a.b": 1}`` is still readable with ``"a.b"``.

    Parameters
    ----------
    model : Any
        The row being read. Never mutated.
    key : str
        Field name or dotted path.
    default : Any
        Returned when the field is absent.

    Returns
    -------
    Any
        The field value, or ``default``.
    """
    if model is None:
        return default

    if isinstance(model, Mapping) and key in model:
        return model[key]

    pos = key.rfind(".")
    if pos != -1:
        model = get_value(model, key[:pos], default)
        if model is None:
            return default
        key = key[pos + 1 :]

    return _lookup(model, key, default)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Nested dicts are merged key by key, lists are concatenated and any
    other value in ``override`` replaces the one in ``base``.
    """
    result = base.copy()
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = [*current, *value]
        else:
            result[key] = value
    return result


def camel2words(name: str, ucwords: bool = True) -> str:
    """Convert an identifier into space-separated words.

    ``created_at`` becomes ``"Created At"``, ``firstName`` becomes
    ``"First Name"`` and ``HTMLParser`` becomes ``"Html Parser"``.

    Parameters
    ----------
    name : str
        The identifier to convert.
    ucwords : bool
        Capitalize the first letter of every word.

    Returns
    -------
    str
        The humanized label.
    """
    chars: list[str] = []
    for i, ch in enumerate(name):
        if i and ch.isupper():
            prev = name[i - 1]
            nxt = name[i + 1] if i + 1 < len(name) else ""
            if prev.islower() or prev.isdigit() or (prev.isupper() and nxt.islower()):
                chars.append(" ")
        chars.append(ch)

    label = "".join(chars)
    for sep in ("-", "_", "."):
        label = label.replace(sep, " ")
    label = " ".join(label.split()).lower()

    if ucwords:
        label = " ".join(word[:1].upper() + word[1:] for word in label.split(" "))
    return label
