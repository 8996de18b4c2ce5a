"""Shell-style ``${NAME}`` reference expansion between secrets."""
import re
import logging
from collections.abc import Iterable

from .index import SecretIndex
from .models import SecretEntry

logger = logging.getLogger("navigator.secrets")

_REFERENCE_RE = re.compile(r"\$\{([^}]+)\}")


def _references(value: str, values: dict[str, str]) -> list[str]:
    return [
        ref for ref in (m.group(1).upper() for m in _REFERENCE_RE.finditer(value))
        if ref in values
    ]


def _resolve(
    root: str,
    values: dict[str, str],
    resolved: dict[str, str],
    cyclic: dict[str, str],
) -> str:
    """Expand ``root`` depth-first with an explicit stack.

    ``resolved`` caches fully expanded values. ``cyclic`` holds keys that
    take part in (or depend on) a reference cycle; references to them are
    left verbatim.
    """
    if root in resolved:
        return resolved[root]
    if root in cyclic:
        return cyclic[root]
    stack = [root]
    on_path = {root}
    while stack:
        key = stack[-1]
        pending = next(
            (
                ref for ref in _references(values[key], values)
                if ref not in resolved and ref not in cyclic and ref not in on_path
            ),
            None,
        )
        if pending is not None:
            stack.append(pending)
            on_path.add(pending)
            continue

        broken = False

        def substitute(match: re.Match) -> str:
            nonlocal broken
            ref = match.group(1).upper()
            if ref not in values:
                return match.group(0)
            if ref in resolved:
                return resolved[ref]
            if ref in on_path:
                logger.warning("Reference cycle on ${%s} while expanding %s", ref, key)
            broken = True
            return match.group(0)

        expanded = _REFERENCE_RE.sub(substitute, values[key])
        stack.pop()
        on_path.discard(key)
        if broken:
            cyclic[key] = expanded
        else:
            resolved[key] = expanded
    return resolved.get(root, cyclic.get(root, values[root]))


def expand_secrets(entries: Iterable[SecretEntry]) -> list[SecretEntry]:
    """Return copies of ``entries`` with ``${NAME}`` references substituted.

    References resolve recursively and case-insensitively against the other
    secrets of the set, without limit on chain depth. Unknown references and
    references that take part in a cycle are left verbatim.
    """
    entries = list(entries)
    values = SecretIndex(entries).values_by_key()
    resolved: dict[str, str] = {}
    cyclic: dict[str, str] = {}
    expanded = []
    for entry in entries:
        value = _resolve(entry.key, values, resolved, cyclic)
        expanded.append(entry.model_copy(update={"value": value}))
    return expanded
