"""
Example Env Template — Group secrets by tag set and render a ``.env`` skeleton.

Output layout::

    UNTAGGED_KEY=default

    # comment line
    OTHER_KEY=


    ############ ...
    # ****** BACKEND & DATABASE ******
    ############ ...

    DB_URL=postgres://localhost

Values are never rendered; each row carries the default declared in the
secret comment after the ``DEFAULT:`` marker, or nothing.
"""
import re
from collections.abc import Iterable

from .crypto import hash_strings
from .models import SecretEntry, TagGroup

DEFAULT_MARKER = "DEFAULT:"
HEADING_WIDTH = 80

_DEFAULT_RE = re.compile(r"(?s)(.*)" + re.escape(DEFAULT_MARKER) + r"(.*)")


def tags_hash(entry: SecretEntry) -> str:
    """Hash of the sorted tag slugs; equal for equal sets in any order."""
    return hash_strings(entry.tag_slugs)


def group_by_tags(entries: Iterable[SecretEntry]) -> list[TagGroup]:
    """Group secrets that share an identical tag set.

    Members are sorted by key. Groups are ordered by ascending number of
    tags, so the untagged group (if any) comes first; groups with the same
    number of tags are ordered by their first member key.
    """
    groups: dict[str, TagGroup] = {}
    for entry in entries:
        digest = tags_hash(entry)
        group = groups.get(digest)
        if group is None:
            group = TagGroup(
                tag_slugs=tuple(entry.tag_slugs),
                tags=sorted(entry.tags, key=lambda tag: tag.slug),
            )
            groups[digest] = group
        group.members.append(entry)

    for group in groups.values():
        group.members.sort(key=lambda member: member.key)

    return sorted(
        groups.values(),
        key=lambda group: (len(group.tag_slugs), group.members[0].key),
    )


def parse_comment(comment: str) -> tuple[str, str]:
    """Split a secret comment into ``(comment, default_value)``.

    Everything after the last ``DEFAULT:`` marker is the default value and
    everything before it the comment. Without a marker the comment is kept
    as is and the default is empty.
    """
    match = _DEFAULT_RE.match(comment or "")
    if match is None:
        return (comment or "").strip(), ""
    return match.group(1).strip(), match.group(2).strip()


def comment_lines(comment: str) -> str:
    return "\n".join(f"# {line}" for line in comment.split("\n"))


def render_row(entry: SecretEntry) -> str:
    comment, default = parse_comment(entry.comment)
    row = f"{entry.key.strip()}={default}"
    if comment:
        return f"{comment_lines(comment)}\n{row}"
    return row


def center_heading(text: str, width: int = HEADING_WIDTH) -> str:
    """Center ``text`` inside a run of stars, inside a ``#`` bordered banner."""
    stars = "*" * width
    padding = max((width - len(text)) // 2, 0)
    centered = f"{stars[:padding]} {text.upper()} {stars[padding:]}"
    border = "#" * (len(centered) + 2)
    return f"{border}\n# {centered}\n{border}"


def render_group(group: TagGroup) -> str:
    body = "\n\n".join(render_row(member) for member in group.members)
    if group.untagged:
        return body
    return f"{center_heading(group.heading)}\n\n{body}"


def render_template(entries: Iterable[SecretEntry]) -> str:
    """Render the example env text for a full (opened) secret set."""
    groups = group_by_tags(entries)
    if not groups:
        return ""
    return "\n\n\n".join(render_group(group) for group in groups) + "\n"
