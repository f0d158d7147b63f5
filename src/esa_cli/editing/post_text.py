"""Plain-text format for editing a post in an external editor.

The scratch file has four sections, one per line except the body:

    <!-- ### input post name next line ### -->
    category/path/Post name #tag1 #tag2
    <!-- ### input body next and subsequent lines ### -->
    body markdown, verbatim, on the remaining lines

Rendering is deterministic, so an untouched buffer compares byte-for-byte
equal to what was rendered and can be treated as "no edit".

Tags are separated by the literal " #" with no escaping: a name or tag
containing " #" does not survive a round trip.

Lines may end in LF or CRLF.
"""

from typing import List, Optional, Tuple

from esa_cli.models.post import Post, PostContent
from esa_cli.services.exceptions import ContentShapeError, EmptyTitleError


NAME_MARKER = "<!-- ### input post name next line ### -->"
BODY_MARKER = "<!-- ### input body next and subsequent lines ### -->"

CATEGORY_SEPARATOR = "/"
TAG_SEPARATOR = " #"

# Baseline for creating a post: empty title line, empty body.
DEFAULT_TEMPLATE = f"{NAME_MARKER}\n\n{BODY_MARKER}\n"

_MIN_LINES = 4


def render(title: str, body: str) -> str:
    """Render a title line and markdown body into the scratch-file format.

    Args:
        title: Full title line ("category/name #tag")
        body: Markdown body, written verbatim

    Returns:
        Buffer text, always ending with a newline
    """
    return f"{NAME_MARKER}\n{title}\n{BODY_MARKER}\n{body}\n"


def render_post(post: Post) -> str:
    """Render a fetched post for editing.

    esa's full_name already carries the category path and tag suffixes.
    """
    return render(post.full_name, post.body_md)


def _split_lines(text: str) -> List[str]:
    pieces = text.split("\n")
    # "\r\n" ends a line too; a lone "\r" on the unterminated last line is kept.
    lines = [piece.removesuffix("\r") for piece in pieces[:-1]] + pieces[-1:]
    # A trailing newline ends the last line, but the line after the body
    # marker always exists even when it is empty.
    if len(lines) > _MIN_LINES and lines[-1] == "":
        lines.pop()
    return lines


def parse_title(title: str) -> Tuple[Optional[str], str, List[str]]:
    """Split a title line into category, name and tags.

    Args:
        title: Title line such as "cat1/cat2/Name #tag1 #tag2"

    Returns:
        (category or None, name, tags)

    Raises:
        EmptyTitleError: If no name remains after splitting
    """
    segments = title.split(CATEGORY_SEPARATOR)
    category = CATEGORY_SEPARATOR.join(segments[:-1]) or None

    chunks = segments[-1].split(TAG_SEPARATOR)
    name = chunks[0].rstrip()
    tags = chunks[1:]

    if not name:
        raise EmptyTitleError("failed to parse content. post name is required")

    return category, name, tags


def parse(text: str) -> PostContent:
    """Parse an edited scratch-file buffer.

    Line 1 and line 3 are the markers and are not checked; only the shape
    is enforced. Everything from line 4 on is the body.

    Args:
        text: Buffer content read back from the scratch file

    Returns:
        PostContent with the raw title line kept as full_name

    Raises:
        ContentShapeError: If fewer than four lines are present
        EmptyTitleError: If the title line yields an empty name
    """
    lines = _split_lines(text)
    if len(lines) < _MIN_LINES:
        if len(lines) < 2:
            raise ContentShapeError("failed to parse content. post name line is missing")
        if len(lines) < 3:
            raise ContentShapeError("failed to parse content. body marker line is missing")
        raise ContentShapeError("failed to parse content. body line is missing")

    title = lines[1]
    category, name, tags = parse_title(title)

    return PostContent(
        name=name,
        full_name=title,
        body_md="\n".join(lines[3:]),
        tags=tags,
        category=category,
    )
