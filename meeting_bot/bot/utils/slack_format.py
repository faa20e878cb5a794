"""Slack mrkdwn formatting utilities.

Google Calendar stores event descriptions as a small subset of HTML
(<b>, <i>, <br>, <a>, <p>, lists, headings).  Slack's mrkdwn has its own
conventions for bold (*bold*), italic (_italic_), strikethrough (~text~)
and links (<url|label>).  Only three characters need escaping in regular
text: &, <, >.
"""

import re
from typing import Callable, List, Tuple

# Private-use code points that stand in for the angle brackets of a
# converted link while the generic tag stripper runs.
LINK_OPEN = "\ue000"
LINK_CLOSE = "\ue001"

_NAMED_ENTITIES: List[Tuple[str, str]] = [
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&nbsp;", " "),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&ndash;", "–"),
    ("&mdash;", "—"),
    ("&hellip;", "…"),
    ("&laquo;", "«"),
    ("&raquo;", "»"),
    ("&bull;", "•"),
    ("&copy;", "©"),
    ("&reg;", "®"),
    ("&trade;", "™"),
]

_DECIMAL_ENTITY = re.compile(r"&#([0-9]+);")
_HEX_ENTITY = re.compile(r"&#x([0-9a-fA-F]+);")

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_GAP = re.compile(r"</p>\s*<p[^>]*>", re.IGNORECASE)
_PARAGRAPH_OPEN = re.compile(r"<p[^>]*>", re.IGNORECASE)
_PARAGRAPH_CLOSE = re.compile(r"</p>", re.IGNORECASE)
_LINK = re.compile(
    r'<a\s+[^>]*href="([^"]*)"[^>]*>(.*?)</a>', re.IGNORECASE | re.DOTALL
)
_BOLD = re.compile(r"</?(?:b|strong)(?:\s[^>]*)?>", re.IGNORECASE)
_ITALIC = re.compile(r"</?(?:i|em)(?:\s[^>]*)?>", re.IGNORECASE)
_STRIKE = re.compile(r"</?(?:s|strike|del)(?:\s[^>]*)?>", re.IGNORECASE)
_LIST_ITEM = re.compile(r"<li[^>]*>(.*?)</li>", re.IGNORECASE | re.DOTALL)
_LIST = re.compile(r"</?(?:ul|ol)(?:\s[^>]*)?>", re.IGNORECASE)
_HEADING = re.compile(r"<h[1-6][^>]*>(.*?)</h[1-6]>", re.IGNORECASE | re.DOTALL)
_ANY_TAG = re.compile(r"<[^>]+>")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def escape_mrkdwn(text: str) -> str:
    """Escape the 3 special characters for Slack mrkdwn.

    Slack requires &, <, > to be escaped as HTML entities even inside
    mrkdwn text so they are not interpreted as message formatting
    directives.
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _code_unit(value: int) -> str:
    # Numeric entities decode to one UTF-16 code unit, so values above
    # U+FFFF wrap instead of producing an astral character.
    return chr(value & 0xFFFF)


def _numeric_entity(match: "re.Match[str]", base: int) -> str:
    # int() refuses digit strings past the interpreter's conversion limit.
    try:
        return _code_unit(int(match.group(1), base))
    except ValueError:
        return match.group(0)


def decode_html_entities(text: str) -> str:
    """Decode the named entities Google Calendar emits plus numeric ones.

    Named entities are replaced in table order, so ``&amp;lt;`` ends up
    as ``<``.  Numeric entities whose body is not a valid number
    (``&#abc;``) never match and are left as written, as are decimal
    bodies too long to convert.
    """
    for entity, replacement in _NAMED_ENTITIES:
        text = text.replace(entity, replacement)

    text = _DECIMAL_ENTITY.sub(lambda m: _numeric_entity(m, 10), text)
    text = _HEX_ENTITY.sub(lambda m: _numeric_entity(m, 16), text)
    return text


def _convert_links(text: str) -> str:
    return _LINK.sub(
        lambda m: f"{LINK_OPEN}{m.group(1)}|{m.group(2)}{LINK_CLOSE}", text
    )


def _convert_list_items(text: str) -> str:
    text = _LIST_ITEM.sub(lambda m: f"\n• {m.group(1).strip()}", text)
    return _LIST.sub("\n", text)


def _convert_headings(text: str) -> str:
    return _HEADING.sub(lambda m: f"\n*{m.group(1).strip()}*\n", text)


def _convert_paragraphs(text: str) -> str:
    text = _PARAGRAPH_GAP.sub("\n\n", text)
    text = _PARAGRAPH_OPEN.sub("", text)
    return _PARAGRAPH_CLOSE.sub("\n\n", text)


def _restore_links(text: str) -> str:
    return text.replace(LINK_OPEN, "<").replace(LINK_CLOSE, ">")


def _normalize_whitespace(text: str) -> str:
    return _EXCESS_NEWLINES.sub("\n\n", text).strip()


# Order matters: links are shielded before the inline tag stages, and
# the generic tag stripper must run after every recognised tag is gone.
_PIPELINE: List[Callable[[str], str]] = [
    lambda t: _BR.sub("\n", t),
    _convert_paragraphs,
    _convert_links,
    lambda t: _BOLD.sub("*", t),
    lambda t: _ITALIC.sub("_", t),
    lambda t: _STRIKE.sub("~", t),
    _convert_list_items,
    _convert_headings,
    lambda t: _ANY_TAG.sub("", t),
    _restore_links,
    decode_html_entities,
    _normalize_whitespace,
]


def html_to_mrkdwn(html: str) -> str:
    """Convert a Google Calendar HTML description to Slack mrkdwn.

    Handled tags: <br>, <p>, <a href>, <b>/<strong>, <i>/<em>,
    <s>/<strike>/<del>, <ul>/<ol>/<li> and <h1>-<h6>.  Every other tag
    is stripped while its inner text is kept.  Nested lists are
    flattened to a single bullet level.

    Empty input is returned unchanged.  Text without markup comes back
    as-is apart from entity decoding and whitespace trimming.
    """
    if not html:
        return html

    text = html
    for stage in _PIPELINE:
        text = stage(text)
    return text
