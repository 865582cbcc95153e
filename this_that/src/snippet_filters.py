import re
import html
from typing import List, Optional

from bs4 import BeautifulSoup

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_WS_RE = re.compile(r"\s+")


def sanitize_text(txt: Optional[str]) -> str:
    """Turn a feed fragment into plain text.

    Unwraps CDATA sections, drops markup, decodes HTML entities (including
    double-encoded ones such as '&amp;amp;') and collapses whitespace.
    """
    if not txt:
        return ""
    s = _CDATA_RE.sub(lambda m: m.group(1), txt)
    # Feeds often escape the markup itself, so decode before stripping tags
    s = html.unescape(s)
    if '<' in s and '>' in s:
        s = BeautifulSoup(s, "html.parser").get_text(" ")
    s = html.unescape(s)
    return _WS_RE.sub(" ", s).strip()


def extract_field(blob: str, tag: str, attr: Optional[str] = None) -> str:
    """Pull one tagged value out of an XML-ish blob such as an RSS <item>.

    With attr, returns that attribute of the first <tag ...> (e.g. the url
    of <media:content url="..."/>). Without it, returns the sanitized text
    between <tag> and </tag>. Missing fields give "".
    """
    if not blob or not tag:
        return ""
    t = re.escape(tag)
    if attr:
        m = re.search(rf"<{t}\b[^>]*\b{re.escape(attr)}\s*=\s*[\"']([^\"']+)[\"']", blob, re.IGNORECASE)
        return html.unescape(m.group(1)).strip() if m else ""
    m = re.search(rf"<{t}\b[^>]*>(.*?)</{t}\s*>", blob, re.IGNORECASE | re.DOTALL)
    return sanitize_text(m.group(1)) if m else ""


def extract_item_blocks(xml: str, limit: int = 12) -> List[str]:
    """Raw <item>...</item> blocks, in document order."""
    if not xml:
        return []
    return re.findall(r"<item\b[^>]*>(.*?)</item\s*>", xml, re.IGNORECASE | re.DOTALL)[:limit]


def keyword_pattern(keywords: List[str]) -> Optional[re.Pattern]:
    """Word-boundary, case-insensitive alternation of keywords (None when empty)."""
    words = [re.escape(k.strip()) for k in keywords if k and k.strip()]
    if not words:
        return None
    return re.compile(r"\b(?:" + "|".join(words) + r")\b", re.IGNORECASE)


def safe_trim(text: str, limit: int) -> str:
    """Trim to at most limit characters, preferring a word boundary."""
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    cut = text[:limit]
    space = cut.rfind(" ")
    if space > limit // 2:
        cut = cut[:space]
    return cut.rstrip(" ,;:-")
