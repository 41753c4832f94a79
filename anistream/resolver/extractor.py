"""
Declarative HTML extraction.

Every scraping provider funnels its "is the target layout still what we
expect" risk through this module: callers describe what they want as CSS
selectors plus an attribute name and get plain strings (or None) back.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from .errors import MalformedDocument

TEXT = "text"
INNER_HTML = "html"


@dataclass(frozen=True)
class Selector:
    """A CSS selector and the attribute to read from the first match."""

    css: str
    attr: str = TEXT


SelectorSpec = Mapping[str, Union[Selector, str]]
ExtractedFields = Dict[str, Optional[str]]


def _as_selector(value: Union[Selector, str]) -> Selector:
    if isinstance(value, Selector):
        return value
    return Selector(css=value)


def parse(html: Union[str, bytes]) -> BeautifulSoup:
    """Parse markup, raising MalformedDocument when it is not a document at all."""

    if not isinstance(html, (str, bytes)):
        raise MalformedDocument(f"Expected markup, got {type(html).__name__}")
    if not html.strip():
        raise MalformedDocument("Empty document")
    try:
        return BeautifulSoup(html, "html.parser")
    except (ParserRejectedMarkup, AssertionError) as exc:
        raise MalformedDocument(f"Unparsable document: {exc}") from exc


def read(node: Tag, attr: str) -> Optional[str]:
    if attr == TEXT:
        value = node.get_text(" ", strip=True)
    elif attr == INNER_HTML:
        value = node.decode_contents()
    else:
        raw = node.get(attr)
        if raw is None:
            return None
        value = " ".join(raw) if isinstance(raw, list) else str(raw)
        value = value.strip()
    return value or None


def _select_first(root: Union[BeautifulSoup, Tag], selector: Selector) -> Optional[str]:
    try:
        node = root.select_one(selector.css)
    except SelectorSyntaxError:
        return None
    if node is None:
        return None
    return read(node, selector.attr)


def extract(html: Union[str, bytes, BeautifulSoup], selectors: SelectorSpec) -> ExtractedFields:
    """Return one value per field name; None where the selector matched nothing."""

    soup = html if isinstance(html, BeautifulSoup) else parse(html)
    return {name: _select_first(soup, _as_selector(spec)) for name, spec in selectors.items()}


def extract_rows(
    html: Union[str, bytes, BeautifulSoup],
    row_css: str,
    fields: SelectorSpec,
) -> List[ExtractedFields]:
    """Extract a field mapping for every element matching ``row_css``.

    Field selectors are evaluated relative to the row. An empty css string
    reads the attribute from the row element itself.
    """

    soup = html if isinstance(html, BeautifulSoup) else parse(html)
    try:
        rows = soup.select(row_css)
    except SelectorSyntaxError:
        return []

    extracted: List[ExtractedFields] = []
    for row in rows:
        values: ExtractedFields = {}
        for name, spec in fields.items():
            selector = _as_selector(spec)
            if not selector.css:
                values[name] = read(row, selector.attr)
            else:
                values[name] = _select_first(row, selector)
        extracted.append(values)
    return extracted


def script_texts(html: Union[str, bytes, BeautifulSoup]) -> List[str]:
    """Return the inline text of every <script> element, in document order."""

    soup = html if isinstance(html, BeautifulSoup) else parse(html)
    texts: List[str] = []
    for script in soup.find_all("script"):
        text = script.string or script.get_text()
        if text and text.strip():
            texts.append(text)
    return texts
