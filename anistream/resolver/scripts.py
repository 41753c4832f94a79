"""
Helpers for digging media URLs out of inline player scripts.

Player pages rarely put the stream in markup. It usually sits in a JW Player
style ``sources: [{file: ...}]`` block or in a variable assignment, often
wrapped in a Dean Edwards ``eval(function(p,a,c,k,e,d)...)`` packer.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"

_PACKED = re.compile(
    r"eval\(function\(p,a,c,k,e,[dr]\).*?\}\(\s*"
    r"'(?P<payload>(?:[^'\\]|\\.)*)'\s*,\s*(?P<radix>\d+)\s*,\s*(?P<count>\d+)\s*,\s*"
    r"'(?P<words>(?:[^'\\]|\\.)*)'\.split\('\|'\)",
    re.DOTALL,
)
_WORD = re.compile(r"\b\w+\b")

_JW_SOURCE_OBJECT = re.compile(
    r"sources\s*[:=]\s*\[(?P<body>.*?)\]", re.DOTALL | re.IGNORECASE
)
_OBJECT = re.compile(r"\{(?P<body>[^{}]*)\}")
_FILE_FIELD = re.compile(r"""["']?file["']?\s*:\s*["'](?P<url>[^"']+)["']""")
_LABEL_FIELD = re.compile(r"""["']?label["']?\s*:\s*["'](?P<label>[^"']+)["']""")

_SINGLE_URL_PATTERNS = (
    re.compile(r"""["']?file["']?\s*:\s*["'](?P<url>[^"']+\.m3u8[^"']*)["']"""),
    re.compile(r"""\bsource\s*=\s*["'](?P<url>[^"']+\.(?:m3u8|mp4)[^"']*)["']"""),
    re.compile(r"""["'](?P<url>https?://[^"'\s]+\.m3u8[^"'\s]*)["']"""),
    re.compile(r"""["'](?P<url>https?://[^"'\s]+\.mp4[^"'\s]*)["']"""),
)

MediaHit = Tuple[str, Optional[str]]


def _decode_token(token: str, radix: int) -> Optional[int]:
    value = 0
    for char in token:
        index = _ALPHABET.find(char)
        if index < 0 or index >= radix:
            return None
        value = value * radix + index
    return value


def _unescape(value: str) -> str:
    return value.replace("\\'", "'").replace("\\\\", "\\")


def unpack(script: str) -> Optional[str]:
    """Expand a p,a,c,k,e,d packed script; None when the script is not packed."""

    match = _PACKED.search(script)
    if not match:
        return None

    payload = _unescape(match.group("payload"))
    radix = int(match.group("radix"))
    words = _unescape(match.group("words")).split("|")
    if radix < 2 or radix > len(_ALPHABET):
        return None

    def _replace(word_match: re.Match) -> str:
        token = word_match.group(0)
        index = _decode_token(token, radix)
        if index is None or index >= len(words) or not words[index]:
            return token
        return words[index]

    return _WORD.sub(_replace, payload)


def expand_scripts(scripts: Iterable[str]) -> List[str]:
    """Return every script followed by its unpacked form, when it has one."""

    expanded: List[str] = []
    for script in scripts:
        expanded.append(script)
        unpacked = unpack(script)
        if unpacked:
            expanded.append(unpacked)
    return expanded


def find_jw_sources(text: str) -> List[MediaHit]:
    hits: List[MediaHit] = []
    for block in _JW_SOURCE_OBJECT.finditer(text):
        for obj in _OBJECT.finditer(block.group("body")):
            file_match = _FILE_FIELD.search(obj.group("body"))
            if not file_match:
                continue
            label_match = _LABEL_FIELD.search(obj.group("body"))
            hits.append((file_match.group("url"), label_match.group("label") if label_match else None))
    return hits


def find_media(texts: Iterable[str]) -> List[MediaHit]:
    """Scan script bodies for media URLs, preferring structured JW sources."""

    texts = list(texts)
    for text in texts:
        hits = find_jw_sources(text)
        if hits:
            return hits

    for pattern in _SINGLE_URL_PATTERNS:
        for text in texts:
            match = pattern.search(text)
            if match:
                return [(match.group("url").replace("\\/", "/"), None)]
    return []
