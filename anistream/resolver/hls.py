"""HLS master playlist parsing."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin


@dataclass
class StreamVariant:
    url: str
    resolution: Optional[str] = None
    bandwidth: int = 0
    name: Optional[str] = None


def _attributes(line: str) -> dict[str, str]:
    _, _, raw = line.partition(":")
    attributes: dict[str, str] = {}
    key = ""
    value = ""
    in_quotes = False
    reading_key = True
    for char in raw:
        if reading_key:
            if char == "=":
                reading_key = False
            else:
                key += char
            continue
        if char == '"':
            in_quotes = not in_quotes
            continue
        if char == "," and not in_quotes:
            attributes[key.strip().upper()] = value
            key, value, reading_key = "", "", True
            continue
        value += char
    if key:
        attributes[key.strip().upper()] = value
    return attributes


def parse_master_playlist(master_url: str, content: str) -> List[StreamVariant]:
    """Return the variant streams listed in a master playlist, in file order."""

    if not content or "#EXT-X-STREAM-INF" not in content:
        return []

    lines = content.strip().splitlines()
    variants: List[StreamVariant] = []

    for idx, line in enumerate(lines):
        line = line.strip()
        if not line.startswith("#EXT-X-STREAM-INF"):
            continue
        if idx + 1 >= len(lines):
            continue

        next_line = lines[idx + 1].strip()
        if not next_line or next_line.startswith("#"):
            continue

        attributes = _attributes(line)
        try:
            bandwidth = int(attributes.get("BANDWIDTH", "0"))
        except ValueError:
            bandwidth = 0

        stream_url = next_line
        if not stream_url.lower().startswith("http"):
            stream_url = urljoin(master_url, stream_url)

        variants.append(
            StreamVariant(
                url=stream_url,
                resolution=attributes.get("RESOLUTION"),
                bandwidth=bandwidth,
                name=attributes.get("NAME"),
            )
        )

    return variants
