"""Quality labels, ranks and ordering of stream sources."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

from .models import StreamSource

DIRECT_LABEL = "direct"
DEFAULT_LABEL = "default"
UNRESOLVED_LABEL = "iframe/unresolved"

_TRAILING_INT = re.compile(r"(\d+)\s*p?\s*$", re.IGNORECASE)
_URL_RESOLUTION = re.compile(r"(?<!\d)(2160|1440|1080|720|576|480|360|240)(?:p|(?!\d))", re.IGNORECASE)
_DIMENSIONS = re.compile(r"(\d{3,4})\s*[xX]\s*(\d{3,4})")
_HLS = re.compile(r"\.m3u8(\?|#|$)", re.IGNORECASE)
_VIDEO_FILE = re.compile(r"\.(mp4|mkv|webm)(\?|#|$)", re.IGNORECASE)


def quality_rank(label: Optional[str]) -> int:
    """Parse the trailing integer of a label ("1080p" -> 1080); 0 otherwise."""

    if not label:
        return 0
    match = _TRAILING_INT.search(label.strip())
    if not match:
        return 0
    return int(match.group(1))


def label_from_url(url: str) -> Optional[str]:
    match = _URL_RESOLUTION.search(url)
    if match:
        return f"{match.group(1)}p"
    return None


def label_from_resolution(resolution: Optional[str]) -> Optional[str]:
    """Turn an HLS RESOLUTION attribute ("1280x720") into "720p"."""

    if not resolution:
        return None
    match = _DIMENSIONS.search(resolution)
    if match:
        return f"{match.group(2)}p"
    return None


def is_hls_url(url: str) -> bool:
    return bool(_HLS.search(url))


def is_media_url(url: str) -> bool:
    return bool(_VIDEO_FILE.search(url) or _HLS.search(url))


def make_source(url: str, label: str, *, is_hls: Optional[bool] = None) -> StreamSource:
    return StreamSource(
        url=url,
        quality_label=label,
        quality_rank=quality_rank(label),
        is_hls=is_hls_url(url) if is_hls is None else is_hls,
    )


def rank(sources: Iterable[StreamSource]) -> List[StreamSource]:
    """Order sources best-first by numeric quality; ties keep their incoming order."""

    return sorted(sources, key=lambda source: source.quality_rank, reverse=True)
