"""
Accept-Language based locale detection.

Parses "fr-CH, fr;q=0.9, en;q=0.8, *;q=0.5" into weighted tags and returns
the best installed language. An exact tag match wins over a primary-subtag
match ("fr-CH" accepts an installed "fr", "fr" accepts an installed "fr-FR").
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)


def parse_accept_language(header: str) -> list[tuple[str, float]]:
    """Return (tag, q) pairs, highest q first, header order kept for ties."""
    parsed: list[tuple[int, str, float]] = []
    for index, part in enumerate(header.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        tag = pieces[0].lower().replace("_", "-")
        if not tag:
            continue
        q = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    q = float(param[2:])
                except ValueError:
                    q = 0.0
        if q <= 0:
            continue
        parsed.append((index, tag, q))

    parsed.sort(key=lambda item: (-item[2], item[0]))
    return [(tag, q) for _, tag, q in parsed]


class AcceptLanguageDetector:
    def __init__(self, installed: Iterable[str], default: str | None = None) -> None:
        # normalized tag -> configured name
        self._installed = {lang.lower().replace("_", "-"): lang for lang in installed}
        self.default = default

    def detect(self, accept_language: str) -> str | None:
        for tag, _ in parse_accept_language(accept_language):
            if tag == "*":
                return self.default or next(iter(self._installed.values()), None)
            if tag in self._installed:
                return self._installed[tag]
            primary = tag.split("-")[0]
            for norm, lang in self._installed.items():
                if norm == primary or norm.split("-")[0] == primary:
                    return lang

        logger.debug("No installed language matches %r", accept_language)
        return self.default
