"""
URL rewrite map.

A migration run produces a flat map from each original image URL to its new
URL. Content that still hard-codes the old URLs is fixed up through
UrlRewriter: single lookups for code that builds pages, and bulk text
replacement for data files and copy.
"""

import json
import logging
import re
from pathlib import Path
from typing import Iterable, Union

from .models import MigrationResult

logger = logging.getLogger(__name__)


def build_url_mapping(results: Iterable[MigrationResult]) -> dict[str, str]:
    """
    Map original URL -> new URL for every successful result.

    If a source URL appears more than once, the last result wins.
    """
    mapping: dict[str, str] = {}
    for result in results:
        if result.success and result.new_url and result.original_url:
            mapping[result.original_url] = result.new_url
    return mapping


class UrlRewriter:
    """Applies a rewrite map to URLs and text."""

    def __init__(self, mapping: dict[str, str]) -> None:
        self._mapping = dict(mapping)
        self._pattern = None
        if self._mapping:
            # longest first so a URL that prefixes another never wins the match
            sources = sorted(self._mapping, key=len, reverse=True)
            self._pattern = re.compile("|".join(re.escape(source) for source in sources))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "UrlRewriter":
        """
        Load a mapping artifact.

        A missing file means nothing has been migrated yet; URLs pass through.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(
                "URL mapping not available yet, using original URLs",
                extra={"path": str(path)}
            )
            return cls({})

        with open(path, "r", encoding="utf-8") as f:
            mapping = json.load(f)

        if not isinstance(mapping, dict):
            raise ValueError(f"URL mapping must be a JSON object: {path}")

        return cls(mapping)

    @property
    def mapping(self) -> dict[str, str]:
        return dict(self._mapping)

    def rewrite(self, url: str) -> str:
        """The migrated URL, or the input when it was not migrated."""
        return self._mapping.get(url, url)

    def rewrite_many(self, urls: Iterable[str]) -> list[str]:
        return [self.rewrite(url) for url in urls]

    def is_migrated(self, url: str) -> bool:
        return url in self._mapping

    def rewrite_text(self, text: str) -> str:
        """Replace every occurrence of a mapped URL inside `text`."""
        if self._pattern is None:
            return text
        return self._pattern.sub(lambda match: self._mapping[match.group(0)], text)

    def __len__(self) -> int:
        return len(self._mapping)
