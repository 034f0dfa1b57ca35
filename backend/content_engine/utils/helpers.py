"""공용 유틸리티 헬퍼입니다."""

import re
import unicodedata

_SLUG_STRIP = re.compile(r"[^\w\s-]")
_SLUG_SPACES = re.compile(r"[-\s]+")


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKC", value or "").strip().lower()
    normalized = _SLUG_STRIP.sub("", normalized)
    return _SLUG_SPACES.sub("-", normalized).strip("-_")
