"""
Term matching used for avoid-lists and forbidden-food checks.

Callers only talk to a matcher object, so the substring strategy below can
be replaced (tokenizing, stemming) without touching them.
"""

import re


def _normalize_text(value):
    return re.sub(r"\s+", " ", str(value or "").lower()).strip()


class SubstringMatcher:
    """Case-insensitive substring matching over a fixed vocabulary."""

    def first_match(self, text, terms):
        """Return the first term found inside text, or None."""
        haystack = _normalize_text(text)
        if not haystack:
            return None
        for term in terms or []:
            needle = _normalize_text(term)
            if needle and needle in haystack:
                return term
        return None

    def matches(self, text, terms):
        return self.first_match(text, terms) is not None


_default_matcher = None


def get_matcher():
    """Get or create the module-level default matcher."""
    global _default_matcher
    if _default_matcher is None:
        _default_matcher = SubstringMatcher()
    return _default_matcher
