"""Compile the tag registry into a single anchor-matching regular expression."""

import logging
import re
from dataclasses import dataclass

from anchors.constants import DEFAULT_END_TAG
from anchors.errors import ConfigError, ParseError
from anchors.tags import TagDefinition, TagRegistry

logger = logging.getLogger(__name__)

# Capture groups, in order
GROUP_TAG = 1
GROUP_ATTRIBUTES = 2
GROUP_COMMENT = 3


@dataclass(frozen=True)
class CompiledMatcher:
    """A compiled anchor expression plus the end-tag convention it was built with.

    Rebuilding replaces the whole object; the pattern is never mutated, so a
    parse holding an old reference keeps working.
    """

    pattern: re.Pattern
    end_tag: str
    match_case: bool

    def resolve(self, token: str, registry: TagRegistry) -> tuple[TagDefinition, bool]:
        """Map a matched tag token to (definition, is_close).

        Registered names win over end tokens, so a tag that happens to start
        with the end prefix is still a start occurrence.
        """
        tag = registry.get(token)
        if tag is not None and self._same(tag.name, token):
            return tag, False
        if self._startswith(token, self.end_tag):
            base = registry.get(token[len(self.end_tag) :])
            if base is not None and base.is_region:
                return base, True
        raise ParseError(f"unresolvable tag token {token!r}")

    def _same(self, a: str, b: str) -> bool:
        return a == b if self.match_case else a.upper() == b.upper()

    def _startswith(self, token: str, prefix: str) -> bool:
        if self.match_case:
            return token.startswith(prefix)
        return token.upper().startswith(prefix.upper())


def _alternation(items: list[str], spaced: bool = False) -> str:
    """Join literal alternatives longest-first so prefixes never shadow longer items."""
    unique = sorted(set(items), key=lambda s: (-len(s), s))
    escaped = [re.escape(s) for s in unique]
    if spaced:
        # a literal blank in a separator accepts any run of blanks
        escaped = [s.replace(" ", " +") for s in escaped]
    return "|".join(escaped)


def compile_matcher(
    registry: TagRegistry,
    separators: list[str],
    prefixes: list[str],
    end_tag: str = DEFAULT_END_TAG,
    match_case: bool = False,
) -> CompiledMatcher:
    """Build the composite anchor expression.

    Raises ConfigError when there is nothing to match with.
    """
    tokens = [name for name in registry.names() if name] + registry.end_names(end_tag)
    if not tokens:
        raise ConfigError("At least one tag must be defined")
    separators = [s for s in separators if s]
    if not separators:
        raise ConfigError("At least one separator must be defined")
    prefixes = [p for p in prefixes if p]
    if not prefixes:
        raise ConfigError("At least one prefix must be defined")

    expression = (
        rf"(?:{_alternation(prefixes)})[ \t]*"
        rf"({_alternation(tokens)})"
        r"(?:\[([^\]\r\n]*)\])?"
        rf"(?:(?:{_alternation(separators, spaced=True)})([^\r\n]*))?"
        r"(?=\r|$)"
    )
    flags = re.MULTILINE if match_case else re.MULTILINE | re.IGNORECASE
    pattern = re.compile(expression, flags)
    logger.debug("Using matcher %s", pattern.pattern)
    return CompiledMatcher(pattern=pattern, end_tag=end_tag, match_case=match_case)
