"""Parsing of `<display_index>:<refresh_rate>` command-line tokens."""

from __future__ import annotations

import re
from collections.abc import Iterable

from hzctl.core.errors import TokenParseError
from hzctl.core.model import DisplayConfig, DisplayTarget, ParseErrorKind

SEPARATOR = ":"
_DIGITS_RE = re.compile(r"[0-9]+")
_U32_MAX = 2**32 - 1


def _parse_u32(text: str, *, token: str, part: str) -> int:
    if not _DIGITS_RE.fullmatch(text):
        raise TokenParseError(token, ParseErrorKind.INVALID_INTEGER, part=part)
    value = int(text)
    if value > _U32_MAX:
        raise TokenParseError(token, ParseErrorKind.INVALID_INTEGER, part=part)
    return value


def parse_token(token: str) -> DisplayTarget:
    """Parse one raw token into a `DisplayTarget`.

    Raises `TokenParseError` whose `kind` names the rule the token broke.
    """
    separators = token.count(SEPARATOR)
    if separators == 0:
        raise TokenParseError(token, ParseErrorKind.NO_SEPARATOR)
    if separators > 1:
        raise TokenParseError(token, ParseErrorKind.TOO_MANY_SEPARATORS)

    index_text, _, rate_text = token.partition(SEPARATOR)
    if not index_text:
        raise TokenParseError(token, ParseErrorKind.MISSING_INDEX)
    if not rate_text:
        raise TokenParseError(token, ParseErrorKind.MISSING_RATE)

    index = _parse_u32(index_text, token=token, part="display index")
    refresh_rate = _parse_u32(rate_text, token=token, part="refresh rate")
    if refresh_rate == 0:
        raise TokenParseError(token, ParseErrorKind.ZERO_REFRESH_RATE)

    return DisplayTarget(index=index, config=DisplayConfig(refresh_rate=refresh_rate))


def parse_tokens(tokens: Iterable[str]) -> list[DisplayTarget]:
    """Parse every token in order, stopping at the first malformed one."""
    return [parse_token(token) for token in tokens]
