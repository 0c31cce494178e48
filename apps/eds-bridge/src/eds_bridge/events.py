from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# gdbus prints a string in double quotes when its text holds a single quote.
_QUOTED_STRING_PATTERN = re.compile(r"'([^'\\]*(?:\\.[^'\\]*)*)'" r'|"([^"\\]*(?:\\.[^"\\]*)*)"')
_BARE_VEVENT_PATTERN = re.compile(r"BEGIN:VEVENT.*?END:VEVENT", re.DOTALL)


def normalize_escaped_newlines(value: str) -> str:
    """Turn escaped \\r\\n, \\n and \\r sequences into real newlines, CRLF first."""
    return value.replace("\\r\\n", "\n").replace("\\n", "\n").replace("\\r", "\n")


def _holds_vevent(payload: str) -> bool:
    begin = payload.find("BEGIN:VEVENT")
    return begin >= 0 and payload.find("END:VEVENT", begin) >= 0


def _quoted_payloads(raw: str) -> list[str]:
    payloads: list[str] = []
    for match in _QUOTED_STRING_PATTERN.finditer(raw):
        if match.group(1) is not None:
            payload = match.group(1).replace("\\'", "'")
        else:
            payload = match.group(2).replace('\\"', '"')
        if _holds_vevent(payload):
            payloads.append(payload)
    return payloads


def extract_vevents(raw: str) -> list[str]:
    """Pull VEVENT blocks out of a stringified array-of-strings reply.

    Blocks are returned in source order without deduplication. Replies that
    carry no quoted strings are scanned for bare BEGIN/END spans instead.
    """
    blocks = [normalize_escaped_newlines(payload) for payload in _quoted_payloads(raw)]
    if not blocks:
        blocks = [normalize_escaped_newlines(match.group(0)) for match in _BARE_VEVENT_PATTERN.finditer(raw)]
    logger.debug("vevent_blocks_extracted count=%s", len(blocks))
    return blocks
