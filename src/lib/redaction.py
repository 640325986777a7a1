"""Redaction utilities for logs.

Policies:
- Never log refresh tokens, in key=value form or inside the persisted JSON document
- Provide helpers to scrub common patterns before logging
"""
from __future__ import annotations

import re
from typing import Pattern

# Precompiled patterns (case-insensitive)
_TOKEN_KV: Pattern[str] = re.compile(r"(?i)\b(refresh_token|access_token|token|password|pwd)\s*=\s*[^;&\s]+")
# JSON fields such as "RefreshToken": "M.R3_BAY..."
_TOKEN_JSON: Pattern[str] = re.compile(r'(?i)("(?:refresh_?token|access_?token)"\s*:\s*)"[^"]*"')
# Authorization: Bearer <token>
_BEARER: Pattern[str] = re.compile(r"(?i)\b(bearer)\s+[A-Za-z0-9\-._~+/]+=*")


def redact(text: str | None) -> str:
    """Redact secrets in an arbitrary text string.

    Replacements:
    - refresh_token=*** / token=*** / password=*** (key=value)
    - "RefreshToken": "***" (JSON)
    - Bearer ***
    """
    if not text:
        return ""
    s = text
    s = _TOKEN_KV.sub(lambda m: f"{m.group(0).split('=')[0]}=***", s)
    s = _TOKEN_JSON.sub(lambda m: f'{m.group(1)}"***"', s)
    s = _BEARER.sub(lambda m: f"{m.group(1)} ***", s)
    return s
