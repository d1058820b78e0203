from __future__ import annotations

import logging
import re
from typing import Any


_EMAIL_RE = re.compile(r"(?<![\w.+-])[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_TOKEN_RE = re.compile(r"(?i)\b(bearer|token)\s+[A-Za-z0-9._~+/=-]{8,}")


def mask_sensitive(text: str) -> str:
    """Mask e-mail addresses and auth tokens in a string.

    Nothing of the original value is kept, not even a prefix.
    """

    if not text:
        return text

    text = _TOKEN_RE.sub(lambda match: f"{match.group(1)} ***TOKEN***", text)
    text = _EMAIL_RE.sub("***EMAIL***", text)
    return text


class MaskSensitiveFilter(logging.Filter):
    """Logging filter to mask e-mails and tokens in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except Exception:  # pragma: no cover
            message = str(getattr(record, "msg", ""))

        # Replace the formatted message and clear args to avoid double formatting.
        record.msg = mask_sensitive(str(message))
        record.args = ()

        for key in ("email", "user_email", "authorization"):
            if hasattr(record, key):
                value: Any = getattr(record, key)
                if isinstance(value, str):
                    setattr(record, key, mask_sensitive(value))

        return True
