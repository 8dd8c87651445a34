"""JSON helpers for newline-delimited protocol frames."""

from __future__ import annotations

import json
from typing import Any


def dumps_frame(obj: Any) -> str:
    # Compact and ASCII-only: one frame is one line and encodes on any stdout,
    # lone surrogates from client input included.
    return json.dumps(obj, separators=(",", ":"))


def loads_frame(frame: str) -> Any:
    return json.loads(frame)
