"""Logging options."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict


class LogConfig(BaseModel):
    """Where pipeline logs go and how they are rendered.

    The console gets JSON lines when ``serialize`` is set and plain text
    otherwise. A file, when ``file_path`` is given, always gets JSON lines.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: str = "INFO"
    console_output: bool = True
    # Any writable text stream; stderr when unset.
    console_stream: Any = None
    file_path: str | Path | None = None
    serialize: bool = True


__all__ = ["LogConfig"]
