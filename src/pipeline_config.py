"""Pipeline configuration: flush reasons and the PageLayout dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FlushReason(str, Enum):
    """Why a call's buffered captions were flushed."""

    ENDED = "ended"
    CAPTIONS_STOPPED = "captions-stopped"
    TEARDOWN = "component-unmount"


@dataclass(frozen=True)
class PageLayout:
    """Immutable page geometry for rendered minutes.

    Defaults describe an A4 page in points with Helvetica 12 pt text.
    """

    width: float = 595.28
    height: float = 841.89
    margin: float = 40.0
    font_name: str = "Helvetica"
    font_size: float = 12.0
    line_height: float = 18.0

    @property
    def max_line_width(self) -> float:
        return self.width - self.margin * 2

    @property
    def top(self) -> float:
        return self.height - self.margin
