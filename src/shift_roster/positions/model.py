from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Position:
    """Domain entity: a position from the external catalog (e.g. Barista, Cashier)."""

    position_id: int
    name: str
    color: Optional[str] = None
