from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class Lead(str, Enum):
    I = "I"  # noqa: E741
    II = "II"
    III = "III"
    aVR = "aVR"
    aVL = "aVL"
    aVF = "aVF"
    V1 = "V1"
    V2 = "V2"
    V3 = "V3"
    V4 = "V4"
    V5 = "V5"
    V6 = "V6"

    @classmethod
    def parse(cls, name: str) -> Lead:
        """Case-insensitive lookup, e.g. ``"avr"`` -> ``Lead.aVR``."""
        for lead in cls:
            if lead.value.lower() == name.strip().lower():
                return lead
        raise ValueError(f"Unknown lead: {name!r}")


_PRECORDIAL = (Lead.V1, Lead.V2, Lead.V3, Lead.V4, Lead.V5, Lead.V6)


class LeadFormat(str, Enum):
    STANDARD = "standard"
    CABRERA = "cabrera"

    @property
    def leads(self) -> tuple[Lead, ...]:
        if self is LeadFormat.CABRERA:
            return (Lead.aVL, Lead.I, Lead.aVR, Lead.II, Lead.aVF, Lead.III) + _PRECORDIAL
        return (Lead.I, Lead.II, Lead.III, Lead.aVR, Lead.aVL, Lead.aVF) + _PRECORDIAL

    @property
    def inverts_avr(self) -> bool:
        return self is LeadFormat.CABRERA


class Layout(NamedTuple):
    """How the 12 leads are tiled on the paper: ``rows`` x ``cols``."""

    rows: int
    cols: int

    @classmethod
    def parse(cls, text: str) -> Layout:
        """Parse ``"6x2"`` style layout strings."""
        parts = text.lower().replace("×", "x").split("x")
        if len(parts) != 2:
            raise ValueError(f"Invalid layout {text!r}, expected ROWSxCOLS")
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError as e:
            raise ValueError(f"Invalid layout {text!r}, expected ROWSxCOLS") from e

    def __str__(self) -> str:
        return f"{self.rows}x{self.cols}"
