"""
Cascade Events

One immutable event per clinician action. The controller's transition
function maps (selection, event) to a new selection.

Event Overview:
    SelectCategory        → Answer the first question (carpal / metacarpal / phalanx / crush)
    SelectBone            → Pick a carpal bone by id (e.g. "scaphoid", "pisiform")
    SelectFinger          → Finger id "1" (thumb) to "5" (little)
    SelectPhalanx         → Phalanx id "1" proximal, "2" middle, "3" distal
    SelectSegment         → Segment id "1" base, "2" shaft, "3" head
    SelectType            → Type letter "A" / "B" / "C"
    ToggleQualification   → Add or remove one qualifier letter
    ConfirmQualifications → Accept the picked qualifier letters
    SkipQualifications    → Continue without qualifiers
    GoBack                → Return to the previous question
    Reset                 → Start over with an empty selection
"""

from dataclasses import dataclass
from typing import Union

from ao_hand_codec.core.enums import BoneCategory, SelectionField


@dataclass(frozen=True)
class SelectCategory:
    category: Union[BoneCategory, str]


@dataclass(frozen=True)
class SelectBone:
    bone_id: str


@dataclass(frozen=True)
class SelectFinger:
    finger: str


@dataclass(frozen=True)
class SelectPhalanx:
    phalanx: str


@dataclass(frozen=True)
class SelectSegment:
    segment: str


@dataclass(frozen=True)
class SelectType:
    fracture_type: str


@dataclass(frozen=True)
class ToggleQualification:
    letter: str


@dataclass(frozen=True)
class ConfirmQualifications:
    pass


@dataclass(frozen=True)
class SkipQualifications:
    pass


@dataclass(frozen=True)
class GoBack:
    pass


@dataclass(frozen=True)
class Reset:
    pass


CascadeEvent = Union[
    SelectCategory,
    SelectBone,
    SelectFinger,
    SelectPhalanx,
    SelectSegment,
    SelectType,
    ToggleQualification,
    ConfirmQualifications,
    SkipQualifications,
    GoBack,
    Reset,
]

# Simple answer events: event class → (field answered, attribute holding the key)
ANSWER_EVENTS = {
    SelectFinger: (SelectionField.FINGER, "finger"),
    SelectPhalanx: (SelectionField.PHALANX, "phalanx"),
    SelectSegment: (SelectionField.SEGMENT, "segment"),
    SelectType: (SelectionField.TYPE, "fracture_type"),
}
