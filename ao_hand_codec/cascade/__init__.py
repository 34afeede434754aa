"""
Cascade Layer - Question Order and Transitions

Submodules:
    events.py     → Immutable clinician actions
    controller.py → CascadeController state machine + module-level shortcuts

Dependency Rule:
    This layer depends on: core, taxonomy
    This layer is used by: session
"""

from ao_hand_codec.cascade.controller import (
    CascadeController,
    back,
    is_complete,
    next_step,
    transition,
)
from ao_hand_codec.cascade.events import (
    CascadeEvent,
    ConfirmQualifications,
    GoBack,
    Reset,
    SelectBone,
    SelectCategory,
    SelectFinger,
    SelectPhalanx,
    SelectSegment,
    SelectType,
    SkipQualifications,
    ToggleQualification,
)

__all__ = [
    "CascadeController",
    "back",
    "is_complete",
    "next_step",
    "transition",
    "CascadeEvent",
    "ConfirmQualifications",
    "GoBack",
    "Reset",
    "SelectBone",
    "SelectCategory",
    "SelectFinger",
    "SelectPhalanx",
    "SelectSegment",
    "SelectType",
    "SkipQualifications",
    "ToggleQualification",
]
