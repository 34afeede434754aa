"""
Enumerations for the AO Hand Fracture Codec

This module defines the enumeration types shared by the taxonomy, the code
generator, the validator and the cascade controller.

Enumeration Categories:
    BoneKind        → Classification "kind" of a bone family (tagged-union discriminant)
    BoneCategory    → First question of the cascade (carpal / metacarpal / phalanx / crush)
    SelectionField  → Fields of a selection, in dependency order
    CascadeStep     → Steps of the classification state machine
"""

from enum import Enum
from typing import List, Optional


# =============================================================================
# STAGE 1: BONE KIND ENUMERATION
# =============================================================================
# The discriminant of the bone family tagged union. Each kind determines which
# location fields are required and which rule table is consulted.


class BoneKind(str, Enum):
    """
    Classification kind of a bone family.

    What it does:
        Identifies which variant of the bone family tagged union a family is,
        and therefore which fields the cascade has to ask for.

    Kind Overview:
        CARPAL_SINGLE             → 71-75, flat type table (scaphoid adds qualifiers)
        CARPAL_OTHER_WITH_SUBBONE → 76, pisiform / triquetrum / trapezoid
        METACARPAL_LONG_BONE      → 77, finger + segment
        PHALANX_LONG_BONE         → 78, finger + phalanx + segment
        CRUSH_MULTIPLE            → 79, no further fields
    """

    CARPAL_SINGLE = "carpal_single"
    CARPAL_OTHER_WITH_SUBBONE = "carpal_other_with_subbone"
    METACARPAL_LONG_BONE = "metacarpal_long_bone"
    PHALANX_LONG_BONE = "phalanx_long_bone"
    CRUSH_MULTIPLE = "crush_multiple"

    @property
    def is_long_bone(self) -> bool:
        """Long bones are located by finger and segment."""
        return self in (BoneKind.METACARPAL_LONG_BONE, BoneKind.PHALANX_LONG_BONE)

    @property
    def is_carpal(self) -> bool:
        return self in (BoneKind.CARPAL_SINGLE, BoneKind.CARPAL_OTHER_WITH_SUBBONE)

    @property
    def category(self) -> "BoneCategory":
        """The cascade category under which families of this kind are offered."""
        if self.is_carpal:
            return BoneCategory.CARPAL
        if self is BoneKind.METACARPAL_LONG_BONE:
            return BoneCategory.METACARPAL
        if self is BoneKind.PHALANX_LONG_BONE:
            return BoneCategory.PHALANX
        return BoneCategory.CRUSH


# =============================================================================
# STAGE 2: BONE CATEGORY ENUMERATION
# =============================================================================


class BoneCategory(str, Enum):
    """
    Top-level bone category chosen at the start of the cascade.

    The metacarpal, phalanx and crush categories each contain exactly one
    bone family, so choosing them also fixes the bone. The carpal category
    needs a second answer (which carpal bone).
    """

    CARPAL = "carpal"
    METACARPAL = "metacarpal"
    PHALANX = "phalanx"
    CRUSH = "crush"

    @classmethod
    def from_string(cls, value: str) -> "BoneCategory":
        """
        Convert a string to BoneCategory with lenient matching.

        Accepts the category value, the member name, or the name of the bone
        kind that the category groups (e.g. "crush_multiple", "phalanx_long_bone").

        Raises:
            ValueError: If the string does not name a category
        """
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        for category in cls:
            if normalized in (category.value, category.name.lower()):
                return category
        for kind in BoneKind:
            if normalized == kind.value:
                return kind.category
        raise ValueError(
            f"Unknown bone category: '{value}'. Valid categories: {[c.value for c in cls]}"
        )


# =============================================================================
# STAGE 3: SELECTION FIELD ENUMERATION
# =============================================================================
# Declaration order IS the dependency order. Resetting a field clears every
# field declared after it.


class SelectionField(str, Enum):
    """Fields of a fracture selection, declared in dependency order."""

    CATEGORY = "category"
    BONE = "bone"
    FINGER = "finger"
    PHALANX = "phalanx"
    SEGMENT = "segment"
    TYPE = "type"
    QUALIFICATIONS = "qualifications"

    @classmethod
    def ordered(cls) -> List["SelectionField"]:
        return list(cls)

    @property
    def position(self) -> int:
        return SelectionField.ordered().index(self)

    def downstream(self) -> List["SelectionField"]:
        """Fields strictly below this one in the dependency order."""
        return SelectionField.ordered()[self.position + 1 :]

    def and_downstream(self) -> List["SelectionField"]:
        return SelectionField.ordered()[self.position :]


# =============================================================================
# STAGE 4: CASCADE STEP ENUMERATION
# =============================================================================


class CascadeStep(str, Enum):
    """
    Steps of the classification state machine.

    BONE_SELECT covers both the category question and, for carpals, the
    bone question. REVIEW is reached only once every field required by the
    bone kind is populated.
    """

    BONE_SELECT = "bone_select"
    FINGER_SELECT = "finger_select"
    PHALANX_SELECT = "phalanx_select"
    SEGMENT_SELECT = "segment_select"
    TYPE_SELECT = "type_select"
    QUALIFICATION_SELECT = "qualification_select"
    REVIEW = "review"

    @classmethod
    def for_field(cls, field: Optional[SelectionField]) -> "CascadeStep":
        """Step that asks the given field; None means nothing left to ask."""
        if field is None:
            return cls.REVIEW
        return _FIELD_TO_STEP[field]


_FIELD_TO_STEP = {
    SelectionField.CATEGORY: CascadeStep.BONE_SELECT,
    SelectionField.BONE: CascadeStep.BONE_SELECT,
    SelectionField.FINGER: CascadeStep.FINGER_SELECT,
    SelectionField.PHALANX: CascadeStep.PHALANX_SELECT,
    SelectionField.SEGMENT: CascadeStep.SEGMENT_SELECT,
    SelectionField.TYPE: CascadeStep.TYPE_SELECT,
    SelectionField.QUALIFICATIONS: CascadeStep.QUALIFICATION_SELECT,
}
