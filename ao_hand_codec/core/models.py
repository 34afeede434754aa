"""
Domain Models for the AO Hand Fracture Codec

All models are immutable dataclasses. Selections in particular are values:
every cascade transition returns a new Selection instead of mutating one, so a
partially answered classification can be kept, compared and replayed freely.

Model Hierarchy:
    Option              → One (key, label) choice offered at a cascade step
    BoneOption          → A selectable bone (carpal bone, or the implied long bone)
    TypeContext         → Location context needed to pick a type table
    Selection           → Answers given so far for one fracture
    StepPrompt          → What the cascade asks next, with its options
    FractureDetails     → Structured fields behind a committed code
    FractureEntry       → A committed, fully classified fracture
    ParsedCode          → Structural decode of a code string
    CodeValidationResult → Outcome of validating a code string

Usage:
    from ao_hand_codec.core.models import Selection
    from ao_hand_codec.core.enums import BoneCategory, SelectionField

    selection = Selection().with_answer(SelectionField.CATEGORY, BoneCategory.CRUSH)
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from ao_hand_codec.core.enums import BoneCategory, CascadeStep, SelectionField


# =============================================================================
# STAGE 1: OPTIONS
# =============================================================================


@dataclass(frozen=True)
class Option:
    """A single choice offered by the cascade (e.g. key "2", label "Index")."""

    key: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "label": self.label}


@dataclass(frozen=True)
class BoneOption:
    """
    A bone the clinician can select.

    For carpals this is one of the eight carpal bones; the three bones that
    share family 76 carry their sub-bone id. For the metacarpal, phalanx and
    crush categories there is exactly one option per category and it is
    selected together with the category.

    Attributes:
        id: Stable identifier (e.g. "scaphoid", "pisiform", "metacarpal")
        name: Display name
        family_code: Two-digit AO family code
        sub_bone_id: Sub-bone id within family 76, otherwise None
    """

    id: str
    name: str
    family_code: str
    sub_bone_id: Optional[str] = None


@dataclass(frozen=True)
class TypeContext:
    """Location context for looking up a fracture-type table."""

    sub_bone_id: Optional[str] = None
    segment: Optional[str] = None


# =============================================================================
# STAGE 2: SELECTION STATE
# =============================================================================
# One per fracture being classified. The dependency order lives in
# SelectionField; reset_from() derives what to clear from it.


# Attributes owned by each field, cleared together on reset
_FIELD_ATTRIBUTES: Dict[SelectionField, Tuple[str, ...]] = {
    SelectionField.CATEGORY: ("category",),
    SelectionField.BONE: ("bone",),
    SelectionField.FINGER: ("finger",),
    SelectionField.PHALANX: ("phalanx",),
    SelectionField.SEGMENT: ("segment",),
    SelectionField.TYPE: ("fracture_type",),
    SelectionField.QUALIFICATIONS: ("qualifications", "qualifications_confirmed"),
}


@dataclass(frozen=True)
class Selection:
    """
    Answers given so far for one fracture.

    What it does:
        Holds the cascade answers in dependency order (category → bone →
        finger → phalanx → segment → type → qualifications) and enforces the
        invariant that a field is unset whenever a field above it is unset or
        has just changed.

    Qualifications:
        `qualifications` holds the letters picked so far (used for the live
        code preview). `qualifications_confirmed` records that the optional
        qualifier question has been answered, either with letters or by
        skipping it, which is what allows the cascade to move on to review.

    Example:
        >>> s = Selection(category=BoneCategory.CARPAL, bone=scaphoid, fracture_type="B")
        >>> s.reset_from(SelectionField.TYPE).fracture_type is None
        True
    """

    category: Optional[BoneCategory] = None
    bone: Optional[BoneOption] = None
    finger: Optional[str] = None
    phalanx: Optional[str] = None
    segment: Optional[str] = None
    fracture_type: Optional[str] = None
    qualifications: Tuple[str, ...] = ()
    qualifications_confirmed: bool = False

    # -------------------------------------------------------------------------
    # 2.1 Derived Properties
    # -------------------------------------------------------------------------

    @property
    def family_code(self) -> Optional[str]:
        return self.bone.family_code if self.bone else None

    @property
    def sub_bone_id(self) -> Optional[str]:
        return self.bone.sub_bone_id if self.bone else None

    @property
    def is_empty(self) -> bool:
        return self == Selection()

    def value_of(self, selection_field: SelectionField) -> Any:
        """Current answer for a field (qualifications as a tuple)."""
        return getattr(self, _FIELD_ATTRIBUTES[selection_field][0])

    def is_answered(self, selection_field: SelectionField) -> bool:
        if selection_field is SelectionField.QUALIFICATIONS:
            return self.qualifications_confirmed
        return self.value_of(selection_field) is not None

    # -------------------------------------------------------------------------
    # 2.2 Immutable Updates
    # -------------------------------------------------------------------------

    def reset_from(self, selection_field: SelectionField) -> "Selection":
        """
        Clear a field and every field below it in the dependency order.

        Args:
            selection_field: First field to clear

        Returns:
            New Selection with the field and its downstream fields at defaults
        """
        defaults = {f.name: f.default for f in fields(self)}
        cleared: Dict[str, Any] = {}
        for downstream_field in selection_field.and_downstream():
            for attribute in _FIELD_ATTRIBUTES[downstream_field]:
                cleared[attribute] = defaults[attribute]
        return replace(self, **cleared)

    def with_answer(self, selection_field: SelectionField, value: Any) -> "Selection":
        """
        Answer a field, clearing everything strictly downstream of it.

        Answering QUALIFICATIONS takes an iterable of letters and marks the
        question as confirmed.
        """
        reset = self.reset_from(selection_field)
        if selection_field is SelectionField.QUALIFICATIONS:
            return replace(reset, qualifications=tuple(value), qualifications_confirmed=True)
        return replace(reset, **{_FIELD_ATTRIBUTES[selection_field][0]: value})

    def with_pending_qualifications(self, letters: Tuple[str, ...]) -> "Selection":
        """Replace the picked letters without confirming the question."""
        return replace(self, qualifications=tuple(letters), qualifications_confirmed=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for logging/debugging)."""
        return {
            "category": self.category.value if self.category else None,
            "bone": self.bone.id if self.bone else None,
            "family_code": self.family_code,
            "finger": self.finger,
            "phalanx": self.phalanx,
            "segment": self.segment,
            "type": self.fracture_type,
            "qualifications": list(self.qualifications),
            "qualifications_confirmed": self.qualifications_confirmed,
        }


# =============================================================================
# STAGE 3: CASCADE PROMPT
# =============================================================================


@dataclass(frozen=True)
class StepPrompt:
    """
    The next question of the cascade.

    Attributes:
        step: Current cascade step
        field: Selection field this step asks for (None at review)
        options: Legal answers, in display order (empty at review)
    """

    step: CascadeStep
    field: Optional[SelectionField] = None
    options: Tuple[Option, ...] = ()

    @property
    def option_keys(self) -> List[str]:
        return [option.key for option in self.options]

    @property
    def is_review(self) -> bool:
        return self.step is CascadeStep.REVIEW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "field": self.field.value if self.field else None,
            "options": [option.to_dict() for option in self.options],
        }


# =============================================================================
# STAGE 4: COMMITTED FRACTURE ENTRY
# =============================================================================
# Serialised in the camelCase record shape stored with a case. from_dict also
# accepts snake_case keys.


def _qualifications_from_record(value: Any) -> Tuple[str, ...]:
    """Stored qualifier letters; a bare string is kept as a single element."""
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


@dataclass(frozen=True)
class FractureDetails:
    """Structured fields behind a committed AO code."""

    family_code: str
    fracture_type: Optional[str] = None
    sub_bone_id: Optional[str] = None
    finger: Optional[str] = None
    phalanx: Optional[str] = None
    segment: Optional[str] = None
    qualifications: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored record shape, omitting unset fields."""
        data: Dict[str, Any] = {"familyCode": self.family_code}
        optional = {
            "type": self.fracture_type,
            "subBoneId": self.sub_bone_id,
            "finger": self.finger,
            "phalanx": self.phalanx,
            "segment": self.segment,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        if self.qualifications:
            data["qualifications"] = list(self.qualifications)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FractureDetails":
        return cls(
            family_code=data.get("familyCode", data.get("family_code", "")),
            fracture_type=data.get("type", data.get("fracture_type")),
            sub_bone_id=data.get("subBoneId", data.get("sub_bone_id")),
            finger=data.get("finger"),
            phalanx=data.get("phalanx"),
            segment=data.get("segment"),
            qualifications=_qualifications_from_record(data.get("qualifications")),
        )


@dataclass(frozen=True)
class FractureEntry:
    """
    One committed, fully classified fracture belonging to a case.

    What it does:
        Carries the final AO code together with the bone identity and the
        structured selection it was generated from.

    Lifecycle:
        Created by a capture session when a complete selection is committed.
        Never modified afterwards; the caller may replace it wholesale or
        remove it from the case's fracture list.

    Attributes:
        id: Unique entry id
        bone_id: Diagram bone id (e.g. "scaphoid", "mc2", "dp1", "crush")
        bone_name: Display name (e.g. "Index Metacarpal")
        ao_code: Canonical AO code (e.g. "77.2.2B")
        details: Structured fields behind the code
    """

    id: str
    bone_id: str
    bone_name: str
    ao_code: str
    details: FractureDetails

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "boneId": self.bone_id,
            "boneName": self.bone_name,
            "aoCode": self.ao_code,
            "details": self.details.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FractureEntry":
        """Create from a stored record (camelCase or snake_case keys)."""
        return cls(
            id=str(data.get("id", "")),
            bone_id=data.get("boneId", data.get("bone_id", "")),
            bone_name=data.get("boneName", data.get("bone_name", "")),
            ao_code=data.get("aoCode", data.get("ao_code", "")),
            details=FractureDetails.from_dict(data.get("details") or {}),
        )


# =============================================================================
# STAGE 5: DECODING AND VALIDATION RESULTS
# =============================================================================


@dataclass(frozen=True)
class ParsedCode:
    """
    Structural decode of an AO code string.

    Produced from the grammar alone; membership of each field in the
    taxonomy is checked separately by the validator.
    """

    family_code: str
    bone_name: str
    fracture_type: Optional[str] = None
    sub_bone_id: Optional[str] = None
    finger: Optional[str] = None
    phalanx: Optional[str] = None
    segment: Optional[str] = None
    qualifications: Tuple[str, ...] = ()

    def to_details(self) -> FractureDetails:
        return FractureDetails(
            family_code=self.family_code,
            fracture_type=self.fracture_type,
            sub_bone_id=self.sub_bone_id,
            finger=self.finger,
            phalanx=self.phalanx,
            segment=self.segment,
            qualifications=self.qualifications,
        )


@dataclass(frozen=True)
class CodeValidationResult:
    """
    Result of validating an AO code string.

    Attributes:
        valid: Whether the code is structurally consistent with the taxonomy
        reason: Why the code is invalid (None when valid)
        parsed: Structural decode, when the grammar matched
    """

    valid: bool
    reason: Optional[str] = None
    parsed: Optional[ParsedCode] = None

    @classmethod
    def ok(cls, parsed: ParsedCode) -> "CodeValidationResult":
        return cls(valid=True, parsed=parsed)

    @classmethod
    def fail(cls, reason: str, parsed: Optional[ParsedCode] = None) -> "CodeValidationResult":
        return cls(valid=False, reason=reason, parsed=parsed)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"valid": self.valid}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


# Entries committed in one case, in commit order
FractureList = List[FractureEntry]

__all__ = [
    "Option",
    "BoneOption",
    "TypeContext",
    "Selection",
    "StepPrompt",
    "FractureDetails",
    "FractureEntry",
    "FractureList",
    "ParsedCode",
    "CodeValidationResult",
]
