"""
Bone Family Variants - Tagged Union of the AO Region 7 Table

Each family in the classification table is one of five variants, selected by
its `kind`. A variant carries only the fields that apply to it, so a carpal
family cannot accidentally be asked for a finger and a crush family has no
type table at all.

Variant Overview:
    CarpalSingleFamily   → 71-75, flat type table, optional qualifier table
    SubBoneCarpalFamily  → 76, type table per sub-bone
    LongBoneFamily       → 77 / 78, type table per segment (78 adds phalanges)
    CrushFamily          → 79, fixed code

Parsing:
    `family_from_dict()` turns one record of the JSON table into a variant.
    Unknown kinds and malformed records raise TaxonomyLoadError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ao_hand_codec.core.enums import BoneKind
from ao_hand_codec.core.exceptions import TaxonomyLoadError


# Ordered key → label table (dict insertion order is table order)
LabelTable = Dict[str, str]


# =============================================================================
# STAGE 1: SHARED BUILDING BLOCKS
# =============================================================================


@dataclass(frozen=True)
class FractureType:
    """One entry of a fracture-type table (e.g. "B" → "Simple fracture")."""

    label: str
    supports_qualifications: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "FractureType":
        # Sub-bone and segment tables store the bare label
        if isinstance(data, str):
            return cls(label=data)
        return cls(
            label=data["label"],
            supports_qualifications=bool(
                data.get("supports_qualifications", data.get("supportsQualifications", False))
            ),
        )


@dataclass(frozen=True)
class QualificationTable:
    """
    Qualifier letters a family declares.

    Attributes:
        format: Rendering convention (only "round_brackets_lowercase_letters" is used)
        options: Ordered letter → label table
    """

    format: str
    options: LabelTable = field(default_factory=dict)

    @property
    def letters(self) -> List[str]:
        return list(self.options.keys())

    def canonical(self, letters: Tuple[str, ...]) -> Tuple[str, ...]:
        """Known letters, de-duplicated, in table order."""
        picked = set(letters)
        return tuple(letter for letter in self.options if letter in picked)


# =============================================================================
# STAGE 2: FAMILY VARIANTS
# =============================================================================


@dataclass(frozen=True)
class CarpalSingleFamily:
    """A single carpal bone with one flat type table (71-75)."""

    family_code: str
    name: str
    types: Dict[str, FractureType]
    qualifications: Optional[QualificationTable] = None
    kind: BoneKind = BoneKind.CARPAL_SINGLE

    def supports_qualifications(self, fracture_type: Optional[str]) -> bool:
        """Whether qualifiers may follow the given type for this bone."""
        if self.qualifications is None or fracture_type is None:
            return False
        entry = self.types.get(fracture_type)
        return bool(entry and entry.supports_qualifications)


@dataclass(frozen=True)
class SubBone:
    """One of the bones grouped under family 76."""

    name: str
    types: Dict[str, FractureType]


@dataclass(frozen=True)
class SubBoneCarpalFamily:
    """Family 76: pisiform, triquetrum and trapezoid, each with its own types."""

    family_code: str
    name: str
    sub_bones: Dict[str, SubBone]
    kind: BoneKind = BoneKind.CARPAL_OTHER_WITH_SUBBONE


@dataclass(frozen=True)
class LongBoneFamily:
    """
    Metacarpals (77) or phalanges (78).

    Located by finger and segment; the phalanx variant additionally by
    phalanx. The type table depends on the segment: articular types for
    base and head, shaft types for the diaphysis.

    Attributes:
        fingers: Ordered finger id → label ("1" Thumb ... "5" Little)
        segments: Ordered segment id → label (base, shaft, head)
        type_rules_by_segment: Segment id → type table
        phalanges: Ordered phalanx id → label (phalanx kind only)
        excluded_phalanges: Finger id → phalanx ids that finger lacks
    """

    family_code: str
    name: str
    kind: BoneKind
    fingers: LabelTable
    segments: LabelTable
    type_rules_by_segment: Dict[str, Dict[str, FractureType]]
    phalanges: LabelTable = field(default_factory=dict)
    excluded_phalanges: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def has_phalanges(self) -> bool:
        return self.kind is BoneKind.PHALANX_LONG_BONE

    def phalanges_for(self, finger: Optional[str]) -> LabelTable:
        """Phalanges present on a finger (all of them when finger is None)."""
        excluded = self.excluded_phalanges.get(finger or "", ())
        return {key: label for key, label in self.phalanges.items() if key not in excluded}


@dataclass(frozen=True)
class CrushFamily:
    """Family 79: crushed or multiple fractures, coded without detail."""

    family_code: str
    name: str
    code: str
    kind: BoneKind = BoneKind.CRUSH_MULTIPLE


BoneFamily = Union[CarpalSingleFamily, SubBoneCarpalFamily, LongBoneFamily, CrushFamily]


# =============================================================================
# STAGE 3: PARSING FROM THE JSON TABLE
# =============================================================================


def _type_table(data: Dict[str, Any]) -> Dict[str, FractureType]:
    return {key: FractureType.from_dict(value) for key, value in data.items()}


def _parse_carpal_single(record: Dict[str, Any]) -> CarpalSingleFamily:
    qualifications = None
    if record.get("qualifications"):
        raw = record["qualifications"]
        qualifications = QualificationTable(
            format=raw.get("format", "round_brackets_lowercase_letters"),
            options=dict(raw.get("options", {})),
        )
    return CarpalSingleFamily(
        family_code=record["family_code"],
        name=record["name"],
        types=_type_table(record["types"]),
        qualifications=qualifications,
    )


def _parse_sub_bone_carpal(record: Dict[str, Any]) -> SubBoneCarpalFamily:
    sub_bones = {
        sub_id: SubBone(name=raw["name"], types=_type_table(raw["types"]))
        for sub_id, raw in record["sub_bones"].items()
    }
    return SubBoneCarpalFamily(
        family_code=record["family_code"],
        name=record["name"],
        sub_bones=sub_bones,
    )


def _parse_long_bone(record: Dict[str, Any], kind: BoneKind) -> LongBoneFamily:
    rules = {
        segment: _type_table(table)
        for segment, table in record["type_rules_by_segment"].items()
    }
    excluded = {
        finger: tuple(phalanges)
        for finger, phalanges in record.get("excluded_phalanges", {}).items()
    }
    return LongBoneFamily(
        family_code=record["family_code"],
        name=record["name"],
        kind=kind,
        fingers=dict(record["fingers"]),
        segments=dict(record["segments"]),
        type_rules_by_segment=rules,
        phalanges=dict(record.get("phalanges", {})),
        excluded_phalanges=excluded,
    )


def _parse_crush(record: Dict[str, Any]) -> CrushFamily:
    return CrushFamily(
        family_code=record["family_code"],
        name=record["name"],
        code=record.get("code", record["family_code"]),
    )


def family_from_dict(record: Dict[str, Any], source: str = "<memory>") -> BoneFamily:
    """
    Build a family variant from one record of the classification table.

    Args:
        record: JSON record with "family_code", "name", "kind" and kind fields
        source: Where the record came from (for error messages)

    Returns:
        The matching BoneFamily variant

    Raises:
        TaxonomyLoadError: If the kind is unknown or a required field is missing
    """
    raw_kind = record.get("kind")
    try:
        kind = BoneKind(raw_kind)
    except ValueError:
        raise TaxonomyLoadError(source, f"Unknown bone kind '{raw_kind}'")

    try:
        if kind is BoneKind.CARPAL_SINGLE:
            return _parse_carpal_single(record)
        if kind is BoneKind.CARPAL_OTHER_WITH_SUBBONE:
            return _parse_sub_bone_carpal(record)
        if kind.is_long_bone:
            return _parse_long_bone(record, kind)
        return _parse_crush(record)
    except (KeyError, TypeError, AttributeError) as e:
        raise TaxonomyLoadError(
            source, f"Malformed family {record.get('family_code', '?')}: missing or bad field {e}"
        )
