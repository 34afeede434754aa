"""
AO Code Validator - Structural Consistency Checks

Checks that an AO code string is well-formed for its bone family and that
every location and type component exists in the classification table. It
does not judge clinical correctness.

Check Order (first failure wins):
    1. Input is a non-empty string
    2. Leading two-digit family code exists
    3. Code matches the grammar of the family's kind
    4. Sub-bone / finger / phalanx / segment exist (thumb has no middle phalanx)
    5. Type exists in the table that applies to that location
    6. Qualifiers: declared by the family, supported by the type, known, unique

Reason Prefixes:
    NOT_A_STRING, EMPTY_CODE, BAD_FAMILY_CODE, UNKNOWN_FAMILY, BAD_FORMAT,
    UNKNOWN_SUB_BONE, UNKNOWN_FINGER, UNKNOWN_PHALANX, EXCLUDED_PHALANX,
    UNKNOWN_SEGMENT, UNKNOWN_TYPE, QUALIFICATIONS_NOT_DECLARED,
    QUALIFICATIONS_NOT_SUPPORTED, UNKNOWN_QUALIFICATION, DUPLICATE_QUALIFICATION

Pipeline Position:
    Taxonomy → Cascade → Generation → [Validation] → Session commit
                                       ^^^^^^^^^^^^
                                       You are here

Usage:
    from ao_hand_codec.validation import validate

    result = validate("72B(b)")
    if not result.valid:
        print(result.reason)
"""

import re
from typing import Any, Dict, Optional, Pattern

from loguru import logger

from ao_hand_codec.core.enums import BoneKind
from ao_hand_codec.core.models import CodeValidationResult, ParsedCode, Selection, TypeContext
from ao_hand_codec.taxonomy.families import (
    BoneFamily,
    CarpalSingleFamily,
    CrushFamily,
    LongBoneFamily,
    SubBoneCarpalFamily,
)
from ao_hand_codec.taxonomy.repository import BoneTaxonomy, default_taxonomy


# =============================================================================
# STAGE 1: GRAMMAR PER KIND
# =============================================================================

# Grammars are applied with fullmatch, so no trailing newline or whitespace is accepted
_FAMILY_PREFIX = re.compile(r"([0-9]{2})")

_GRAMMARS: Dict[BoneKind, Pattern] = {
    BoneKind.CARPAL_SINGLE: re.compile(
        r"(?P<family>[0-9]{2})(?P<type>[A-Z])(?:\((?P<qualifications>[a-z](?:,[a-z])*)\))?"
    ),
    BoneKind.CARPAL_OTHER_WITH_SUBBONE: re.compile(
        r"(?P<family>[0-9]{2})\.(?P<sub_bone>[0-9]+)\.(?P<type>[A-Z])"
    ),
    BoneKind.METACARPAL_LONG_BONE: re.compile(
        r"(?P<family>[0-9]{2})\.(?P<finger>[0-9]+)\.(?P<segment>[0-9]+)(?P<type>[A-Z])"
    ),
    BoneKind.PHALANX_LONG_BONE: re.compile(
        r"(?P<family>[0-9]{2})\.(?P<finger>[0-9]+)\.(?P<phalanx>[0-9]+)\.(?P<segment>[0-9]+)(?P<type>[A-Z])"
    ),
    BoneKind.CRUSH_MULTIPLE: re.compile(r"(?P<family>[0-9]{2})"),
}

# Shown in BAD_FORMAT reasons
_GRAMMAR_HINTS: Dict[BoneKind, str] = {
    BoneKind.CARPAL_SINGLE: "FFT or FFT(q,...)",
    BoneKind.CARPAL_OTHER_WITH_SUBBONE: "FF.S.T",
    BoneKind.METACARPAL_LONG_BONE: "FF.finger.segmentT",
    BoneKind.PHALANX_LONG_BONE: "FF.finger.phalanx.segmentT",
    BoneKind.CRUSH_MULTIPLE: "FF",
}


# =============================================================================
# STAGE 2: STRUCTURAL DECODE
# =============================================================================


def _bone_name(taxonomy: BoneTaxonomy, family: BoneFamily, groups: Dict[str, Any]) -> str:
    if isinstance(family, SubBoneCarpalFamily):
        sub_bone = family.sub_bones.get(groups.get("sub_bone") or "")
        return sub_bone.name if sub_bone else family.name
    if isinstance(family, LongBoneFamily):
        selection = Selection(
            category=family.kind.category,
            bone=taxonomy.implied_bone(family.kind.category),
            finger=groups.get("finger"),
            phalanx=groups.get("phalanx"),
        )
        return taxonomy.bone_name(selection) or family.name
    return family.name


def _decode(code: str, family: BoneFamily, taxonomy: BoneTaxonomy) -> Optional[ParsedCode]:
    match = _GRAMMARS[family.kind].fullmatch(code)
    if match is None:
        return None
    groups = match.groupdict()
    if isinstance(family, CrushFamily) and code != family.code:
        return None
    raw_qualifications = groups.get("qualifications")
    return ParsedCode(
        family_code=family.family_code,
        bone_name=_bone_name(taxonomy, family, groups),
        fracture_type=groups.get("type"),
        sub_bone_id=groups.get("sub_bone"),
        finger=groups.get("finger"),
        phalanx=groups.get("phalanx"),
        segment=groups.get("segment"),
        qualifications=tuple(raw_qualifications.split(",")) if raw_qualifications else (),
    )


def parse_code(code: Any, taxonomy: Optional[BoneTaxonomy] = None) -> Optional[ParsedCode]:
    """
    Decode a code into its fields using the grammar alone.

    Component membership is not checked; use validate() for that.

    Returns:
        ParsedCode, or None if the family is unknown or the grammar does not match
    """
    if not isinstance(code, str):
        return None
    prefix = _FAMILY_PREFIX.match(code)
    if prefix is None:
        return None
    taxonomy = taxonomy or default_taxonomy()
    family = taxonomy.lookup_family(prefix.group(1))
    if family is None:
        return None
    return _decode(code, family, taxonomy)


# =============================================================================
# STAGE 3: MEMBERSHIP CHECKS
# =============================================================================


def _check_location(family: BoneFamily, parsed: ParsedCode) -> Optional[str]:
    if isinstance(family, SubBoneCarpalFamily) and parsed.sub_bone_id not in family.sub_bones:
        return f"UNKNOWN_SUB_BONE: Family {family.family_code} has no sub-bone '{parsed.sub_bone_id}'"

    if isinstance(family, LongBoneFamily):
        if parsed.finger not in family.fingers:
            return f"UNKNOWN_FINGER: Family {family.family_code} has no finger '{parsed.finger}'"
        if family.has_phalanges:
            if parsed.phalanx not in family.phalanges:
                return f"UNKNOWN_PHALANX: Family {family.family_code} has no phalanx '{parsed.phalanx}'"
            if parsed.phalanx not in family.phalanges_for(parsed.finger):
                return (
                    f"EXCLUDED_PHALANX: {family.fingers[parsed.finger]} has no "
                    f"{family.phalanges[parsed.phalanx].lower()} phalanx"
                )
        if parsed.segment not in family.segments:
            return f"UNKNOWN_SEGMENT: Family {family.family_code} has no segment '{parsed.segment}'"
    return None


def _check_type(taxonomy: BoneTaxonomy, family: BoneFamily, parsed: ParsedCode) -> Optional[str]:
    if isinstance(family, CrushFamily):
        return None
    context = TypeContext(sub_bone_id=parsed.sub_bone_id, segment=parsed.segment)
    if parsed.fracture_type not in taxonomy.type_table(family, context):
        return f"UNKNOWN_TYPE: Type '{parsed.fracture_type}' does not apply to {parsed.bone_name}"
    return None


def _check_qualifications(family: BoneFamily, parsed: ParsedCode) -> Optional[str]:
    if not parsed.qualifications:
        return None
    if not isinstance(family, CarpalSingleFamily) or family.qualifications is None:
        return f"QUALIFICATIONS_NOT_DECLARED: {family.name} does not take qualifications"
    if not family.supports_qualifications(parsed.fracture_type):
        return (
            f"QUALIFICATIONS_NOT_SUPPORTED: Type {parsed.fracture_type} of "
            f"{family.name} does not take qualifications"
        )
    seen = set()
    for letter in parsed.qualifications:
        if letter not in family.qualifications.options:
            return f"UNKNOWN_QUALIFICATION: '{letter}' is not a {family.name} qualification"
        if letter in seen:
            return f"DUPLICATE_QUALIFICATION: '{letter}' appears more than once"
        seen.add(letter)
    return None


# =============================================================================
# STAGE 4: PUBLIC API
# =============================================================================


def validate(code: Any, taxonomy: Optional[BoneTaxonomy] = None) -> CodeValidationResult:
    """
    Validate an AO code against the classification table.

    Never raises; any input, including non-strings, yields a result.

    Args:
        code: Candidate code (e.g. "77.2.2B")
        taxonomy: Classification table (default: the process-wide taxonomy)

    Returns:
        CodeValidationResult with valid=True and the decode, or valid=False
        and a reason starting with one of the reason prefixes
    """
    if not isinstance(code, str):
        return CodeValidationResult.fail(f"NOT_A_STRING: Expected a string, got {type(code).__name__}")
    if not code:
        return CodeValidationResult.fail("EMPTY_CODE: Code is empty")

    prefix = _FAMILY_PREFIX.match(code)
    if prefix is None:
        return CodeValidationResult.fail(
            f"BAD_FAMILY_CODE: '{code}' does not start with a two-digit family code"
        )

    taxonomy = taxonomy or default_taxonomy()
    family = taxonomy.lookup_family(prefix.group(1))
    if family is None:
        return CodeValidationResult.fail(f"UNKNOWN_FAMILY: Family code '{prefix.group(1)}' does not exist")

    parsed = _decode(code, family, taxonomy)
    if parsed is None:
        return CodeValidationResult.fail(
            f"BAD_FORMAT: '{code}' does not match {family.name} format {_GRAMMAR_HINTS[family.kind]}"
        )

    reason = (
        _check_location(family, parsed)
        or _check_type(taxonomy, family, parsed)
        or _check_qualifications(family, parsed)
    )
    if reason:
        logger.debug(f"Invalid AO code | Code: {code} | {reason}")
        return CodeValidationResult.fail(reason, parsed)
    return CodeValidationResult.ok(parsed)
