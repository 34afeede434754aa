"""
AO Code → SNOMED CT Search Term Suggestions

Suggests the search term (and a display name) a clinician would type into a
SNOMED CT terminology search for a classified fracture. The search itself
happens elsewhere; this module only builds the query.

Named patterns recognised:
    Scaphoid with one qualifier → proximal pole / waist / distal pole
    Hamate type A               → hook of hamate
    Thumb metacarpal base B / C → Bennett's / Rolando fracture
    Little metacarpal head      → Boxer's fracture
    Distal phalanx base type A  → Mallet finger

Usage:
    from ao_hand_codec.mapping import suggest_snomed_term

    suggestion = suggest_snomed_term("77.1.1B")
    suggestion.search_term   # "bennett fracture"
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional

from ao_hand_codec.core.models import ParsedCode
from ao_hand_codec.taxonomy.repository import BoneTaxonomy, default_taxonomy
from ao_hand_codec.validation.code_validator import parse_code


@dataclass(frozen=True)
class SnomedSuggestion:
    search_term: str
    display_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"searchTerm": self.search_term, "displayName": self.display_name}


# =============================================================================
# STAGE 1: TERM TABLES
# =============================================================================

_SINGLE_CARPALS: Dict[str, SnomedSuggestion] = {
    "71": SnomedSuggestion("fracture lunate", "Fracture of lunate bone"),
    "73": SnomedSuggestion("fracture capitate", "Fracture of capitate bone"),
    "75": SnomedSuggestion("fracture trapezium", "Fracture of trapezium bone"),
}

_SCAPHOID_QUALIFIERS: Dict[str, SnomedSuggestion] = {
    "a": SnomedSuggestion("fracture scaphoid proximal pole", "Fracture of proximal pole of scaphoid"),
    "b": SnomedSuggestion("fracture scaphoid waist", "Fracture of waist of scaphoid"),
    "c": SnomedSuggestion("fracture scaphoid distal pole", "Fracture of distal pole of scaphoid"),
}

_OTHER_CARPALS: Dict[str, SnomedSuggestion] = {
    "1": SnomedSuggestion("fracture pisiform", "Fracture of pisiform bone"),
    "2": SnomedSuggestion("fracture triquetrum", "Fracture of triquetral bone"),
    "3": SnomedSuggestion("fracture trapezoid", "Fracture of trapezoid bone"),
}

# finger id → (ordinal used in search, label used in display)
_METACARPAL_NAMES = {
    "1": ("first", "thumb (1st)"),
    "2": ("second", "index (2nd)"),
    "3": ("third", "middle (3rd)"),
    "4": ("fourth", "ring (4th)"),
    "5": ("fifth", "little (5th)"),
}

_DIGIT_NAMES = {
    "1": "thumb",
    "2": "index finger",
    "3": "middle finger",
    "4": "ring finger",
    "5": "little finger",
}

_PHALANX_NAMES = {"1": "proximal phalanx", "2": "middle phalanx", "3": "distal phalanx"}

_TYPE_QUALIFIERS = {"A": "simple", "B": "wedge", "C": "comminuted multifragmentary"}

_HAND_FRACTURE = SnomedSuggestion("fracture hand", "Fracture of hand")

# Morphology words describe long-bone fracture types only
_LONG_BONE_FAMILIES = ("77", "78")

# Location prefix of an incomplete long-bone code (e.g. "77.1.1", "78.2.3")
_PARTIAL_LONG_BONE = {
    "77": re.compile(r"77\.(?P<finger>[1-5])"),
    "78": re.compile(r"78\.(?P<finger>[1-5])\.(?P<phalanx>[1-3])"),
}


# =============================================================================
# STAGE 2: PER-FAMILY RULES
# =============================================================================


def _scaphoid(parsed: Optional[ParsedCode]) -> SnomedSuggestion:
    # A single qualifier names the site; several sites fall back to the bone
    if parsed and len(parsed.qualifications) == 1 and parsed.qualifications[0] in _SCAPHOID_QUALIFIERS:
        return _SCAPHOID_QUALIFIERS[parsed.qualifications[0]]
    return SnomedSuggestion("fracture scaphoid", "Fracture of scaphoid bone")


def _hamate(parsed: Optional[ParsedCode]) -> SnomedSuggestion:
    if parsed and parsed.fracture_type == "A":
        return SnomedSuggestion("fracture hamate hook", "Fracture of hook of hamate")
    return SnomedSuggestion("fracture hamate", "Fracture of hamate bone")


def _other_carpal(parsed: Optional[ParsedCode]) -> SnomedSuggestion:
    if parsed and parsed.sub_bone_id in _OTHER_CARPALS:
        return _OTHER_CARPALS[parsed.sub_bone_id]
    return SnomedSuggestion("fracture carpal", "Fracture of carpal bone")


def _metacarpal(parsed: Optional[ParsedCode]) -> SnomedSuggestion:
    if parsed is None or parsed.finger not in _METACARPAL_NAMES:
        return SnomedSuggestion("fracture metacarpal", "Fracture of metacarpal bone")

    if parsed.finger == "1" and parsed.segment == "1":
        if parsed.fracture_type == "B":
            return SnomedSuggestion("bennett fracture", "Bennett's fracture-dislocation of thumb")
        if parsed.fracture_type == "C":
            return SnomedSuggestion("rolando fracture", "Rolando fracture of thumb")
    if parsed.finger == "5" and parsed.segment == "3":
        return SnomedSuggestion("boxer fracture", "Boxer's fracture of 5th metacarpal")

    ordinal, label = _METACARPAL_NAMES[parsed.finger]
    return SnomedSuggestion(f"fracture {ordinal} metacarpal", f"Fracture of {label} metacarpal bone")


def _phalanx(parsed: Optional[ParsedCode]) -> SnomedSuggestion:
    if parsed is None or parsed.finger not in _DIGIT_NAMES or parsed.phalanx not in _PHALANX_NAMES:
        return SnomedSuggestion("fracture phalanx finger", "Fracture of phalanx of finger")

    if parsed.phalanx == "3" and parsed.segment == "1" and parsed.fracture_type == "A":
        return SnomedSuggestion("mallet finger", "Mallet finger injury")

    phalanx = _PHALANX_NAMES[parsed.phalanx]
    digit = _DIGIT_NAMES[parsed.finger]
    return SnomedSuggestion(f"fracture {phalanx} {digit}", f"Fracture of {phalanx} of {digit}")


def _partial_long_bone(code: str, taxonomy: BoneTaxonomy) -> Optional[ParsedCode]:
    """Finger (and phalanx) read from the prefix of a code that does not fully parse."""
    pattern = _PARTIAL_LONG_BONE.get(code[:2])
    match = pattern.match(code) if pattern else None
    family = taxonomy.lookup_family(code[:2])
    if match is None or family is None:
        return None
    return ParsedCode(
        family_code=family.family_code,
        bone_name=family.name,
        finger=match.group("finger"),
        phalanx=match.groupdict().get("phalanx"),
    )


_FAMILY_RULES = {
    "72": _scaphoid,
    "74": _hamate,
    "76": _other_carpal,
    "77": _metacarpal,
    "78": _phalanx,
}


# =============================================================================
# STAGE 3: PUBLIC API
# =============================================================================


def suggest_snomed_term(code: str, taxonomy: Optional[BoneTaxonomy] = None) -> SnomedSuggestion:
    """
    Suggested SNOMED CT search term for an AO code.

    Codes that do not parse still get a suggestion: finger-level for a
    long-bone code with a readable location prefix (e.g. "77.1.1"),
    family-level when the first two characters name a known family, and
    "fracture hand" otherwise.

    Args:
        code: AO code (e.g. "78.2.3.1A")
        taxonomy: Classification table used to decode the code

    Returns:
        SnomedSuggestion with search term and display name
    """
    family_code = code[:2] if isinstance(code, str) else ""
    if family_code in _SINGLE_CARPALS:
        return _SINGLE_CARPALS[family_code]
    if family_code == "79":
        return SnomedSuggestion("crush injury hand fracture", "Crush injury of hand with fractures")

    rule = _FAMILY_RULES.get(family_code)
    if rule is None:
        return _HAND_FRACTURE
    taxonomy = taxonomy or default_taxonomy()
    return rule(parse_code(code, taxonomy) or _partial_long_bone(code, taxonomy))


def detailed_snomed_search(code: str, taxonomy: Optional[BoneTaxonomy] = None) -> str:
    """
    Search term prefixed with the morphology of the fracture type.

    Only metacarpal and phalanx codes get a prefix; carpal type letters do
    not describe a morphology.

    Example:
        >>> detailed_snomed_search("77.2.2C")
        'comminuted multifragmentary fracture second metacarpal'
    """
    suggestion = suggest_snomed_term(code, taxonomy)
    parsed = parse_code(code, taxonomy)
    if parsed is None or parsed.family_code not in _LONG_BONE_FAMILIES:
        return suggestion.search_term
    qualifier = _TYPE_QUALIFIERS.get(parsed.fracture_type or "")
    if qualifier:
        return f"{qualifier} {suggestion.search_term}"
    return suggestion.search_term
