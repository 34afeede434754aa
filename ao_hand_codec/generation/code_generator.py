"""
AO Code Generator - Selection to Canonical Code

Derives the canonical AO code for a (possibly partial) selection. Used both
for the live preview shown while the clinician answers the cascade and for
the final code stored on a committed fracture entry.

Code Grammar (FF = family code, T = type letter):
    carpal_single              → FFT, optionally FFT(q,q)   e.g. 72B(b)
    carpal_other_with_subbone  → FF.S.T                     e.g. 76.2.A
    metacarpal_long_bone       → FF.finger.segmentT         e.g. 77.2.2B
    phalanx_long_bone          → FF.finger.phalanx.segmentT e.g. 78.1.3.1A
    crush_multiple             → 79

Guarantees:
    - Deterministic; the same selection always yields the same code
    - "79" for the crush category, whatever else the selection holds
    - "" when no type is chosen, the family is unknown, or a location
      field the kind needs is missing
    - Every other code starts with the family code

Usage:
    from ao_hand_codec.generation import generate

    code = generate(selection)
"""

from typing import Optional

from ao_hand_codec.core.constants import CRUSH_CODE
from ao_hand_codec.core.enums import BoneCategory
from ao_hand_codec.core.models import Selection
from ao_hand_codec.taxonomy.families import (
    CarpalSingleFamily,
    CrushFamily,
    LongBoneFamily,
    SubBoneCarpalFamily,
)
from ao_hand_codec.taxonomy.repository import BoneTaxonomy, default_taxonomy


def _qualifier_suffix(family: CarpalSingleFamily, selection: Selection) -> str:
    """Suffix such as "(a,b)"; empty unless the type supports qualifiers and letters are picked."""
    if not selection.qualifications or not family.supports_qualifications(selection.fracture_type):
        return ""
    letters = family.qualifications.canonical(selection.qualifications)
    if not letters:
        return ""
    return f"({','.join(letters)})"


def generate(selection: Selection, taxonomy: Optional[BoneTaxonomy] = None) -> str:
    """
    Generate the AO code for a selection.

    Args:
        selection: Answers given so far
        taxonomy: Classification table (default: the process-wide taxonomy)

    Returns:
        The canonical code, "79" for crush, or "" when the selection is not
        yet specific enough to be coded
    """
    if selection.category is BoneCategory.CRUSH:
        return CRUSH_CODE

    if selection.fracture_type is None:
        return ""

    taxonomy = taxonomy or default_taxonomy()
    family = taxonomy.lookup_family(selection.family_code)
    fracture_type = selection.fracture_type

    if isinstance(family, CarpalSingleFamily):
        return f"{family.family_code}{fracture_type}{_qualifier_suffix(family, selection)}"

    if isinstance(family, SubBoneCarpalFamily):
        if selection.sub_bone_id is None:
            return ""
        return f"{family.family_code}.{selection.sub_bone_id}.{fracture_type}"

    if isinstance(family, LongBoneFamily):
        if selection.finger is None or selection.segment is None:
            return ""
        if not family.has_phalanges:
            return f"{family.family_code}.{selection.finger}.{selection.segment}{fracture_type}"
        if selection.phalanx is None:
            return ""
        return (
            f"{family.family_code}.{selection.finger}."
            f"{selection.phalanx}.{selection.segment}{fracture_type}"
        )

    if isinstance(family, CrushFamily):
        return family.code

    return ""
