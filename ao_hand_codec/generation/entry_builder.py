"""
Fracture Entry Builder

Turns a complete selection into the immutable FractureEntry stored with a
case: generated code, diagram bone id, display name and structured details.
"""

import uuid
from typing import Optional

from ao_hand_codec.core.models import FractureDetails, FractureEntry, Selection
from ao_hand_codec.generation.code_generator import generate
from ao_hand_codec.taxonomy.families import CarpalSingleFamily
from ao_hand_codec.taxonomy.repository import BoneTaxonomy, default_taxonomy


def new_entry_id() -> str:
    return uuid.uuid4().hex


def details_from_selection(selection: Selection, taxonomy: BoneTaxonomy) -> FractureDetails:
    """Structured fields of a selection, qualifiers in canonical order."""
    qualifications = selection.qualifications
    family = taxonomy.lookup_family(selection.family_code)
    if isinstance(family, CarpalSingleFamily) and family.qualifications is not None:
        qualifications = family.qualifications.canonical(qualifications)
    return FractureDetails(
        family_code=selection.family_code or "",
        fracture_type=selection.fracture_type,
        sub_bone_id=selection.sub_bone_id,
        finger=selection.finger,
        phalanx=selection.phalanx,
        segment=selection.segment,
        qualifications=tuple(qualifications),
    )


def build_fracture_entry(
    selection: Selection,
    taxonomy: Optional[BoneTaxonomy] = None,
    entry_id: Optional[str] = None,
) -> FractureEntry:
    """
    Build the entry for a selection.

    The caller is responsible for only passing complete selections; the
    capture session checks completeness before calling this.

    Args:
        selection: Complete selection
        taxonomy: Classification table (default: the process-wide taxonomy)
        entry_id: Id to use (default: a new random id)

    Returns:
        FractureEntry with code, bone identity and details
    """
    taxonomy = taxonomy or default_taxonomy()
    return FractureEntry(
        id=entry_id or new_entry_id(),
        bone_id=taxonomy.bone_id(selection),
        bone_name=taxonomy.bone_name(selection),
        ao_code=generate(selection, taxonomy),
        details=details_from_selection(selection, taxonomy),
    )
