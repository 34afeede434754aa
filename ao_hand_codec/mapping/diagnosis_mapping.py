"""
AO Fracture → Diagnosis and Procedure Mapping

When a fracture has been classified, the AO family (plus finger, segment and
type for a few well-known patterns) determines which diagnosis picklist entry
applies and which fixation procedures should be pre-selected. Callers that
skip AO classification are unaffected.

Flow:
    FractureDetails → family mapping → refinement (first match)
                    → procedure hints (all matches)

Refinements:
    77 thumb, base, type B → Bennett's fracture
    77 thumb, base, type C → Rolando's fracture

Usage:
    from ao_hand_codec.mapping import resolve_diagnosis, apply_procedure_hints

    resolution = resolve_diagnosis(entry.details)
    suggestions = apply_procedure_hints(suggestions, resolution.procedure_hints)
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from ao_hand_codec.core.models import FractureDetails


# =============================================================================
# STAGE 1: MAPPING MODELS
# =============================================================================


@dataclass(frozen=True)
class DiagnosisRefinement:
    """Narrower diagnosis when every condition field matches."""

    condition: Dict[str, str]
    override_diagnosis_id: str
    description: str


@dataclass(frozen=True)
class ProcedureHint:
    """
    Procedure defaults implied by the fracture pattern.

    Attributes:
        condition: Detail fields that must match (e.g. {"segment": "2", "type": "A"})
        promote_to_default: Procedure ids to pre-select
        demote_from_default: Procedure ids to deselect
        description: Shown to the clinician
    """

    condition: Dict[str, str]
    promote_to_default: Tuple[str, ...]
    description: str
    demote_from_default: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DiagnosisMapping:
    ao_family_code: str
    bone_name: str
    diagnosis_picklist_id: str
    refinements: Tuple[DiagnosisRefinement, ...] = ()
    procedure_hints: Tuple[ProcedureHint, ...] = ()


@dataclass(frozen=True)
class DiagnosisResolution:
    """Outcome of mapping one fracture to a diagnosis."""

    diagnosis_picklist_id: str
    procedure_hints: Tuple[ProcedureHint, ...] = ()
    matched_refinement: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagnosisPicklistId": self.diagnosis_picklist_id,
            "procedureHints": [hint.description for hint in self.procedure_hints],
            "matchedRefinement": self.matched_refinement,
        }


@dataclass(frozen=True)
class ProcedureSuggestion:
    """A procedure offered for a diagnosis, possibly pre-selected."""

    procedure_picklist_id: str
    display_name: str
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcedureSuggestion":
        return cls(
            procedure_picklist_id=data.get(
                "procedurePicklistId", data.get("procedure_picklist_id", "")
            ),
            display_name=data.get("displayName", data.get("display_name", "")),
            is_default=bool(data.get("isDefault", data.get("is_default", False))),
        )


# =============================================================================
# STAGE 2: MAPPING TABLE
# =============================================================================


def _prefer_orif(bone: str, condition: Dict[str, str], description: str) -> ProcedureHint:
    """Articular pattern: pre-select ORIF, deselect closed reduction and K-wiring."""
    return ProcedureHint(
        condition,
        promote_to_default=(f"hand_fx_{bone}_orif",),
        demote_from_default=(f"hand_fx_{bone}_crif",),
        description=description,
    )


AO_DIAGNOSIS_MAPPINGS: Tuple[DiagnosisMapping, ...] = (
    # ---- Carpal bones ----
    DiagnosisMapping("71", "Lunate", "hand_dx_carpal_fracture_other"),
    DiagnosisMapping("72", "Scaphoid", "hand_dx_scaphoid_fx"),
    DiagnosisMapping("73", "Capitate", "hand_dx_carpal_fracture_other"),
    DiagnosisMapping("74", "Hamate", "hand_dx_carpal_fracture_other"),
    DiagnosisMapping("75", "Trapezium", "hand_dx_carpal_fracture_other"),
    DiagnosisMapping("76", "Other Carpal", "hand_dx_carpal_fracture_other"),
    # ---- Metacarpal ----
    DiagnosisMapping(
        "77",
        "Metacarpal",
        "hand_dx_metacarpal_fx",
        refinements=(
            DiagnosisRefinement(
                {"finger": "1", "segment": "1", "type": "B"},
                "hand_dx_bennett_fx",
                "Thumb MC base, partial articular → Bennett's fracture",
            ),
            DiagnosisRefinement(
                {"finger": "1", "segment": "1", "type": "C"},
                "hand_dx_rolando_fx",
                "Thumb MC base, complete articular → Rolando's fracture",
            ),
        ),
        procedure_hints=(
            _prefer_orif("metacarpal", {"type": "B"}, "Partial articular → ORIF preferred"),
            _prefer_orif("metacarpal", {"type": "C"}, "Complete articular → ORIF preferred"),
            ProcedureHint(
                {"segment": "2", "type": "A"},
                promote_to_default=("hand_fx_metacarpal_crif", "hand_fx_metacarpal_orif"),
                description="Simple shaft → K-wire and ORIF both options",
            ),
        ),
    ),
    # ---- Phalanx ----
    DiagnosisMapping(
        "78",
        "Phalanx",
        "hand_dx_phalanx_fx",
        procedure_hints=(
            _prefer_orif("phalanx", {"segment": "1", "type": "B"}, "Base partial articular → ORIF preferred"),
            _prefer_orif("phalanx", {"segment": "1", "type": "C"}, "Base complete articular → ORIF preferred"),
            _prefer_orif("phalanx", {"segment": "3", "type": "B"}, "Head partial articular → ORIF preferred"),
            _prefer_orif("phalanx", {"segment": "3", "type": "C"}, "Head complete articular → ORIF preferred"),
            ProcedureHint(
                {"segment": "2", "type": "A"},
                promote_to_default=("hand_fx_phalanx_crif",),
                description="Simple shaft → K-wire often sufficient",
            ),
        ),
    ),
    # ---- Crush / Multiple ----
    DiagnosisMapping("79", "Crush / Multiple fractures", "hand_dx_crush_injury"),
)

_MAPPINGS_BY_FAMILY: Dict[str, DiagnosisMapping] = {
    mapping.ao_family_code: mapping for mapping in AO_DIAGNOSIS_MAPPINGS
}


# =============================================================================
# STAGE 3: LOOKUP FUNCTIONS
# =============================================================================


def _detail_values(details: Union[FractureDetails, Dict[str, Any]]) -> Dict[str, Optional[str]]:
    """Condition keys ("finger", "segment", "type", ...) of a fracture's details."""
    if isinstance(details, dict):
        details = FractureDetails.from_dict(details)
    return {
        "family_code": details.family_code,
        "finger": details.finger,
        "phalanx": details.phalanx,
        "segment": details.segment,
        "type": details.fracture_type,
        "sub_bone_id": details.sub_bone_id,
    }


def _matches(condition: Dict[str, str], values: Dict[str, Optional[str]]) -> bool:
    return all(values.get(key) == expected for key, expected in condition.items())


def resolve_diagnosis(
    details: Union[FractureDetails, Dict[str, Any]]
) -> Optional[DiagnosisResolution]:
    """
    Resolve the diagnosis and procedure hints for a classified fracture.

    The first matching refinement overrides the family's diagnosis; every
    matching procedure hint is returned.

    Args:
        details: FractureDetails, or the stored details record

    Returns:
        DiagnosisResolution, or None if the family has no mapping
    """
    values = _detail_values(details)
    mapping = _MAPPINGS_BY_FAMILY.get(values["family_code"] or "")
    if mapping is None:
        logger.debug(f"No diagnosis mapping | Family: {values['family_code']}")
        return None

    diagnosis_id = mapping.diagnosis_picklist_id
    matched_refinement = None
    for refinement in mapping.refinements:
        if _matches(refinement.condition, values):
            diagnosis_id = refinement.override_diagnosis_id
            matched_refinement = refinement.description
            break

    hints = tuple(hint for hint in mapping.procedure_hints if _matches(hint.condition, values))
    logger.debug(
        f"Diagnosis resolved | Family: {mapping.ao_family_code} | "
        f"Diagnosis: {diagnosis_id} | Hints: {len(hints)}"
    )
    return DiagnosisResolution(
        diagnosis_picklist_id=diagnosis_id,
        procedure_hints=hints,
        matched_refinement=matched_refinement,
    )


def apply_procedure_hints(
    suggestions: Iterable[ProcedureSuggestion], hints: Iterable[ProcedureHint]
) -> List[ProcedureSuggestion]:
    """
    Update the default flags of procedure suggestions.

    Promotion wins over demotion when hints disagree about a procedure.
    Suggestions not named by any hint are returned unchanged.
    """
    promote = set()
    demote = set()
    for hint in hints:
        promote.update(hint.promote_to_default)
        demote.update(hint.demote_from_default)

    updated = []
    for suggestion in suggestions:
        if suggestion.procedure_picklist_id in promote:
            updated.append(replace(suggestion, is_default=True))
        elif suggestion.procedure_picklist_id in demote:
            updated.append(replace(suggestion, is_default=False))
        else:
            updated.append(suggestion)
    return updated


def mappable_diagnosis_ids() -> List[str]:
    """Every diagnosis id the mapping can resolve to, in table order."""
    ids: List[str] = []
    for mapping in AO_DIAGNOSIS_MAPPINGS:
        for diagnosis_id in [mapping.diagnosis_picklist_id] + [
            r.override_diagnosis_id for r in mapping.refinements
        ]:
            if diagnosis_id not in ids:
                ids.append(diagnosis_id)
    return ids
