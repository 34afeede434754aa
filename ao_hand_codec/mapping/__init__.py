"""
Mapping Layer - Clinical Lookups for Classified Fractures

Submodules:
    diagnosis_mapping.py  → AO family → diagnosis picklist id + procedure hints
    snomed_suggestions.py → AO code → SNOMED CT search term

Dependency Rule:
    This layer depends on: core, taxonomy, validation (code decoding)
"""

from ao_hand_codec.mapping.diagnosis_mapping import (
    AO_DIAGNOSIS_MAPPINGS,
    DiagnosisMapping,
    DiagnosisRefinement,
    DiagnosisResolution,
    ProcedureHint,
    ProcedureSuggestion,
    apply_procedure_hints,
    mappable_diagnosis_ids,
    resolve_diagnosis,
)
from ao_hand_codec.mapping.snomed_suggestions import (
    SnomedSuggestion,
    detailed_snomed_search,
    suggest_snomed_term,
)

__all__ = [
    "AO_DIAGNOSIS_MAPPINGS",
    "DiagnosisMapping",
    "DiagnosisRefinement",
    "DiagnosisResolution",
    "ProcedureHint",
    "ProcedureSuggestion",
    "apply_procedure_hints",
    "mappable_diagnosis_ids",
    "resolve_diagnosis",
    "SnomedSuggestion",
    "detailed_snomed_search",
    "suggest_snomed_term",
]
