"""
Tests for mapping.diagnosis_mapping and mapping.snomed_suggestions

Test Coverage:
- resolve_diagnosis(): family mapping, Bennett / Rolando refinements, hints
- apply_procedure_hints(): promote / demote / untouched
- mappable_diagnosis_ids()
- suggest_snomed_term(), detailed_snomed_search()
"""

import pytest

from ao_hand_codec.core.models import FractureDetails
from ao_hand_codec.mapping import (
    ProcedureSuggestion,
    apply_procedure_hints,
    detailed_snomed_search,
    mappable_diagnosis_ids,
    resolve_diagnosis,
    suggest_snomed_term,
)


class TestResolveDiagnosis:
    @pytest.mark.parametrize(
        "family_code, diagnosis_id",
        [
            ("71", "hand_dx_carpal_fracture_other"),
            ("72", "hand_dx_scaphoid_fx"),
            ("76", "hand_dx_carpal_fracture_other"),
            ("79", "hand_dx_crush_injury"),
        ],
    )
    def test_resolve_diagnosis_when_family_mapped_then_picklist_id(self, family_code, diagnosis_id):
        # Act
        resolution = resolve_diagnosis(FractureDetails(family_code=family_code, fracture_type="A"))

        # Assert
        assert resolution.diagnosis_picklist_id == diagnosis_id
        assert resolution.matched_refinement is None

    def test_resolve_diagnosis_when_thumb_base_partial_articular_then_bennett(self):
        # Act
        resolution = resolve_diagnosis(
            FractureDetails(family_code="77", fracture_type="B", finger="1", segment="1")
        )

        # Assert
        assert resolution.diagnosis_picklist_id == "hand_dx_bennett_fx"
        assert "Bennett" in resolution.matched_refinement
        assert [h.description for h in resolution.procedure_hints] == ["Partial articular → ORIF preferred"]

    def test_resolve_diagnosis_when_thumb_base_complete_articular_record_then_rolando(self):
        # Act
        resolution = resolve_diagnosis({"familyCode": "77", "type": "C", "finger": "1", "segment": "1"})

        # Assert
        assert resolution.diagnosis_picklist_id == "hand_dx_rolando_fx"

    def test_resolve_diagnosis_when_index_base_b_then_generic_metacarpal(self):
        # Act
        resolution = resolve_diagnosis(
            FractureDetails(family_code="77", fracture_type="B", finger="2", segment="1")
        )

        # Assert
        assert resolution.diagnosis_picklist_id == "hand_dx_metacarpal_fx"

    def test_resolve_diagnosis_when_phalanx_head_c_then_orif_hint(self):
        # Act
        resolution = resolve_diagnosis(
            FractureDetails(family_code="78", fracture_type="C", finger="3", phalanx="1", segment="3")
        )

        # Assert
        assert len(resolution.procedure_hints) == 1
        assert resolution.procedure_hints[0].promote_to_default == ("hand_fx_phalanx_orif",)
        assert resolution.procedure_hints[0].demote_from_default == ("hand_fx_phalanx_crif",)

    def test_resolve_diagnosis_when_unmapped_family_then_none(self):
        assert resolve_diagnosis(FractureDetails(family_code="23")) is None


class TestApplyProcedureHints:
    def test_apply_procedure_hints_when_articular_then_orif_promoted_crif_demoted(self):
        # Arrange
        suggestions = [
            ProcedureSuggestion("hand_fx_metacarpal_crif", "CRIF", is_default=True),
            ProcedureSuggestion("hand_fx_metacarpal_orif", "ORIF", is_default=False),
            ProcedureSuggestion("hand_fx_other", "Other", is_default=True),
        ]
        details = FractureDetails(family_code="77", fracture_type="C", finger="3", segment="3")
        hints = resolve_diagnosis(details).procedure_hints

        # Act
        updated = apply_procedure_hints(suggestions, hints)

        # Assert
        assert [s.is_default for s in updated] == [False, True, True]
        assert suggestions[0].is_default

    def test_apply_procedure_hints_when_no_hints_then_unchanged(self):
        # Arrange
        record = {"procedurePicklistId": "p", "displayName": "P", "isDefault": True}
        suggestions = [ProcedureSuggestion.from_dict(record)]

        # Act / Assert
        assert apply_procedure_hints(suggestions, ()) == suggestions


class TestMappableDiagnosisIds:
    def test_mappable_diagnosis_ids_when_listed_then_unique_and_include_refinements(self):
        # Act
        ids = mappable_diagnosis_ids()

        # Assert
        assert len(ids) == len(set(ids))
        assert "hand_dx_bennett_fx" in ids
        assert "hand_dx_rolando_fx" in ids
        assert len(ids) == 7


class TestSnomedSuggestions:
    @pytest.mark.parametrize(
        "code, search_term",
        [
            ("71A", "fracture lunate"),
            ("72B(b)", "fracture scaphoid waist"),
            ("72C(a)", "fracture scaphoid proximal pole"),
            ("72C(a,c)", "fracture scaphoid"),
            ("74A", "fracture hamate hook"),
            ("74B", "fracture hamate"),
            ("76.2.A", "fracture triquetrum"),
            ("77.1.1B", "bennett fracture"),
            ("77.1.1C", "rolando fracture"),
            ("77.1.2B", "fracture first metacarpal"),
            ("77.5.3A", "boxer fracture"),
            ("77.4.2A", "fracture fourth metacarpal"),
            ("78.2.3.1A", "mallet finger"),
            ("78.5.1.2B", "fracture proximal phalanx little finger"),
            ("79", "crush injury hand fracture"),
            ("80A", "fracture hand"),
        ],
    )
    def test_suggest_snomed_term_when_code_then_search_term(self, taxonomy, code, search_term):
        assert suggest_snomed_term(code, taxonomy).search_term == search_term

    def test_suggest_snomed_term_when_triquetrum_then_display_name(self, taxonomy):
        assert suggest_snomed_term("76.2.B", taxonomy).display_name == "Fracture of triquetral bone"

    @pytest.mark.parametrize(
        "code, search_term",
        [
            ("77.1.1", "fracture first metacarpal"),
            ("77.3", "fracture third metacarpal"),
            ("78.4.2", "fracture middle phalanx ring finger"),
            ("78.2.3.1", "fracture distal phalanx index finger"),
        ],
    )
    def test_suggest_snomed_term_when_incomplete_long_bone_code_then_finger_level(self, taxonomy, code, search_term):
        assert suggest_snomed_term(code, taxonomy).search_term == search_term

    def test_suggest_snomed_term_when_metacarpal_code_malformed_then_family_level(self, taxonomy):
        assert suggest_snomed_term("77", taxonomy).search_term == "fracture metacarpal"

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("77.2.2C", "comminuted multifragmentary fracture second metacarpal"),
            ("78.2.2.2A", "simple fracture middle phalanx index finger"),
            ("77.5.2B", "wedge fracture fifth metacarpal"),
        ],
    )
    def test_detailed_snomed_search_when_long_bone_code_then_morphology_prefix(self, taxonomy, code, expected):
        assert detailed_snomed_search(code, taxonomy) == expected

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("73B", "fracture capitate"),
            ("72B(b)", "fracture scaphoid waist"),
            ("76.2.C", "fracture triquetrum"),
            ("79", "crush injury hand fracture"),
        ],
    )
    def test_detailed_snomed_search_when_carpal_or_crush_then_no_morphology_prefix(self, taxonomy, code, expected):
        assert detailed_snomed_search(code, taxonomy) == expected
