"""
Tests for taxonomy.repository and taxonomy.families

Test Coverage:
- Loading: bundled table, raw-data cache, missing / malformed / unknown-kind files
- lookup_family(), get_family_or_raise()
- type_options(): per kind, missing context, crush
- bone_catalog(), find_bone(), implied_bone()
- finger / phalanx / segment / qualification options
- bone_id(), bone_name()
"""

import json

import pytest

from ao_hand_codec.core.enums import BoneCategory, BoneKind
from ao_hand_codec.core.exceptions import FamilyNotFoundError, TaxonomyLoadError
from ao_hand_codec.core.models import Selection, TypeContext
from ao_hand_codec.taxonomy import (
    BoneTaxonomy,
    CarpalSingleFamily,
    CrushFamily,
    LongBoneFamily,
    SubBoneCarpalFamily,
)


def _keys(options):
    return [option.key for option in options]


class TestTaxonomyLoading:
    def test_from_file_when_bundled_table_then_nine_families_in_order(self, taxonomy):
        # Arrange / Act
        codes = [family.family_code for family in taxonomy.families]

        # Assert
        assert codes == ["71", "72", "73", "74", "75", "76", "77", "78", "79"]
        assert taxonomy.region_id == "7"

    def test_from_file_when_loaded_twice_then_raw_data_is_cached(self, tmp_path):
        # Arrange
        path = tmp_path / "table.json"
        path.write_text(json.dumps({"bones": [{"family_code": "79", "name": "Crush", "kind": "crush_multiple"}]}))
        BoneTaxonomy.from_file(path)
        path.unlink()

        # Act
        reloaded = BoneTaxonomy.from_file(path)

        # Assert
        assert reloaded.lookup_family("79").code == "79"

    def test_clear_cache_when_file_removed_then_reload_fails(self, tmp_path):
        # Arrange
        path = tmp_path / "table.json"
        path.write_text(json.dumps({"bones": [{"family_code": "79", "name": "Crush", "kind": "crush_multiple"}]}))
        BoneTaxonomy.from_file(path)
        path.unlink()

        # Act
        BoneTaxonomy.clear_cache()

        # Assert
        with pytest.raises(TaxonomyLoadError):
            BoneTaxonomy.from_file(path)

    def test_from_file_when_missing_then_raises_load_error(self, tmp_path):
        # Arrange
        path = tmp_path / "nope.json"

        # Act / Assert
        with pytest.raises(TaxonomyLoadError) as exc_info:
            BoneTaxonomy.from_file(path)
        assert "File not found" in str(exc_info.value)

    def test_from_file_when_invalid_json_then_raises_load_error(self, tmp_path):
        # Arrange
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        # Act / Assert
        with pytest.raises(TaxonomyLoadError, match="Invalid JSON"):
            BoneTaxonomy.from_file(path)

    def test_from_dict_when_unknown_kind_then_raises_load_error(self):
        # Arrange
        data = {"bones": [{"family_code": "80", "name": "Radius", "kind": "radius_long_bone"}]}

        # Act / Assert
        with pytest.raises(TaxonomyLoadError, match="Unknown bone kind"):
            BoneTaxonomy.from_dict(data)

    def test_from_dict_when_family_missing_fields_then_raises_load_error(self):
        # Arrange
        data = {"bones": [{"family_code": "71", "name": "Lunate", "kind": "carpal_single"}]}

        # Act / Assert
        with pytest.raises(TaxonomyLoadError, match="Malformed family 71"):
            BoneTaxonomy.from_dict(data)

    def test_from_dict_when_no_bones_list_then_raises_load_error(self):
        with pytest.raises(TaxonomyLoadError):
            BoneTaxonomy.from_dict({"families": []})


class TestFamilyLookup:
    @pytest.mark.parametrize(
        "family_code, variant, kind",
        [
            ("72", CarpalSingleFamily, BoneKind.CARPAL_SINGLE),
            ("76", SubBoneCarpalFamily, BoneKind.CARPAL_OTHER_WITH_SUBBONE),
            ("77", LongBoneFamily, BoneKind.METACARPAL_LONG_BONE),
            ("78", LongBoneFamily, BoneKind.PHALANX_LONG_BONE),
            ("79", CrushFamily, BoneKind.CRUSH_MULTIPLE),
        ],
    )
    def test_lookup_family_when_known_then_returns_variant(self, taxonomy, family_code, variant, kind):
        # Act
        family = taxonomy.lookup_family(family_code)

        # Assert
        assert isinstance(family, variant)
        assert family.kind is kind

    def test_lookup_family_when_unknown_then_none(self, taxonomy):
        assert taxonomy.lookup_family("80") is None
        assert taxonomy.lookup_family(None) is None

    def test_get_family_or_raise_when_unknown_then_raises(self, taxonomy):
        with pytest.raises(FamilyNotFoundError) as exc_info:
            taxonomy.get_family_or_raise("70")
        assert exc_info.value.family_code == "70"


class TestTypeOptions:
    def test_type_options_when_hamate_then_hook_fracture_first(self, taxonomy):
        # Act
        options = taxonomy.type_options(taxonomy.lookup_family("74"), TypeContext())

        # Assert
        assert [(o.key, o.label) for o in options] == [
            ("A", "Hook fracture"),
            ("B", "Simple fracture"),
            ("C", "Multifragmentary fracture"),
        ]

    def test_type_options_when_sub_bone_given_then_sub_bone_table(self, taxonomy):
        # Act
        options = taxonomy.type_options(taxonomy.lookup_family("76"), TypeContext(sub_bone_id="2"))

        # Assert
        assert _keys(options) == ["A", "B", "C"]

    def test_type_options_when_sub_bone_missing_then_empty(self, taxonomy):
        family = taxonomy.lookup_family("76")
        assert taxonomy.type_options(family, TypeContext()) == []
        assert taxonomy.type_options(family, TypeContext(sub_bone_id="9")) == []

    def test_type_options_when_shaft_segment_then_shaft_types(self, taxonomy):
        # Act
        options = taxonomy.type_options(taxonomy.lookup_family("77"), TypeContext(segment="2"))

        # Assert
        assert [o.label for o in options] == [
            "Simple fracture",
            "Wedge fracture",
            "Multifragmentary fracture",
        ]

    def test_type_options_when_base_segment_then_articular_types(self, taxonomy):
        # Act
        options = taxonomy.type_options(taxonomy.lookup_family("78"), TypeContext(segment="1"))

        # Assert
        assert options[1].label == "Partial articular fracture"

    def test_type_options_when_long_bone_without_segment_then_empty(self, taxonomy):
        assert taxonomy.type_options(taxonomy.lookup_family("77"), TypeContext()) == []

    def test_type_options_when_crush_then_empty(self, taxonomy):
        assert taxonomy.type_options(taxonomy.lookup_family("79"), TypeContext()) == []


class TestBoneCatalog:
    def test_bone_catalog_when_carpal_then_eight_bones_in_anatomical_order(self, taxonomy):
        # Act
        bones = taxonomy.bone_catalog(BoneCategory.CARPAL)

        # Assert
        assert [bone.id for bone in bones] == [
            "lunate",
            "scaphoid",
            "capitate",
            "hamate",
            "trapezium",
            "pisiform",
            "triquetrum",
            "trapezoid",
        ]
        assert bones[6].family_code == "76"
        assert bones[6].sub_bone_id == "2"

    def test_bone_catalog_when_crush_then_single_crush_bone(self, taxonomy):
        # Act
        bones = taxonomy.bone_catalog(BoneCategory.CRUSH)

        # Assert
        assert len(bones) == 1
        assert bones[0].id == "crush"
        assert bones[0].family_code == "79"

    def test_implied_bone_when_carpal_then_none(self, taxonomy):
        assert taxonomy.implied_bone(BoneCategory.CARPAL) is None
        assert taxonomy.implied_bone(BoneCategory.PHALANX).family_code == "78"

    def test_find_bone_when_sub_bone_id_then_found(self, taxonomy):
        # Act
        bone = taxonomy.find_bone("trapezoid")

        # Assert
        assert bone.name == "Trapezoid"
        assert bone.sub_bone_id == "3"
        assert taxonomy.find_bone("radius") is None


class TestLocationOptions:
    def test_phalanx_options_when_thumb_then_no_middle_phalanx(self, taxonomy):
        # Act
        options = taxonomy.phalanx_options(taxonomy.lookup_family("78"), "1")

        # Assert
        assert [(o.key, o.label) for o in options] == [("1", "Proximal"), ("3", "Distal")]

    def test_phalanx_options_when_index_finger_then_three_phalanges(self, taxonomy):
        assert _keys(taxonomy.phalanx_options(taxonomy.lookup_family("78"), "2")) == ["1", "2", "3"]

    def test_phalanx_options_when_metacarpal_then_empty(self, taxonomy):
        assert taxonomy.phalanx_options(taxonomy.lookup_family("77"), "2") == []

    def test_finger_and_segment_options_when_carpal_then_empty(self, taxonomy):
        family = taxonomy.lookup_family("71")
        assert taxonomy.finger_options(family) == []
        assert taxonomy.segment_options(family) == []

    def test_finger_options_when_metacarpal_then_thumb_to_little(self, taxonomy):
        # Act
        options = taxonomy.finger_options(taxonomy.lookup_family("77"))

        # Assert
        assert [o.label for o in options] == ["Thumb", "Index", "Middle", "Ring", "Little"]

    @pytest.mark.parametrize("fracture_type, expected", [("A", []), ("B", ["a", "b", "c"]), ("C", ["a", "b", "c"])])
    def test_qualification_options_when_scaphoid_then_only_b_and_c(self, taxonomy, fracture_type, expected):
        assert _keys(taxonomy.qualification_options(taxonomy.lookup_family("72"), fracture_type)) == expected

    def test_qualification_options_when_other_carpal_then_empty(self, taxonomy):
        assert taxonomy.qualification_options(taxonomy.lookup_family("71"), "B") == []


class TestNaming:
    def test_bone_id_and_name_when_index_metacarpal_then_mc2(self, taxonomy):
        # Arrange
        selection = Selection(
            category=BoneCategory.METACARPAL,
            bone=taxonomy.implied_bone(BoneCategory.METACARPAL),
            finger="2",
        )

        # Act / Assert
        assert taxonomy.bone_id(selection) == "mc2"
        assert taxonomy.bone_name(selection) == "Index Metacarpal"

    def test_bone_id_and_name_when_thumb_distal_phalanx_then_dp1(self, taxonomy):
        # Arrange
        selection = Selection(
            category=BoneCategory.PHALANX,
            bone=taxonomy.implied_bone(BoneCategory.PHALANX),
            finger="1",
            phalanx="3",
        )

        # Act / Assert
        assert taxonomy.bone_id(selection) == "dp1"
        assert taxonomy.bone_name(selection) == "Thumb Distal Phalanx"

    def test_bone_id_and_name_when_carpal_then_bone_identity(self, taxonomy):
        # Arrange
        selection = Selection(category=BoneCategory.CARPAL, bone=taxonomy.find_bone("pisiform"))

        # Act / Assert
        assert taxonomy.bone_id(selection) == "pisiform"
        assert taxonomy.bone_name(selection) == "Pisiform"

    def test_bone_name_when_crush_then_family_name(self, taxonomy):
        # Arrange
        selection = Selection(category=BoneCategory.CRUSH, bone=taxonomy.implied_bone(BoneCategory.CRUSH))

        # Act / Assert
        assert taxonomy.bone_id(selection) == "crush"
        assert taxonomy.bone_name(selection) == "Crushed / Multiple fractures"
