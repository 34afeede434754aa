"""
Bone Taxonomy Repository - Data Access for the AO Region 7 Table

This module loads the hand and carpus classification table and answers every
question the rest of the codec asks about it: which families exist, which
bones a category offers, which fingers / phalanges / segments a long bone has,
and which fracture types apply in a given location.

Architecture:
    BoneTaxonomy
    ├── from_file()   → Loads a JSON table (raw data cached per absolute path)
    ├── from_dict()   → Builds from an already parsed table
    └── lookups       → families, options, naming helpers

Pipeline Position:
    Settings → [Taxonomy] → Cascade → Generation → Validation → Session
                ^^^^^^^^^
                You are here

Usage:
    from ao_hand_codec.taxonomy import default_taxonomy
    from ao_hand_codec.core.models import TypeContext

    taxonomy = default_taxonomy()
    family = taxonomy.lookup_family("77")
    options = taxonomy.type_options(family, TypeContext(segment="2"))
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from ao_hand_codec.core.config import get_settings
from ao_hand_codec.core.constants import (
    AO_REGION_ID,
    AO_REGION_NAME,
    CRUSH_BONE_ID,
    METACARPAL_ID_PREFIX,
    PHALANX_ID_PREFIXES,
)
from ao_hand_codec.core.enums import BoneCategory, BoneKind
from ao_hand_codec.core.exceptions import FamilyNotFoundError, TaxonomyLoadError
from ao_hand_codec.core.models import BoneOption, Option, Selection, TypeContext
from ao_hand_codec.taxonomy.families import (
    BoneFamily,
    CarpalSingleFamily,
    CrushFamily,
    FractureType,
    LabelTable,
    LongBoneFamily,
    SubBoneCarpalFamily,
    family_from_dict,
)


def _options(table: LabelTable) -> List[Option]:
    return [Option(key=key, label=label) for key, label in table.items()]


# =============================================================================
# STAGE 1: TAXONOMY CLASS
# =============================================================================


class BoneTaxonomy:
    """
    In-memory view of the AO hand and carpus classification table.

    What it does:
        Indexes the bone families by family code and exposes the lookups the
        cascade, generator and validator need. Read-only after construction.

    Why it exists:
        1. Single place that knows the table layout
        2. Lets tests build small or broken taxonomies without files
        3. Caches the parsed JSON so repeated sessions do not reload it

    When to use:
        - `default_taxonomy()` for the bundled (or configured) table
        - `BoneTaxonomy.from_file(path)` for an explicit table
        - `BoneTaxonomy.from_dict(data)` in tests

    Example:
        >>> taxonomy = BoneTaxonomy.from_file(DEFAULT_TAXONOMY_PATH)
        >>> [option.key for option in taxonomy.type_options(taxonomy.lookup_family("72"), TypeContext())]
        ['A', 'B', 'C']
    """

    # Class-level cache of raw JSON, keyed by absolute path
    _dataset_cache: Dict[str, Dict[str, Any]] = {}

    def __init__(
        self,
        families: Iterable[BoneFamily],
        region_id: str = AO_REGION_ID,
        region_name: str = AO_REGION_NAME,
        source: str = "<memory>",
    ):
        self.region_id = region_id
        self.region_name = region_name
        self.source = source

        # Primary index: family code → family (insertion order is table order)
        self._families: Dict[str, BoneFamily] = {}
        for family in families:
            if family.family_code in self._families:
                raise TaxonomyLoadError(source, f"Duplicate family code {family.family_code}")
            self._families[family.family_code] = family

        logger.debug(
            f"BoneTaxonomy initialized | Source: {source} | "
            f"Families: {', '.join(self._families)}"
        )

    # =========================================================================
    # STAGE 2: CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "<memory>") -> "BoneTaxonomy":
        """
        Build a taxonomy from a parsed classification table.

        Raises:
            TaxonomyLoadError: If the table has no "bones" list or a family is malformed
        """
        records = data.get("bones") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise TaxonomyLoadError(source, "Expected an object with a 'bones' list")

        region = data.get("region") or {}
        return cls(
            families=[family_from_dict(record, source) for record in records],
            region_id=str(region.get("id", AO_REGION_ID)),
            region_name=region.get("name", AO_REGION_NAME),
            source=source,
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "BoneTaxonomy":
        """
        Load a taxonomy from a JSON file.

        STAGE 2.1: Check the raw-data cache
        STAGE 2.2: Read and parse the file on a cache miss
        STAGE 2.3: Build the family variants

        Raises:
            TaxonomyLoadError: If the file is missing, unreadable or malformed
        """
        dataset_path = Path(path)
        cache_key = str(dataset_path.absolute())

        # ---------------------------------------------------------------------
        # 2.1: Check cache
        # ---------------------------------------------------------------------
        if cache_key in cls._dataset_cache:
            logger.debug(f"Using cached taxonomy: {cache_key}")
            raw_data = cls._dataset_cache[cache_key]
        else:
            # -----------------------------------------------------------------
            # 2.2: Load from file
            # -----------------------------------------------------------------
            if not dataset_path.exists():
                raise TaxonomyLoadError(str(dataset_path), "File not found")

            logger.info(f"Loading AO hand taxonomy from: {dataset_path}")
            try:
                with open(dataset_path, "r", encoding="utf-8") as f:
                    raw_data = json.load(f)
            except json.JSONDecodeError as e:
                raise TaxonomyLoadError(str(dataset_path), f"Invalid JSON: {e}")
            except PermissionError:
                raise TaxonomyLoadError(str(dataset_path), "Permission denied")
            except OSError as e:
                raise TaxonomyLoadError(str(dataset_path), str(e))

        # ---------------------------------------------------------------------
        # 2.3: Parse; only well-formed tables are cached
        # ---------------------------------------------------------------------
        taxonomy = cls.from_dict(raw_data, source=str(dataset_path))
        if cache_key not in cls._dataset_cache:
            cls._dataset_cache[cache_key] = raw_data
            logger.info(f"Loaded {len(taxonomy.families)} bone families from taxonomy")
        return taxonomy

    @classmethod
    def clear_cache(cls) -> None:
        cls._dataset_cache.clear()

    # =========================================================================
    # STAGE 3: FAMILY LOOKUP
    # =========================================================================

    @property
    def families(self) -> List[BoneFamily]:
        """All families in table order."""
        return list(self._families.values())

    def lookup_family(self, family_code: Optional[str]) -> Optional[BoneFamily]:
        """Family for a two-digit code, or None if the code is unknown."""
        if family_code is None:
            return None
        return self._families.get(family_code)

    def get_family_or_raise(self, family_code: str) -> BoneFamily:
        """
        Retrieve a family, raising if it does not exist.

        Raises:
            FamilyNotFoundError: If the code is not in the table
        """
        family = self.lookup_family(family_code)
        if family is None:
            raise FamilyNotFoundError(family_code)
        return family

    def families_in(self, category: BoneCategory) -> List[BoneFamily]:
        return [family for family in self._families.values() if family.kind.category is category]

    # =========================================================================
    # STAGE 4: TYPE TABLES
    # =========================================================================

    def type_table(
        self, family: Optional[BoneFamily], context: Optional[TypeContext] = None
    ) -> Dict[str, FractureType]:
        """
        Fracture-type table that applies to a family in a location.

        Returns an empty table when the location the kind needs (sub-bone for
        family 76, segment for long bones) is missing or unknown, and always
        for crush.
        """
        context = context or TypeContext()
        if isinstance(family, CarpalSingleFamily):
            return family.types
        if isinstance(family, SubBoneCarpalFamily):
            sub_bone = family.sub_bones.get(context.sub_bone_id or "")
            return sub_bone.types if sub_bone else {}
        if isinstance(family, LongBoneFamily):
            return family.type_rules_by_segment.get(context.segment or "", {})
        return {}

    def type_options(
        self, family: Optional[BoneFamily], context: Optional[TypeContext] = None
    ) -> List[Option]:
        """Legal (key, label) type choices for a family in a location."""
        return [
            Option(key=key, label=entry.label)
            for key, entry in self.type_table(family, context).items()
        ]

    def qualification_options(
        self, family: Optional[BoneFamily], fracture_type: Optional[str]
    ) -> List[Option]:
        """Qualifier letters for a family and type; empty when not supported."""
        if isinstance(family, CarpalSingleFamily) and family.supports_qualifications(fracture_type):
            return _options(family.qualifications.options)
        return []

    # =========================================================================
    # STAGE 5: BONE CATALOG
    # =========================================================================

    def bone_catalog(self, category: BoneCategory) -> List[BoneOption]:
        """
        Selectable bones for a category, in table order.

        Carpal lists the five single carpals followed by the three sub-bones
        of family 76. Every other category has exactly one bone.
        """
        bones: List[BoneOption] = []
        for family in self.families_in(category):
            if isinstance(family, SubBoneCarpalFamily):
                for sub_id, sub_bone in family.sub_bones.items():
                    bones.append(
                        BoneOption(
                            id=sub_bone.name.lower(),
                            name=sub_bone.name,
                            family_code=family.family_code,
                            sub_bone_id=sub_id,
                        )
                    )
            elif isinstance(family, CrushFamily):
                bones.append(BoneOption(CRUSH_BONE_ID, family.name, family.family_code))
            else:
                bones.append(BoneOption(family.name.lower(), family.name, family.family_code))
        return bones

    def find_bone(self, bone_id: str) -> Optional[BoneOption]:
        for category in BoneCategory:
            for bone in self.bone_catalog(category):
                if bone.id == bone_id:
                    return bone
        return None

    def implied_bone(self, category: BoneCategory) -> Optional[BoneOption]:
        """The single bone of a non-carpal category (None for carpal)."""
        if category is BoneCategory.CARPAL:
            return None
        bones = self.bone_catalog(category)
        return bones[0] if len(bones) == 1 else None

    # =========================================================================
    # STAGE 6: LONG BONE LOCATION OPTIONS
    # =========================================================================

    def _long_bone(self, family: Optional[BoneFamily]) -> Optional[LongBoneFamily]:
        return family if isinstance(family, LongBoneFamily) else None

    def finger_options(self, family: Optional[BoneFamily]) -> List[Option]:
        long_bone = self._long_bone(family)
        return _options(long_bone.fingers) if long_bone else []

    def phalanx_options(self, family: Optional[BoneFamily], finger: Optional[str]) -> List[Option]:
        """Phalanges present on the finger (the thumb has no middle phalanx)."""
        long_bone = self._long_bone(family)
        if long_bone is None or not long_bone.has_phalanges:
            return []
        return _options(long_bone.phalanges_for(finger))

    def segment_options(self, family: Optional[BoneFamily]) -> List[Option]:
        long_bone = self._long_bone(family)
        return _options(long_bone.segments) if long_bone else []

    # =========================================================================
    # STAGE 7: NAMING HELPERS
    # =========================================================================
    # Ids and names stored on committed entries.

    def bone_id(self, selection: Selection) -> str:
        """
        Diagram id of the selected bone.

        Examples: "scaphoid", "pisiform", "mc2", "dp1", "crush".
        Falls back to the bone option id while the location is incomplete.
        """
        if selection.bone is None:
            return ""
        family = self.lookup_family(selection.family_code)
        if family is None or selection.finger is None:
            return selection.bone.id
        if family.kind is BoneKind.METACARPAL_LONG_BONE:
            return f"{METACARPAL_ID_PREFIX}{selection.finger}"
        if family.kind is BoneKind.PHALANX_LONG_BONE and selection.phalanx in PHALANX_ID_PREFIXES:
            return f"{PHALANX_ID_PREFIXES[selection.phalanx]}{selection.finger}"
        return selection.bone.id

    def bone_name(self, selection: Selection) -> str:
        """
        Display name of the selected bone.

        Examples: "Scaphoid", "Index Metacarpal", "Thumb Distal Phalanx".
        """
        if selection.bone is None:
            return ""
        long_bone = self._long_bone(self.lookup_family(selection.family_code))
        if long_bone is None or selection.finger not in long_bone.fingers:
            return selection.bone.name
        finger_name = long_bone.fingers[selection.finger]
        if not long_bone.has_phalanges:
            return f"{finger_name} Metacarpal"
        phalanx_name = long_bone.phalanges.get(selection.phalanx or "")
        if phalanx_name is None:
            return selection.bone.name
        return f"{finger_name} {phalanx_name} Phalanx"


# =============================================================================
# STAGE 8: DEFAULT INSTANCE
# =============================================================================
# Loaded on first use from the configured path (bundled table by default).

_default_taxonomy: Optional[BoneTaxonomy] = None


def default_taxonomy() -> BoneTaxonomy:
    """Get or load the process-wide taxonomy."""
    global _default_taxonomy
    if _default_taxonomy is None:
        _default_taxonomy = BoneTaxonomy.from_file(get_settings().resolved_taxonomy_path())
    return _default_taxonomy


def reset_default_taxonomy() -> None:
    global _default_taxonomy
    _default_taxonomy = None
