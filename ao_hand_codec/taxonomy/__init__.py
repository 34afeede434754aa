"""
Taxonomy Layer - AO Region 7 Bone Families

Submodules:
    families.py   → Tagged-union family variants and JSON record parsing
    repository.py → BoneTaxonomy lookups, raw-data cache, default instance

Dependency Rule:
    This layer depends on: core
    This layer is used by: generation, validation, cascade, session
"""

from ao_hand_codec.taxonomy.families import (
    BoneFamily,
    CarpalSingleFamily,
    CrushFamily,
    FractureType,
    LongBoneFamily,
    QualificationTable,
    SubBone,
    SubBoneCarpalFamily,
)
from ao_hand_codec.taxonomy.repository import (
    BoneTaxonomy,
    default_taxonomy,
    reset_default_taxonomy,
)

__all__ = [
    "BoneFamily",
    "CarpalSingleFamily",
    "CrushFamily",
    "FractureType",
    "LongBoneFamily",
    "QualificationTable",
    "SubBone",
    "SubBoneCarpalFamily",
    "BoneTaxonomy",
    "default_taxonomy",
    "reset_default_taxonomy",
]
