"""
Constants for the AO Hand Fracture Codec

Constant Categories:
    REGION              → AO region the codec covers
    CATEGORY_OPTIONS    → Labels for the first cascade question
    BONE_IDS            → Identifier conventions for committed entries
    LOG_FORMAT          → Shared loguru format
"""

from pathlib import Path
from typing import Dict, List, Tuple

from ao_hand_codec.core.enums import BoneCategory


# =============================================================================
# STAGE 1: REGION AND DATA LOCATION
# =============================================================================

AO_REGION_ID = "7"
AO_REGION_NAME = "Hand and carpus"

DATA_DIRECTORY = Path(__file__).parent.parent / "data"
DEFAULT_TAXONOMY_PATH = DATA_DIRECTORY / "ao_hand_classification.json"

CRUSH_CODE = "79"
CRUSH_BONE_NAME = "Crushed / Multiple fractures"


# =============================================================================
# STAGE 2: CATEGORY OPTIONS
# =============================================================================
# Order and labels of the first question. Family ranges are part of the label
# so the clinician sees which codes a category leads to.

CATEGORY_OPTIONS: List[Tuple[BoneCategory, str]] = [
    (BoneCategory.CARPAL, "Carpal (71-76)"),
    (BoneCategory.METACARPAL, "Metacarpal (77)"),
    (BoneCategory.PHALANX, "Phalanx (78)"),
    (BoneCategory.CRUSH, "Crush/Multiple (79)"),
]


# =============================================================================
# STAGE 3: BONE ID CONVENTIONS
# =============================================================================
# Bone ids stored on committed entries. They match the hit-box ids of the hand
# diagram so a stored entry can be highlighted again.

CRUSH_BONE_ID = "crush"
METACARPAL_ID_PREFIX = "mc"
PHALANX_ID_PREFIXES: Dict[str, str] = {
    "1": "pp",  # proximal
    "2": "mp",  # middle
    "3": "dp",  # distal
}


# =============================================================================
# STAGE 4: LOGGING CONFIGURATION
# =============================================================================

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
