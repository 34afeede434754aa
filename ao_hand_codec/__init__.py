"""
AO Hand & Carpus Fracture Codec

Converts a clinician's structured anatomical answers into canonical AO/OTA
region 7 fracture codes, validates codes against the classification table,
and drives the ordered questions (the cascade) needed to reach a valid code.

Architecture Overview:
    ao_hand_codec/
    ├── core/           → Enums, models, exceptions, settings (Layer 0 - Pure)
    ├── taxonomy/       → Classification table access (Layer 1 - Infrastructure)
    ├── generation/     → Selection → code, FractureEntry (Layer 2 - Pure)
    ├── validation/     → Code consistency checks (Layer 2 - Pure)
    ├── cascade/        → Question state machine (Layer 3 - Pure)
    ├── session/        → Multi-fracture capture (Layer 4 - Public API)
    ├── mapping/        → Diagnosis / SNOMED lookups (Layer 4 - Public API)
    ├── observability/  → loguru sink setup
    └── data/           → Bundled AO region 7 table (JSON)

Quick Start:
    from ao_hand_codec import FractureCaptureSession, SelectCategory, SelectBone, SelectType

    session = FractureCaptureSession()
    session.apply(SelectCategory("carpal"))
    session.apply(SelectBone("lunate"))
    session.apply(SelectType("A"))
    entry = session.commit()   # entry.ao_code == "71A"
"""

__version__ = "1.0.0"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================

# Main Entry Point
from ao_hand_codec.session import FractureCaptureSession

# Core Operations
from ao_hand_codec.cascade import (
    CascadeController,
    next_step,
    transition,
    SelectCategory,
    SelectBone,
    SelectFinger,
    SelectPhalanx,
    SelectSegment,
    SelectType,
    ToggleQualification,
    ConfirmQualifications,
    SkipQualifications,
    GoBack,
    Reset,
)
from ao_hand_codec.generation import generate, build_fracture_entry
from ao_hand_codec.validation import validate, parse_code

# Taxonomy
from ao_hand_codec.taxonomy import BoneTaxonomy, default_taxonomy

# Core Models and Enums
from ao_hand_codec.core.models import (
    Selection,
    StepPrompt,
    FractureEntry,
    FractureDetails,
    CodeValidationResult,
)
from ao_hand_codec.core.enums import BoneCategory, BoneKind, CascadeStep, SelectionField

# Configuration
from ao_hand_codec.core.config import CodecSettings, get_settings
from ao_hand_codec.observability import configure_logging

__all__ = [
    # Main Entry Point (use this!)
    "FractureCaptureSession",
    # Core Operations
    "CascadeController",
    "next_step",
    "transition",
    "generate",
    "build_fracture_entry",
    "validate",
    "parse_code",
    # Events
    "SelectCategory",
    "SelectBone",
    "SelectFinger",
    "SelectPhalanx",
    "SelectSegment",
    "SelectType",
    "ToggleQualification",
    "ConfirmQualifications",
    "SkipQualifications",
    "GoBack",
    "Reset",
    # Taxonomy
    "BoneTaxonomy",
    "default_taxonomy",
    # Models and Enums
    "Selection",
    "StepPrompt",
    "FractureEntry",
    "FractureDetails",
    "CodeValidationResult",
    "BoneCategory",
    "BoneKind",
    "CascadeStep",
    "SelectionField",
    # Configuration
    "CodecSettings",
    "get_settings",
    "configure_logging",
]
