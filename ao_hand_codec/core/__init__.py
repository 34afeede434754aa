"""
Core Layer - Domain Models, Enums, Exceptions and Settings

This layer contains the side-effect-free foundation of the codec.

Submodules:
    enums.py      → BoneKind, BoneCategory, SelectionField, CascadeStep
    models.py     → Selection, StepPrompt, FractureEntry, CodeValidationResult, ...
    constants.py  → Region, category labels, bone id conventions, log format
    config.py     → CodecSettings (pydantic-settings)
    exceptions.py → Domain-specific exceptions

Dependency Rule:
    This layer depends on NOTHING else in the package.
    All other layers may depend on this layer.
"""

from ao_hand_codec.core.enums import (
    BoneKind,
    BoneCategory,
    SelectionField,
    CascadeStep,
)
from ao_hand_codec.core.models import (
    Option,
    BoneOption,
    TypeContext,
    Selection,
    StepPrompt,
    FractureDetails,
    FractureEntry,
    ParsedCode,
    CodeValidationResult,
)
from ao_hand_codec.core.config import CodecSettings, get_settings, load_settings
from ao_hand_codec.core.exceptions import (
    AOCodecError,
    ConfigurationError,
    TaxonomyError,
    FamilyNotFoundError,
    TaxonomyLoadError,
    CaptureSessionError,
    IncompleteSelectionError,
    InvalidCodeError,
    FractureNotFoundError,
)

__all__ = [
    # Enums
    "BoneKind",
    "BoneCategory",
    "SelectionField",
    "CascadeStep",
    # Models
    "Option",
    "BoneOption",
    "TypeContext",
    "Selection",
    "StepPrompt",
    "FractureDetails",
    "FractureEntry",
    "ParsedCode",
    "CodeValidationResult",
    # Settings
    "CodecSettings",
    "get_settings",
    "load_settings",
    # Exceptions
    "AOCodecError",
    "ConfigurationError",
    "TaxonomyError",
    "FamilyNotFoundError",
    "TaxonomyLoadError",
    "CaptureSessionError",
    "IncompleteSelectionError",
    "InvalidCodeError",
    "FractureNotFoundError",
]
