"""
Generation Layer - AO Codes and Fracture Entries

Submodules:
    code_generator.py → generate(selection) -> canonical code string
    entry_builder.py  → build_fracture_entry(selection) -> FractureEntry

Dependency Rule:
    This layer depends on: core, taxonomy
    This layer is used by: cascade (preview), session
"""

from ao_hand_codec.generation.code_generator import generate
from ao_hand_codec.generation.entry_builder import (
    build_fracture_entry,
    details_from_selection,
    new_entry_id,
)

__all__ = [
    "generate",
    "build_fracture_entry",
    "details_from_selection",
    "new_entry_id",
]
