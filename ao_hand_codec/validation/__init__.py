"""
Validation Layer - AO Code Consistency

Submodules:
    code_validator.py → validate(code), parse_code(code)

Dependency Rule:
    This layer depends on: core, taxonomy
    This layer is used by: session
"""

from ao_hand_codec.validation.code_validator import parse_code, validate

__all__ = [
    "parse_code",
    "validate",
]
