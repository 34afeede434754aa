"""
Domain Exceptions for the AO Hand Fracture Codec

The generator, validator and cascade controller are total functions and never
raise: insufficient input yields "", invalid codes yield a failed
CodeValidationResult, illegal events leave the selection unchanged. The
exceptions below belong to the edges around them: loading the taxonomy,
reading configuration, and the capture session that the caller drives.

Exception Hierarchy:
    AOCodecError (base)
    ├── ConfigurationError          → Invalid settings
    ├── TaxonomyError               → Bone taxonomy problems
    │   ├── FamilyNotFoundError
    │   └── TaxonomyLoadError
    └── CaptureSessionError         → Misuse of a capture session
        ├── IncompleteSelectionError
        ├── InvalidCodeError
        └── FractureNotFoundError

Usage:
    from ao_hand_codec.core.exceptions import FractureNotFoundError

    try:
        session.remove(entry_id)
    except FractureNotFoundError as e:
        logger.error(f"Fracture not found: {e.entry_id}")
"""

from typing import Optional


# =============================================================================
# STAGE 1: BASE EXCEPTION
# =============================================================================


class AOCodecError(Exception):
    """
    Base exception for all codec errors.

    Attributes:
        message: Human-readable error description
        context: Dictionary of additional context for debugging
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format message with context for display."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


# =============================================================================
# STAGE 2: CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(AOCodecError):
    """
    Error in codec settings.

    When raised:
        - Unknown log level
        - Configured taxonomy file does not exist
    """

    pass


# =============================================================================
# STAGE 3: TAXONOMY ERRORS
# =============================================================================


class TaxonomyError(AOCodecError):
    """Base exception for bone taxonomy errors."""

    pass


class FamilyNotFoundError(TaxonomyError):
    """
    Bone family code does not exist in the taxonomy.

    Attributes:
        family_code: The family code that was not found
    """

    def __init__(self, family_code: str, message: Optional[str] = None):
        self.family_code = family_code
        super().__init__(
            message or f"Bone family not found: {family_code}",
            context={"family_code": family_code},
        )


class TaxonomyLoadError(TaxonomyError):
    """
    Error loading the classification table.

    When raised:
        - File not found or unreadable
        - Invalid JSON
        - A family record with an unknown kind or missing fields

    Attributes:
        source: Path (or description) of the data that failed to load
        reason: Why loading failed
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(
            f"Failed to load bone taxonomy from {source}: {reason}",
            context={"source": source, "reason": reason},
        )


# =============================================================================
# STAGE 4: CAPTURE SESSION ERRORS
# =============================================================================


class CaptureSessionError(AOCodecError):
    """Base exception for capture session misuse."""

    pass


class IncompleteSelectionError(CaptureSessionError):
    """
    Commit was requested before the cascade reached review.

    Attributes:
        step: The step the cascade is currently on
    """

    def __init__(self, step: str):
        self.step = step
        super().__init__(
            f"Cannot commit fracture before review; cascade is at '{step}'",
            context={"step": step},
        )


class InvalidCodeError(CaptureSessionError):
    """
    Commit was refused because the generated code failed validation.

    Only raised when the session is configured to reject invalid codes;
    otherwise the entry is committed and a warning is logged.
    """

    def __init__(self, code: str, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(
            f"Refusing to commit invalid AO code '{code}': {reason}",
            context={"code": code, "reason": reason},
        )


class FractureNotFoundError(CaptureSessionError):
    """
    No committed fracture with the given id.

    Attributes:
        entry_id: The id that was looked up
    """

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Fracture entry not found: {entry_id}", context={"entry_id": entry_id})
