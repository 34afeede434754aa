"""
Fracture Capture Session - Multi-Fracture Classification for One Case

The caller-facing surface of the codec. A session owns the selection being
classified and the list of fractures already committed for the case. It is
the only stateful object in the package; the cascade, generator and validator
it uses are pure.

Lifecycle:
    1. Create with the case's existing entries (possibly none)
    2. apply() events until prompt.is_review
    3. commit() → entry appended, cascade back to bone_select
    4. Repeat, or remove()/replace() earlier entries
    5. save() → updated entry list for the caller to persist

Usage:
    from ao_hand_codec.session import FractureCaptureSession
    from ao_hand_codec.cascade import SelectCategory, SelectFinger, SelectSegment, SelectType

    session = FractureCaptureSession()
    session.apply(SelectCategory("metacarpal"))
    session.apply(SelectFinger("2"))
    session.apply(SelectSegment("2"))
    session.apply(SelectType("B"))
    entry = session.commit()     # entry.ao_code == "77.2.2B"
    entries = session.save()
"""

from typing import Iterable, List, Optional

from loguru import logger

from ao_hand_codec.cascade.controller import CascadeController
from ao_hand_codec.cascade.events import CascadeEvent
from ao_hand_codec.core.config import CodecSettings, get_settings
from ao_hand_codec.core.exceptions import (
    FractureNotFoundError,
    IncompleteSelectionError,
    InvalidCodeError,
)
from ao_hand_codec.core.models import FractureEntry, Selection, StepPrompt
from ao_hand_codec.generation.code_generator import generate
from ao_hand_codec.generation.entry_builder import build_fracture_entry
from ao_hand_codec.taxonomy.repository import BoneTaxonomy, default_taxonomy
from ao_hand_codec.validation.code_validator import validate


class FractureCaptureSession:
    """
    Classification session for the fractures of one case.

    What it does:
        Drives the cascade for one fracture at a time, commits complete
        selections as FractureEntry values and manages the case's list of
        committed entries.

    Why it exists:
        1. Keeps the in-progress selection and the committed list together
        2. Applies the commit policy (validate, warn or reject) in one place
        3. Gives callers a small imperative API over the pure cascade

    When to use:
        - One session per case being edited
        - Pass the case's stored entries to resume editing

    Attributes:
        taxonomy: Classification table
        settings: Codec settings (commit policy)
        controller: The cascade state machine

    Example:
        >>> session = FractureCaptureSession()
        >>> session.apply(SelectCategory(BoneCategory.CRUSH))
        >>> session.commit().ao_code
        '79'
    """

    def __init__(
        self,
        taxonomy: Optional[BoneTaxonomy] = None,
        settings: Optional[CodecSettings] = None,
        initial_entries: Iterable[FractureEntry] = (),
    ):
        self.taxonomy = taxonomy or default_taxonomy()
        self.settings = settings or get_settings()
        self.controller = CascadeController(self.taxonomy)

        self._selection = Selection()
        self._entries: List[FractureEntry] = list(initial_entries)

        logger.debug(f"FractureCaptureSession started | Existing entries: {len(self._entries)}")

    # =========================================================================
    # STAGE 1: CURRENT FRACTURE
    # =========================================================================

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def prompt(self) -> StepPrompt:
        """Current question and its options."""
        return self.controller.next_step(self._selection)

    @property
    def preview_code(self) -> str:
        """Live code for the answers so far ("" until specific enough)."""
        return generate(self._selection, self.taxonomy)

    def apply(self, event: CascadeEvent) -> StepPrompt:
        """Apply a clinician action and return the next prompt."""
        self._selection = self.controller.transition(self._selection, event)
        return self.prompt

    def back(self) -> StepPrompt:
        self._selection = self.controller.back(self._selection)
        return self.prompt

    def discard(self) -> None:
        """Drop the in-progress fracture without committing it."""
        if not self._selection.is_empty:
            logger.debug(f"Discarding in-progress selection | Preview: {self.preview_code or '-'}")
        self._selection = Selection()

    # =========================================================================
    # STAGE 2: COMMIT
    # =========================================================================

    def commit(self) -> FractureEntry:
        """
        Commit the current fracture.

        STAGE 2.1: Require the cascade to be at review
        STAGE 2.2: Build the entry and validate its code
        STAGE 2.3: Append and restart the cascade

        Returns:
            The committed entry

        Raises:
            IncompleteSelectionError: If the cascade is not at review
            InvalidCodeError: If the code is invalid and reject_invalid_codes is set
        """
        # ---------------------------------------------------------------------
        # 2.1: Completeness
        # ---------------------------------------------------------------------
        prompt = self.prompt
        if not prompt.is_review:
            raise IncompleteSelectionError(prompt.step.value)

        # ---------------------------------------------------------------------
        # 2.2: Build and validate
        # ---------------------------------------------------------------------
        entry = build_fracture_entry(self._selection, self.taxonomy)
        result = validate(entry.ao_code, self.taxonomy)
        if not result.valid:
            if self.settings.reject_invalid_codes:
                raise InvalidCodeError(entry.ao_code, result.reason or "")
            logger.warning(f"Committing invalid AO code | Code: {entry.ao_code} | {result.reason}")

        # ---------------------------------------------------------------------
        # 2.3: Append and reset
        # ---------------------------------------------------------------------
        self._entries.append(entry)
        self._selection = Selection()

        logger.info(
            f"Fracture committed | Code: {entry.ao_code} | "
            f"Bone: {entry.bone_name} | Total: {len(self._entries)}"
        )
        return entry

    # =========================================================================
    # STAGE 3: COMMITTED ENTRIES
    # =========================================================================

    @property
    def entries(self) -> List[FractureEntry]:
        """Committed entries in commit order (a copy)."""
        return list(self._entries)

    def _index_of(self, entry_id: str) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        raise FractureNotFoundError(entry_id)

    def get(self, entry_id: str) -> FractureEntry:
        return self._entries[self._index_of(entry_id)]

    def remove(self, entry_id: str) -> FractureEntry:
        """
        Remove a committed entry.

        Raises:
            FractureNotFoundError: If no entry has the id
        """
        removed = self._entries.pop(self._index_of(entry_id))
        logger.info(f"Fracture removed | Code: {removed.ao_code} | Remaining: {len(self._entries)}")
        return removed

    def replace(self, entry_id: str, entry: FractureEntry) -> FractureEntry:
        """
        Replace a committed entry wholesale, keeping its position.

        Raises:
            FractureNotFoundError: If no entry has the id
        """
        index = self._index_of(entry_id)
        self._entries[index] = entry
        logger.info(f"Fracture replaced | Id: {entry_id} | Code: {entry.ao_code}")
        return entry

    def clear(self) -> None:
        """Remove every committed entry."""
        self._entries.clear()

    def save(self) -> List[FractureEntry]:
        """Updated entry list for the caller to persist."""
        logger.info(f"Capture session saved | Entries: {len(self._entries)}")
        return self.entries


# =============================================================================
# STAGE 4: SMOKE TEST
# =============================================================================

if __name__ == "__main__":
    import sys

    from ao_hand_codec.cascade.events import (
        SelectBone,
        SelectCategory,
        SelectFinger,
        SelectSegment,
        SelectType,
        ToggleQualification,
        ConfirmQualifications,
    )

    logger.remove()
    logger.add(sys.stderr, level="INFO")

    print("\n--- AO Hand Fracture Capture Smoke Test ---\n")

    try:
        print("1. Loading taxonomy...")
        session = FractureCaptureSession()
        print(f"   - Families: {', '.join(f.family_code for f in session.taxonomy.families)}")

        print("\n2. Scaphoid waist fracture...")
        for event in (
            SelectCategory("carpal"),
            SelectBone("scaphoid"),
            SelectType("B"),
            ToggleQualification("b"),
            ConfirmQualifications(),
        ):
            prompt = session.apply(event)
            print(f"   - {type(event).__name__:<22} → {prompt.step.value:<20} {session.preview_code}")
        print(f"   [OK] Committed {session.commit().ao_code}")

        print("\n3. Index metacarpal shaft fracture...")
        for event in (SelectCategory("metacarpal"), SelectFinger("2"), SelectSegment("2"), SelectType("B")):
            session.apply(event)
        print(f"   [OK] Committed {session.commit().ao_code}")

        print(f"\n[OK] SMOKE TEST PASSED: {[entry.ao_code for entry in session.save()]}")

    except Exception as e:
        print(f"\n[FAIL] SMOKE TEST FAILED: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)
