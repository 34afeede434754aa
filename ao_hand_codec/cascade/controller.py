"""
Cascade Controller - Classification State Machine

Decides which question the clinician is asked next and applies answers to a
selection. The state is the selection itself: the current step is always
re-derived from the bone kind and the answers given so far, so there is no
separate step variable or history stack to keep in sync.

State Machine:
    bone_select ──carpal──→ bone_select(bone) → type_select → [qualification_select] → review
        │
        ├──metacarpal──→ finger_select → segment_select → type_select → review
        ├──phalanx─────→ finger_select → phalanx_select → segment_select → type_select → review
        └──crush───────→ review

    qualification_select applies only to scaphoid (72) types B and C and may be skipped.

Transition Rules:
    - Answering a field clears every field below it
    - Events for unreachable or inapplicable fields, or with values that are
      not offered, return the selection unchanged
    - GoBack clears the answer of the previous required question

Usage:
    from ao_hand_codec.cascade import CascadeController, SelectCategory

    controller = CascadeController()
    selection = controller.transition(Selection(), SelectCategory(BoneCategory.PHALANX))
    prompt = controller.next_step(selection)  # finger_select
"""

from typing import List, Optional

from loguru import logger

from ao_hand_codec.cascade.events import (
    ANSWER_EVENTS,
    CascadeEvent,
    ConfirmQualifications,
    GoBack,
    Reset,
    SelectBone,
    SelectCategory,
    SkipQualifications,
    ToggleQualification,
)
from ao_hand_codec.core.constants import CATEGORY_OPTIONS
from ao_hand_codec.core.enums import BoneCategory, BoneKind, CascadeStep, SelectionField
from ao_hand_codec.core.models import Option, Selection, StepPrompt, TypeContext
from ao_hand_codec.taxonomy.families import CarpalSingleFamily
from ao_hand_codec.taxonomy.repository import BoneTaxonomy, default_taxonomy


# Location fields each kind asks for between bone and type
_LOCATION_FIELDS = {
    BoneKind.CARPAL_SINGLE: [],
    BoneKind.CARPAL_OTHER_WITH_SUBBONE: [],
    BoneKind.METACARPAL_LONG_BONE: [SelectionField.FINGER, SelectionField.SEGMENT],
    BoneKind.PHALANX_LONG_BONE: [
        SelectionField.FINGER,
        SelectionField.PHALANX,
        SelectionField.SEGMENT,
    ],
}


class CascadeController:
    """
    Pure state machine over Selection values.

    What it does:
        Derives the required fields of a selection from its bone kind,
        offers the legal options for the first unanswered one, and applies
        events to produce new selections.

    Why it exists:
        1. Keeps the question order and applicability rules in one place
        2. Testable without any user interface
        3. Shared by the capture session and by callers that drive the
           cascade themselves

    Attributes:
        taxonomy: Classification table consulted for kinds and options

    Example:
        >>> controller = CascadeController(taxonomy)
        >>> s = controller.transition(Selection(), SelectCategory(BoneCategory.CRUSH))
        >>> controller.next_step(s).step
        <CascadeStep.REVIEW: 'review'>
    """

    def __init__(self, taxonomy: Optional[BoneTaxonomy] = None):
        self.taxonomy = taxonomy or default_taxonomy()

    # =========================================================================
    # STAGE 1: REQUIRED FIELDS
    # =========================================================================

    def required_fields(self, selection: Selection) -> List[SelectionField]:
        """
        Fields the selection's bone kind requires, in question order.

        Before a bone is known only category and bone are required. The
        qualifier question is required once a scaphoid type that supports
        qualifiers has been chosen.
        """
        fields = [SelectionField.CATEGORY, SelectionField.BONE]
        family = self.taxonomy.lookup_family(selection.family_code)
        if family is None or family.kind is BoneKind.CRUSH_MULTIPLE:
            return fields

        fields.extend(_LOCATION_FIELDS[family.kind])
        fields.append(SelectionField.TYPE)
        if isinstance(family, CarpalSingleFamily) and family.supports_qualifications(
            selection.fracture_type
        ):
            fields.append(SelectionField.QUALIFICATIONS)
        return fields

    def pending_field(self, selection: Selection) -> Optional[SelectionField]:
        """First required field without an answer (None when complete)."""
        if selection.bone is not None and self.taxonomy.lookup_family(selection.family_code) is None:
            return SelectionField.BONE
        for selection_field in self.required_fields(selection):
            if not selection.is_answered(selection_field):
                return selection_field
        return None

    def is_complete(self, selection: Selection) -> bool:
        return self.pending_field(selection) is None

    # =========================================================================
    # STAGE 2: PROMPTS AND OPTIONS
    # =========================================================================

    def options_for(self, selection: Selection, selection_field: SelectionField) -> List[Option]:
        """Legal answers for a field given the answers above it."""
        family = self.taxonomy.lookup_family(selection.family_code)

        if selection_field is SelectionField.CATEGORY:
            return [Option(category.value, label) for category, label in CATEGORY_OPTIONS]
        if selection_field is SelectionField.BONE:
            if selection.category is None:
                return []
            return [Option(bone.id, bone.name) for bone in self.taxonomy.bone_catalog(selection.category)]
        if selection_field is SelectionField.FINGER:
            return self.taxonomy.finger_options(family)
        if selection_field is SelectionField.PHALANX:
            return self.taxonomy.phalanx_options(family, selection.finger)
        if selection_field is SelectionField.SEGMENT:
            return self.taxonomy.segment_options(family)
        if selection_field is SelectionField.TYPE:
            context = TypeContext(sub_bone_id=selection.sub_bone_id, segment=selection.segment)
            return self.taxonomy.type_options(family, context)
        return self.taxonomy.qualification_options(family, selection.fracture_type)

    def next_step(self, selection: Selection) -> StepPrompt:
        """
        The question to ask next.

        Returns:
            StepPrompt for the first unanswered required field, or the review
            prompt (no field, no options) when the selection is complete
        """
        selection_field = self.pending_field(selection)
        if selection_field is None:
            return StepPrompt(step=CascadeStep.REVIEW)
        return StepPrompt(
            step=CascadeStep.for_field(selection_field),
            field=selection_field,
            options=tuple(self.options_for(selection, selection_field)),
        )

    # =========================================================================
    # STAGE 3: TRANSITIONS
    # =========================================================================

    def _is_reachable(self, selection: Selection, selection_field: SelectionField) -> bool:
        """A field is reachable when it is required and every field above it is answered."""
        required = self.required_fields(selection)
        if selection_field not in required:
            return False
        above = required[: required.index(selection_field)]
        return all(selection.is_answered(f) for f in above)

    def _ignored(self, selection: Selection, event: CascadeEvent, reason: str) -> Selection:
        logger.debug(f"Ignored cascade event | Event: {event} | Reason: {reason}")
        return selection

    def _answer(
        self, selection: Selection, selection_field: SelectionField, key: str, event: CascadeEvent
    ) -> Selection:
        if not self._is_reachable(selection, selection_field):
            return self._ignored(selection, event, f"{selection_field.value} not reachable")
        options = self.options_for(selection, selection_field)
        if key not in [option.key for option in options]:
            return self._ignored(selection, event, f"'{key}' not offered for {selection_field.value}")

        if selection_field is SelectionField.BONE:
            bone = next(b for b in self.taxonomy.bone_catalog(selection.category) if b.id == key)
            return selection.with_answer(SelectionField.BONE, bone)
        return selection.with_answer(selection_field, key)

    def _select_category(self, selection: Selection, event: SelectCategory) -> Selection:
        try:
            category = (
                event.category
                if isinstance(event.category, BoneCategory)
                else BoneCategory.from_string(str(event.category))
            )
        except ValueError as e:
            return self._ignored(selection, event, str(e))

        updated = selection.with_answer(SelectionField.CATEGORY, category)
        implied = self.taxonomy.implied_bone(category)
        if implied is not None:
            updated = updated.with_answer(SelectionField.BONE, implied)
        return updated

    def _toggle_qualification(self, selection: Selection, event: ToggleQualification) -> Selection:
        if not self._is_reachable(selection, SelectionField.QUALIFICATIONS):
            return self._ignored(selection, event, "qualifications not reachable")
        family = self.taxonomy.lookup_family(selection.family_code)
        offered = [option.key for option in self.options_for(selection, SelectionField.QUALIFICATIONS)]
        if event.letter not in offered:
            return self._ignored(selection, event, f"'{event.letter}' not offered")

        picked = set(selection.qualifications) ^ {event.letter}
        return selection.with_pending_qualifications(family.qualifications.canonical(tuple(picked)))

    def _confirm_qualifications(
        self, selection: Selection, event: CascadeEvent, skip: bool
    ) -> Selection:
        if not self._is_reachable(selection, SelectionField.QUALIFICATIONS):
            return self._ignored(selection, event, "qualifications not reachable")
        letters = () if skip else selection.qualifications
        return selection.with_answer(SelectionField.QUALIFICATIONS, letters)

    def transition(self, selection: Selection, event: CascadeEvent) -> Selection:
        """
        Apply an event to a selection.

        Pure and total: never raises, never mutates. Illegal events return
        the selection unchanged.

        Args:
            selection: Current selection
            event: Clinician action

        Returns:
            The new selection
        """
        if isinstance(event, Reset):
            updated = Selection()
        elif isinstance(event, GoBack):
            updated = self.back(selection)
        elif isinstance(event, SelectCategory):
            updated = self._select_category(selection, event)
        elif isinstance(event, SelectBone):
            updated = self._answer(selection, SelectionField.BONE, event.bone_id, event)
        elif type(event) in ANSWER_EVENTS:
            selection_field, attribute = ANSWER_EVENTS[type(event)]
            updated = self._answer(selection, selection_field, getattr(event, attribute), event)
        elif isinstance(event, ToggleQualification):
            updated = self._toggle_qualification(selection, event)
        elif isinstance(event, ConfirmQualifications):
            updated = self._confirm_qualifications(selection, event, skip=False)
        elif isinstance(event, SkipQualifications):
            updated = self._confirm_qualifications(selection, event, skip=True)
        else:
            return self._ignored(selection, event, "unknown event")

        if updated is not selection:
            logger.debug(
                f"Cascade transition | Event: {type(event).__name__} | "
                f"Step: {self.next_step(updated).step.value}"
            )
        return updated

    # =========================================================================
    # STAGE 4: BACKWARD NAVIGATION
    # =========================================================================

    def _implied(self, selection: Selection, selection_field: SelectionField) -> bool:
        """Bone answers set together with a non-carpal category are not questions of their own."""
        return (
            selection_field is SelectionField.BONE
            and selection.category is not None
            and selection.category is not BoneCategory.CARPAL
        )

    def back(self, selection: Selection) -> Selection:
        """
        Return to the previous question.

        The previous question is derived from the current kind and answers:
        the required field before the pending one (the last required field at
        review), skipping bones implied by their category. Its answer and
        everything below it are cleared. At the first question the selection
        is returned unchanged.
        """
        required = self.required_fields(selection)
        pending = self.pending_field(selection)
        position = required.index(pending) if pending in required else len(required)

        for previous in reversed(required[:position]):
            if self._implied(selection, previous):
                continue
            return selection.reset_from(previous)
        return selection


# =============================================================================
# STAGE 5: MODULE-LEVEL OPERATIONS
# =============================================================================


def next_step(taxonomy: Optional[BoneTaxonomy], selection: Selection) -> StepPrompt:
    """Next question for a selection (see CascadeController.next_step)."""
    return CascadeController(taxonomy).next_step(selection)


def transition(
    selection: Selection, event: CascadeEvent, taxonomy: Optional[BoneTaxonomy] = None
) -> Selection:
    return CascadeController(taxonomy).transition(selection, event)


def back(selection: Selection, taxonomy: Optional[BoneTaxonomy] = None) -> Selection:
    return CascadeController(taxonomy).back(selection)


def is_complete(selection: Selection, taxonomy: Optional[BoneTaxonomy] = None) -> bool:
    return CascadeController(taxonomy).is_complete(selection)
