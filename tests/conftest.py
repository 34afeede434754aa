import itertools
from typing import Iterator, List

import pytest

from ao_hand_codec.cascade import (
    CascadeController,
    ConfirmQualifications,
    SelectBone,
    SelectCategory,
    SelectFinger,
    SelectPhalanx,
    SelectSegment,
    SelectType,
    ToggleQualification,
)
from ao_hand_codec.core.config import CodecSettings
from ao_hand_codec.core.constants import DEFAULT_TAXONOMY_PATH
from ao_hand_codec.core.enums import SelectionField
from ao_hand_codec.core.models import Selection
from ao_hand_codec.session import FractureCaptureSession
from ao_hand_codec.taxonomy import BoneTaxonomy


_EVENT_FOR_FIELD = {
    SelectionField.CATEGORY: SelectCategory,
    SelectionField.BONE: SelectBone,
    SelectionField.FINGER: SelectFinger,
    SelectionField.PHALANX: SelectPhalanx,
    SelectionField.SEGMENT: SelectSegment,
    SelectionField.TYPE: SelectType,
}


def _walk(controller: CascadeController, selection: Selection) -> Iterator[Selection]:
    """Every complete selection reachable from `selection` through offered options."""
    prompt = controller.next_step(selection)
    if prompt.is_review:
        yield selection
        return

    if prompt.field is SelectionField.QUALIFICATIONS:
        letters = prompt.option_keys
        for size in range(len(letters) + 1):
            for combo in itertools.combinations(letters, size):
                picked = selection
                for letter in combo:
                    picked = controller.transition(picked, ToggleQualification(letter))
                yield from _walk(controller, controller.transition(picked, ConfirmQualifications()))
        return

    event_type = _EVENT_FOR_FIELD[prompt.field]
    for option in prompt.options:
        answered = controller.transition(selection, event_type(option.key))
        assert answered != selection, f"option {option.key} for {prompt.field} was ignored"
        yield from _walk(controller, answered)


# Common test fixtures
@pytest.fixture(scope="session")
def taxonomy() -> BoneTaxonomy:
    """The bundled AO region 7 table."""
    return BoneTaxonomy.from_file(DEFAULT_TAXONOMY_PATH)


@pytest.fixture
def controller(taxonomy) -> CascadeController:
    return CascadeController(taxonomy)


@pytest.fixture
def settings() -> CodecSettings:
    """Default settings, ignoring any .env file in the working directory."""
    return CodecSettings(_env_file=None)


@pytest.fixture
def strict_settings() -> CodecSettings:
    return CodecSettings(_env_file=None, reject_invalid_codes=True)


@pytest.fixture
def session(taxonomy, settings) -> FractureCaptureSession:
    return FractureCaptureSession(taxonomy=taxonomy, settings=settings)


@pytest.fixture
def drive(controller):
    """Apply a sequence of events to an empty (or given) selection."""

    def _drive(*events, start: Selection = None) -> Selection:
        selection = start or Selection()
        for event in events:
            selection = controller.transition(selection, event)
        return selection

    return _drive


@pytest.fixture(scope="session")
def all_complete_selections(taxonomy) -> List[Selection]:
    """Every complete legal selection, including every qualifier subset."""
    return list(_walk(CascadeController(taxonomy), Selection()))
