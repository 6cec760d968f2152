"""Suggestions exchanged between the step controller and its caller.

The controller describes the next move as a Suggestion: a description, a list
of options to choose from and the buttons (action labels) that can be pressed.
The caller answers with a selection of option values and one button.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class Button(str, Enum):
    """Action labels offered by suggestions."""

    COLLAPSE_AT_ONCE = "Collapse at once"
    COLLAPSE_IN_STEPS = "Collapse in steps"
    CONTRACT_COMPONENT = "Contract component"
    TIGHTEN_ALL = "Tighten all"
    TIGHTEN_SELECTED = "Tighten selected"
    REMOVE_VALENCE_ONE = "Remove valence-one junction"
    ABSORB_AT_ONCE = "Absorb at once"
    ABSORB_IN_STEPS = "Absorb in steps"
    CONTINUE_ANYWAYS = "Continue anyways"
    REMOVE_ALL = "Remove All"
    REMOVE_SELECTED = "Remove Selected"
    FOLD_SELECTED = "Fold Selected"
    REMOVE_AT_ONCE = "Remove at once"
    REMOVE_IN_STEPS = "Remove in steps"
    REMOVE_IN_FINE_STEPS = "Remove in fine steps"
    MOVE = "Move"
    CONTINUE = "Continue"
    CONVERT_TO_TRAIN_TRACK = "Convert to train track"


class SuggestionKind(Enum):
    """What a suggestion is about, in priority order."""

    SUBFOREST = auto()
    TIGHTEN = auto()
    VALENCE_ONE = auto()
    ABSORB = auto()
    REDUCIBLE = auto()
    VALENCE_TWO = auto()
    PERIPHERAL_INEFFICIENCY = auto()
    INEFFICIENCY = auto()
    TRAIN_TRACK = auto()
    IN_PROGRESS = auto()
    FINISHED = auto()


@dataclass(frozen=True)
class Option:
    """A selectable option.

    Attributes:
        value: Plain data identifying the option (names, never graph objects)
        label: Display text
    """

    value: Any
    label: str


@dataclass(frozen=True)
class Suggestion:
    """The next move proposed by the step controller.

    Attributes:
        kind: Category of the move
        description: Human readable explanation
        options: Options to select from (possibly empty)
        buttons: Action labels that may be applied
        allow_multiple_selection: Whether several options may be selected
    """

    kind: SuggestionKind
    description: str
    options: tuple[Option, ...] = ()
    buttons: tuple[Button, ...] = field(default=(Button.CONTINUE,))
    allow_multiple_selection: bool = False

    @property
    def is_finished(self) -> bool:
        return self.kind is SuggestionKind.FINISHED

    @property
    def default_button(self) -> Button | None:
        return self.buttons[0] if self.buttons else None

    def values(self) -> list[Any]:
        return [option.value for option in self.options]
