"""
Parameter Store (Data Model)
============================
This module defines the generation and view parameters of the viewer and the
single table that decides what kind of work a change requires.

Why is this file needed?
------------------------
1. Coercion: Controls deliver raw strings/booleans. The store turns them into
   typed values and rejects the ones that cannot be parsed.
2. Classification: A seed/noise/decay change invalidates the point set, any
   other change only affects how it is drawn. This is decided here, from the
   field identity alone, and not by which widget fired.
3. Decoupling: Widgets write raw values; the scheduler reads typed values.

Classes:
    GenerationParameters: Inputs that identify a point set.
    ViewParameters: Inputs that only affect projection and drawing.
    ParameterStore: Holds both and applies raw changes.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, StrEnum
import logging
import math
from typing import Any, Callable, Dict, Union

from fractalview import config
from fractalview.model.errors import InvalidInput

logger = logging.getLogger(__name__)

U64_LIMIT = 2 ** 64

_TRUE_WORDS = {"true", "1", "yes", "on", "checked"}
_FALSE_WORDS = {"false", "0", "no", "off", "unchecked", ""}


class Field(StrEnum):
    """Identifiers of the editable parameters."""
    SEED = "seed"
    NOISE = "noise"
    DECAY = "decay"
    PITCH = "pitch"
    YAW = "yaw"
    ITERATIONS = "iterations"
    BOUNDED = "bounded"


class ChangeKind(Enum):
    """What a parameter change invalidates."""
    GENERATION = "generation"
    VIEW = "view"


CHANGE_KINDS: Dict[Field, ChangeKind] = {
    Field.SEED: ChangeKind.GENERATION,
    Field.NOISE: ChangeKind.GENERATION,
    Field.DECAY: ChangeKind.GENERATION,
    Field.PITCH: ChangeKind.VIEW,
    Field.YAW: ChangeKind.VIEW,
    Field.ITERATIONS: ChangeKind.VIEW,
    Field.BOUNDED: ChangeKind.VIEW,
}


@dataclass(frozen=True)
class GenerationParameters:
    seed: int = int(config.DEFAULT_SEED)
    noise: float = float(config.DEFAULT_NOISE)
    decay: float = config.DEFAULT_DECAY_RAW / config.DECAY_MAX


@dataclass(frozen=True)
class ViewParameters:
    pitch: float = config.DEFAULT_PITCH_RAW / config.ANGLE_UNIT
    yaw: float = config.DEFAULT_YAW_RAW / config.ANGLE_UNIT
    iterations: int = config.point_count(config.DEFAULT_POINT_DEPTH)
    bounded: bool = config.DEFAULT_BOUNDED


# ------------------------------------------------------------------------------
# Coercion helpers
# ------------------------------------------------------------------------------

def _text(raw: Any) -> str:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return str(raw).strip()


def _decimal(raw: Any) -> int:
    """Plain ASCII digits only: no sign, underscores or prefixes."""
    text = _text(raw)
    if not (text.isascii() and text.isdigit()):
        raise ValueError("expected a non-negative decimal integer")
    return int(text, 10)


def parse_seed(raw: Any) -> int:
    """Parse an unsigned 64-bit seed."""
    if isinstance(raw, bool):
        raise ValueError("booleans are not seeds")
    value = _decimal(raw)
    if not 0 <= value < U64_LIMIT:
        raise ValueError("seed must fit in an unsigned 64-bit integer")
    return value


def parse_float(raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValueError("booleans are not numbers")
    value = float(_text(raw))
    if not math.isfinite(value):
        raise ValueError("value must be finite")
    return value


def parse_count(raw: Any) -> int:
    """Parse a non-negative integer (iteration count)."""
    if isinstance(raw, bool):
        raise ValueError("booleans are not counts")
    return _decimal(raw)


def parse_bool(raw: Any) -> bool:
    """Parse a checkbox state: bool, Qt check-state int, or a word."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw != 0
    word = _text(raw).lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"cannot interpret {raw!r} as a boolean")


# ------------------------------------------------------------------------------
# Store
# ------------------------------------------------------------------------------

class ParameterStore:
    """
    Holds the current generation and view parameters.

    ``apply`` is the only mutator. It never triggers rendering itself; the
    returned ChangeKind tells the caller what has to be redone.
    """

    def __init__(
        self,
        generation: GenerationParameters | None = None,
        view: ViewParameters | None = None,
        decay_max: float = config.DECAY_MAX,
        angle_unit: float = config.ANGLE_UNIT,
    ) -> None:
        if decay_max <= 0:
            raise ValueError("decay_max must be positive")
        if angle_unit == 0:
            raise ValueError("angle_unit must not be zero")
        self._generation = generation or GenerationParameters()
        self._view = view or ViewParameters()
        self.decay_max = float(decay_max)
        self.angle_unit = float(angle_unit)

        self._setters: Dict[Field, Callable[[Any], None]] = {
            Field.SEED: lambda raw: self._set_generation(seed=parse_seed(raw)),
            Field.NOISE: lambda raw: self._set_generation(noise=parse_float(raw)),
            Field.DECAY: lambda raw: self._set_generation(decay=self.normalize_decay(parse_float(raw))),
            Field.PITCH: lambda raw: self._set_view(pitch=parse_float(raw) / self.angle_unit),
            Field.YAW: lambda raw: self._set_view(yaw=parse_float(raw) / self.angle_unit),
            Field.ITERATIONS: lambda raw: self._set_view(iterations=parse_count(raw)),
            Field.BOUNDED: lambda raw: self._set_view(bounded=parse_bool(raw)),
        }

    # --- PROPERTIES ---

    @property
    def generation(self) -> GenerationParameters:
        return self._generation

    @property
    def view(self) -> ViewParameters:
        return self._view

    # --- PUBLIC API ---

    def normalize_decay(self, raw_decay: float) -> float:
        """Divide by the declared maximum and clamp to [0, 1]."""
        return min(1.0, max(0.0, raw_decay / self.decay_max))

    def apply(self, field: Union[Field, str], raw: Any) -> ChangeKind:
        """
        Coerce ``raw`` for ``field`` and store it.

        Raises:
            InvalidInput: if the field is unknown or the value cannot be
                coerced. The stored value is left unchanged.
        """
        key = self._resolve_field(field, raw)
        try:
            self._setters[key](raw)
        except (TypeError, ValueError, OverflowError) as exc:
            logger.debug(f"Rejected {key.value}={raw!r}: {exc}")
            raise InvalidInput(key.value, raw, str(exc)) from exc
        return CHANGE_KINDS[key]

    @staticmethod
    def classify(field: Union[Field, str]) -> ChangeKind:
        return CHANGE_KINDS[Field(field)]

    # --- INTERNALS ---

    @staticmethod
    def _resolve_field(field: Union[Field, str], raw: Any) -> Field:
        try:
            return Field(field)
        except ValueError as exc:
            raise InvalidInput(str(field), raw, "unknown field") from exc

    def _set_generation(self, **changes: Any) -> None:
        self._generation = replace(self._generation, **changes)

    def _set_view(self, **changes: Any) -> None:
        self._view = replace(self._view, **changes)
