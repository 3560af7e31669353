from __future__ import annotations

"""
Hover interaction for the chord diagram.

The highlight state is a small tagged value, either Idle or Highlighted(i),
owned by one InteractionController. Pointer events are fed through the pure
`transition` function and the controller turns the resulting state into view
commands: one opacity per ribbon plus the tooltip's visibility, position and
content.

The browser client does not run Python, so `highlight_table` exports the
ribbon opacities for every possible highlight and the HTML page applies them
on hover.
"""

from dataclasses import dataclass
from html import escape
from typing import List, Sequence, Tuple, Union

import logging

from .chord_layout import Ribbon
from .config import ChordConfig
from .profiles import AggregatedProfile, RepresentativeRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# States and events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Highlighted:
    index: int


HighlightState = Union[Idle, Highlighted]

IDLE = Idle()


@dataclass(frozen=True)
class PointerEnter:
    index: int
    x: float
    y: float


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerLeave:
    pass


PointerEvent = Union[PointerEnter, PointerMove, PointerLeave]


def transition(state: HighlightState, event: PointerEvent) -> HighlightState:
    """
    Return the state after `event`.

    Entering a group always highlights it, replacing any previous highlight.
    Leaving returns to Idle. Moving never changes the state.
    """
    if isinstance(event, PointerEnter):
        return Highlighted(event.index)
    if isinstance(event, PointerLeave):
        return IDLE
    if isinstance(event, PointerMove):
        return state
    raise TypeError(f"Unknown pointer event {event!r}")


# ---------------------------------------------------------------------------
# Tooltip content
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TooltipContent:
    bodysite: str = "Unknown Bodysite"
    disease: str = "Unknown Disease"
    age: str = "Unknown Age"
    gender: str = "Unknown Gender"

    @classmethod
    def from_record(cls, record: RepresentativeRecord) -> "TooltipContent":
        defaults = cls()
        return cls(
            bodysite=record.bodysite or defaults.bodysite,
            disease=record.disease or defaults.disease,
            age=record.age or defaults.age,
            gender=record.gender or defaults.gender,
        )

    def to_html(self) -> str:
        rows = [
            ("Bodysite", self.bodysite),
            ("Disease", self.disease),
            ("Age", self.age),
            ("Gender", self.gender),
        ]
        return "<br>".join(
            f"<strong>{name}:</strong> {escape(value)}" for name, value in rows
        )


def tooltips_for(profiles: Sequence[AggregatedProfile]) -> List[TooltipContent]:
    return [TooltipContent.from_record(p.representative) for p in profiles]


# ---------------------------------------------------------------------------
# View state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TooltipView:
    visible: bool = False
    html: str = ""
    left: float = 0.0
    top: float = 0.0


@dataclass(frozen=True)
class ViewState:
    ribbon_opacities: Tuple[float, ...]
    tooltip: TooltipView


class InteractionController:
    """
    Owns the highlight state of one visualization session.

    Parameters
    ----------
    ribbons
        Ribbons from the chord layout, in drawing order.
    tooltips
        Tooltip content per dataset index.
    cfg
        ChordConfig with opacity and tooltip offset settings.
    """

    def __init__(
        self,
        ribbons: Sequence[Ribbon],
        tooltips: Sequence[TooltipContent],
        cfg: ChordConfig,
    ) -> None:
        self._ribbons = list(ribbons)
        self._tooltips = list(tooltips)
        self._cfg = cfg
        self._state: HighlightState = IDLE
        self._view = self._idle_view()

    @property
    def state(self) -> HighlightState:
        return self._state

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def n_groups(self) -> int:
        return len(self._tooltips)

    # -- opacity ------------------------------------------------------------

    def ribbon_opacities(self, state: HighlightState) -> Tuple[float, ...]:
        """Opacity of every ribbon for the given state."""
        full = self._cfg.full_opacity
        if isinstance(state, Highlighted):
            dim = self._cfg.dimmed_opacity
            return tuple(full if r.touches(state.index) else dim for r in self._ribbons)
        return tuple(full for _ in self._ribbons)

    def highlight_table(self) -> List[List[float]]:
        """Ribbon opacities for Highlighted(i), for every group i."""
        return [list(self.ribbon_opacities(Highlighted(i))) for i in range(self.n_groups)]

    # -- events -------------------------------------------------------------

    def _idle_view(self) -> ViewState:
        return ViewState(ribbon_opacities=self.ribbon_opacities(IDLE), tooltip=TooltipView())

    def _anchor(self, x: float, y: float) -> Tuple[float, float]:
        dx, dy = self._cfg.tooltip_offset
        return x + dx, y + dy

    def handle(self, event: PointerEvent) -> ViewState:
        """Apply one pointer event and return the new view state."""
        if isinstance(event, PointerEnter) and not 0 <= event.index < self.n_groups:
            raise IndexError(
                f"Group index {event.index} out of range for {self.n_groups} groups"
            )

        previous = self._state
        self._state = transition(previous, event)

        if isinstance(self._state, Idle):
            self._view = self._idle_view()
        elif isinstance(event, PointerEnter):
            left, top = self._anchor(event.x, event.y)
            self._view = ViewState(
                ribbon_opacities=self.ribbon_opacities(self._state),
                tooltip=TooltipView(
                    visible=True,
                    html=self._tooltips[event.index].to_html(),
                    left=left,
                    top=top,
                ),
            )
        elif isinstance(event, PointerMove):
            left, top = self._anchor(event.x, event.y)
            self._view = ViewState(
                ribbon_opacities=self._view.ribbon_opacities,
                tooltip=TooltipView(
                    visible=True,
                    html=self._view.tooltip.html,
                    left=left,
                    top=top,
                ),
            )

        if previous != self._state:
            logger.debug("Highlight state %s -> %s", previous, self._state)

        return self._view

    def pointer_enter(self, index: int, x: float, y: float) -> ViewState:
        return self.handle(PointerEnter(index, x, y))

    def pointer_move(self, x: float, y: float) -> ViewState:
        return self.handle(PointerMove(x, y))

    def pointer_leave(self) -> ViewState:
        return self.handle(PointerLeave())

