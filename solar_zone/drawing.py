"""
Drawing state machine for installation zones.

A DrawingSession is an immutable value; every user action is a function
that takes a session and returns the next one. DrawingController wires a
session to a rendering surface and to the estimate callbacks.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence, Tuple

from .config import DEFAULT_CONFIG, EstimatorConfig
from .country_data import DEFAULT_COUNTRY, get_fallback_rate
from .geometry import GeoPoint, distinct_points, net_area, perimeter, within_snap_distance
from .models import SolarPotential
from .pipeline import ZoneEstimate, estimate_zone

logger = logging.getLogger(__name__)

Ring = Tuple[GeoPoint, ...]


class DrawingMode(Enum):
    IDLE = 'idle'
    DRAWING_MAIN = 'drawing_main'
    DRAWING_HOLE = 'drawing_hole'


@dataclass(frozen=True)
class DrawingSession:
    """
    Main ring in progress, completed exclusion holes, the hole being drawn,
    and a linear undo history of main-ring snapshots.
    """
    mode: DrawingMode = DrawingMode.IDLE
    drawn_points: Ring = ()
    holes: Tuple[Ring, ...] = ()
    hole_points: Ring = ()
    history: Tuple[Ring, ...] = ((),)
    history_index: int = 0
    closed: bool = False

    @property
    def is_drawing_hole(self) -> bool:
        return self.mode is DrawingMode.DRAWING_HOLE

    @property
    def active_points(self) -> Ring:
        """Vertices currently receiving clicks."""
        return self.hole_points if self.is_drawing_hole else self.drawn_points

    @property
    def can_undo(self) -> bool:
        return not self.is_drawing_hole and self.history_index > 0

    @property
    def can_redo(self) -> bool:
        return not self.is_drawing_hole and self.history_index < len(self.history) - 1

    @property
    def can_start_hole(self) -> bool:
        if len(distinct_points(self.drawn_points)) < 3:
            return False
        return self.mode is DrawingMode.DRAWING_MAIN or (self.mode is DrawingMode.IDLE and self.closed)

    @property
    def is_empty(self) -> bool:
        return not self.drawn_points and not self.holes

    @property
    def net_area_m2(self) -> float:
        return net_area(self.drawn_points, self.holes)

    @property
    def perimeter_m(self) -> float:
        return perimeter(self.drawn_points, closed=True)


def start_drawing(session: Optional[DrawingSession] = None) -> DrawingSession:
    """Enter main-ring drawing; any prior session is discarded."""
    return DrawingSession(mode=DrawingMode.DRAWING_MAIN)


def _snaps_closed(points: Ring, point: GeoPoint, tolerance_m: float) -> bool:
    return len(points) >= 3 and within_snap_distance(point, points[0], tolerance_m)


def add_point(
    session: DrawingSession,
    point: GeoPoint,
    tolerance_m: float = DEFAULT_CONFIG.snap_tolerance_m
) -> DrawingSession:
    """
    Handle a map click.

    A click within tolerance of the first vertex of a ring with at least
    three points closes that ring and is not added as a vertex.
    """
    if session.mode is DrawingMode.DRAWING_MAIN:
        if session.closed:
            return session
        if _snaps_closed(session.drawn_points, point, tolerance_m):
            return replace(session, mode=DrawingMode.IDLE, closed=True)

        points = session.drawn_points + (point,)
        history = session.history[:session.history_index + 1] + (points,)
        return replace(
            session,
            drawn_points=points,
            history=history,
            history_index=len(history) - 1
        )

    if session.mode is DrawingMode.DRAWING_HOLE:
        if _snaps_closed(session.hole_points, point, tolerance_m):
            return complete_hole(session)
        return replace(session, hole_points=session.hole_points + (point,))

    return session


def start_hole(session: DrawingSession) -> DrawingSession:
    """Start an exclusion hole; needs a main ring with at least three points."""
    if not session.can_start_hole:
        logger.debug("Cannot start a hole in mode %s with %d points",
                     session.mode.value, len(session.drawn_points))
        return session
    return replace(session, mode=DrawingMode.DRAWING_HOLE, hole_points=())


def complete_hole(session: DrawingSession) -> DrawingSession:
    """
    Finish the hole being drawn.

    Holes with fewer than three distinct points are discarded. Drawing goes
    back to the main ring, or to idle if the main ring is already closed.
    """
    if not session.is_drawing_hole:
        return session

    holes = session.holes
    if len(distinct_points(session.hole_points)) >= 3:
        holes = holes + (session.hole_points,)
    else:
        logger.debug("Discarding degenerate hole with %d points", len(session.hole_points))

    return replace(
        session,
        mode=DrawingMode.IDLE if session.closed else DrawingMode.DRAWING_MAIN,
        holes=holes,
        hole_points=()
    )


def finish_drawing(session: DrawingSession) -> DrawingSession:
    """End zone configuration. Fewer than three points leaves a zero-area zone."""
    if session.is_drawing_hole:
        session = complete_hole(session)
    if session.mode is not DrawingMode.DRAWING_MAIN:
        return session
    return replace(
        session,
        mode=DrawingMode.IDLE,
        closed=len(distinct_points(session.drawn_points)) >= 3
    )


def _restore(session: DrawingSession, index: int) -> DrawingSession:
    return replace(
        session,
        mode=DrawingMode.DRAWING_MAIN,
        drawn_points=session.history[index],
        history_index=index,
        closed=False
    )


def undo(session: DrawingSession) -> DrawingSession:
    """Step the main ring back one snapshot and resume drawing."""
    if not session.can_undo:
        return session
    return _restore(session, session.history_index - 1)


def redo(session: DrawingSession) -> DrawingSession:
    """Step the main ring forward one snapshot and resume drawing."""
    if not session.can_redo:
        return session
    return _restore(session, session.history_index + 1)


def clear(session: Optional[DrawingSession] = None) -> DrawingSession:
    """Drop every vertex, hole and history entry."""
    return DrawingSession()


class DrawingSurface(Protocol):
    """What a map backend must offer to display a drawing session."""

    def add_vertex(self, point: GeoPoint, index: int) -> None:
        ...

    def remove_vertex(self, index: int) -> None:
        ...

    def highlight_close_point(self, point: Optional[GeoPoint]) -> None:
        ...

    def render_ring(self, points: Sequence[GeoPoint], holes: Sequence[Sequence[GeoPoint]],
                    interactive: bool) -> None:
        ...


AreaCallback = Callable[[Optional[float]], None]
TechnicalInfoCallback = Callable[[ZoneEstimate], None]


class DrawingController:
    """
    Owns a DrawingSession and reacts to user actions.

    Each action computes the next session, updates the surface for what
    changed, recomputes the estimate and notifies the callbacks.
    """

    def __init__(
        self,
        solar_potential: Optional[SolarPotential] = None,
        electricity_price: Optional[float] = None,
        config: EstimatorConfig = DEFAULT_CONFIG,
        surface: Optional[DrawingSurface] = None,
        on_area_change: Optional[AreaCallback] = None,
        on_technical_info_change: Optional[TechnicalInfoCallback] = None,
        session: Optional[DrawingSession] = None
    ):
        self.solar_potential = solar_potential
        self.electricity_price = (
            electricity_price if electricity_price is not None else get_fallback_rate(DEFAULT_COUNTRY)
        )
        self.config = config
        self.surface = surface
        self.on_area_change = on_area_change
        self.on_technical_info_change = on_technical_info_change
        self.session = session or DrawingSession()
        self.estimate: Optional[ZoneEstimate] = None

        if self.surface is not None:
            self._sync_surface(DrawingSession(), self.session)

    def start(self) -> DrawingSession:
        return self._apply(start_drawing(self.session))

    def click(self, point: GeoPoint) -> DrawingSession:
        return self._apply(add_point(self.session, point, self.config.snap_tolerance_m))

    def start_hole(self) -> DrawingSession:
        return self._apply(start_hole(self.session))

    def complete_hole(self) -> DrawingSession:
        return self._apply(complete_hole(self.session))

    def finish(self) -> DrawingSession:
        return self._apply(finish_drawing(self.session))

    def undo(self) -> DrawingSession:
        return self._apply(undo(self.session))

    def redo(self) -> DrawingSession:
        return self._apply(redo(self.session))

    def clear(self) -> DrawingSession:
        return self._apply(clear(self.session), force=True)

    def set_electricity_price(self, price: float) -> None:
        """Use a newly resolved price and republish the estimate."""
        self.electricity_price = price
        if not self.session.is_empty:
            self._publish()

    def set_solar_potential(self, solar_potential: Optional[SolarPotential]) -> None:
        self.solar_potential = solar_potential
        if not self.session.is_empty:
            self._publish()

    def _apply(self, new: DrawingSession, force: bool = False) -> DrawingSession:
        old = self.session
        if new == old and not force:
            return old
        self.session = new
        if self.surface is not None:
            self._sync_surface(old, new)
        self._publish()
        return new

    def _sync_surface(self, old: DrawingSession, new: DrawingSession) -> None:
        """Remove and add only the vertex markers that changed."""
        before, after = old.active_points, new.active_points
        common = 0
        for a, b in zip(before, after):
            if a != b:
                break
            common += 1

        for index in range(len(before) - 1, common - 1, -1):
            self.surface.remove_vertex(index)
        for index in range(common, len(after)):
            self.surface.add_vertex(after[index], index)

        self.surface.render_ring(new.drawn_points, new.holes, interactive=not new.is_drawing_hole)

        closable = new.mode is not DrawingMode.IDLE and len(after) >= 3
        self.surface.highlight_close_point(after[0] if closable else None)

    def _publish(self) -> None:
        session = self.session
        if session.is_empty:
            self.estimate = None
            if self.on_area_change:
                self.on_area_change(None)
            return

        area = session.net_area_m2
        self.estimate = estimate_zone(
            area,
            self.solar_potential,
            self.electricity_price,
            self.config,
            perimeter_m=session.perimeter_m
        )
        logger.debug("Zone area %.1f m², %d panels", area, self.estimate.metrics.number_of_panels)

        if self.on_area_change:
            self.on_area_change(area)
        if self.on_technical_info_change:
            self.on_technical_info_change(self.estimate)
