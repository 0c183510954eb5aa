"""Tests for the drawing state machine and its controller."""

import pytest

from solar_zone.drawing import (
    DrawingController,
    DrawingMode,
    DrawingSession,
    add_point,
    clear,
    complete_hole,
    finish_drawing,
    redo,
    start_drawing,
    start_hole,
    undo,
)
from solar_zone.geometry import GeoPoint, area


def draw(session, points):
    for point in points:
        session = add_point(session, point)
    return session


@pytest.fixture
def drawn(paris_square):
    """Main ring with four vertices, still open."""
    return draw(start_drawing(), paris_square)


@pytest.fixture
def closed(drawn, paris_square):
    return add_point(drawn, paris_square[0])


def test_start_drawing_resets_session(drawn):
    session = start_drawing(drawn)

    assert session.mode is DrawingMode.DRAWING_MAIN
    assert session.drawn_points == ()
    assert session.holes == ()
    assert not session.can_undo


def test_clicks_are_ignored_while_idle(paris_square):
    session = DrawingSession()

    assert add_point(session, paris_square[0]) is session


def test_clicking_first_vertex_closes_ring(closed, paris_square):
    assert closed.mode is DrawingMode.IDLE
    assert closed.closed
    # The snapping click is not stored as a vertex
    assert closed.drawn_points == tuple(paris_square)
    assert closed.net_area_m2 == pytest.approx(area(paris_square + [paris_square[0]]))


def test_click_near_first_vertex_snaps(drawn, paris_square):
    origin = paris_square[0]
    near = GeoPoint(origin.lat + 0.00001, origin.lng + 0.00001)

    session = add_point(drawn, near)

    assert session.closed
    assert len(session.drawn_points) == 4


def test_snap_needs_three_points(paris_square):
    session = draw(start_drawing(), paris_square[:2])

    session = add_point(session, paris_square[0])

    assert session.mode is DrawingMode.DRAWING_MAIN
    assert len(session.drawn_points) == 3
    assert session.net_area_m2 == 0.0


def test_further_clicks_after_closing_change_nothing(closed, paris_square):
    assert add_point(closed, paris_square[0]) == closed
    assert add_point(closed, GeoPoint(48.9, 2.4)) == closed


def test_undo_all_then_redo_all_round_trips(drawn, paris_square):
    session = drawn
    for _ in paris_square:
        session = undo(session)

    assert session.drawn_points == ()
    assert not session.can_undo
    assert undo(session) == session

    for _ in paris_square:
        session = redo(session)

    assert session.drawn_points == tuple(paris_square)
    assert not session.can_redo


def test_undo_reopens_closed_ring(closed, paris_square):
    session = undo(closed)

    assert session.mode is DrawingMode.DRAWING_MAIN
    assert not session.closed
    assert session.drawn_points == tuple(paris_square[:3])


def test_new_point_after_undo_drops_redo_branch(drawn):
    session = add_point(undo(drawn), GeoPoint(48.8568, 2.3523))

    assert not session.can_redo
    assert len(session.drawn_points) == 4
    assert len(session.history) == 5


def test_hole_reduces_net_area_by_hole_area(drawn, paris_square, inner_square):
    session = start_hole(drawn)
    assert session.mode is DrawingMode.DRAWING_HOLE

    session = draw(session, inner_square)
    session = add_point(session, inner_square[0])

    assert session.mode is DrawingMode.DRAWING_MAIN
    assert session.holes == (tuple(inner_square),)
    assert session.drawn_points == tuple(paris_square)
    assert session.net_area_m2 == pytest.approx(area(paris_square) - area(inner_square))


def test_hole_on_closed_ring_returns_to_idle(closed, inner_square):
    session = complete_hole(draw(start_hole(closed), inner_square))

    assert session.mode is DrawingMode.IDLE
    assert session.closed
    assert len(session.holes) == 1


def test_degenerate_hole_is_discarded(drawn, inner_square):
    session = complete_hole(draw(start_hole(drawn), inner_square[:2]))

    assert session.holes == ()
    assert session.hole_points == ()
    assert session.mode is DrawingMode.DRAWING_MAIN


def test_cannot_start_hole_without_main_ring(paris_square):
    short = draw(start_drawing(), paris_square[:2])
    unclosed_idle = finish_drawing(short)

    assert start_hole(short) == short
    assert start_hole(unclosed_idle) == unclosed_idle
    assert start_hole(DrawingSession()) == DrawingSession()


def test_undo_disabled_while_drawing_hole(drawn, inner_square):
    session = draw(start_hole(drawn), inner_square[:2])

    assert not session.can_undo
    assert undo(session) == session
    assert redo(session) == session


def test_finish_with_fewer_than_three_points(paris_square):
    session = finish_drawing(draw(start_drawing(), paris_square[:2]))

    assert session.mode is DrawingMode.IDLE
    assert not session.closed
    assert session.net_area_m2 == 0.0


def test_finish_completes_pending_hole(drawn, inner_square):
    session = finish_drawing(draw(start_hole(drawn), inner_square))

    assert session.mode is DrawingMode.IDLE
    assert session.closed
    assert len(session.holes) == 1


def test_clear_drops_everything(closed):
    session = clear(closed)

    assert session == DrawingSession()
    assert session.is_empty


class FakeSurface:
    """Records what the controller asks the map to draw."""

    def __init__(self):
        self.vertices = []
        self.removed = []
        self.close_point = None
        self.ring = None
        self.interactive = None

    def add_vertex(self, point, index):
        assert index == len(self.vertices)
        self.vertices.append(point)

    def remove_vertex(self, index):
        assert index == len(self.vertices) - 1
        self.vertices.pop()
        self.removed.append(index)

    def highlight_close_point(self, point):
        self.close_point = point

    def render_ring(self, points, holes, interactive):
        self.ring = (tuple(points), tuple(holes))
        self.interactive = interactive


@pytest.fixture
def controller(solar_potential):
    areas, estimates = [], []
    controller = DrawingController(
        solar_potential=solar_potential,
        surface=FakeSurface(),
        on_area_change=areas.append,
        on_technical_info_change=estimates.append,
    )
    controller.areas = areas
    controller.estimates = estimates
    return controller


def test_controller_adds_markers_and_highlights_close_point(controller, paris_square):
    controller.start()
    for point in paris_square:
        controller.click(point)

    assert controller.surface.vertices == paris_square
    assert controller.surface.close_point == paris_square[0]
    assert controller.surface.interactive


def test_controller_publishes_area_and_estimate(controller, paris_square):
    controller.start()
    for point in paris_square:
        controller.click(point)
    controller.click(paris_square[0])

    assert controller.session.closed
    assert controller.surface.close_point is None
    assert controller.areas[0] is None
    assert controller.areas[-1] == pytest.approx(area(paris_square))

    estimate = controller.estimates[-1]
    assert estimate is controller.estimate
    assert estimate.metrics.number_of_panels == 86
    assert estimate.financials.electricity_price == pytest.approx(0.34223)
    assert estimate.perimeter_m > 0


def test_controller_undo_removes_last_marker(controller, paris_square):
    controller.start()
    for point in paris_square:
        controller.click(point)

    controller.undo()

    assert controller.surface.removed == [3]
    assert controller.surface.vertices == paris_square[:3]


def test_controller_hole_switches_active_markers(controller, paris_square, inner_square):
    controller.start()
    for point in paris_square:
        controller.click(point)

    controller.start_hole()
    assert controller.surface.vertices == []
    assert not controller.surface.interactive

    for point in inner_square:
        controller.click(point)
    assert controller.surface.vertices == inner_square

    controller.complete_hole()
    assert controller.surface.vertices == paris_square
    assert controller.areas[-1] == pytest.approx(area(paris_square) - area(inner_square))


def test_controller_clear_reports_no_area(controller, paris_square):
    controller.start()
    for point in paris_square:
        controller.click(point)

    controller.clear()

    assert controller.areas[-1] is None
    assert controller.estimate is None
    assert controller.surface.vertices == []


def test_unchanged_session_fires_no_callbacks(controller, paris_square):
    controller.click(paris_square[0])

    assert controller.areas == []
    assert controller.estimates == []


def test_price_update_republishes_estimate(controller, paris_square):
    controller.start()
    for point in paris_square:
        controller.click(point)
    published = len(controller.estimates)

    controller.set_electricity_price(0.25)

    assert len(controller.estimates) == published + 1
    assert controller.estimate.financials.electricity_price == 0.25


def test_controller_without_solar_data_publishes_zero_estimate(paris_square):
    estimates = []
    controller = DrawingController(on_technical_info_change=estimates.append)

    controller.start()
    for point in paris_square:
        controller.click(point)

    assert estimates[-1].metrics.number_of_panels == 0
    assert estimates[-1].financials.net_benefit == 0.0
