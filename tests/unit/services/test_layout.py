"""レイアウト戦略のユニットテスト。"""

import pytest

from infrapatterns.models.pattern import Position
from infrapatterns.models.workspace import WorkspaceComponent
from infrapatterns.services.layout import (
    CELL_HEIGHT,
    CELL_WIDTH,
    CircularLayout,
    GridLayout,
    HierarchicalLayout,
    calculate_bounds,
    get_layout_strategy,
)


def _components(*types: str) -> list[WorkspaceComponent]:
    return [WorkspaceComponent(id=f"c{i}", type=t) for i, t in enumerate(types)]


class TestGridLayout:
    def test_positions(self) -> None:
        placed = GridLayout().apply(_components(*["compute"] * 5), Position(x=10, y=20))
        assert [(c.position.x, c.position.y) for c in placed] == [
            (10, 20),
            (210, 20),
            (410, 20),
            (10, 170),
            (210, 170),
        ]

    @pytest.mark.parametrize("count", [1, 2, 4, 7, 10])
    def test_positions_within_bounds(self, count: int) -> None:
        base = Position(x=100, y=50)
        placed = GridLayout().apply(_components(*["compute"] * count), base)
        info = calculate_bounds(placed)
        for component in placed:
            assert base.x <= component.position.x <= base.x + info.bounds.width - CELL_WIDTH
            assert base.y <= component.position.y <= base.y + info.bounds.height - CELL_HEIGHT

    def test_input_is_not_modified(self) -> None:
        components = _components("compute", "database")
        GridLayout().apply(components, Position(x=500, y=500))
        assert all(c.position == Position() for c in components)

    def test_empty(self) -> None:
        assert GridLayout().apply([], Position()) == []


class TestHierarchicalLayout:
    def test_one_layer_per_type(self) -> None:
        placed = HierarchicalLayout().apply(_components("compute", "database", "compute"), Position(x=500, y=100))
        positions = {c.id: (c.position.x, c.position.y) for c in placed}
        assert positions == {
            "c0": (300, 100),
            "c2": (500, 100),
            "c1": (400, 250),
        }


class TestCircularLayout:
    def test_minimum_radius(self) -> None:
        placed = CircularLayout().apply(_components("a", "b", "c", "d"), Position())
        assert placed[0].position.x == pytest.approx(120)
        assert placed[0].position.y == pytest.approx(0)
        assert placed[1].position.x == pytest.approx(0, abs=1e-9)
        assert placed[1].position.y == pytest.approx(120)

    def test_small_ring_uses_floor_radius(self) -> None:
        placed = CircularLayout().apply(_components("a", "b"), Position(x=50, y=50))
        assert placed[0].position.x == pytest.approx(150)
        assert placed[1].position.x == pytest.approx(-50)


class TestLayoutHelpers:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [("grid", "grid"), ("hierarchical", "hierarchical"), ("circular", "circular"), (None, "grid"), ("spiral", "grid")],
    )
    def test_get_layout_strategy(self, name: str | None, expected: str) -> None:
        assert get_layout_strategy(name).name == expected

    def test_bounds(self) -> None:
        placed = GridLayout().apply(_components(*["compute"] * 5), Position())
        info = calculate_bounds(placed)
        assert info.bounds.width == 600
        assert info.bounds.height == 300
        assert info.center == Position(x=200, y=75)

    def test_bounds_empty(self) -> None:
        info = calculate_bounds([])
        assert info.bounds.width == 0
        assert info.center == Position()
