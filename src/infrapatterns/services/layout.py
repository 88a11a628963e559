"""配置コンポーネントのレイアウト戦略。"""

import math
from abc import ABC, abstractmethod

from infrapatterns.models.pattern import Position
from infrapatterns.models.workspace import Bounds, LayoutInfo, Spacing, WorkspaceComponent

CELL_WIDTH = 200
CELL_HEIGHT = 150


class LayoutStrategy(ABC):
    """コンポーネント列に座標を割り当てる戦略。入力は変更せず新しいリストを返す。"""

    name: str

    @abstractmethod
    def apply(self, components: list[WorkspaceComponent], base: Position) -> list[WorkspaceComponent]: ...


class GridLayout(LayoutStrategy):
    """基準点を左上として `ceil(sqrt(n))` 列の格子に並べる。"""

    name = "grid"

    def apply(self, components: list[WorkspaceComponent], base: Position) -> list[WorkspaceComponent]:
        if not components:
            return []
        cols = math.ceil(math.sqrt(len(components)))
        return [
            c.model_copy(
                update={
                    "position": Position(
                        x=base.x + (i % cols) * CELL_WIDTH,
                        y=base.y + (i // cols) * CELL_HEIGHT,
                    )
                }
            )
            for i, c in enumerate(components)
        ]


class HierarchicalLayout(LayoutStrategy):
    """コンポーネント種別ごとに1層とし、各層を基準点のX座標を中心に並べる。"""

    name = "hierarchical"

    def apply(self, components: list[WorkspaceComponent], base: Position) -> list[WorkspaceComponent]:
        layers: dict[str, list[WorkspaceComponent]] = {}
        for component in components:
            layers.setdefault(component.type, []).append(component)

        placed: list[WorkspaceComponent] = []
        y = base.y
        for layer in layers.values():
            start_x = base.x - len(layer) * CELL_WIDTH / 2
            for i, component in enumerate(layer):
                placed.append(component.model_copy(update={"position": Position(x=start_x + i * CELL_WIDTH, y=y)}))
            y += CELL_HEIGHT
        return placed


class CircularLayout(LayoutStrategy):
    """基準点を中心とする円周上に等間隔で並べる。"""

    name = "circular"

    def apply(self, components: list[WorkspaceComponent], base: Position) -> list[WorkspaceComponent]:
        count = len(components)
        radius = max(100, count * 30)
        placed: list[WorkspaceComponent] = []
        for i, component in enumerate(components):
            angle = 2 * math.pi * i / count
            position = Position(x=base.x + radius * math.cos(angle), y=base.y + radius * math.sin(angle))
            placed.append(component.model_copy(update={"position": position}))
        return placed


LAYOUT_STRATEGIES: dict[str, LayoutStrategy] = {
    strategy.name: strategy for strategy in (GridLayout(), HierarchicalLayout(), CircularLayout())
}


def get_layout_strategy(name: str | None) -> LayoutStrategy:
    """名前でレイアウト戦略を引く。未知の名前はグリッドにフォールバックする。"""
    return LAYOUT_STRATEGIES.get(name or "grid", LAYOUT_STRATEGIES["grid"])


def calculate_bounds(components: list[WorkspaceComponent]) -> LayoutInfo:
    """配置済みコンポーネントの外接矩形と中心を求める。"""
    if not components:
        return LayoutInfo()

    xs = [c.position.x for c in components]
    ys = [c.position.y for c in components]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return LayoutInfo(
        bounds=Bounds(width=max_x - min_x + CELL_WIDTH, height=max_y - min_y + CELL_HEIGHT),
        center=Position(x=(min_x + max_x) / 2, y=(min_y + max_y) / 2),
        spacing=Spacing(horizontal=CELL_WIDTH, vertical=CELL_HEIGHT),
    )
