"""拖放区域判定与几何缓存。"""

from __future__ import annotations

from upx_gui.core.drop_target import COMPRESS_REGION, DECOMPRESS_REGION, DropTargetClassifier, Point, Rect
from upx_gui.core.models import OperationMode


class Layout:
    def __init__(self, rects) -> None:
        self.rects = dict(rects)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.rects


def make_layout() -> Layout:
    return Layout(
        {
            COMPRESS_REGION: Rect(0, 0, 100, 50),
            DECOMPRESS_REGION: Rect(120, 0, 220, 50),
        }
    )


def test_point_inside_each_region() -> None:
    classifier = DropTargetClassifier(make_layout())

    assert classifier.classify(Point(50, 25)) is OperationMode.COMPRESS
    assert classifier.classify(Point(150, 25)) is OperationMode.DECOMPRESS
    assert classifier.classify(Point(110, 25)) is None
    assert classifier.classify(None) is None


def test_bounds_are_inclusive() -> None:
    classifier = DropTargetClassifier(make_layout())

    assert classifier.classify(Point(0, 0)) is OperationMode.COMPRESS
    assert classifier.classify(Point(100, 50)) is OperationMode.COMPRESS
    assert classifier.classify(Point(220, 50)) is OperationMode.DECOMPRESS
    assert classifier.classify(Point(220.5, 50)) is None


def test_compress_wins_on_overlap() -> None:
    layout = Layout(
        {
            COMPRESS_REGION: Rect(0, 0, 100, 100),
            DECOMPRESS_REGION: Rect(50, 50, 150, 150),
        }
    )
    classifier = DropTargetClassifier(layout)

    assert classifier.classify(Point(75, 75)) is OperationMode.COMPRESS
    assert classifier.classify(Point(125, 125)) is OperationMode.DECOMPRESS


def test_geometry_cached_until_invalidated() -> None:
    layout = make_layout()
    classifier = DropTargetClassifier(layout)

    classifier.classify(Point(1, 1))
    classifier.classify(Point(2, 2))
    assert layout.calls == 1
    assert classifier.is_cached

    classifier.invalidate()
    assert not classifier.is_cached
    layout.rects[COMPRESS_REGION] = Rect(500, 500, 600, 600)

    assert classifier.classify(Point(1, 1)) is None
    assert classifier.classify(Point(550, 550)) is OperationMode.COMPRESS
    assert layout.calls == 2


def test_rect_from_size() -> None:
    rect = Rect.from_size(10, 20, 30, 40)

    assert rect == Rect(10, 20, 40, 60)
