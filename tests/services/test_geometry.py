"""사각형 기하 연산 순수 함수 테스트"""

import itertools

import pytest

from mangaembed.schemas.pipeline import Detection, Rect
from mangaembed.services.geometry import (
    contains,
    filter_overlapping,
    iou,
    merge_rects,
    nms,
    overlap_over_min_area,
    pad_rect,
    should_merge,
    union,
)


def _rect(left: float, top: float, right: float, bottom: float) -> Rect:
    return Rect(left=left, top=top, right=right, bottom=bottom)


def _det(rect: Rect, conf: float) -> Detection:
    return Detection(rect=rect, confidence=conf)


class TestRect:
    def test_reversed_coords_normalized(self) -> None:
        rect = _rect(100, 80, 10, 20)
        assert rect.to_list() == [10, 20, 100, 80]

    def test_zero_area_is_valid_but_empty(self) -> None:
        rect = _rect(10, 10, 10, 50)
        assert rect.area == 0
        assert not rect.is_valid()

    def test_from_list_rejects_nan(self) -> None:
        with pytest.raises(ValueError):
            Rect.from_list([0, float("nan"), 1, 1])

    def test_from_list_rejects_wrong_length(self) -> None:
        with pytest.raises(ValueError):
            Rect.from_list([0, 0, 1])

    def test_clamped_outside_returns_zero_area(self) -> None:
        rect = _rect(300, 300, 400, 400).clamped(200, 200)
        assert rect.area == 0


class TestIou:
    def test_identical(self) -> None:
        box = _rect(0, 0, 100, 100)
        assert iou(box, box) == 1.0

    def test_half_overlap(self) -> None:
        a = _rect(0, 0, 100, 100)
        b = _rect(50, 0, 150, 100)
        assert iou(a, b) == pytest.approx(1 / 3)

    def test_disjoint(self) -> None:
        assert iou(_rect(0, 0, 10, 10), _rect(20, 20, 30, 30)) == 0.0

    def test_zero_area_both(self) -> None:
        assert iou(_rect(5, 5, 5, 5), _rect(5, 5, 5, 5)) == 0.0

    def test_symmetric(self) -> None:
        a = _rect(0, 0, 60, 40)
        b = _rect(30, 10, 90, 70)
        assert iou(a, b) == iou(b, a)


class TestOverlapOverMinArea:
    def test_contained(self) -> None:
        assert overlap_over_min_area(_rect(10, 10, 20, 20), _rect(0, 0, 100, 100)) == 1.0

    def test_zero_area(self) -> None:
        assert overlap_over_min_area(_rect(10, 10, 10, 20), _rect(0, 0, 100, 100)) == 0.0


class TestUnionContains:
    def test_union(self) -> None:
        assert union(_rect(0, 0, 10, 10), _rect(5, 20, 30, 25)) == _rect(0, 0, 30, 25)

    def test_contains_edge_inclusive(self) -> None:
        assert contains(_rect(0, 0, 100, 100), _rect(0, 0, 100, 100))
        assert not contains(_rect(0, 0, 100, 100), _rect(0, 0, 101, 100))


class TestNms:
    def test_suppresses_overlapping(self) -> None:
        high = _det(_rect(0, 0, 100, 100), 0.9)
        low = _det(_rect(5, 5, 105, 105), 0.8)
        far = _det(_rect(300, 300, 400, 400), 0.7)

        result = nms([low, far, high])

        assert result == [high, far]

    def test_drops_below_conf_threshold(self) -> None:
        result = nms([_det(_rect(0, 0, 10, 10), 0.1)], conf_threshold=0.25)
        assert result == []

    def test_sorted_by_confidence_desc(self) -> None:
        dets = [_det(_rect(i * 100, 0, i * 100 + 50, 50), c) for i, c in enumerate([0.3, 0.9, 0.6])]
        result = nms(dets)
        assert [d.confidence for d in result] == [0.9, 0.6, 0.3]

    def test_ties_keep_input_order(self) -> None:
        first = _det(_rect(0, 0, 100, 100), 0.5)
        second = _det(_rect(2, 2, 102, 102), 0.5)
        assert nms([first, second]) == [first]
        assert nms([second, first]) == [second]

    def test_permutation_invariant_without_ties(self) -> None:
        dets = [
            _det(_rect(0, 0, 100, 100), 0.9),
            _det(_rect(10, 10, 110, 110), 0.8),
            _det(_rect(200, 0, 300, 100), 0.7),
            _det(_rect(205, 5, 305, 105), 0.95),
        ]
        expected = nms(dets)
        for perm in itertools.permutations(dets):
            assert nms(list(perm)) == expected

    def test_kept_boxes_do_not_overlap_above_threshold(self) -> None:
        dets = [_det(_rect(i * 7, 0, i * 7 + 40, 40), 0.5 + i * 0.01) for i in range(10)]
        result = nms(dets, iou_threshold=0.3)
        for a, b in itertools.combinations(result, 2):
            assert iou(a.rect, b.rect) <= 0.3


class TestShouldMerge:
    def test_contained_box_merges(self) -> None:
        assert should_merge(_rect(0, 0, 100, 100), _rect(10, 10, 20, 20), 1000 * 1000)

    def test_zero_area_never_merges(self) -> None:
        assert not should_merge(_rect(0, 0, 0, 100), _rect(0, 0, 100, 100), 1000 * 1000)

    def test_small_nearby_boxes_merge(self) -> None:
        # 작은 박스끼리는 패딩 40px 근처에서 교차
        a = _rect(100, 100, 130, 120)
        b = _rect(180, 105, 210, 125)
        assert should_merge(a, b, 2000 * 2000)

    def test_far_vertical_centers_do_not_merge(self) -> None:
        a = _rect(100, 100, 130, 120)
        b = _rect(100, 600, 130, 620)
        assert not should_merge(a, b, 2000 * 2000)

    def test_huge_union_does_not_merge(self) -> None:
        a = _rect(0, 0, 50, 50)
        b = _rect(60, 0, 110, 50)
        # 이미지 면적이 작아 합집합이 20%를 넘음
        assert not should_merge(a, b, 120 * 60)


class TestMergeRects:
    def test_merges_transitively(self) -> None:
        rects = [_rect(100, 100, 130, 120), _rect(170, 100, 200, 120), _rect(240, 100, 270, 120)]
        result = merge_rects(rects, 2000, 2000)
        assert result == [_rect(100, 100, 270, 120)]

    def test_idempotent(self) -> None:
        rects = [
            _rect(100, 100, 130, 120),
            _rect(170, 100, 200, 120),
            _rect(800, 900, 840, 930),
            _rect(1500, 100, 1600, 300),
        ]
        once = merge_rects(rects, 2000, 2000)
        assert merge_rects(once, 2000, 2000) == once

    def test_does_not_mutate_input(self) -> None:
        rects = [_rect(0, 0, 100, 100), _rect(10, 10, 20, 20)]
        merge_rects(rects, 1000, 1000)
        assert len(rects) == 2

    def test_empty(self) -> None:
        assert merge_rects([], 100, 100) == []


class TestFilterOverlapping:
    def test_removes_contained_and_overlapping(self) -> None:
        bubble = _rect(0, 0, 100, 100)
        inside = _rect(10, 10, 30, 30)
        overlapping = _rect(50, 0, 150, 100)
        outside = _rect(300, 300, 350, 350)

        result = filter_overlapping([inside, overlapping, outside], [bubble], 0.2)

        assert result == [outside]

    def test_no_bubbles_keeps_all(self) -> None:
        rects = [_rect(0, 0, 10, 10)]
        assert filter_overlapping(rects, [], 0.2) == rects


class TestPadRect:
    def test_min_pad_applied(self) -> None:
        result = pad_rect(_rect(50, 50, 60, 60), 200, 200, ratio=0.1, min_pad=4)
        assert result == _rect(46, 46, 64, 64)

    def test_ratio_pad_and_clamp(self) -> None:
        result = pad_rect(_rect(0, 0, 100, 100), 105, 200, ratio=0.1, min_pad=4)
        assert result == _rect(0, 0, 105, 110)
