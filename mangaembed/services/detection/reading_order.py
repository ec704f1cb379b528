"""읽기 순서 정렬 (위→아래 행, 행 내부 왼쪽→오른쪽)"""

from mangaembed.constants import ReadingOrder
from mangaembed.schemas.pipeline import Rect


def assign_line_groups(tops: list[float], line_gap: float = ReadingOrder.LINE_GAP) -> list[int]:
    """정렬된 top 좌표 리스트에 행 번호 부여 (순수 함수)

    연속한 top 간격이 line_gap 이상이면 새 행.
    """
    groups: list[int] = []
    group = 0
    for i, top in enumerate(tops):
        if i > 0 and top - tops[i - 1] >= line_gap:
            group += 1
        groups.append(group)
    return groups


def sort_reading_order(rects: list[Rect], line_gap: float = ReadingOrder.LINE_GAP) -> list[Rect]:
    """가로쓰기 텍스트 줄 박스를 읽기 순서로 정렬

    일반 문서 레이아웃 분석이 아닌 휴리스틱.
    """
    by_top = sorted(rects, key=lambda r: r.top)
    groups = assign_line_groups([r.top for r in by_top], line_gap)
    ordered = sorted(zip(groups, by_top, strict=True), key=lambda pair: (pair[0], pair[1].left))
    return [rect for _, rect in ordered]
