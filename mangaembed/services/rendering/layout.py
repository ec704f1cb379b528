"""텍스트 레이아웃 엔진

가로쓰기: 단어 단위 줄바꿈 + 가운데 정렬, 높이가 넘치면 폰트 10%씩 축소
세로쓰기: 오른쪽→왼쪽 열, 열 내부 위→아래, 크기가 넘치면 폰트 10%씩 축소

두 모드 모두 최소 크기(10)에 도달하면 넘쳐도 그대로 사용 (에러 아님).
"""

from dataclasses import dataclass

from mangaembed.constants import Layout
from mangaembed.schemas.pipeline import HorizontalLayout, LayoutLine, Rect, VerticalLayout
from mangaembed.services.rendering.fonts import TextMeasurer

BACKGROUND_PAD_RATIO = 0.12


@dataclass(frozen=True)
class GlyphPlacement:
    """글자 1개의 배치 정보 (x는 왼쪽, baseline은 기준선 y)"""

    char: str
    x: float
    baseline: float
    width: float
    neighbor_gap: float


def start_font_size(extent: float, divisor: float) -> float:
    return min(Layout.MAX_START_SIZE, max(Layout.MIN_START_SIZE, extent / divisor))


def wrap_lines(text: str, max_width: float, size: float, measurer: TextMeasurer) -> list[LayoutLine]:
    """탐욕적 줄바꿈

    - '\\n'은 강제 줄바꿈
    - 폭을 넘으면 줄 안의 마지막 공백 뒤에서 끊고, 공백이 없으면 글자 단위로 끊음
    - 줄 끝 공백은 현재 줄에 포함하되 폭 계산에서는 제외
    """
    lines: list[LayoutLine] = []
    para_start = 0

    for paragraph in text.split("\n"):
        para_end = para_start + len(paragraph)
        if para_start == para_end:
            lines.append(LayoutLine(start=para_start, end=para_end, text="", width=0.0))

        line_start = para_start
        while line_start < para_end:
            end = line_start + 1
            last_break = None
            while end < para_end:
                if text[end - 1] == " ":
                    last_break = end
                candidate = text[line_start : end + 1].rstrip(" ")
                if measurer.advance(candidate, size) > max_width:
                    break
                end += 1

            if end < para_end and text[end] != " " and last_break is not None:
                end = last_break
            while end < para_end and text[end] == " ":
                end += 1

            segment = text[line_start:end]
            width = measurer.advance(segment.rstrip(" "), size)
            lines.append(LayoutLine(start=line_start, end=end, text=segment, width=width))
            line_start = end

        para_start = para_end + 1

    return lines


def build_horizontal_layout(
    text: str, max_width: float, max_height: float, size: float, measurer: TextMeasurer
) -> HorizontalLayout:
    ascent, descent = measurer.metrics(size)
    line_height = ascent + descent
    lines = wrap_lines(text, max_width, size, measurer)
    height = len(lines) * line_height
    return HorizontalLayout(
        font_size=size,
        lines=lines,
        line_height=line_height,
        ascent=ascent,
        descent=descent,
        width=max_width,
        height=height,
        fits=height <= max_height,
    )


def layout_horizontal(
    text: str, max_width: float, max_height: float, measurer: TextMeasurer
) -> HorizontalLayout:
    """가로쓰기 레이아웃: 시작 크기 = 높이/3 ([12, 42]), 넘치면 10%씩 축소 (하한 10)"""
    max_width = max(1.0, float(int(max_width)))
    max_height = max(1.0, float(int(max_height)))

    size = start_font_size(max_height, Layout.HORIZONTAL_SIZE_DIVISOR)
    layout = build_horizontal_layout(text, max_width, max_height, size, measurer)
    while layout.height > max_height and size > Layout.MIN_SIZE:
        size *= Layout.SHRINK
        layout = build_horizontal_layout(text, max_width, max_height, size, measurer)
    return layout


def count_vertical_columns(text: str, max_rows: int) -> int:
    """배치 순서대로 셌을 때의 열 수 ('\\n'과 max_rows 초과 시 새 열, 최소 1)"""
    col = row = 0
    for ch in text:
        if ch == "\n":
            col += 1
            row = 0
            continue
        if row >= max_rows:
            col += 1
            row = 0
        row += 1
    return col + 1


def build_vertical_layout(
    text: str, max_width: float, max_height: float, size: float, measurer: TextMeasurer
) -> VerticalLayout:
    ascent, descent = measurer.metrics(size)
    line_height = max(1.0, ascent + descent)
    max_rows = max(1, int(max_height // line_height))
    column_width = max((measurer.advance(ch, size) for ch in text if ch != "\n"), default=0.0)
    if column_width <= 0:
        column_width = measurer.advance(Layout.FALLBACK_GLYPH, size)
    column_width = max(1.0, column_width)

    columns = count_vertical_columns(text, max_rows)
    total_width = columns * column_width
    total_height = max_rows * line_height
    return VerticalLayout(
        font_size=size,
        column_width=column_width,
        line_height=line_height,
        ascent=ascent,
        descent=descent,
        max_rows=max_rows,
        columns=columns,
        total_width=total_width,
        total_height=total_height,
        fits=total_width <= max_width and total_height <= max_height,
    )


def layout_vertical(
    text: str, max_width: float, max_height: float, measurer: TextMeasurer
) -> VerticalLayout:
    """세로쓰기 레이아웃: 시작 크기 = 폭/2.2 ([12, 42]), 넘치거나 측정값이 비정상이면 10%씩 축소"""
    max_width = max(1.0, float(int(max_width)))
    max_height = max(1.0, float(int(max_height)))

    size = start_font_size(max_width, Layout.VERTICAL_SIZE_DIVISOR)
    layout = build_vertical_layout(text, max_width, max_height, size, measurer)
    while (
        layout.column_width <= 0 or layout.line_height <= 0 or not layout.fits
    ) and size > Layout.MIN_SIZE:
        size *= Layout.SHRINK
        layout = build_vertical_layout(text, max_width, max_height, size, measurer)
    return layout


def horizontal_glyph_positions(
    text: str, layout: HorizontalLayout, rect: Rect, measurer: TextMeasurer
) -> list[GlyphPlacement]:
    """가로 레이아웃의 글자별 위치 (줄 단위 가운데 정렬, 블록은 세로 가운데)"""
    size = layout.font_size
    top = rect.top + max(0.0, (rect.height - layout.height) / 2)
    placements: list[GlyphPlacement] = []

    for index, line in enumerate(layout.lines):
        baseline = top + index * layout.line_height + layout.ascent
        line_left = rect.left + (layout.width - line.width) / 2

        row: list[tuple[str, float, float]] = []
        for i in range(line.start, line.end):
            ch = text[i]
            width = measurer.advance(ch, size)
            if ch == "\n" or width <= 0:
                continue
            row.append((ch, line_left + measurer.advance(text[line.start : i], size), width))

        gaps = _neighbor_gaps(row)
        placements.extend(
            GlyphPlacement(char=ch, x=x, baseline=baseline, width=w, neighbor_gap=gap)
            for (ch, x, w), gap in zip(row, gaps, strict=True)
        )

    return placements


def _neighbor_gaps(row: list[tuple[str, float, float]]) -> list[float]:
    """공백이 아닌 이웃 글자와의 최대 간격 (공백 글자는 0)"""
    visible = [i for i, (ch, _, _) in enumerate(row) if not ch.isspace()]
    gaps = [0.0] * len(row)
    for pos, i in enumerate(visible):
        _, x, w = row[i]
        gap = 0.0
        if pos > 0:
            _, px, pw = row[visible[pos - 1]]
            gap = max(gap, x - (px + pw))
        if pos < len(visible) - 1:
            _, nx, _ = row[visible[pos + 1]]
            gap = max(gap, nx - (x + w))
        gaps[i] = max(0.0, gap)
    return gaps


def vertical_glyph_positions(
    text: str, layout: VerticalLayout, rect: Rect, measurer: TextMeasurer
) -> list[GlyphPlacement]:
    """세로 레이아웃의 글자별 위치

    첫 열은 오른쪽, max_rows를 채우거나 '\\n'을 만나면 왼쪽 열로 이동.
    다른 텍스트로 만든 레이아웃이면 열 수를 넘는 글자는 그리지 않음.
    """
    size = layout.font_size
    col_w = layout.column_width
    dx = rect.right - (rect.width - layout.total_width) / 2 - col_w
    dy = rect.top + (rect.height - layout.total_height) / 2 + layout.ascent
    vertical_gap = max(0.0, layout.line_height - (layout.ascent + layout.descent))

    placements: list[GlyphPlacement] = []
    col = row = 0
    for ch in text:
        if ch == "\n":
            col += 1
            row = 0
            continue
        if row >= layout.max_rows:
            col += 1
            row = 0
        if col >= layout.columns:
            break

        width = measurer.advance(ch, size)
        placements.append(
            GlyphPlacement(
                char=ch,
                x=dx - col * col_w + (col_w - width) / 2,
                baseline=dy + row * layout.line_height,
                width=width,
                neighbor_gap=max(max(0.0, col_w - width), vertical_gap),
            )
        )
        row += 1

    return placements


def min_background_padding(rect: Rect) -> float:
    scaled = min(rect.width, rect.height) / 600 * 1.8
    return min(2.0, max(0.8, scaled))


def glyph_background(
    placement: GlyphPlacement, ascent: float, descent: float, max_rect: Rect
) -> tuple[Rect, float] | None:
    """글자 뒤 배경 둥근 사각형 (사각형, 모서리 반경), 퇴화하면 None

    패딩은 글자 크기와 이웃 간격에 비례하되 [min_pad * 0.5, max_pad]로 제한하고
    max_rect 밖으로 나가지 않음.
    """
    left, right = placement.x, placement.x + placement.width
    top, bottom = placement.baseline - ascent, placement.baseline + descent
    if right <= left or bottom <= top:
        return None

    glyph_h = bottom - top
    neighbor_pad = max(0.0, placement.neighbor_gap) * 0.2
    base_pad_x = max(placement.width * 0.08, 0.6) + neighbor_pad
    base_pad_y = max(glyph_h * 0.06, 0.6)
    min_pad = min_background_padding(max_rect)
    max_pad_x = max(placement.width * BACKGROUND_PAD_RATIO, min_pad)
    max_pad_y = max(glyph_h * BACKGROUND_PAD_RATIO, min_pad)
    pad_x = min(max_pad_x, max(min_pad * 0.5, base_pad_x))
    pad_y = min(max_pad_y, max(min_pad * 0.5, base_pad_y))

    bg = Rect(
        left=max(max_rect.left, left - pad_x),
        top=max(max_rect.top, top - pad_y),
        right=min(max_rect.right, right + pad_x),
        bottom=min(max_rect.bottom, bottom + pad_y),
    )
    radius = max(1.0, min(bg.width, bg.height) * 0.12)
    return bg, radius
