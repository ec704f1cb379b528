"""파이프라인 데이터 모델

Detection → OCR → Translation → Embed 전체에서 사용하는 공통 스키마
"""

import math
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Rect(BaseModel):
    """축 정렬 사각형 {left, top, right, bottom}

    유효성:
    - left <= right, top <= bottom 보장 (자동 정렬)
    - 면적 0인 사각형도 유효 (면적 계산 시 0으로 취급)
    - 좌표는 클램핑하지 않음 (이미지 경계 처리는 호출 측 책임)
    """

    left: float
    top: float
    right: float
    bottom: float

    @model_validator(mode="after")
    def validate_and_normalize(self) -> Self:
        """좌표 유효성 검증 및 정규화"""
        # 역전된 경우 자동 정렬
        if self.left > self.right:
            self.left, self.right = self.right, self.left
        if self.top > self.bottom:
            self.top, self.bottom = self.bottom, self.top
        return self

    @classmethod
    def from_list(cls, coords: list[float]) -> "Rect":
        """리스트에서 Rect 생성

        Args:
            coords: [left, top, right, bottom] 형태의 리스트

        Raises:
            ValueError: 좌표 개수가 4개가 아니거나 숫자가 아닌 경우
        """
        if len(coords) != 4:
            raise ValueError(f"Rect requires 4 coordinates, got {len(coords)}")

        for i, c in enumerate(coords):
            if math.isnan(c) or math.isinf(c):
                raise ValueError(f"Coordinate {i} is NaN or Inf")

        return cls(left=coords[0], top=coords[1], right=coords[2], bottom=coords[3])

    def to_tuple(self) -> tuple[int, int, int, int]:
        """정수 튜플로 변환 (crop 등에 사용)

        round()를 사용하여 반올림 (truncation 방지)
        """
        return (round(self.left), round(self.top), round(self.right), round(self.bottom))

    def to_list(self) -> list[float]:
        return [self.left, self.top, self.right, self.bottom]

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        """면적 (퇴화 사각형은 0)"""
        return max(0.0, self.width) * max(0.0, self.height)

    @property
    def center(self) -> tuple[float, float]:
        """중심점 (cx, cy)"""
        return ((self.left + self.right) / 2, (self.top + self.bottom) / 2)

    def is_valid(self) -> bool:
        """유효한 영역인지 확인 (width > 0 and height > 0)"""
        return self.width > 0 and self.height > 0

    def scaled(self, sx: float, sy: float) -> "Rect":
        return Rect(
            left=self.left * sx, top=self.top * sy, right=self.right * sx, bottom=self.bottom * sy
        )

    def expanded(self, pad: float) -> "Rect":
        """사방으로 pad만큼 확장 (음수면 축소, 역전 시 자동 정렬)"""
        return Rect(
            left=self.left - pad,
            top=self.top - pad,
            right=self.right + pad,
            bottom=self.bottom + pad,
        )

    def clamped(self, width: float, height: float) -> "Rect":
        """[0, width] x [0, height] 내로 클리핑

        완전히 경계 밖이면 zero-area Rect 반환.
        """
        return Rect(
            left=min(width, max(0.0, self.left)),
            top=min(height, max(0.0, self.top)),
            right=min(width, max(0.0, self.right)),
            bottom=min(height, max(0.0, self.bottom)),
        )


class Detection(BaseModel):
    """탐지 결과 1건 (생성 후 불변)"""

    model_config = ConfigDict(frozen=True)

    rect: Rect
    confidence: float = Field(ge=0.0, le=1.0)
    class_id: int = 0


class BubbleSource(StrEnum):
    BUBBLE_DETECTOR = "bubble_detector"
    TEXT_DETECTOR = "text_detector"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class BubbleTranslation(BaseModel):
    """말풍선 단위 번역 정보

    id는 탐지 시점에 부여되며 페이지 내에서 유일.
    """

    id: int
    rect: Rect
    text: str = ""
    source: BubbleSource = BubbleSource.UNKNOWN


class TranslationResult(BaseModel):
    """페이지 단위 번역 결과 (값 타입, 수정 시 사본 반환)"""

    image_name: str
    width: int
    height: int
    bubbles: list[BubbleTranslation] = Field(default_factory=list)


class RingSample(BaseModel):
    """영역 주변 링 픽셀 통계"""

    avg_r: float
    avg_g: float
    avg_b: float
    avg_luma: float
    luma_std: float
    avg_color_spread: float
    count: int


class LayoutLine(BaseModel):
    start: int  # 원문 인덱스 (포함)
    end: int  # 원문 인덱스 (미포함)
    text: str
    width: float  # 후행 공백 제외 폭


class HorizontalLayout(BaseModel):
    font_size: float
    lines: list[LayoutLine]
    line_height: float
    ascent: float
    descent: float
    width: float  # 줄바꿈 기준 폭
    height: float
    fits: bool


class VerticalLayout(BaseModel):
    font_size: float
    column_width: float
    line_height: float
    ascent: float
    descent: float
    max_rows: int
    columns: int
    total_width: float
    total_height: float
    fits: bool


class TranslatedText(BaseModel):
    """번역 연산자 결과"""

    translation: str
    glossary_used: dict[str, str] = Field(default_factory=dict)


class OcrResult(BaseModel):
    text: str
    score: float = 0.0


class OcrLanguage(StrEnum):
    JAPANESE = "ja"
    ENGLISH = "en"
