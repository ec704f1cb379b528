"""페이지 OCR + 번역 파이프라인

OCR: 말풍선 탐지 → 읽기 순서 정렬 → 보조 텍스트 박스 → 크롭별 OCR
번역: 태그 묶기 → 번역 → 태그 분리 → 실패 시 원문 유지
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import cv2
import numpy as np

from mangaembed.config import get_settings
from mangaembed.constants import Limits, Supplement
from mangaembed.schemas.pipeline import (
    BubbleSource,
    BubbleTranslation,
    OcrLanguage,
    Rect,
    TranslationResult,
)
from mangaembed.services.detection.base import BoxDetector, TextLineDetector
from mangaembed.services.detection.reading_order import sort_reading_order
from mangaembed.services.geometry import filter_overlapping, merge_rects, pad_rect
from mangaembed.services.inference.base import InferenceError
from mangaembed.services.ocr import default_ocr_language
from mangaembed.services.ocr.base import OcrEngine, ScoredOcrEngine
from mangaembed.services.translation.base import Translator
from mangaembed.services.translation.segments import (
    build_tagged_text,
    extract_tagged_segments,
    normalize_ocr_text,
)

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    pass


def load_image(image_path: str | Path) -> np.ndarray:
    """이미지 파일 → RGB uint8 배열

    Raises:
        PipelineError: 이미지를 읽을 수 없는 경우
    """
    image_bgr = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image_bgr is None:
        raise PipelineError(f"이미지를 읽을 수 없음: {image_path}")
    return cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)


def crop_image(image: np.ndarray, rect: Rect) -> np.ndarray | None:
    """사각형 영역 크롭 (이미지 경계로 클리핑, 비면 None)"""
    height, width = image.shape[:2]
    if height <= 0 or width <= 0:
        return None
    left, top, right, bottom = rect.clamped(width, height).to_tuple()
    if right <= left or bottom <= top:
        return None
    return image[top:bottom, left:right].copy()


def mask_rects_white(image: np.ndarray, rects: list[Rect]) -> np.ndarray:
    """말풍선 영역을 흰색으로 칠한 사본 (보조 텍스트 탐지 입력용)"""
    if not rects:
        return image
    height, width = image.shape[:2]
    masked = image.copy()
    for rect in rects:
        padded = pad_rect(
            rect, width, height, Supplement.MASK_EXPAND_RATIO, Supplement.MASK_EXPAND_MIN
        )
        left, top, right, bottom = padded.to_tuple()
        masked[top:bottom, left:right] = 255
    return masked


def recognize_lines(
    image: np.ndarray, line_rects: list[Rect], ocr: ScoredOcrEngine
) -> list[tuple[Rect, str]]:
    """줄 단위 OCR, 점수가 기준 미만이거나 빈 줄은 제외"""
    lines: list[tuple[Rect, str]] = []
    for rect in line_rects:
        crop = crop_image(image, rect)
        if crop is None:
            continue
        result = ocr.recognize_with_score(crop)
        text = result.text.strip()
        if text and result.score >= Limits.EN_MIN_LINE_SCORE:
            lines.append((rect, text))
    return lines


class PagePipeline:
    """페이지 단위 OCR 파이프라인

    text_detector가 있으면 말풍선 밖 텍스트를 보조 박스로 추가하고,
    영어 + line_detector 조합이면 말풍선 안을 줄 단위로 인식한다.
    language가 None이면 OCR_LANGUAGE 설정을 따른다.
    """

    def __init__(
        self,
        bubble_detector: BoxDetector,
        ocr_engine: OcrEngine,
        text_detector: TextLineDetector | None = None,
        line_detector: TextLineDetector | None = None,
        language: OcrLanguage | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._bubble_detector = bubble_detector
        self._ocr = ocr_engine
        self._text_detector = text_detector
        self._line_detector = line_detector
        self._language = language or default_ocr_language()
        self._logger = logger or logging.getLogger(__name__)

    def ocr_file(self, image_path: str | Path) -> TranslationResult:
        """
        Raises:
            PipelineError: 이미지 로드 실패 시
        """
        return self.ocr_page(load_image(image_path), Path(image_path).name)

    def ocr_page(self, image: np.ndarray, image_name: str) -> TranslationResult:
        height, width = image.shape[:2]
        detections = self._bubble_detector.detect(image)
        bubble_rects = sort_reading_order([d.rect for d in detections])
        self._logger.info(f"말풍선 탐지: {len(bubble_rects)}개 ({image_name})")

        if (
            self._language == OcrLanguage.ENGLISH
            and self._line_detector is not None
            and isinstance(self._ocr, ScoredOcrEngine)
        ):
            lines = self._ocr_english(image, bubble_rects, self._ocr, self._line_detector)
            return TranslationResult(image_name=image_name, width=width, height=height, bubbles=lines)

        text_rects = self._supplement_rects(image, bubble_rects)
        if text_rects:
            self._logger.info(f"보조 텍스트 박스 {len(text_rects)}개 추가 ({image_name})")

        bubbles: list[BubbleTranslation] = []
        for bubble_id, rect in enumerate([*bubble_rects, *text_rects]):
            crop = crop_image(image, rect)
            if crop is None:
                continue
            source = (
                BubbleSource.BUBBLE_DETECTOR
                if bubble_id < len(bubble_rects)
                else BubbleSource.TEXT_DETECTOR
            )
            bubbles.append(
                BubbleTranslation(id=bubble_id, rect=rect, text=self._recognize(crop), source=source)
            )

        return TranslationResult(image_name=image_name, width=width, height=height, bubbles=bubbles)

    def translate_page(
        self, page: TranslationResult, translator: Translator, glossary: dict[str, str]
    ) -> TranslationResult:
        return translate_page(page, translator, glossary, self._language, self._logger)

    def _supplement_rects(self, image: np.ndarray, bubble_rects: list[Rect]) -> list[Rect]:
        if self._text_detector is None:
            return []
        height, width = image.shape[:2]
        masked = mask_rects_white(image, bubble_rects)
        raw = self._text_detector.detect_lines(masked)
        filtered = filter_overlapping(raw, bubble_rects, Supplement.IOU_THRESHOLD)
        return merge_rects(filtered, width, height)

    def _recognize(self, crop: np.ndarray) -> str:
        try:
            return self._ocr.recognize(crop).strip()
        except InferenceError as e:
            self._logger.warning(f"OCR 실패: {e}")
            return ""

    def _ocr_english(
        self,
        image: np.ndarray,
        bubble_rects: list[Rect],
        ocr: ScoredOcrEngine,
        line_detector: TextLineDetector,
    ) -> list[BubbleTranslation]:
        if not bubble_rects:
            lines = recognize_lines(image, line_detector.detect_lines(image), ocr)
            return [
                BubbleTranslation(id=i, rect=rect, text=text, source=BubbleSource.TEXT_DETECTOR)
                for i, (rect, text) in enumerate(lines)
            ]

        bubbles: list[BubbleTranslation] = []
        for bubble_id, rect in enumerate(bubble_rects):
            crop = crop_image(image, rect)
            if crop is None:
                continue
            lines = recognize_lines(crop, line_detector.detect_lines(crop), ocr)
            text = "\n".join(t for _, t in lines) if lines else self._recognize(crop)
            bubbles.append(
                BubbleTranslation(
                    id=bubble_id, rect=rect, text=text, source=BubbleSource.BUBBLE_DETECTOR
                )
            )
        return bubbles


def translate_page(
    page: TranslationResult,
    translator: Translator,
    glossary: dict[str, str],
    language: OcrLanguage | None = None,
    log: logging.Logger | None = None,
) -> TranslationResult:
    """페이지 번역 (새 TranslationResult 반환, glossary는 사용된 용어로 갱신)

    - 번역 실패(None)면 원문 유지
    - 번역 대상이 아닌 빈 말풍선은 ""

    Raises:
        TranslationNotConfiguredError: 번역기가 설정되지 않은 경우
    """
    log = log or logger
    language = language or default_ocr_language()
    translatable = [b for b in page.bubbles if b.text.strip()]
    if not translatable:
        return page.model_copy(
            update={"bubbles": [b.model_copy(update={"text": ""}) for b in page.bubbles]}
        )

    tagged = build_tagged_text([normalize_ocr_text(b.text, language) for b in translatable])
    translated = translator.translate(tagged, dict(glossary))
    if translated is None:
        log.warning(f"번역 실패, 원문 유지: {page.image_name}")
        return page.model_copy(
            update={
                "bubbles": [b.model_copy(update={"text": b.text.strip()}) for b in page.bubbles]
            }
        )

    glossary.update(translated.glossary_used)
    segments = extract_tagged_segments(
        translated.translation,
        [b.text for b in translatable],
        on_missing_tags=lambda: log.warning(f"번역 응답에 <b> 태그 없음: {page.image_name}"),
        on_count_mismatch=lambda expected, actual: log.warning(
            f"번역 개수 불일치: expected {expected}, got {actual} ({page.image_name})"
        ),
    )
    by_id = {b.id: text for b, text in zip(translatable, segments, strict=True)}
    bubbles = [b.model_copy(update={"text": by_id.get(b.id, "")}) for b in page.bubbles]
    log.info(f"번역 완료: {page.image_name}")
    return page.model_copy(update={"bubbles": bubbles})


def translate_pages(
    pages: list[TranslationResult],
    translator: Translator,
    glossary: dict[str, str],
    language: OcrLanguage | None = None,
    concurrency: int | None = None,
) -> list[TranslationResult]:
    """여러 페이지 병렬 번역 (동시 요청 수 제한, 결과 순서 = 입력 순서)"""
    if not pages:
        return []

    language = language or default_ocr_language()
    limit = concurrency if concurrency is not None else get_settings().translate_concurrency
    limit = min(Limits.TRANSLATE_CONCURRENCY_MAX, max(Limits.TRANSLATE_CONCURRENCY_MIN, limit))
    semaphore = threading.Semaphore(limit)

    def _translate(page: TranslationResult) -> TranslationResult:
        with semaphore:
            return translate_page(page, translator, glossary, language)

    with ThreadPoolExecutor(max_workers=min(len(pages), limit)) as executor:
        return list(executor.map(_translate, pages))
