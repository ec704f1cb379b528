"""번역문 이미지 합성 (embed)

페이지 1장: 텍스트 마스크 → 팽창 → 균일 배경 덮기 → 인페인팅 → 텍스트 렌더링
배치: worker마다 독립 모델 인스턴스, 공유 카운터로 작업 분배, 첫 실패만 기록
"""

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from PIL import Image

from mangaembed.config import get_settings
from mangaembed.constants import Cover, Limits
from mangaembed.infra.page_store import PageStore
from mangaembed.schemas.pipeline import BubbleSource, BubbleTranslation, TranslationResult
from mangaembed.services.detection import create_mask_detector
from mangaembed.services.detection.base import MaskDetector
from mangaembed.services.inference import create_inference
from mangaembed.services.inpainting import create_inpainting
from mangaembed.services.inpainting.base import Inpainter
from mangaembed.services.inpainting.mask import build_erase_mask, dilate_mask
from mangaembed.services.inpainting.white_cover import apply_uniform_cover
from mangaembed.services.pipeline import load_image
from mangaembed.services.rendering import EmbeddedTextRenderer, PilTextMeasurer
from mangaembed.services.rendering.renderer import page_scale

JPEG_QUALITY = 95


class EmbedError(Exception):
    """배치 중 첫 번째 실패 (image_name이 None이면 worker 초기화 실패)"""

    def __init__(self, message: str, image_name: str | None = None):
        super().__init__(message)
        self.image_name = image_name


@dataclass(frozen=True)
class EmbedItem:
    source_path: Path
    result: TranslationResult
    output_path: Path

    @property
    def name(self) -> str:
        return self.source_path.name


@dataclass
class BatchEmbedResult:
    total: int
    completed: list[str] = field(default_factory=list)
    failure: EmbedError | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure


def save_image(image: np.ndarray, path: Path) -> None:
    """확장자에 맞춰 저장 (PNG, WebP 무손실, 그 외 JPEG 95)"""
    path.parent.mkdir(parents=True, exist_ok=True)
    pil_image = Image.fromarray(image).convert("RGB")
    suffix = path.suffix.lower()
    if suffix == ".png":
        pil_image.save(path, format="PNG")
    elif suffix == ".webp":
        pil_image.save(path, format="WEBP", lossless=True)
    else:
        pil_image.save(path, format="JPEG", quality=JPEG_QUALITY)


def _is_erasable_bubble(bubble: BubbleTranslation) -> bool:
    """보조 텍스트 박스만 제외 (source가 없는 저장 기록은 unknown으로 포함)"""
    return bubble.source != BubbleSource.TEXT_DETECTOR


class PageEmbedder:
    """페이지 1장 합성기 (worker 전용, 스레드 간 공유하지 않음)"""

    def __init__(
        self,
        mask_detector: MaskDetector,
        inpainter: Inpainter,
        renderer: EmbeddedTextRenderer | None = None,
        vertical: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._mask_detector = mask_detector
        self._inpainter = inpainter
        self._renderer = renderer or EmbeddedTextRenderer()
        self._vertical = vertical
        self._logger = logger or logging.getLogger(__name__)

    def embed(self, image: np.ndarray, result: TranslationResult) -> np.ndarray:
        sx, sy = page_scale(image, result)
        scaled = [b.model_copy(update={"rect": b.rect.scaled(sx, sy)}) for b in result.bubbles]

        mask = build_erase_mask(
            image, scaled, self._mask_detector.detect_mask, predicate=_is_erasable_bubble
        )
        if mask.any():
            mask = dilate_mask(mask, Cover.DILATE_ITERATIONS)

        covered, remaining, covered_ids = apply_uniform_cover(
            image, mask, scaled, predicate=_is_erasable_bubble
        )
        cleaned = self._inpainter.inpaint(covered, remaining) if remaining.any() else covered
        self._logger.debug(
            f"합성 준비: 덮기 {len(covered_ids)}개, 인페인팅 {int(remaining.sum())}px ({result.image_name})"
        )
        return self._renderer.render(cleaned, result, vertical=self._vertical)

    def embed_item(self, item: EmbedItem) -> None:
        """
        Raises:
            PipelineError: 원본 이미지를 읽을 수 없는 경우
        """
        output = self.embed(load_image(item.source_path), item.result)
        save_image(output, item.output_path)


def create_page_embedder() -> PageEmbedder:
    """설정 기반 기본 worker 생성 (추론 세션을 새로 만듦)"""
    settings = get_settings()
    runner = create_inference()
    return PageEmbedder(
        mask_detector=create_mask_detector(runner),
        inpainter=create_inpainting(runner),
        renderer=EmbeddedTextRenderer(PilTextMeasurer(settings.font_path)),
        vertical=settings.vertical_text,
    )


def plan_batch(
    image_paths: list[Path], output_dir: Path, store: PageStore | None = None
) -> list[EmbedItem]:
    """페이지 기록이 있고 아직 합성 결과가 없는 이미지만 작업으로 변환"""
    store = store or PageStore()
    items: list[EmbedItem] = []
    for path in image_paths:
        target = output_dir / path.name
        if target.exists():
            continue
        result = store.load(path)
        if result is None:
            continue
        items.append(EmbedItem(source_path=path, result=result, output_path=target))
    return items


class EmbedCoordinator:
    """스레드 풀 기반 배치 합성

    - worker 수 = min(threads, 작업 수), threads는 [1, 16]
    - 실패가 나면 새 작업을 가져가지 않음 (진행 중인 작업은 마저 끝남)
    - 진행률 (done, total)은 큐를 통해 호출 스레드에서 on_progress로 전달
    """

    _DONE = None

    def __init__(
        self,
        create_worker: Callable[[], PageEmbedder] = create_page_embedder,
        threads: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        threads = threads if threads is not None else get_settings().embed_threads
        self._threads = min(Limits.EMBED_THREADS_MAX, max(Limits.EMBED_THREADS_MIN, threads))
        self._create_worker = create_worker
        self._logger = logger or logging.getLogger(__name__)

    @property
    def threads(self) -> int:
        return self._threads

    def embed_batch(
        self,
        items: list[EmbedItem],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> BatchEmbedResult:
        total = len(items)
        result = BatchEmbedResult(total=total)
        if total == 0:
            return result

        worker_count = min(self._threads, total)
        lock = threading.Lock()
        failed = threading.Event()
        events: queue.Queue[tuple[int, int] | None] = queue.Queue()
        state = {"next": 0, "done": 0}

        def record_failure(error: EmbedError, cause: Exception) -> None:
            error.__cause__ = cause
            with lock:
                if result.failure is None:
                    result.failure = error
            failed.set()

        def work() -> None:
            try:
                embedder = self._create_worker()
            except Exception as e:
                self._logger.exception("embed worker 초기화 실패")
                record_failure(EmbedError(f"worker 초기화 실패: {e}"), e)
                events.put(self._DONE)
                return

            while not failed.is_set():
                with lock:
                    index = state["next"]
                    state["next"] += 1
                if index >= total:
                    break

                item = items[index]
                try:
                    embedder.embed_item(item)
                except Exception as e:
                    self._logger.exception(f"합성 실패: {item.name}")
                    record_failure(EmbedError(f"합성 실패: {item.name}", item.name), e)
                    break

                with lock:
                    state["done"] += 1
                    result.completed.append(item.name)
                    events.put((state["done"], total))

            events.put(self._DONE)

        workers = [
            threading.Thread(target=work, name=f"embed-{i}", daemon=True)
            for i in range(worker_count)
        ]
        for worker in workers:
            worker.start()

        finished = 0
        while finished < worker_count:
            event = events.get()
            if event is None:
                finished += 1
            elif on_progress is not None:
                on_progress(*event)

        for worker in workers:
            worker.join()

        if result.failure is not None:
            self._logger.error(f"배치 합성 실패: {result.failure} ({len(result.completed)}/{total})")
        else:
            self._logger.info(f"배치 합성 완료: {total}장")
        return result
