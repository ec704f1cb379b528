"""페이지 번역 결과 JSON 저장소

이미지 옆에 <stem>.json 으로 저장:
    {"image": ..., "width": ..., "height": ...,
     "bubbles": [{"id", "left", "top", "right", "bottom", "text", "source"}, ...]}

source는 선택 키 (없는 기록은 unknown으로 로드).
"""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from mangaembed.schemas.pipeline import BubbleSource, BubbleTranslation, Rect, TranslationResult

logger = logging.getLogger(__name__)


class PageStoreError(Exception):
    pass


class _BubbleRecord(BaseModel):
    id: int | None = None
    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    text: str = ""
    source: BubbleSource = BubbleSource.UNKNOWN


class _PageRecord(BaseModel):
    image: str | None = None
    width: int = 0
    height: int = 0
    bubbles: list[_BubbleRecord] = Field(default_factory=list)


class PageStore:
    """페이지 기록 저장/로드 (파일 단위, 이미지와 같은 디렉터리)"""

    def record_path(self, image_path: str | Path) -> Path:
        path = Path(image_path)
        return path.with_name(f"{path.stem}.json")

    def exists(self, image_path: str | Path) -> bool:
        return self.record_path(image_path).exists()

    def save(self, image_path: str | Path, result: TranslationResult) -> Path:
        record = _PageRecord(
            image=result.image_name,
            width=result.width,
            height=result.height,
            bubbles=[
                _BubbleRecord(
                    id=b.id,
                    left=b.rect.left,
                    top=b.rect.top,
                    right=b.rect.right,
                    bottom=b.rect.bottom,
                    text=b.text,
                    source=b.source,
                )
                for b in result.bubbles
            ],
        )
        path = self.record_path(image_path)
        path.write_text(record.model_dump_json(), encoding="utf-8")
        logger.debug(f"페이지 기록 저장: {path}")
        return path

    def load(self, image_path: str | Path) -> TranslationResult | None:
        """기록 로드 (파일이 없으면 None)

        Raises:
            PageStoreError: JSON 형식이 잘못된 경우
        """
        path = self.record_path(image_path)
        if not path.exists():
            return None

        try:
            record = _PageRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise PageStoreError(f"페이지 기록 형식 오류 ({path.name}): {e}") from e

        bubbles = [
            BubbleTranslation(
                id=item.id if item.id is not None else index,
                rect=Rect(left=item.left, top=item.top, right=item.right, bottom=item.bottom),
                text=item.text,
                source=item.source,
            )
            for index, item in enumerate(record.bubbles)
        ]
        return TranslationResult(
            image_name=record.image or Path(image_path).name,
            width=record.width,
            height=record.height,
            bubbles=bubbles,
        )
