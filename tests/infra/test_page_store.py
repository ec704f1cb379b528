"""PageStore JSON 저장소 테스트"""

import json
from pathlib import Path

import pytest

from mangaembed.infra.page_store import PageStore, PageStoreError
from mangaembed.schemas.pipeline import BubbleSource, BubbleTranslation, Rect, TranslationResult


def _result() -> TranslationResult:
    return TranslationResult(
        image_name="001.jpg",
        width=800,
        height=1200,
        bubbles=[
            BubbleTranslation(
                id=3,
                rect=Rect(left=10, top=20, right=110, bottom=220),
                text="你好",
                source=BubbleSource.BUBBLE_DETECTOR,
            ),
        ],
    )


class TestPageStore:
    def setup_method(self) -> None:
        self.store = PageStore()

    def test_record_path_beside_image(self, tmp_path: Path) -> None:
        assert self.store.record_path(tmp_path / "001.jpg") == tmp_path / "001.json"

    def test_save_writes_flat_record(self, tmp_path: Path) -> None:
        path = self.store.save(tmp_path / "001.jpg", _result())

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["image"] == "001.jpg"
        assert data["width"] == 800
        assert data["bubbles"][0] == {
            "id": 3,
            "left": 10.0,
            "top": 20.0,
            "right": 110.0,
            "bottom": 220.0,
            "text": "你好",
            "source": "bubble_detector",
        }
        assert self.store.exists(tmp_path / "001.jpg")

    def test_load_after_save(self, tmp_path: Path) -> None:
        self.store.save(tmp_path / "001.jpg", _result())

        loaded = self.store.load(tmp_path / "001.jpg")

        assert loaded is not None
        assert loaded.image_name == "001.jpg"
        assert loaded.bubbles[0].id == 3
        assert loaded.bubbles[0].rect == Rect(left=10, top=20, right=110, bottom=220)
        assert loaded.bubbles[0].text == "你好"
        assert loaded.bubbles[0].source == BubbleSource.BUBBLE_DETECTOR

    def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        assert self.store.load(tmp_path / "none.jpg") is None

    def test_load_fills_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "002.json").write_text(
            json.dumps({"width": 10, "height": 10, "bubbles": [{"text": "a"}, {"text": "b"}]}),
            encoding="utf-8",
        )

        loaded = self.store.load(tmp_path / "002.png")

        assert loaded is not None
        assert loaded.image_name == "002.png"
        assert [b.id for b in loaded.bubbles] == [0, 1]
        assert all(b.source == BubbleSource.UNKNOWN for b in loaded.bubbles)

    def test_load_malformed_raises(self, tmp_path: Path) -> None:
        (tmp_path / "003.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PageStoreError):
            self.store.load(tmp_path / "003.jpg")

    def test_load_wrong_types_raises(self, tmp_path: Path) -> None:
        (tmp_path / "004.json").write_text('{"bubbles": "x"}', encoding="utf-8")
        with pytest.raises(PageStoreError):
            self.store.load(tmp_path / "004.jpg")
