"""Settings 검증 테스트"""

import pytest

from mangaembed.config import Settings, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.embed_threads == 2
        assert settings.translate_concurrency == 3
        assert settings.mask_input_size == 960

    @pytest.mark.parametrize(("value", "expected"), [(0, 1), (-5, 1), (8, 8), (64, 16)])
    def test_embed_threads_clamped(self, value: int, expected: int) -> None:
        settings = Settings(_env_file=None, embed_threads=value)  # type: ignore[call-arg]
        assert settings.embed_threads == expected

    @pytest.mark.parametrize(("value", "expected"), [(0, 1), (25, 25), (100, 50)])
    def test_translate_concurrency_clamped(self, value: int, expected: int) -> None:
        settings = Settings(_env_file=None, translate_concurrency=value)  # type: ignore[call-arg]
        assert settings.translate_concurrency == expected

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBED_THREADS", "99")
        monkeypatch.setenv("TRANSLATION_PROVIDER", "gemini")
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.embed_threads == 16
        assert settings.translation_provider == "gemini"
