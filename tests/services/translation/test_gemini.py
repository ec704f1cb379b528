"""GeminiTranslation 구현체 테스트"""

import json
from unittest.mock import MagicMock, patch

import pytest

from mangaembed.services.translation.base import TranslationError
from mangaembed.services.translation.gemini import GeminiTranslation

GEMINI_MODULE = "mangaembed.services.translation.gemini"

MOCK_RESPONSE = json.dumps(
    {"translation": "<b>你好</b>\n<b>砰</b>", "glossary_used": {"タロウ": "太郎"}},
    ensure_ascii=False,
)


@patch(f"{GEMINI_MODULE}.types")
class TestGeminiTranslation:
    def setup_method(self) -> None:
        self.translator = GeminiTranslation(api_key="test-key", model="test-model")

    def test_translate_returns_result(self, _mock_types: MagicMock) -> None:
        with patch(f"{GEMINI_MODULE}.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = MOCK_RESPONSE
            mock_generate = mock_genai.Client.return_value.models.generate_content
            mock_generate.return_value = mock_response

            result = self.translator.translate("<b>こんにちは</b>\n<b>ドン</b>", {})

        assert result is not None
        assert result.translation == "<b>你好</b>\n<b>砰</b>"
        assert result.glossary_used == {"タロウ": "太郎"}
        mock_genai.Client.assert_called_once_with(api_key="test-key")
        contents = mock_generate.call_args.kwargs["contents"]
        assert json.loads(contents[1])["text"] == "<b>こんにちは</b>\n<b>ドン</b>"

    def test_translate_no_api_key_raises(self, _mock_types: MagicMock) -> None:
        translator = GeminiTranslation(api_key="", model="test-model")
        with pytest.raises(TranslationError):
            translator.translate("<b>x</b>", {})

    def test_empty_response_retries_then_none(self, _mock_types: MagicMock) -> None:
        with patch(f"{GEMINI_MODULE}.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = None
            mock_generate = mock_genai.Client.return_value.models.generate_content
            mock_generate.return_value = mock_response

            result = self.translator.translate("<b>x</b>", {})

        assert result is None
        assert mock_generate.call_count == 3

    def test_api_error_then_success(self, _mock_types: MagicMock) -> None:
        with patch(f"{GEMINI_MODULE}.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = MOCK_RESPONSE
            mock_generate = mock_genai.Client.return_value.models.generate_content
            mock_generate.side_effect = [Exception("API 일시 장애"), mock_response]

            result = self.translator.translate("<b>x</b>", {})

        assert result is not None
        assert mock_generate.call_count == 2

    def test_plain_text_response_used_as_translation(self, _mock_types: MagicMock) -> None:
        with patch(f"{GEMINI_MODULE}.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = "<b>你好</b>"
            mock_genai.Client.return_value.models.generate_content.return_value = mock_response

            result = self.translator.translate("<b>x</b>", {})

        assert result is not None
        assert result.translation == "<b>你好</b>"
