"""OpenAI 호환 chat completions API 기반 번역 구현체"""

import json
import logging
import threading
from typing import Any

import httpx

from mangaembed.constants import Limits
from mangaembed.schemas.pipeline import TranslatedText
from mangaembed.services.translation.base import (
    TranslationNotConfiguredError,
    TranslationRequestError,
)

TRANSLATE_PROMPT = """당신은 만화 번역가입니다.
사용자는 JSON {"text": ..., "glossary": {...}} 을 보냅니다.
text의 각 줄은 말풍선 1개이며 <b>...</b> 태그로 감싸져 있습니다.

규칙:
- 각 <b>...</b> 구간을 간체 중국어로 번역하고, 태그와 순서/개수를 그대로 유지
- glossary에 있는 고유명사는 반드시 glossary의 번역을 사용
- 새로 등장한 인명/지명 등 고유명사는 glossary_used에 추가
- 의성어/의태어는 자연스러운 효과음으로 번역

JSON으로만 응답:
{"translation": "<b>...</b>\\n<b>...</b>", "glossary_used": {"原文": "译文"}}"""

TEMPERATURE = 0.3


def build_endpoint(base_url: str) -> str:
    """기본 URL을 chat completions 엔드포인트로 정규화"""
    trimmed = base_url.strip().rstrip("/")
    if trimmed.endswith("/chat/completions"):
        return trimmed
    if trimmed.endswith("/v1"):
        return f"{trimmed}/chat/completions"
    return f"{trimmed}/v1/chat/completions"


def parse_model_candidates(model_config: str) -> list[str]:
    return [m.strip() for m in model_config.split(",") if m.strip()]


def parse_response_content(body: str) -> str | None:
    """choices[0].message.content 추출 (문자열 또는 {text} 파트 리스트)"""
    try:
        data = json.loads(body)
        message = data["choices"][0]["message"]
        raw = message.get("content")
    except (json.JSONDecodeError, KeyError, IndexError, TypeError, AttributeError):
        return None

    if isinstance(raw, str):
        return raw.strip() or None

    if isinstance(raw, list):
        parts: list[str] = []
        for item in raw:
            if isinstance(item, str) and item.strip():
                parts.append(item.strip())
            elif isinstance(item, dict):
                text = str(item.get("text") or "").strip()
                if text:
                    parts.append(text)
        return "\n".join(parts).strip() or None

    return None


def strip_code_fence(content: str) -> str:
    """```json ... ``` 로 감싼 응답에서 본문만 추출"""
    trimmed = content.strip()
    if not trimmed.startswith("```") or not trimmed.endswith("```") or len(trimmed) < 6:
        return trimmed
    inner = trimmed[3:-3].strip()
    if inner.lower().startswith("json"):
        inner = inner[4:].strip()
    return inner


def parse_translation_content(content: str) -> TranslatedText:
    """모델 응답 본문 → TranslatedText

    JSON이 아니면 본문 전체를 번역문으로 취급.

    Raises:
        TranslationRequestError: JSON 객체인데 translation 필드가 비어 있는 경우
    """
    cleaned = strip_code_fence(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return TranslatedText(translation=cleaned)

    if not isinstance(data, dict):
        return TranslatedText(translation=cleaned)

    translation = str(data.get("translation") or "").strip()
    if not translation:
        raise TranslationRequestError("응답에 translation 필드 없음", body=content)

    glossary: dict[str, str] = {}
    raw_glossary = data.get("glossary_used")
    if isinstance(raw_glossary, dict):
        for key, value in raw_glossary.items():
            key, value = str(key).strip(), str(value).strip()
            if key and value:
                glossary[key] = value

    return TranslatedText(translation=translation, glossary_used=glossary)


class LlmTranslation:
    """OpenAI 호환 API를 사용한 페이지 단위 번역

    - 실패 시 최대 retry_count회 재시도, 끝내 실패하면 None
    - 쉼표로 구분된 모델 목록은 요청마다 라운드로빈
    """

    _request_counter = 0
    _counter_lock = threading.Lock()

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        timeout: float = 60,
        retry_count: int = Limits.LLM_RETRY_COUNT,
        system_prompt: str = TRANSLATE_PROMPT,
        log_model_io: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._retry_count = max(1, retry_count)
        self._system_prompt = system_prompt
        self._log_model_io = log_model_io
        self._logger = logger or logging.getLogger(__name__)

    def is_configured(self) -> bool:
        return bool(self._api_url.strip() and self._api_key.strip() and self._model.strip())

    def translate(self, tagged_text: str, glossary: dict[str, str]) -> TranslatedText | None:
        """태그된 페이지 텍스트 번역

        Raises:
            TranslationNotConfiguredError: URL/키/모델 중 하나라도 비어 있는 경우
        """
        if not self.is_configured():
            raise TranslationNotConfiguredError("LLM API URL/키/모델이 설정되지 않았습니다")

        endpoint = build_endpoint(self._api_url)
        model = self._select_model()
        payload = self._build_payload(tagged_text, glossary, model)
        if self._log_model_io:
            self._logger.info(f"모델 입력 ({model}): {json.dumps(payload, ensure_ascii=False)}")

        last_error: TranslationRequestError | None = None
        for attempt in range(1, self._retry_count + 1):
            try:
                content = self._request_content(endpoint, payload)
                if self._log_model_io:
                    self._logger.info(f"모델 출력: {content}")
                return parse_translation_content(content)
            except TranslationRequestError as e:
                last_error = e
                self._logger.warning(
                    f"번역 요청 실패 ({attempt}/{self._retry_count}) {endpoint}: {e}"
                )

        if last_error is not None:
            self._logger.error(
                f"번역 요청 최종 실패 {endpoint}: status={last_error.status_code}, "
                f"body={last_error.body}"
            )
        return None

    def _select_model(self) -> str:
        models = parse_model_candidates(self._model)
        if not models:
            return self._model.strip()
        with LlmTranslation._counter_lock:
            index = LlmTranslation._request_counter % len(models)
            LlmTranslation._request_counter += 1
        return models[index]

    def _build_payload(
        self, tagged_text: str, glossary: dict[str, str], model: str
    ) -> dict[str, Any]:
        user_content = json.dumps({"text": tagged_text, "glossary": glossary}, ensure_ascii=False)
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": TEMPERATURE,
        }

    def _request_content(self, endpoint: str, payload: dict[str, Any]) -> str:
        """단일 요청 → 응답 본문

        Raises:
            TranslationRequestError: HTTP 오류, 타임아웃, 네트워크 오류, 빈 응답
        """
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(endpoint, json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise TranslationRequestError("LLM API 타임아웃") from e
        except httpx.HTTPStatusError as e:
            raise TranslationRequestError(
                f"LLM API 오류: {e.response.status_code}",
                status_code=e.response.status_code,
                body=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise TranslationRequestError(f"LLM API 호출 실패: {e}") from e

        content = parse_response_content(resp.text)
        if content is None:
            raise TranslationRequestError(
                "빈 응답 또는 잘못된 응답 형식", status_code=resp.status_code, body=resp.text
            )
        return content

