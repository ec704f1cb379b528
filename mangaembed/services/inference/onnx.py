"""onnxruntime 기반 추론 구현체"""

import logging
import threading
from pathlib import Path

import numpy as np
import onnxruntime as ort

from mangaembed.services.inference.base import InferenceError


class OnnxInferenceRunner:
    """모델 ID → onnx 파일 경로 매핑을 받아 세션을 지연 생성

    세션은 runner 인스턴스당 한 번만 생성됨.
    """

    def __init__(
        self,
        model_paths: dict[str, str],
        providers: list[str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._model_paths = dict(model_paths)
        self._providers = providers or ["CPUExecutionProvider"]
        self._sessions: dict[str, ort.InferenceSession] = {}
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    def run(self, model_id: str, tensor: np.ndarray) -> np.ndarray:
        session = self._session(model_id)
        input_name = session.get_inputs()[0].name
        try:
            outputs = session.run(None, {input_name: tensor})
        except Exception as e:
            raise InferenceError(f"모델 실행 실패 ({model_id}): {e}") from e
        return np.asarray(outputs[0])

    def run_named(self, model_id: str, feeds: dict[str, np.ndarray]) -> list[np.ndarray]:
        session = self._session(model_id)
        try:
            outputs = session.run(None, feeds)
        except Exception as e:
            raise InferenceError(f"모델 실행 실패 ({model_id}): {e}") from e
        return [np.asarray(o) for o in outputs]

    def input_names(self, model_id: str) -> list[str]:
        return [i.name for i in self._session(model_id).get_inputs()]

    def custom_metadata(self, model_id: str) -> dict[str, str]:
        meta = self._session(model_id).get_modelmeta()
        return dict(meta.custom_metadata_map)

    def _session(self, model_id: str) -> ort.InferenceSession:
        with self._lock:
            session = self._sessions.get(model_id)
            if session is None:
                session = self._create_session(model_id)
                self._sessions[model_id] = session
            return session

    def _create_session(self, model_id: str) -> ort.InferenceSession:
        path = self._model_paths.get(model_id)
        if not path:
            raise InferenceError(f"등록되지 않은 모델: {model_id!r}")
        if not Path(path).exists():
            raise InferenceError(f"모델 파일 없음: {path}")

        so = ort.SessionOptions()
        so.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        try:
            session = ort.InferenceSession(path, sess_options=so, providers=self._providers)
        except Exception as e:
            raise InferenceError(f"모델 로드 실패 ({model_id}): {e}") from e

        self._logger.info(f"모델 로드 완료: {model_id} ({path})")
        return session
