"""모델 출력 텐서 shape 판별

모델 export 관례에 따라 같은 계열의 모델도 축 순서가 다름.
인식 가능한 패턴만 명시적으로 매칭하고, 그 외는 None 반환.
"""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class ChannelsFirst:
    """[batch, channels, N] 박스 회귀 출력"""

    count: int
    channels: int


@dataclass(frozen=True)
class ChannelsLast:
    """[batch, N, channels] 박스 회귀 출력"""

    count: int
    channels: int


BoxShape = ChannelsFirst | ChannelsLast


@dataclass(frozen=True)
class ProbMap:
    """[batch, 1, H, W] 또는 [batch, H, W] 확률 맵"""

    height: int
    width: int


MIN_BOX_CHANNELS = 5  # cx, cy, w, h, conf


def match_box_shape(shape: Sequence[int]) -> BoxShape | None:
    """박스 회귀 출력 shape 판별

    rank 3만 허용. 두 축 중 작은 쪽을 채널 축으로 간주하며 5 이상이어야 함.
    dim1 <= dim2 이면 channels-first.
    """
    if len(shape) != 3 or shape[0] < 1:
        return None

    dim1, dim2 = int(shape[1]), int(shape[2])
    channels = min(dim1, dim2)
    count = max(dim1, dim2)
    if channels < MIN_BOX_CHANNELS:
        return None

    if dim1 <= dim2:
        return ChannelsFirst(count=count, channels=channels)
    return ChannelsLast(count=count, channels=channels)


def match_prob_map_shape(shape: Sequence[int]) -> ProbMap | None:
    if len(shape) == 4 and shape[0] >= 1 and shape[1] == 1:
        height, width = int(shape[2]), int(shape[3])
    elif len(shape) == 3 and shape[0] >= 1:
        height, width = int(shape[1]), int(shape[2])
    else:
        return None

    if height <= 0 or width <= 0:
        return None
    return ProbMap(height=height, width=width)
