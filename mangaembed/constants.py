class Nms:
    CONF_THRESHOLD = 0.25
    IOU_THRESHOLD = 0.5


class Merge:
    OVERLAP_MIN_AREA = 0.2  # 작은 박스 면적 대비 겹침
    MAX_UNION_FRACTION = 0.2  # 이미지 면적 대비 합집합 상한
    REF_AREA_FRACTION = 0.02  # 이 비율 이상이면 "큰 박스"로 취급
    GAP_SMALL, GAP_LARGE = 140.0, 36.0
    IOU_SMALL, IOU_LARGE = 0.07, 0.28
    PAD_SMALL, PAD_LARGE = 40.0, 8.0


class Segmentation:
    PROB_THRESHOLD = 0.3
    BOX_THRESHOLD = 0.5
    MIN_COMPONENT = 3
    MIN_SIZE = 3
    UNCLIP_RATIO = 1.6
    MEAN = 0.5
    STD = 0.5


class TextMask:
    THRESHOLD = 0.22
    DILATE_ITERATIONS = 2
    EXPAND_RATIO = 0.1
    EXPAND_MIN = 2.0


class ReadingOrder:
    LINE_GAP = 10.0


class Supplement:
    IOU_THRESHOLD = 0.2
    MASK_EXPAND_RATIO = 0.1
    MASK_EXPAND_MIN = 4.0


class Cover:
    DILATE_ITERATIONS = 1
    MARGIN_RATIO = 0.06
    MARGIN_MIN, MARGIN_MAX = 4.0, 24.0
    MIN_SAMPLES = 24
    MIN_LUMA = 220.0
    MAX_LUMA_STD = 18.0
    MAX_COLOR_SPREAD = 20.0


class Migan:
    MODEL_SIZE = 512
    DILATE_ITERATIONS = 2


class Layout:
    MIN_START_SIZE, MAX_START_SIZE = 12.0, 42.0
    MIN_SIZE = 10.0
    SHRINK = 0.9
    HORIZONTAL_SIZE_DIVISOR = 3.0
    VERTICAL_SIZE_DIVISOR = 2.2
    INSET_RATIO = 0.08
    EMBED_INSET_MIN = 4.0
    OVERLAY_INSET_MIN = 6.0
    FALLBACK_GLYPH = "国"


class Limits:
    EMBED_THREADS_MIN, EMBED_THREADS_MAX = 1, 16
    TRANSLATE_CONCURRENCY_MIN, TRANSLATE_CONCURRENCY_MAX = 1, 50
    LLM_RETRY_COUNT = 3
    LLM_BODY_SUMMARY = 600
    EN_MIN_LINE_SCORE = 0.5
