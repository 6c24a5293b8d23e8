import random
from enum import Enum
from typing import Any, Dict, Optional

from higgsfield_client.errors import BadInputError
from higgsfield_client.models import Webhook

MAX_SEED = 1_000_000


def _require_text(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadInputError(f"{what} must be a non-empty string")
    return value


def input_image(url: str) -> Dict[str, str]:
    return {"type": "image_url", "image_url": _require_text(url, "Image URL")}


def input_audio(url: str) -> Dict[str, str]:
    """Reference to a WAV file by URL."""
    return {"type": "audio_url", "audio_url": _require_text(url, "Audio URL")}


def strength(value: float) -> float:
    if value < 0 or value > 1:
        raise BadInputError("Strength must be between 0 and 1")
    return value


def input_motion(motion_id: str, input_strength: float = 1.0) -> Dict[str, Any]:
    """Motion preset for image-to-video, ``motion_id`` as returned by ``get_motions``."""
    return {
        "id": _require_text(motion_id, "Motion ID"),
        "strength": strength(input_strength),
    }


def seed(value: Optional[int] = None) -> int:
    """Validate a seed, or pick a random one when ``value`` is None."""
    if value is None:
        return random.randint(0, MAX_SEED)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_SEED:
        raise BadInputError(f"Seed must be an integer between 0 and {MAX_SEED:,}")
    return value


def webhook(url: str, secret: str) -> Webhook:
    """Webhook descriptor; ``secret`` is sent back as X-Webhook-Secret-Key."""
    return Webhook(
        url=_require_text(url, "Webhook URL"),
        secret=_require_text(secret, "Webhook secret"),
    )


class BatchSize(int, Enum):
    single = 1
    quad = 4


class SoulQuality(str, Enum):
    hd = "720p"
    full_hd = "1080p"


class SoulSize(str, Enum):
    landscape_2048x1152 = "2048x1152"
    landscape_2048x1536 = "2048x1536"
    landscape_2016x1344 = "2016x1344"
    landscape_1696x960 = "1696x960"
    landscape_1632x1088 = "1632x1088"
    portrait_1152x2048 = "1152x2048"
    portrait_1536x2048 = "1536x2048"
    portrait_1344x2016 = "1344x2016"
    portrait_960x1696 = "960x1696"
    portrait_1088x1632 = "1088x1632"
    square_1536x1536 = "1536x1536"
    mixed_1536x1152 = "1536x1152"
    mixed_1152x1536 = "1152x1536"


class DoPModel(str, Enum):
    lite = "dop-lite"
    turbo = "dop-turbo"
    standard = "dop-standard"


class SpeakQuality(str, Enum):
    mid = "mid"
    high = "high"


class SpeakDuration(int, Enum):
    short = 5
    medium = 10
    long = 15
