from __future__ import annotations

from enum import Enum
from typing import Dict


class FailureReason(str, Enum):
    MISSING_HASH = "MISSING_HASH"
    DECODE_ERROR = "DECODE_ERROR"
    HASH_MISMATCH = "HASH_MISMATCH"


USER_MESSAGES: Dict[FailureReason, str] = {
    FailureReason.MISSING_HASH: "Отсутствует hash в initData",
    FailureReason.DECODE_ERROR: "initData не удалось декодировать (невалидный UTF-8)",
    FailureReason.HASH_MISMATCH: "Неверная подпись initData",
}


class InitDataDecodeError(ValueError):
    """initData содержит байты, которые нельзя декодировать как UTF-8."""
