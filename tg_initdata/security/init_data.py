"""
Проверка подписи Telegram WebApp initData.

Алгоритм:
    secret_key = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash = hex(HMAC_SHA256(key=secret_key, msg=data_check_string))

data_check_string — пары key=value без поля hash, отсортированные
посимвольно (ordinal) и склеенные через "\\n".

Модуль чистый: без I/O, без логирования, без кэширования ключей.
Смысл отдельных полей (user, auth_date) здесь не проверяется.
"""

import hashlib
import hmac
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode

from pydantic import SecretStr

from tg_initdata.security.errors import FailureReason, InitDataDecodeError

WEBAPP_DATA_KEY = b"WebAppData"
HASH_FIELD = "hash"


@dataclass(frozen=True, slots=True)
class InitDataCheck:
    """Результат проверки initData с причиной отказа."""

    ok: bool
    reason: FailureReason | None = None
    fields: dict[str, str] = field(default_factory=dict)
    data_check_string: str = ""

    def __bool__(self) -> bool:
        return self.ok


def _require_bot_token(bot_token: str | SecretStr) -> str:
    if isinstance(bot_token, SecretStr):
        bot_token = bot_token.get_secret_value()
    if not isinstance(bot_token, str):
        raise ValueError("bot_token должен быть строкой")
    if not bot_token:
        raise ValueError("bot_token не может быть пустым")
    return bot_token


def parse_init_data(init_data: str) -> dict[str, str]:
    """
    Разобрать initData (querystring) в dict key/value.

    Пустые ключи отбрасываются, при повторе ключа побеждает последнее значение.
    Невалидный UTF-8 после percent-decoding -> InitDataDecodeError.
    """

    if not isinstance(init_data, str):
        raise TypeError("init_data должен быть строкой")
    try:
        pairs = parse_qsl(
            init_data,
            keep_blank_values=True,
            strict_parsing=False,
            encoding="utf-8",
            errors="strict",
            separator="&",
        )
    except UnicodeDecodeError as exc:
        raise InitDataDecodeError(f"Некорректная кодировка initData: {exc.reason}") from exc
    return {k: v for k, v in pairs if k}


def build_data_check_string(fields: Mapping[str, str]) -> str:
    """Собрать data_check_string: key=value без hash, ordinal-сортировка, разделитель \\n."""

    lines = [f"{k}={v}" for k, v in fields.items() if k != HASH_FIELD]
    lines.sort()
    return "\n".join(lines)


def derive_secret_key(bot_token: str) -> bytes:
    # Ключ остаётся сырыми байтами: hex/base64 здесь сломает вторую ступень.
    return hmac.new(WEBAPP_DATA_KEY, bot_token.encode("utf-8"), hashlib.sha256).digest()


def calc_init_data_hash(*, bot_token: str, data_check_string: str) -> str:
    """Вычислить hash initData в нижнем регистре (64 hex-символа)."""

    secret_key = derive_secret_key(bot_token)
    return hmac.new(secret_key, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def check_init_data(init_data: str, *, bot_token: str | SecretStr) -> InitDataCheck:
    """
    Проверить подпись initData и вернуть результат с причиной.

    Обычные отказы (нет hash, неверная подпись, битая кодировка) не бросают
    исключений. ValueError — для некорректного bot_token,
    TypeError — если init_data не строка.
    """

    token = _require_bot_token(bot_token)

    try:
        data = parse_init_data(init_data)
    except InitDataDecodeError:
        return InitDataCheck(ok=False, reason=FailureReason.DECODE_ERROR)

    received_hash = data.pop(HASH_FIELD, "")
    if not received_hash:
        return InitDataCheck(ok=False, reason=FailureReason.MISSING_HASH, fields=data)

    data_check_string = build_data_check_string(data)
    try:
        expected_hash = calc_init_data_hash(bot_token=token, data_check_string=data_check_string)
        received = received_hash.lower().encode("utf-8")
    except UnicodeEncodeError:
        # Одиночные суррогаты в токене или полях.
        return InitDataCheck(ok=False, reason=FailureReason.DECODE_ERROR, fields=data)

    if not hmac.compare_digest(expected_hash.encode("ascii"), received):
        return InitDataCheck(
            ok=False,
            reason=FailureReason.HASH_MISMATCH,
            fields=data,
            data_check_string=data_check_string,
        )
    return InitDataCheck(ok=True, fields=data, data_check_string=data_check_string)


def verify_init_data(init_data: str, *, bot_token: str | SecretStr) -> bool:
    """True, если hash в initData совпадает с вычисленным."""

    return check_init_data(init_data, bot_token=bot_token).ok


def sign_init_data(fields: Mapping[str, str], *, bot_token: str | SecretStr) -> str:
    """
    Подписать набор полей так, как это делает Telegram.

    Возвращает querystring с добавленным полем hash. Существующий hash
    и пустые ключи в fields игнорируются. Удобно для фикстур и локальной
    разработки Mini App.
    """

    token = _require_bot_token(bot_token)
    payload = {k: v for k, v in fields.items() if k and k != HASH_FIELD}
    payload[HASH_FIELD] = calc_init_data_hash(
        bot_token=token,
        data_check_string=build_data_check_string(payload),
    )
    return urlencode(payload)
