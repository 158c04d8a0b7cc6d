import argparse
import logging
import sys
from collections.abc import Sequence

from pydantic import SecretStr

from tg_initdata.common_settings.verifier_settings import get_verifier_settings
from tg_initdata.logging_config import setup_logging
from tg_initdata.security.errors import USER_MESSAGES, FailureReason
from tg_initdata.security.init_data import check_init_data, sign_init_data

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAIL = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tg-initdata",
        description="Проверка и подпись Telegram WebApp initData.",
    )
    parser.add_argument(
        "--bot-token",
        default=None,
        help="токен бота; по умолчанию TELEGRAM_BOT_TOKEN / TELEGRAM_BOT_TOKEN_FILE",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    verify = commands.add_parser("verify", help="проверить подпись initData")
    verify.add_argument(
        "init_data",
        nargs="?",
        default="-",
        help="строка initData; '-' или пусто — читать из stdin",
    )

    sign = commands.add_parser("sign", help="подписать поля и вывести initData")
    sign.add_argument("pairs", nargs="*", metavar="KEY=VALUE")
    return parser


def _read_init_data(raw: str) -> str:
    """Аргумент или stdin; stdin декодируется строго как UTF-8."""
    if raw == "-":
        raw = sys.stdin.buffer.read().decode("utf-8")
    return raw.rstrip("\r\n")


def _parse_pairs(pairs: Sequence[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Ожидается KEY=VALUE, получено: {pair!r}")
        fields[key] = value
    return fields


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_verifier_settings()
    except ValueError as exc:
        print(f"Ошибка конфигурации: {exc}", file=sys.stderr)
        return EXIT_FAIL

    setup_logging(settings)

    bot_token = SecretStr(args.bot_token) if args.bot_token else settings.bot_token
    if not bot_token or not bot_token.get_secret_value():
        logger.error("Не задан токен бота: укажите --bot-token или TELEGRAM_BOT_TOKEN")
        print("Токен бота не задан", file=sys.stderr)
        return EXIT_FAIL

    if args.command == "sign":
        try:
            fields = _parse_pairs(args.pairs)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return EXIT_FAIL
        try:
            signed = sign_init_data(fields, bot_token=bot_token)
        except UnicodeEncodeError:
            print(USER_MESSAGES[FailureReason.DECODE_ERROR], file=sys.stderr)
            return EXIT_FAIL
        print(signed)
        return EXIT_OK

    try:
        init_data = _read_init_data(args.init_data)
    except UnicodeDecodeError:
        logger.info("initData отклонён: stdin не является UTF-8")
        print(f"initData is invalid: {USER_MESSAGES[FailureReason.DECODE_ERROR]}")
        return EXIT_FAIL
    result = check_init_data(init_data, bot_token=bot_token)
    if result.ok:
        logger.info(f"initData валиден: полей={len(result.fields)}")
        print("initData is valid")
        return EXIT_OK

    reason = result.reason
    logger.info(f"initData отклонён: reason={reason.value if reason else None}")
    message = USER_MESSAGES[reason] if reason else "неизвестная причина"
    print(f"initData is invalid: {message}")
    return EXIT_FAIL


if __name__ == "__main__":
    sys.exit(main())
