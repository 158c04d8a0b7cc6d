import html
import logging
import sys

import requests
import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from tg_initdata.common_settings.verifier_settings import VerifierSettings


class CustomFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(fmt="[%(asctime)s] %(levelname)s - %(filename)s:%(lineno)d" " - %(name)s - %(message)s")


class APINotificationHandler(logging.Handler):
    def __init__(self, token: str, admin: int) -> None:
        super().__init__()
        self.url = f"https://api.telegram.org/bot{token}/sendMessage"
        self.admin = admin
        self.formatter = CustomFormatter()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            safe = html.escape(self.format(record))
            payload = {
                "chat_id": self.admin,
                "text": f"<code>{safe}</code>",
                "parse_mode": "HTML",
            }
            # таймаут обязателен, чтобы не подвесить логирование
            requests.post(self.url, json=payload, timeout=5)
        except Exception:
            self.handleError(record)


NOISY_LOGGERS = {
    "urllib3": logging.WARNING,
    "sentry_sdk.errors": logging.INFO,
}


def setup_logging(settings: VerifierSettings | None = None) -> None:
    """Настраивает логирование, уведомления админу и интеграцию с Sentry."""
    debug = bool(settings.debug) if settings is not None else False
    level = logging.DEBUG if debug else logging.INFO

    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)

    # stdout занят вердиктом CLI, поэтому логи идут в stderr
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(CustomFormatter())

    logging.basicConfig(level=level, handlers=[stream_handler])
    logging.getLogger().setLevel(level)

    if settings is not None and settings.admin_id and settings.bot_token:
        api_handler = APINotificationHandler(
            settings.bot_token.get_secret_value(),
            int(settings.admin_id),
        )
        api_handler.setLevel(logging.ERROR)  # только ERROR и выше в Telegram
        logging.getLogger().addHandler(api_handler)

    for name, lvl in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(lvl if debug else max(lvl, logging.INFO))

    logger = logging.getLogger(__name__)
    logger.debug("DEBUG активен")

    if settings is not None and settings.sentry_dsn and not debug:
        sentry_sdk.init(
            dsn=str(settings.sentry_dsn),
            send_default_pii=False,
            integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
            environment=settings.env,
        )
        logger.info("Sentry инициализирован.")
    else:
        logger.debug("SENTRY_DSN не задан или включён DEBUG. Sentry не активен.")
