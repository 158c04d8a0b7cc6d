import logging
from functools import lru_cache

from pydantic import Field, SecretStr

from tg_initdata.common_settings.base import BaseAppSettings

logger = logging.getLogger(__name__)


class VerifierSettings(BaseAppSettings):
    """Настройки проверки initData и окружения CLI."""

    debug: bool = Field(default=False, alias="DEBUG")
    env: str = Field(default="prod", alias="APP_ENV")

    bot_token: SecretStr | None = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    admin_id: int | None = Field(default=None, alias="TELEGRAM_ADMIN_ID")

    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    def safe_dict(self) -> dict[str, str | int | bool | None]:
        return {
            "debug": self.debug,
            "env": self.env,
            "bot_token": "***" if self.bot_token else None,
            "admin_id": self.admin_id,
            "sentry_dsn": "***" if self.sentry_dsn else None,
        }


@lru_cache(maxsize=1)
def get_verifier_settings() -> VerifierSettings:
    """Ленивая загрузка настроек без побочных эффектов при импорте."""
    settings = VerifierSettings()
    logger.debug(f"Настройки верификатора загружены: {settings.safe_dict()}")
    return settings
