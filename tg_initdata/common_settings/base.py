import os
from pathlib import Path
from typing import Any

from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import EnvSettingsSource, PydanticBaseSettingsSource


class FileAwareEnvSource(EnvSettingsSource):
    """
    Источник ENV с поддержкой fallback на <ENV>_FILE (docker/k8s secrets).
    Приоритет: ENV > ENV_FILE.
    """

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        value, key, is_complex = super().get_field_value(field, field_name)

        # Пустое значение -> пробуем <KEY>_FILE
        if value in (None, ""):
            file_env = f"{key}_FILE"  # key уже учитывает env_prefix и alias
            file_path = os.getenv(file_env)
            if file_path:
                p = Path(file_path).expanduser().resolve()
                if not p.is_file():
                    raise ValueError(f"{file_env} points to missing file: {p}")
                # Токен из файла — обычная строка, не JSON
                value = p.read_text(encoding="utf-8").strip()
                is_complex = False

        return value, key, is_complex


class BaseAppSettings(BaseSettings):
    """Базовый класс настроек: кастомный источник ENV и порядок источников."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # kwargs -> ENV/ENV_FILE -> .env -> secrets_dir
        return (
            init_settings,
            FileAwareEnvSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )
