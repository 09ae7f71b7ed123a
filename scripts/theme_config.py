"""
Настройки переключателя темы: цвета акцента, обои по умолчанию и расписание.

Файл настроек — JSON, например:

    {
      "dark_accent": "Purple",
      "light_wallpaper": "~/Pictures/day.jpg",
      "schedule": [
        {"name": "Day", "time": "07:00", "mode": "Light"},
        {"name": "Night", "time": "19:30", "mode": "Dark", "accent": "Blue"}
      ]
    }
"""
import os
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ThemeMode(str, Enum):
    LIGHT = "Light"
    DARK = "Dark"

    @property
    def opposite(self) -> "ThemeMode":
        return ThemeMode.DARK if self is ThemeMode.LIGHT else ThemeMode.LIGHT


# Значения DWORD в формате ABGR, как их хранит DWM
DEFAULT_ACCENT_COLORS = MappingProxyType(
    {
        "Red": 0xFF2311E8,
        "Orange": 0xFF0C63F7,
        "Yellow": 0xFF00B9FF,
        "Green": 0xFF107C10,
        "Cyan": 0xFFC3B700,
        "Blue": 0xFFD77800,
        "Purple": 0xFF981788,
        "Pink": 0xFF8C00E3,
        "Default": 0xFFD47800,
    }
)


def app_data_dir() -> Path:
    base = Path(os.environ.get("APPDATA", Path.home() / ".config"))
    return base / "theme-switcher"


DEFAULT_CONFIG_PATH = app_data_dir() / "config.json"
DEFAULT_LOG_PATH = app_data_dir() / "theme.log"


# MARK: Data Models
class ScheduleEntry(BaseModel):
    """Одна ежедневная смена темы"""

    model_config = ConfigDict(frozen=True)

    name: str
    time: str
    mode: ThemeMode
    accent: Optional[str] = None
    wallpaper: Optional[str] = None
    force_restart: bool = False
    enabled: bool = True

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


def default_schedule() -> Tuple[ScheduleEntry, ...]:
    return (
        ScheduleEntry(name="Day", time="07:00", mode=ThemeMode.LIGHT),
        ScheduleEntry(name="Night", time="19:00", mode=ThemeMode.DARK),
    )


class ThemeConfig(BaseModel):
    """
    Настройки, которые передаются в ThemeApplier при создании. Поля
    заморожены, расписание хранится кортежем; таблицу accent_colors
    следует считать только для чтения.

    Время в расписании здесь не проверяется: запись с неверным временем
    пропускается при регистрации задач, а не ломает весь файл.
    """

    model_config = ConfigDict(frozen=True)

    light_accent: Optional[str] = None
    dark_accent: Optional[str] = None
    light_wallpaper: Optional[str] = None
    dark_wallpaper: Optional[str] = None
    restart_delay: float = Field(default=2.0, ge=0)
    accent_colors: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_ACCENT_COLORS)
    )
    schedule: Tuple[ScheduleEntry, ...] = Field(default_factory=default_schedule)

    @field_validator("accent_colors", mode="before")
    @classmethod
    def _merge_accent_colors(cls, value):
        if not isinstance(value, dict):
            return value

        known = {name.lower(): name for name in DEFAULT_ACCENT_COLORS}
        merged = dict(DEFAULT_ACCENT_COLORS)
        for name, color in value.items():
            canonical = known.get(str(name).lower())
            if canonical is None:
                raise ValueError(
                    f"неизвестный цвет '{name}', допустимые: {', '.join(DEFAULT_ACCENT_COLORS)}"
                )
            if isinstance(color, str):
                try:
                    color = int(color, 0)
                except ValueError:
                    raise ValueError(f"значение цвета '{name}' не является числом: {color!r}") from None
            elif isinstance(color, bool) or not isinstance(color, int):
                raise ValueError(f"значение цвета '{name}' должно быть числом, получено {color!r}")
            if not 0 <= color <= 0xFFFFFFFF:
                raise ValueError(f"значение цвета '{name}' не помещается в DWORD")
            merged[canonical] = color
        return merged

    def accent_for(self, mode: ThemeMode) -> Optional[str]:
        return self.light_accent if mode is ThemeMode.LIGHT else self.dark_accent

    def wallpaper_for(self, mode: ThemeMode) -> Optional[str]:
        return self.light_wallpaper if mode is ThemeMode.LIGHT else self.dark_wallpaper


# MARK: load / save
def load_config(path: Optional[Path] = None) -> ThemeConfig:
    """
    Прочитать настройки из JSON-файла.

    Отсутствующий или испорченный файл не считается ошибкой: выводится
    предупреждение и используются настройки по умолчанию.
    """
    config_path = Path(path).expanduser() if path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(
            f"⚠️ Файл настроек {config_path} не найден, используются настройки по умолчанию"
        )
        return ThemeConfig()

    try:
        config = ThemeConfig.model_validate_json(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(
            f"⚠️ Не удалось прочитать {config_path}, используются настройки по умолчанию: {e}"
        )
        return ThemeConfig()

    logger.debug(f"Настройки загружены из {config_path}")
    return config


def save_config(config: ThemeConfig, path: Optional[Path] = None) -> bool:
    """Записать настройки в файл, если его ещё нет"""
    config_path = Path(path).expanduser() if path else DEFAULT_CONFIG_PATH

    if config_path.exists():
        logger.warning(f"⚠️ Файл {config_path} уже существует, не перезаписываем")
        return False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"✅ Настройки сохранены в {config_path}")
    return True
