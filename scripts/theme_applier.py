"""
Применение темы Windows: светлый/тёмный режим, акцентный цвет и обои.

Порядок работы за один запуск:
    прочитать текущий режим -> записать режим / цвет / обои (каждое по желанию)
    -> уведомить оболочку, если хоть что-то записалось.

Ошибка одной записи не мешает остальным. Обновление оболочки бывает двух
видов: лёгкое (рассылка WM_SETTINGCHANGE) и тяжёлое (перезапуск Проводника),
тяжёлое выполняется только по явному запросу.
"""
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from theme_config import ThemeConfig, ThemeMode
from theme_errors import InvalidInputError
from windows_shell import PreferenceStore, ShellCapability

PERSONALIZE_KEY = r"Software\Microsoft\Windows\CurrentVersion\Themes\Personalize"
APPS_LIGHT_VALUE = "AppsUseLightTheme"
SYSTEM_LIGHT_VALUE = "SystemUsesLightTheme"
DWM_KEY = r"Software\Microsoft\Windows\DWM"
ACCENT_VALUE = "AccentColor"
DESKTOP_KEY = r"Control Panel\Desktop"
WALLPAPER_VALUE = "Wallpaper"

FALLBACK_MODE = ThemeMode.DARK
TOGGLE = "Toggle"

NOTIFY_AREAS = ("ImmersiveColorSet", "WindowsThemeElement")
# Панель задач и рабочий стол
SHELL_WINDOWS = ("Shell_TrayWnd", "Progman")
FILE_BROWSER_WINDOW = "CabinetWClass"

RESTART_HINT = "Часть интерфейса может остаться в старой теме, попробуйте запуск с --force-restart"


# MARK: Data Models
@dataclass
class ThemeRequest:
    """Что нужно изменить. None означает «не трогать»."""

    mode: Optional[str] = None
    accent: Optional[str] = None
    wallpaper: Optional[str] = None
    force_restart: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.mode or self.accent or self.wallpaper)


@dataclass
class ApplyResult:
    applied: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    notified: bool = False


# MARK: ThemeApplier
class ThemeApplier:
    def __init__(
        self,
        store: PreferenceStore,
        shell: ShellCapability,
        config: ThemeConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._store = store
        self._shell = shell
        self._config = config
        self._sleep = sleep

    def apply(self, request: ThemeRequest) -> ApplyResult:
        """Применить запрошенные изменения и обновить оболочку"""
        result = ApplyResult()
        current = self.read_current_mode()
        logger.info(f"Текущая тема: {current.value}")

        if request.mode:
            try:
                target = self.resolve_target(request.mode, current)
            except InvalidInputError as e:
                logger.error(f"❌ {e}")
                result.failed.append("mode")
            else:
                self._record(result, "mode", self.set_mode(target))

        if request.accent:
            self._record(result, "accent", self.set_accent(request.accent))

        if request.wallpaper:
            self._record(result, "wallpaper", self.set_wallpaper(request.wallpaper))

        if result.applied:
            result.notified = self.apply_and_notify(request.force_restart)
        else:
            logger.info("Изменений нет, оболочку не обновляем")

        return result

    @staticmethod
    def _record(result: ApplyResult, axis: str, ok: bool) -> None:
        (result.applied if ok else result.failed).append(axis)

    @staticmethod
    def resolve_target(mode: str, current: ThemeMode) -> ThemeMode:
        if mode.lower() == TOGGLE.lower():
            return current.opposite
        for candidate in ThemeMode:
            if candidate.value.lower() == mode.lower():
                return candidate
        raise InvalidInputError(f"Неизвестный режим '{mode}', допустимые: Light, Dark, Toggle")

    # MARK: read
    def read_current_mode(self) -> ThemeMode:
        """Текущий режим из реестра. Если прочитать не удалось — тёмный."""
        try:
            value = self._store.read_dword(PERSONALIZE_KEY, APPS_LIGHT_VALUE)
        except OSError as e:
            logger.warning(
                f"⚠️ Не удалось прочитать текущую тему ({e}), считаем что {FALLBACK_MODE.value}"
            )
            return FALLBACK_MODE
        return ThemeMode.LIGHT if value else ThemeMode.DARK

    def current_accent_name(self) -> Optional[str]:
        try:
            value = self._store.read_dword(DWM_KEY, ACCENT_VALUE)
        except OSError:
            return None
        for name, color in self._config.accent_colors.items():
            if color == value:
                return name
        return f"0x{value:08X}"

    # MARK: write
    def set_mode(self, target: ThemeMode) -> bool:
        flag = 1 if target is ThemeMode.LIGHT else 0
        try:
            # Оба флага, чтобы окна приложений и системные элементы совпадали
            self._store.write_dword(PERSONALIZE_KEY, APPS_LIGHT_VALUE, flag)
            self._store.write_dword(PERSONALIZE_KEY, SYSTEM_LIGHT_VALUE, flag)
        except OSError as e:
            logger.error(f"❌ Не удалось переключить тему на {target.value}: {e}")
            return False

        logger.info(f"✅ Тема: {target.value}")
        return True

    def accent_value(self, name: str) -> int:
        for known, color in self._config.accent_colors.items():
            if known.lower() == name.strip().lower():
                return color
        valid = ", ".join(self._config.accent_colors)
        raise InvalidInputError(f"Неизвестный цвет '{name}', допустимые: {valid}")

    def set_accent(self, name: str) -> bool:
        try:
            value = self.accent_value(name)
        except InvalidInputError as e:
            logger.error(f"❌ {e}")
            return False

        try:
            self._store.write_dword(DWM_KEY, ACCENT_VALUE, value)
        except OSError as e:
            logger.error(f"❌ Не удалось установить цвет {name}: {e}")
            return False

        logger.info(f"✅ Акцентный цвет: {name} (0x{value:08X})")
        return True

    def set_wallpaper(self, path: str) -> bool:
        if not path:
            logger.debug("Путь к обоям не указан, пропускаем")
            return True

        wallpaper = Path(path).expanduser()
        if not wallpaper.is_file():
            logger.error(f"❌ Файл обоев не найден: {wallpaper}")
            return False
        wallpaper = str(wallpaper.resolve())

        try:
            self._store.write_string(DESKTOP_KEY, WALLPAPER_VALUE, wallpaper)
        except OSError as e:
            logger.error(f"❌ Не удалось сохранить обои: {e}")
            return False

        try:
            repainted = self._shell.set_wallpaper(wallpaper)
        except OSError as e:
            logger.debug(f"set_wallpaper: {e}")
            repainted = False
        if not repainted:
            logger.warning("⚠️ Обои сохранены, но рабочий стол не перерисовался")

        logger.info(f"✅ Обои: {wallpaper}")
        return True

    # MARK: notify
    def apply_and_notify(self, force_restart: bool = False) -> bool:
        """Сделать изменения видимыми. Лёгкий путь не переходит в тяжёлый сам."""
        if force_restart:
            return self.relaunch_shell()
        return self.broadcast_setting_change()

    def broadcast_setting_change(self) -> bool:
        ok = True

        for area in NOTIFY_AREAS:
            if not self._notify(area):
                ok = False

        for class_name in SHELL_WINDOWS:
            window = self._shell.find_window(class_name)
            if window is None:
                logger.debug(f"Окно {class_name} не найдено")
                continue
            if not self._notify(NOTIFY_AREAS[0], window):
                ok = False

        if not ok:
            logger.warning(f"⚠️ {RESTART_HINT}")
        return ok

    def _notify(self, area: str, window: Optional[int] = None) -> bool:
        try:
            sent = self._shell.notify_setting_changed(area, window)
        except OSError as e:
            logger.debug(f"WM_SETTINGCHANGE {area}: {e}")
            sent = False
        if not sent:
            target = window if window is not None else "всем окнам"
            logger.warning(f"⚠️ Уведомление {area} ({target}) не доставлено")
        return sent

    def relaunch_shell(self) -> bool:
        """
        Перезапустить Проводник и закрыть окна папок, которые он открыл заново.

        Паузы фиксированные: сигнала готовности оболочки нет, и если
        Проводник не поднимется, ждать придётся до конца паузы.
        """
        delay = self._config.restart_delay
        logger.info("🔄 Перезапуск Проводника...")

        try:
            self._shell.stop_shell()
        except OSError as e:
            logger.warning(f"⚠️ Не удалось остановить Проводник: {e}")
            return False

        self._sleep(delay)
        try:
            self._shell.start_shell()
        except OSError as e:
            logger.error(
                f"❌ Проводник остановлен, но не запустился ({e}). "
                "Запустите explorer.exe вручную (Ctrl+Shift+Esc → Запустить новую задачу)"
            )
            return False
        self._sleep(delay)

        self.close_file_browsers()
        logger.info("✅ Проводник перезапущен")
        return True

    def close_file_browsers(self) -> int:
        closed = 0
        for window in self._shell.find_windows(FILE_BROWSER_WINDOW):
            if self._shell.close_window(window):
                closed += 1
        if closed:
            logger.debug(f"Закрыто окон Проводника: {closed}")
        return closed
