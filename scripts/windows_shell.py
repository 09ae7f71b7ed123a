"""
Граница с Windows: реестр текущего пользователя и оболочка (Проводник).

ThemeApplier работает только через протоколы PreferenceStore и
ShellCapability, поэтому его можно проверять с поддельными реализациями.
"""
import ctypes
import subprocess
import sys
from typing import List, Optional, Protocol

from loguru import logger

from theme_errors import ThemeSwitcherError

if sys.platform == "win32":
    import winreg
    from ctypes import wintypes

HWND_BROADCAST = 0xFFFF
WM_CLOSE = 0x0010
WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002
SPI_SETDESKWALLPAPER = 0x0014
SPIF_UPDATEINIFILE = 0x01
SPIF_SENDCHANGE = 0x02

SHELL_PROCESS = "explorer.exe"


# MARK: Protocols
class PreferenceStore(Protocol):
    """Хранилище пользовательских настроек. Ошибки сообщаются через OSError."""

    def read_dword(self, key: str, name: str) -> int: ...

    def write_dword(self, key: str, name: str, value: int) -> None: ...

    def read_string(self, key: str, name: str) -> str: ...

    def write_string(self, key: str, name: str, value: str) -> None: ...


class ShellCapability(Protocol):
    """Уведомления оболочки, перезапуск Проводника и работа с окнами."""

    def notify_setting_changed(self, area: str, window: Optional[int] = None) -> bool: ...

    def set_wallpaper(self, path: str) -> bool: ...

    def stop_shell(self) -> None: ...

    def start_shell(self) -> None: ...

    def find_window(self, class_name: str) -> Optional[int]: ...

    def find_windows(self, class_name: str) -> List[int]: ...

    def close_window(self, window: int) -> bool: ...


def ensure_windows() -> None:
    if sys.platform != "win32":
        raise ThemeSwitcherError("Смена темы поддерживается только в Windows")


# MARK: Registry
class RegistryStore:
    """Значения в HKEY_CURRENT_USER"""

    def __init__(self):
        ensure_windows()
        self._root = winreg.HKEY_CURRENT_USER

    def read_dword(self, key: str, name: str) -> int:
        value, kind = self._read(key, name)
        if kind != winreg.REG_DWORD:
            raise OSError(f"{key}\\{name}: ожидался REG_DWORD, получен тип {kind}")
        return value

    def write_dword(self, key: str, name: str, value: int) -> None:
        self._write(key, name, winreg.REG_DWORD, value)

    def read_string(self, key: str, name: str) -> str:
        value, kind = self._read(key, name)
        if kind not in (winreg.REG_SZ, winreg.REG_EXPAND_SZ):
            raise OSError(f"{key}\\{name}: ожидалась строка, получен тип {kind}")
        return value

    def write_string(self, key: str, name: str, value: str) -> None:
        self._write(key, name, winreg.REG_SZ, value)

    def _read(self, key: str, name: str):
        with winreg.OpenKey(self._root, key, 0, winreg.KEY_READ) as handle:
            return winreg.QueryValueEx(handle, name)

    def _write(self, key: str, name: str, kind: int, value) -> None:
        with winreg.CreateKeyEx(self._root, key, 0, winreg.KEY_SET_VALUE) as handle:
            winreg.SetValueEx(handle, name, 0, kind, value)


# MARK: Shell
class WindowsShell:
    """Вызовы user32 через ctypes и перезапуск explorer.exe"""

    def __init__(self, timeout_ms: int = 5000):
        ensure_windows()
        self._timeout_ms = timeout_ms
        self._user32 = ctypes.WinDLL("user32", use_last_error=True)
        self._enum_proc = ctypes.WINFUNCTYPE(wintypes.BOOL, wintypes.HWND, wintypes.LPARAM)
        self._declare()

    def _declare(self):
        user32 = self._user32

        user32.SendMessageTimeoutW.argtypes = [
            wintypes.HWND,
            wintypes.UINT,
            wintypes.WPARAM,
            wintypes.LPCWSTR,
            wintypes.UINT,
            wintypes.UINT,
            ctypes.POINTER(wintypes.WPARAM),
        ]
        user32.SendMessageTimeoutW.restype = wintypes.LPARAM

        user32.SystemParametersInfoW.argtypes = [
            wintypes.UINT,
            wintypes.UINT,
            wintypes.LPCWSTR,
            wintypes.UINT,
        ]
        user32.SystemParametersInfoW.restype = wintypes.BOOL

        user32.FindWindowW.argtypes = [wintypes.LPCWSTR, wintypes.LPCWSTR]
        user32.FindWindowW.restype = wintypes.HWND

        user32.EnumWindows.argtypes = [self._enum_proc, wintypes.LPARAM]
        user32.EnumWindows.restype = wintypes.BOOL

        user32.GetClassNameW.argtypes = [wintypes.HWND, wintypes.LPWSTR, ctypes.c_int]
        user32.GetClassNameW.restype = ctypes.c_int

        user32.PostMessageW.argtypes = [
            wintypes.HWND,
            wintypes.UINT,
            wintypes.WPARAM,
            wintypes.LPARAM,
        ]
        user32.PostMessageW.restype = wintypes.BOOL

    def notify_setting_changed(self, area: str, window: Optional[int] = None) -> bool:
        result = wintypes.WPARAM()
        sent = self._user32.SendMessageTimeoutW(
            window or HWND_BROADCAST,
            WM_SETTINGCHANGE,
            0,
            area,
            SMTO_ABORTIFHUNG,
            self._timeout_ms,
            ctypes.byref(result),
        )
        if not sent:
            logger.debug(f"SendMessageTimeoutW({area}): ошибка {ctypes.get_last_error()}")
        return bool(sent)

    def set_wallpaper(self, path: str) -> bool:
        ok = self._user32.SystemParametersInfoW(
            SPI_SETDESKWALLPAPER, 0, path, SPIF_UPDATEINIFILE | SPIF_SENDCHANGE
        )
        if not ok:
            logger.debug(f"SystemParametersInfoW: ошибка {ctypes.get_last_error()}")
        return bool(ok)

    def stop_shell(self) -> None:
        result = subprocess.run(
            ["taskkill", "/F", "/IM", SHELL_PROCESS],
            capture_output=True,
            text=True,
            errors="replace",
        )
        if result.returncode != 0:
            raise OSError(f"taskkill завершился с кодом {result.returncode}: {result.stderr.strip()}")

    def start_shell(self) -> None:
        subprocess.Popen([SHELL_PROCESS])

    def find_window(self, class_name: str) -> Optional[int]:
        return self._user32.FindWindowW(class_name, None) or None

    def find_windows(self, class_name: str) -> List[int]:
        found = []
        buffer = ctypes.create_unicode_buffer(256)

        def collect(hwnd, _):
            self._user32.GetClassNameW(hwnd, buffer, len(buffer))
            if buffer.value == class_name:
                found.append(hwnd)
            return True

        self._user32.EnumWindows(self._enum_proc(collect), 0)
        return found

    def close_window(self, window: int) -> bool:
        return bool(self._user32.PostMessageW(window, WM_CLOSE, 0, 0))
