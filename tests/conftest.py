from __future__ import annotations

import datetime as dt
import subprocess

import pytest
from loguru import logger


class MemoryStore:
    """In-memory stand-in for the HKCU registry."""

    def __init__(self, values=None, read_only=False):
        self.values = dict(values or {})
        self.read_only = read_only
        self.writes = []

    def read_dword(self, key, name):
        try:
            return self.values[(key, name)]
        except KeyError:
            raise FileNotFoundError(f"{key}\\{name}") from None

    def write_dword(self, key, name, value):
        self._write(key, name, value)

    def read_string(self, key, name):
        return self.read_dword(key, name)

    def write_string(self, key, name, value):
        self._write(key, name, value)

    def _write(self, key, name, value):
        if self.read_only:
            raise PermissionError("Access is denied")
        self.writes.append((key, name, value))
        self.values[(key, name)] = value


class FakeShell:
    def __init__(self, windows=None, notify_ok=True, wallpaper_ok=True, file_browsers=()):
        self.windows = dict(windows or {})
        self.notify_ok = notify_ok
        self.wallpaper_ok = wallpaper_ok
        self.file_browsers = list(file_browsers)
        self.calls = []

    def notify_setting_changed(self, area, window=None):
        self.calls.append(("notify", area, window))
        return self.notify_ok

    def set_wallpaper(self, path):
        self.calls.append(("set_wallpaper", path))
        return self.wallpaper_ok

    def stop_shell(self):
        self.calls.append(("stop_shell",))

    def start_shell(self):
        self.calls.append(("start_shell",))

    def find_window(self, class_name):
        return self.windows.get(class_name)

    def find_windows(self, class_name):
        return list(self.file_browsers) if class_name == "CabinetWClass" else []

    def close_window(self, window):
        self.calls.append(("close_window", window))
        return True


class FakeRegistrar:
    def __init__(self, ok=True):
        self.ok = ok
        self.created = []

    def create_daily_job(self, name, at: dt.time, command):
        self.created.append((name, at, list(command)))
        return self.ok

    def remove_jobs_matching(self, prefix):
        return 0


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def shell():
    return FakeShell(windows={"Shell_TrayWnd": 101, "Progman": 202})


@pytest.fixture
def log_records():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def messages_at(records, level):
    return [record["message"] for record in records if record["level"].name == level]
