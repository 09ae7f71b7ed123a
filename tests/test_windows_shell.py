"""Tests for windows_shell."""

import sys

import pytest

import windows_shell
from theme_errors import ThemeSwitcherError


@pytest.mark.skipif(sys.platform == "win32", reason="checks the non-Windows guard")
class TestOutsideWindows:
    def test_registry_store_refused(self):
        with pytest.raises(ThemeSwitcherError):
            windows_shell.RegistryStore()

    def test_shell_refused(self):
        with pytest.raises(ThemeSwitcherError):
            windows_shell.WindowsShell()


@pytest.mark.skipif(sys.platform != "win32", reason="needs the Windows registry")
def test_registry_store_reads_personalize_key():
    from theme_applier import APPS_LIGHT_VALUE, PERSONALIZE_KEY

    store = windows_shell.RegistryStore()
    try:
        value = store.read_dword(PERSONALIZE_KEY, APPS_LIGHT_VALUE)
    except OSError:
        pytest.skip("personalization value is not set for this user")
    assert value in (0, 1)
