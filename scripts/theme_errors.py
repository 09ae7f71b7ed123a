"""
Исключения переключателя темы Windows.
"""


class ThemeSwitcherError(Exception):
    """Базовая ошибка переключателя темы. Если она дошла до main(), скрипт завершается с кодом 1."""


class InvalidInputError(ThemeSwitcherError):
    """Некорректный ввод: неизвестный цвет, отсутствующий файл обоев, неверное время."""


class SchedulerError(ThemeSwitcherError):
    """Не удалось работать с Планировщиком заданий Windows."""
