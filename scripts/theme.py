#!/usr/bin/env -S uv run --quiet --script

# /// script
# dependencies = [
#   "loguru",
#   "pydantic",
# ]
# ///
"""
Изменяет тему Windows: светлый/тёмный режим, акцентный цвет и обои.
Умеет настраивать ежедневную смену темы через Планировщик заданий.

Использование:
    theme.py --mode dark
    theme.py --mode toggle --accent purple
    theme.py --mode light --wallpaper ~/Pictures/day.jpg --force-restart
    theme.py --setup-schedule --config config.json
    theme.py --remove-schedule
"""
import argparse
import datetime as dt
import sys
from typing import List, Optional

from loguru import logger

from theme_applier import ThemeApplier, ThemeRequest
from theme_config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_LOG_PATH,
    ThemeConfig,
    load_config,
    save_config,
)
from theme_errors import ThemeSwitcherError
from theme_scheduler import (
    TASK_PREFIX,
    TaskScheduler,
    active_entry,
    register_schedule,
    resolve_self_command,
)
from windows_shell import RegistryStore, WindowsShell


# MARK: main
def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    if not has_action(args):
        parser.print_help()
        print()
        show_current_theme()
        return 0

    try:
        return run(args)
    except ThemeSwitcherError as e:
        logger.error(f"❌ {e}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Смена темы Windows: режим, акцентный цвет, обои и расписание"
    )
    parser.add_argument(
        "--mode",
        type=str.capitalize,
        choices=["Light", "Dark", "Toggle"],
        help="light | dark | toggle – режим, на который нужно переключиться",
    )
    parser.add_argument("--accent", help="Акцентный цвет, см. --list-colors")
    parser.add_argument("--wallpaper", help="Путь к изображению для обоев")
    parser.add_argument(
        "--force-restart",
        action="store_true",
        help="Перезапустить Проводник для полного обновления интерфейса",
    )
    parser.add_argument(
        "--config", help=f"Файл настроек (по умолчанию: {DEFAULT_CONFIG_PATH})"
    )

    schedule = parser.add_mutually_exclusive_group()
    schedule.add_argument(
        "--setup-schedule",
        action="store_true",
        help="Создать ежедневные задачи по расписанию из настроек",
    )
    schedule.add_argument(
        "--remove-schedule",
        action="store_true",
        help="Удалить задачи смены темы из Планировщика",
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Сохранить настройки по умолчанию в файл настроек",
    )
    parser.add_argument(
        "--list-colors", action="store_true", help="Показать доступные акцентные цвета"
    )
    parser.add_argument("--log-file", help="Дополнительно писать лог в файл")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный вывод")
    return parser


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    logger.remove()
    # Под pythonw.exe stderr отсутствует
    if sys.stderr is not None:
        logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    if log_file:
        logger.add(
            log_file, level="DEBUG", rotation="1 MB", retention=3, encoding="utf-8"
        )


def has_action(args: argparse.Namespace) -> bool:
    return any(
        [
            args.mode,
            args.accent,
            args.wallpaper,
            args.setup_schedule,
            args.remove_schedule,
            args.init_config,
            args.list_colors,
        ]
    )


# MARK: run
def run(args: argparse.Namespace) -> int:
    # --init-config создаёт файл, читать его до этого незачем
    if args.setup_schedule or (args.config and not args.init_config):
        config = load_config(args.config)
    else:
        config = ThemeConfig()

    request = ThemeRequest(
        mode=args.mode,
        accent=args.accent,
        wallpaper=args.wallpaper,
        force_restart=args.force_restart,
    )

    if args.list_colors:
        print_colors(config)

    if args.init_config:
        save_config(ThemeConfig(), args.config)

    if args.remove_schedule:
        removed = create_registrar().remove_jobs_matching(TASK_PREFIX)
        print(f"Удалено задач: {removed}")

    if args.setup_schedule:
        setup_schedule(config)
        if request.is_empty:
            request = scheduled_request(config, dt.datetime.now().time())

    if request.is_empty:
        return 0

    applier = ThemeApplier(create_store(), create_shell(), config)
    result = applier.apply(request)
    if result.failed:
        logger.warning(f"⚠️ Не применено: {', '.join(result.failed)}")
    return 0


def setup_schedule(config: ThemeConfig) -> int:
    base = resolve_self_command()
    registrar = create_registrar()

    # Расписание заменяется целиком
    registrar.remove_jobs_matching(TASK_PREFIX)
    created = register_schedule(config, registrar, base, DEFAULT_LOG_PATH)
    print(f"Создано задач: {created}")
    return created


def scheduled_request(config: ThemeConfig, now: dt.time) -> ThemeRequest:
    """Запрос для записи расписания, которая действует прямо сейчас"""
    entry = active_entry(config.schedule, now)
    if entry is None:
        return ThemeRequest()

    logger.info(f"Применяем текущую запись расписания «{entry.name}»")
    return ThemeRequest(
        mode=entry.mode.value,
        accent=entry.accent or config.accent_for(entry.mode),
        wallpaper=entry.wallpaper or config.wallpaper_for(entry.mode),
        force_restart=entry.force_restart,
    )


# MARK: output
def show_current_theme() -> None:
    try:
        applier = ThemeApplier(create_store(), create_shell(), ThemeConfig())
    except ThemeSwitcherError as e:
        logger.warning(f"⚠️ {e}")
        return

    mode = applier.read_current_mode()
    accent = applier.current_accent_name() or "неизвестен"
    print(f"Текущая тема: {mode.value}, акцентный цвет: {accent}")


def print_colors(config: ThemeConfig) -> None:
    for name, value in config.accent_colors.items():
        print(f"{name:<8} 0x{value:08X}")


# MARK: factories
def create_store():
    return RegistryStore()


def create_shell():
    return WindowsShell()


def create_registrar():
    return TaskScheduler()


# MARK: Main entry point
if __name__ == "__main__":
    sys.exit(main())
