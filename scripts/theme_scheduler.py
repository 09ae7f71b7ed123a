"""
Ежедневные задачи смены темы в Планировщике заданий Windows (schtasks.exe).

Каждая задача запускает этот же скрипт без окна с фиксированными
аргументами, например:

    pythonw.exe theme.py --mode Dark --accent Purple --log-file theme.log
"""
import csv
import datetime as dt
import io
import re
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loguru import logger

from theme_config import ScheduleEntry, ThemeConfig
from theme_errors import InvalidInputError, SchedulerError

TASK_PREFIX = "ThemeSwitcher"
# schtasks пишет в перенаправленный вывод в OEM-кодировке (cp866 для русской Windows)
SCHTASKS_ENCODING = "oem" if sys.platform == "win32" else None


def parse_schedule_time(value: str) -> dt.time:
    """Разобрать время в формате ЧЧ:ММ"""
    try:
        return dt.datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise InvalidInputError(f"Некорректное время '{value}', ожидается ЧЧ:ММ") from None


def job_name(entry: ScheduleEntry) -> str:
    # Символы, недопустимые в имени задачи
    safe = re.sub(r'[\\/:*?"<>|]', "_", entry.name).strip()
    return f"{TASK_PREFIX} - {safe}"


# MARK: TaskScheduler
class TaskScheduler:
    def __init__(self, runner: Callable[..., subprocess.CompletedProcess] = subprocess.run):
        self._run = runner

    def _schtasks(self, *args: str) -> subprocess.CompletedProcess:
        return self._run(
            ["schtasks", *args],
            capture_output=True,
            text=True,
            encoding=SCHTASKS_ENCODING,
            errors="replace",
        )

    def create_daily_job(self, name: str, at: dt.time, command: Sequence[str]) -> bool:
        result = self._schtasks(
            "/Create",
            "/TN", name,
            "/TR", subprocess.list2cmdline(command),
            "/SC", "DAILY",
            "/ST", at.strftime("%H:%M"),
            "/F",
        )
        if result.returncode != 0:
            logger.error(f"❌ Не удалось создать задачу «{name}»: {result.stderr.strip()}")
            return False

        logger.info(f"✅ Задача «{name}» будет запускаться в {at:%H:%M}")
        return True

    def list_jobs(self) -> List[str]:
        result = self._schtasks("/Query", "/FO", "CSV", "/NH")
        if result.returncode != 0:
            raise SchedulerError(f"Не удалось получить список задач: {result.stderr.strip()}")

        names = []
        for row in csv.reader(io.StringIO(result.stdout)):
            # Пустые строки и сообщения вида "INFO: ..." пропускаем
            if not row or not row[0].startswith("\\"):
                continue
            name = row[0].lstrip("\\")
            if name not in names:
                names.append(name)
        return names

    def remove_jobs_matching(self, prefix: str) -> int:
        removed = 0
        for name in self.list_jobs():
            if not name.startswith(prefix):
                continue
            result = self._schtasks("/Delete", "/TN", name, "/F")
            if result.returncode != 0:
                logger.error(f"❌ Не удалось удалить задачу «{name}»: {result.stderr.strip()}")
                continue
            logger.info(f"🗑️ Задача «{name}» удалена")
            removed += 1
        return removed


# MARK: Helper functions
def resolve_self_command(
    argv0: Optional[str] = None, executable: Optional[str] = None
) -> List[str]:
    """
    Команда, которой Планировщик запустит этот скрипт.

    Для скрипта — pythonw.exe (если есть рядом с интерпретатором) и путь к
    скрипту, для установленной команды — её .exe.
    """
    argv0 = sys.argv[0] if argv0 is None else argv0
    executable = sys.executable if executable is None else executable

    if not argv0:
        raise SchedulerError("Не удалось определить путь к скрипту")

    script = Path(argv0).resolve()
    if not script.exists() and script.with_suffix(".exe").exists():
        script = script.with_suffix(".exe")
    if not script.exists():
        raise SchedulerError(f"Скрипт {script} не найден, задачи не созданы")

    if script.suffix.lower() == ".exe":
        return [str(script)]

    if not executable:
        raise SchedulerError("Не удалось определить путь к интерпретатору Python")

    interpreter = Path(executable)
    windowless = interpreter.with_name("pythonw.exe")
    if windowless.exists():
        interpreter = windowless
    return [str(interpreter), str(script)]


def build_job_command(
    base: Sequence[str],
    entry: ScheduleEntry,
    config: ThemeConfig,
    log_file: Optional[Path] = None,
) -> List[str]:
    command = [*base, "--mode", entry.mode.value]

    accent = entry.accent or config.accent_for(entry.mode)
    if accent:
        command += ["--accent", accent]

    wallpaper = entry.wallpaper or config.wallpaper_for(entry.mode)
    if wallpaper:
        command += ["--wallpaper", str(Path(wallpaper).expanduser())]

    if entry.force_restart:
        command.append("--force-restart")

    if log_file:
        command += ["--log-file", str(log_file)]

    return command


def register_schedule(
    config: ThemeConfig,
    registrar,
    base: Sequence[str],
    log_file: Optional[Path] = None,
) -> int:
    """Создать задачи для включённых записей расписания, вернуть их количество"""
    created = 0
    seen = set()

    for entry in config.schedule:
        if not entry.enabled:
            logger.info(f"⏭️ «{entry.name}» отключена, пропускаем")
            continue

        try:
            at = parse_schedule_time(entry.time)
        except InvalidInputError as e:
            logger.error(f"❌ «{entry.name}»: {e}")
            continue

        name = job_name(entry)
        # /F у schtasks молча перезаписал бы задачу с тем же именем
        if name in seen:
            logger.error(f"❌ «{entry.name}»: задача «{name}» уже есть в расписании, пропускаем")
            continue
        seen.add(name)

        command = build_job_command(base, entry, config, log_file)
        if registrar.create_daily_job(name, at, command):
            created += 1

    return created


def active_entry(
    entries: Sequence[ScheduleEntry], now: dt.time
) -> Optional[ScheduleEntry]:
    """
    Запись, которая должна действовать сейчас: последняя из уже наступивших
    сегодня, а если таких нет — последняя вчерашняя.
    """
    timed = []
    for entry in entries:
        if not entry.enabled:
            continue
        try:
            timed.append((parse_schedule_time(entry.time), entry))
        except InvalidInputError:
            continue

    if not timed:
        return None

    timed.sort(key=lambda item: item[0])
    due = [entry for at, entry in timed if at <= now]
    return due[-1] if due else timed[-1][1]
