from pathlib import Path

from taskboard.core import settings
from taskboard.core.log import get_logger


def test_linux_data_dir_with_xdg():
    env = {"XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env=env,
        home=Path("/home/test"),
    )
    assert result == Path("/tmp/xdg") / settings.APP_NAME


def test_linux_data_dir_default_home():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env={},
        home=Path("/home/test"),
    )
    assert result == Path("/home/test/.local/share") / settings.APP_NAME


def test_macos_data_dir():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="darwin",
        env={},
        home=Path("/Users/test"),
    )
    assert result == Path("/Users/test/Library/Application Support") / settings.APP_NAME


def test_windows_data_dir_appdata():
    env = {"APPDATA": "C:/Users/test/AppData/Roaming"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="win32",
        env=env,
        home=Path("C:/Users/test"),
    )
    assert result == Path(env["APPDATA"]) / settings.APP_NAME


def test_env_override_wins():
    env = {"TASKBOARD_DATA_DIR": "/srv/taskboard", "XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(settings.APP_NAME, platform="linux", env=env)
    assert result == Path("/srv/taskboard")


def test_runtime_paths_inside_data_dir():
    assert settings.DB_PATH.parent == settings.DATA_DIR
    assert settings.LOG_PATH.parent == settings.LOG_DIR
    assert settings.LOG_DIR.parent == settings.DATA_DIR


def test_reminder_defaults():
    cfg = settings.REMINDERS
    assert cfg.poll_interval_sec == 60
    assert (cfg.notify_after_minutes, cfg.notify_before_minutes) == (-5, 60)
    assert cfg.upcoming_max_minutes == 120
    assert settings.TRIAGE.max_results == 3


def test_loggers_share_the_taskboard_root():
    assert get_logger("reminders").name == "taskboard.reminders"
    assert get_logger("taskboard.cli").name == "taskboard.cli"
