from __future__ import annotations

from src.timeclock.timeclock.settings.defaults import DEFAULT_SETTINGS, merge_settings
from src.timeclock.timeclock.settings.provider import InMemorySettingsProvider


def test_merge_is_deep_and_does_not_touch_base():
    merged = merge_settings(DEFAULT_SETTINGS, {"rota": {"checkin_lead_minutes": 45}})

    assert merged["rota"]["checkin_lead_minutes"] == 45
    assert merged["rota"]["checkout_lead_minutes"] == 15
    assert DEFAULT_SETTINGS["rota"]["checkin_lead_minutes"] == 30


def test_scheduler_config_defaults_and_clamp():
    provider = InMemorySettingsProvider(env={})
    config = provider.get_scheduler_config()
    assert config.reminders_enabled is True
    assert (config.checkin_lead_minutes, config.checkout_lead_minutes, config.poll_interval_minutes) == (30, 15, 5)

    provider.update({"rota": {"scheduler_interval_minutes": 0}})
    assert provider.get_scheduler_config().poll_interval_minutes == 1


def test_updates_are_visible_on_next_read():
    provider = InMemorySettingsProvider(env={})
    before = provider.get_scheduler_config()

    provider.update({"rota": {"reminders_enabled": False}})

    assert before.reminders_enabled is True
    assert provider.get_scheduler_config().reminders_enabled is False


def test_email_config_falls_back_to_environment():
    env = {"SMTP_HOST": "mail.example", "SMTP_PORT": "2525", "SMTP_FROM": "noreply@example", "SMTP_SECURE": "true"}
    provider = InMemorySettingsProvider(env=env)

    config = provider.get_email_config()

    assert config.host == "mail.example"
    assert config.port == 2525
    assert config.secure is True
    assert config.is_configured is True


def test_live_email_settings_win_over_environment():
    provider = InMemorySettingsProvider({"email": {"smtp_host": "smtp.live"}}, env={"SMTP_HOST": "smtp.env"})

    config = provider.get_email_config()

    assert config.host == "smtp.live"
    assert config.is_configured is False  # no sender anywhere
