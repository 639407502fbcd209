from ipam_sync.config import Settings, celery_config


class TestCeleryConfig:
    def test_broker_defaults_to_redis_url(self):
        config = celery_config(Settings(REDIS_URL="redis://cache:6379/2", CELERY_BROKER_URL="", CELERY_RESULT_BACKEND=""))
        assert config["broker_url"] == "redis://cache:6379/2"
        assert config["result_backend"] == "redis://cache:6379/2"

    def test_explicit_celery_urls_win(self):
        config = celery_config(Settings(
            REDIS_URL="redis://cache:6379/2",
            CELERY_BROKER_URL="redis://broker:6379/0",
            CELERY_RESULT_BACKEND="redis://results:6379/1",
        ))
        assert config["broker_url"] == "redis://broker:6379/0"
        assert config["result_backend"] == "redis://results:6379/1"

    def test_beat_schedule(self):
        config = celery_config(Settings(AUTO_SYNC_CHECK_SECONDS=60))
        schedule = config["beat_schedule"]
        assert schedule["auto-sync-connections"]["schedule"] == 60.0
        assert schedule["reap-stale-sync-runs"]["task"] == "ipam_sync.reap_stale_sync_runs"


class TestCeleryBinding:
    def test_tasks_run_in_app_context(self, app):
        from flask import current_app

        from ipam_sync.extensions import FlaskTask, celery

        assert app.extensions["celery"] is celery
        assert issubclass(celery.Task, FlaskTask)

        class CurrentAppName(FlaskTask):
            name = "tests.current_app_name"

            def run(self):
                return current_app.name

        assert CurrentAppName()() == app.name
