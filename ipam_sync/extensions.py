"""Extension singletons, bound to the app in create_app()."""
from celery import Celery, Task
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()
celery = Celery("ipam_sync")


class FlaskTask(Task):
    """Task base that executes inside the bound app's context.

    Sync tasks query through db.session, which only exists under an app
    context; workers have none of their own.
    """

    flask_app = None

    def __call__(self, *args, **kwargs):
        if self.flask_app is None:
            return self.run(*args, **kwargs)
        with self.flask_app.app_context():
            return self.run(*args, **kwargs)


def init_celery(app) -> Celery:
    """Load the app's CELERY settings and bind tasks to its context."""
    celery.conf.update(app.config.get("CELERY", {}))
    FlaskTask.flask_app = app
    celery.Task = FlaskTask
    app.extensions["celery"] = celery
    return celery
