"""Delayed actions on Socket.IO background tasks."""

import time

from flask import has_app_context

from tales import db


class ScheduledTask:
    """Handle for a delayed action. cancel() stops it if it has not fired yet."""

    def __init__(self, name: str, delay: float):
        self.name = name
        self.delay = delay
        self.deadline = time.time() + delay
        self.cancelled = False
        self.fired = False

    def cancel(self) -> bool:
        if self.fired:
            return False
        self.cancelled = True
        return True


def schedule(app, socketio, delay: float, action, *args, name: str = 'task') -> ScheduledTask:
    """Run action(*args) inside an app context after `delay` seconds.

    - Runs inline, without sleeping, in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS
    - Errors are logged, never raised into the worker
    """
    task = ScheduledTask(name, delay)

    def _worker():
        sleep_for = max(0.0, task.deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if task.cancelled:
            app.logger.info(f"[timer-abort] task={task.name} cancelled")
            return
        task.fired = True
        if has_app_context():
            _run()
        else:
            with app.app_context():
                _run()

    def _run():
        try:
            action(*args)
        except Exception:
            db.session.rollback()
            app.logger.exception(f"[timer-error] task={task.name}")

    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        task.deadline = time.time()
        _worker()
    else:
        app.logger.info(f"[timer-set] task={task.name} delay={delay:.2f}s")
        socketio.start_background_task(_worker)
    return task
