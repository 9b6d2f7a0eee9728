from tales.services.presence import PresenceTracker
from tales.services.scheduler import ScheduledTask, schedule


def test_presence_connect_attach_disconnect():
    presence = PresenceTracker()
    presence.on_connect('sid-1', user_id=1, username='ann')
    presence.on_connect('sid-2', username='bob')
    presence.attach('sid-1', 's1')
    presence.attach('sid-1', 's2')
    assert presence.count() == 2
    assert presence.online() == ['ann', 'bob']
    assert presence.rooms_of('sid-1') == {'s1', 's2'}

    entry = presence.on_disconnect('sid-1')
    assert entry['rooms'] == {'s1', 's2'}
    assert presence.count() == 1
    assert not presence.is_online(1)
    assert presence.on_disconnect('sid-1') is None


def test_user_with_two_connections_stays_online():
    presence = PresenceTracker()
    presence.on_connect('a', user_id=7, username='ann')
    presence.on_connect('b', user_id=7, username='ann')
    presence.on_disconnect('a')
    assert presence.is_online(7)
    assert presence.online() == ['ann']


def test_set_username_on_unknown_sid_creates_entry():
    presence = PresenceTracker()
    presence.set_username('x', 'guest')
    assert presence.get('x')['username'] == 'guest'


def test_scheduled_task_cancel_before_fire():
    task = ScheduledTask('t', 5)
    assert task.cancel()
    assert task.cancelled
    task.fired = True
    assert not task.cancel()


def test_schedule_runs_inline_under_testing(flask_app):
    from tales import socketio
    seen = []
    task = schedule(flask_app, socketio, 10, seen.append, 'ran', name='inline')
    assert seen == ['ran']
    assert task.fired


def test_schedule_logs_action_errors(flask_app):
    from tales import socketio

    def boom():
        raise RuntimeError('host fell asleep')

    task = schedule(flask_app, socketio, 0, boom, name='boom')
    assert task.fired


def _wait_for(predicate, timeout=3.0):
    from tales import socketio
    waited = 0.0
    while not predicate() and waited < timeout:
        socketio.sleep(0.05)
        waited += 0.05
    return predicate()


def test_schedule_fires_on_background_task_after_delay(flask_app):
    from flask import current_app, has_app_context
    from tales import socketio
    flask_app.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    seen = []

    def record(label):
        seen.append((label, has_app_context(), current_app.name))

    task = schedule(flask_app, socketio, 0.2, record, 'late', name='delayed')
    assert seen == []
    assert _wait_for(lambda: seen)
    assert seen == [('late', True, flask_app.name)]
    assert task.fired
    assert not task.cancel()


def test_cancel_before_fire_stops_background_task(flask_app):
    from tales import socketio
    flask_app.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    seen = []
    task = schedule(flask_app, socketio, 0.2, seen.append, 'never', name='cancelled')
    assert task.cancel()
    socketio.sleep(0.5)
    assert seen == []
    assert not task.fired
