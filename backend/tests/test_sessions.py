import pytest

from tales.errors import NotFoundError
from tales.models import GameSession, Message
from tales.services.sessions import SessionCache


def test_get_or_create_is_idempotent_and_welcomes_once(services):
    first, created = services.sessions.get_or_create('s1', {'player_name': 'Ann'})
    second, created_again = services.sessions.get_or_create('s1', {'player_name': 'Someone else'})
    assert created and not created_again
    assert first.id == second.id == 's1'
    assert second.player_name == 'Ann'
    assert GameSession.query.count() == 1
    welcome = Message.query.filter_by(session_id='s1', type='system').all()
    assert len(welcome) == 1
    assert welcome[0].sender_id is None


def test_new_session_defaults(services):
    session, _ = services.sessions.get_or_create('fresh')
    assert session.status == 'waiting'
    assert session.current_clue == 1
    assert session.score == 0
    assert session.hints_used == 0
    assert session.host_name == 'Narrator'


def test_generated_id_when_none_given(services):
    session, created = services.sessions.get_or_create(None)
    assert created
    assert len(session.id) == 32


def test_correct_answer_scores_and_advances(services):
    services.sessions.get_or_create('s1')
    session, advanced = services.sessions.record_correct_answer('s1', 1, final_clue=2)
    assert advanced
    assert session.score == 100
    assert session.current_clue == 2
    assert session.status == 'active'
    assert session.started_at is not None
    assert session.completed_at is None


def test_final_clue_completes_session(services):
    services.sessions.get_or_create('s1')
    services.sessions.record_correct_answer('s1', 1, final_clue=2)
    session, _ = services.sessions.record_correct_answer('s1', 2, final_clue=2)
    assert session.status == 'completed'
    assert session.score == 200
    assert session.current_clue == 3
    assert session.completed_at is not None


def test_current_clue_never_decreases(services):
    services.sessions.get_or_create('s1')
    services.sessions.record_correct_answer('s1', 2, final_clue=5)
    session, advanced = services.sessions.record_correct_answer('s1', 1, final_clue=5)
    assert not advanced
    assert session.current_clue == 3
    assert session.score == 200


def test_repeat_answer_scores_but_does_not_advance(services):
    services.sessions.get_or_create('s1')
    services.sessions.record_correct_answer('s1', 1, final_clue=2)
    session, advanced = services.sessions.record_correct_answer('s1', 1, final_clue=2)
    assert not advanced
    assert session.score == 200
    assert session.current_clue == 2


def test_completed_session_stays_completed(services):
    services.sessions.get_or_create('s1')
    services.sessions.record_correct_answer('s1', 2, final_clue=2)
    session, _ = services.sessions.record_correct_answer('s1', 1, final_clue=2)
    assert session.status == 'completed'


def test_unknown_session_raises(services):
    with pytest.raises(NotFoundError):
        services.sessions.record_correct_answer('nope', 1, final_clue=2)
    with pytest.raises(NotFoundError):
        services.sessions.record_hint_used('nope')
    with pytest.raises(NotFoundError):
        services.sessions.snapshot('nope')


def test_hint_counter(services):
    services.sessions.get_or_create('s1')
    assert services.sessions.record_hint_used('s1') == 1
    assert services.sessions.record_hint_used('s1') == 2
    assert services.sessions.snapshot('s1')['hints_used'] == 2


def test_explicit_start_only_from_waiting(services):
    services.sessions.get_or_create('s1')
    assert services.sessions.start('s1').status == 'active'
    services.sessions.record_correct_answer('s1', 2, final_clue=2)
    assert services.sessions.start('s1').status == 'completed'


def test_cache_is_refreshed_by_mutations(services):
    services.sessions.get_or_create('s1')
    assert services.cache.get('s1')['score'] == 0
    services.sessions.record_correct_answer('s1', 1, final_clue=2)
    assert services.cache.get('s1')['score'] == 100


def test_cache_miss_reloads_from_store(services):
    services.sessions.get_or_create('s1')
    services.cache.clear()
    assert 's1' not in services.cache
    assert services.sessions.snapshot('s1')['id'] == 's1'
    assert 's1' in services.cache


def test_session_cache_is_isolated_per_instance():
    a, b = SessionCache(), SessionCache()
    a._entries['x'] = {'id': 'x'}
    assert b.get('x') is None
    assert len(a) == 1
