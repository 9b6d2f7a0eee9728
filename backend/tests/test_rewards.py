import pytest

from tales import db
from tales.models import InventoryItem, User


@pytest.fixture()
def user_id(app_ctx):
    user = User(username='ann')
    user.set_password('password')
    db.session.add(user)
    db.session.commit()
    return user.id


def test_repeat_grant_increments_single_entry(services, user_id):
    first = services.rewards.grant(user_id, 'Golden Key')
    second = services.rewards.grant(user_id, 'Golden Key')
    assert first.quantity == 1
    assert second.quantity == 2
    rows = InventoryItem.query.filter_by(user_id=user_id).all()
    assert len(rows) == 1
    assert rows[0].quantity == 2
    assert rows[0].gift.name == 'Golden Key'


def test_different_gifts_get_separate_entries(services, user_id):
    services.rewards.grant(user_id, 'Rose')
    services.rewards.grant(user_id, 'Golden Key')
    assert sorted(i.gift.name for i in services.rewards.inventory(user_id)) == ['Golden Key', 'Rose']


def test_anonymous_grant_is_noop(services):
    assert services.rewards.grant(None, 'Golden Key') is None
    assert InventoryItem.query.count() == 0


def test_unknown_gift_is_noop(services, user_id):
    assert services.rewards.grant(user_id, 'Mystery Box') is None
    assert services.rewards.grant(user_id, None) is None
    assert InventoryItem.query.count() == 0


def test_concurrent_insert_falls_back_to_increment(services, user_id, monkeypatch):
    services.rewards.grant(user_id, 'Rose')
    real_increment = services.rewards._increment
    calls = []

    def stale_increment(uid, gift_id):
        # first call behaves as if the row did not exist yet
        calls.append(gift_id)
        if len(calls) == 1:
            return False
        return real_increment(uid, gift_id)

    monkeypatch.setattr(services.rewards, '_increment', stale_increment)
    grant = services.rewards.grant(user_id, 'Rose')
    assert grant.quantity == 2
    assert InventoryItem.query.filter_by(user_id=user_id).count() == 1
    assert len(calls) == 2
