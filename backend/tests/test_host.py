import random

import pytest

from tales.services.host import (
    DEFAULT_RULES, FALLBACK_EMOTION, FALLBACK_RESPONSES, HostResponder, HostRule,
)


class FirstChoice:
    def choice(self, seq):
        return seq[0]


@pytest.mark.parametrize('rule', DEFAULT_RULES, ids=lambda r: r.keyword)
def test_every_keyword_matches_anywhere_case_insensitive(rule):
    responder = HostResponder(DEFAULT_RULES)
    reply = responder.resolve(f"so... {rule.keyword.upper()}!!")
    assert reply.response == rule.response
    assert reply.emotion == rule.emotion
    assert reply.reward == rule.reward


def test_first_rule_in_table_order_wins():
    rules = [
        HostRule('cat', 'cat reply', 'happy'),
        HostRule('dog', 'dog reply', 'sad'),
    ]
    responder = HostResponder(rules)
    assert responder.resolve('my dog chased a cat').response == 'cat reply'
    assert HostResponder(list(reversed(rules))).resolve('my dog chased a cat').response == 'dog reply'


def test_keyword_is_substring_match():
    responder = HostResponder([HostRule('help', 'helping')])
    assert responder.resolve('HELPFUL people').response == 'helping'


def test_reward_carried_from_rule():
    reply = HostResponder(DEFAULT_RULES).resolve('Thank you so much')
    assert reply.reward == 'Rose'


def test_fallback_is_from_pool_with_thoughtful_emotion():
    responder = HostResponder(DEFAULT_RULES, rng=random.Random(7))
    for _ in range(20):
        reply = responder.resolve('zzz qqq')
        assert reply.response in FALLBACK_RESPONSES
        assert reply.emotion == FALLBACK_EMOTION == 'thoughtful'
        assert reply.reward is None


def test_fallback_uses_injected_random_source():
    pool = ['one', 'two', 'three']
    responder = HostResponder([], fallback_pool=pool, rng=FirstChoice())
    assert responder.resolve('anything').response == 'one'


def test_empty_text_falls_back():
    responder = HostResponder(DEFAULT_RULES, fallback_pool=['only'])
    assert responder.resolve('').response == 'only'
    assert responder.resolve(None).response == 'only'


def test_empty_fallback_pool_rejected():
    with pytest.raises(ValueError):
        HostResponder([], fallback_pool=[])


def test_from_rows_keeps_row_order(services):
    from tales.models import HostReply
    rows = HostReply.query.order_by(HostReply.position).all()
    responder = HostResponder.from_rows(rows)
    assert [r.keyword for r in responder.rules] == [r.keyword for r in DEFAULT_RULES]
    assert services.host.resolve('hello').response == DEFAULT_RULES[0].response
