"""Scripted host replies.

The host answers chat messages by scanning an ordered keyword table: the
first rule whose keyword appears anywhere in the lower-cased message wins.
Messages that match nothing get a random line from a fallback pool.
"""

import random
from typing import Iterable, NamedTuple, Optional, Sequence


class HostRule(NamedTuple):
    keyword: str
    response: str
    emotion: str = 'neutral'
    category: str = 'general'
    reward: Optional[str] = None


class HostResponse(NamedTuple):
    response: str
    emotion: str
    reward: Optional[str] = None
    keyword: Optional[str] = None

    def to_dict(self):
        return {'response': self.response, 'emotion': self.emotion, 'reward': self.reward}


FALLBACK_EMOTION = 'thoughtful'

FALLBACK_RESPONSES = (
    "Hmm... every tale has a second meaning. Tell me more.",
    "Interesting. The night is long and the story is far from over.",
    "I have heard many things in this town, but not quite that.",
    "Keep talking. Somewhere in your words there is a clue.",
    "The answer is closer than you think. Look at the question again.",
)

DEFAULT_RULES = (
    HostRule('hello', "Welcome, traveller. Sit by the fire and listen to the tale.", 'happy', 'greeting'),
    HostRule('james', "James... the one who calls late at night. Be careful what you say about him.", 'mysterious', 'story'),
    HostRule('kyengera', "Kyengera! You know more than you let on.", 'surprised', 'story'),
    HostRule('kireka', "Kireka? Your mum would not believe that for a second.", 'playful', 'story'),
    HostRule('mukono', "Mukono is a long way to call from at midnight.", 'thoughtful', 'story'),
    HostRule('nansana', "Nansana... a fine guess, but not the truth.", 'thoughtful', 'story'),
    HostRule('znob', "You read it backwards. Sometimes that is the only way to read it.", 'mysterious', 'clue'),
    HostRule('bonz', "Bonz. Now you are getting somewhere.", 'excited', 'clue'),
    HostRule('hint', "Look at the letters, not the words.", 'helpful', 'help'),
    HostRule('help', "Answer the clue in front of you. I will guide you if you ask for a hint.", 'helpful', 'help'),
    HostRule('thank', "You are kind. Take this, it suits you.", 'happy', 'gift', 'Rose'),
    HostRule('love', "Love is the oldest tale of all. This is for you.", 'happy', 'gift', 'Crystal Heart'),
    HostRule('bye', "Leaving already? The story will wait for you.", 'sad', 'farewell'),
)


class HostResponder:
    """Ordered keyword table plus fallback pool with an injectable random source."""

    def __init__(self, rules: Iterable[HostRule] = DEFAULT_RULES,
                 fallback_pool: Sequence[str] = FALLBACK_RESPONSES,
                 rng: Optional[random.Random] = None):
        self.rules = [HostRule(r.keyword.lower(), r.response, r.emotion, r.category, r.reward) for r in rules]
        self.fallback_pool = tuple(fallback_pool)
        if not self.fallback_pool:
            raise ValueError('fallback_pool must not be empty')
        self.rng = rng or random.Random()

    @classmethod
    def from_rows(cls, rows, **kwargs) -> 'HostResponder':
        """Build from host_reply table rows, already in table order."""
        rules = [HostRule(r.keyword, r.response, r.emotion, r.category, r.reward) for r in rows]
        return cls(rules, **kwargs)

    def resolve(self, text: str) -> HostResponse:
        lowered = (text or '').lower()
        for rule in self.rules:
            if rule.keyword and rule.keyword in lowered:
                return HostResponse(rule.response, rule.emotion, rule.reward, rule.keyword)
        return HostResponse(self.rng.choice(self.fallback_pool), FALLBACK_EMOTION)
