"""Clue grading against a fixed answer key.

The key maps a clue id to the answers it accepts, an optional reward and the
narrative lines the host speaks on success or failure. Grading is pure: the
caller decides what to persist.
"""

from typing import Dict, Iterable, NamedTuple, Optional, Tuple

UNKNOWN_CLUE_TEXT = "That clue is not part of this tale. Look again at the question in front of you."
GENERIC_HINT_TEXT = "Read the question slowly. Every word was chosen for a reason."


class ClueRule(NamedTuple):
    answers: Tuple[str, ...]
    case_sensitive: bool = False
    reward: Optional[str] = None
    correct_text: str = "Correct! The tale moves on."
    wrong_text: str = "Not quite. Think again."
    hint: str = GENERIC_HINT_TEXT
    title: Optional[str] = None

    def accepts(self, answer) -> bool:
        if not isinstance(answer, str):
            return False
        if self.case_sensitive:
            return answer in self.answers
        return answer.lower() in {a.lower() for a in self.answers}


class Grade(NamedTuple):
    correct: bool
    narrative: str
    reward: Optional[str] = None

    def to_dict(self):
        return {'correct': self.correct, 'narrative': self.narrative, 'reward': self.reward}


DEFAULT_ANSWER_KEY: Dict[int, ClueRule] = {
    1: ClueRule(
        answers=('D',),
        case_sensitive=True,
        title='The Late Night Call',
        correct_text="Kyengera. Your mum nods slowly... she believes you, for now.",
        wrong_text="Your mum raises an eyebrow. That is not where James is from.",
        hint="He is not calling from anywhere near Kireka.",
    ),
    2: ClueRule(
        answers=('bonz',),
        case_sensitive=False,
        reward='Golden Key',
        title='Who Is James?',
        correct_text="Bonz! The last door of the tale swings open. Take the Golden Key.",
        wrong_text="James laughs on the other end of the line. Wrong name.",
        hint="Read the first option backwards.",
    ),
}


def parse_extra_answers(raw: str) -> Dict[int, Tuple[str, ...]]:
    """Parse "2:znob,2:bonzz" into {2: ('znob', 'bonzz')}."""
    extras: Dict[int, Tuple[str, ...]] = {}
    for item in (raw or '').split(','):
        clue_id, sep, answer = item.strip().partition(':')
        if not sep or not answer.strip():
            continue
        try:
            key = int(clue_id)
        except ValueError:
            continue
        extras[key] = extras.get(key, ()) + (answer.strip(),)
    return extras


class ClueGrader:
    def __init__(self, answer_key: Dict[int, ClueRule] = None, extra_answers: Dict[int, Iterable[str]] = None):
        key = dict(DEFAULT_ANSWER_KEY if answer_key is None else answer_key)
        for clue_id, answers in (extra_answers or {}).items():
            if clue_id in key:
                rule = key[clue_id]
                key[clue_id] = rule._replace(answers=rule.answers + tuple(answers))
        self.answer_key = key

    @classmethod
    def from_levels(cls, levels) -> 'ClueGrader':
        """Build a grader from authored Level rows; the answer is the option letter."""
        key = {}
        for level in levels:
            key[level.level_id] = ClueRule(
                answers=(level.correct,),
                case_sensitive=True,
                title=level.title,
                correct_text=f"Correct! \"{level.title}\" is solved.",
                wrong_text=f"That is not the answer to \"{level.title}\".",
            )
        return cls(key)

    @property
    def final_clue(self) -> int:
        return max(self.answer_key) if self.answer_key else 0

    def grade(self, clue_id, answer) -> Grade:
        rule = self.answer_key.get(clue_id)
        if rule is None:
            return Grade(False, UNKNOWN_CLUE_TEXT)
        if rule.accepts(answer):
            return Grade(True, rule.correct_text, rule.reward)
        return Grade(False, rule.wrong_text)

    def hint(self, clue_id) -> str:
        rule = self.answer_key.get(clue_id)
        return rule.hint if rule else GENERIC_HINT_TEXT
