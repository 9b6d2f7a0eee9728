from types import SimpleNamespace

from tales.services.clues import (
    GENERIC_HINT_TEXT, UNKNOWN_CLUE_TEXT, ClueGrader, ClueRule, parse_extra_answers,
)


def test_clue_one_accepts_only_uppercase_d():
    grader = ClueGrader()
    assert grader.grade(1, 'D').correct
    assert not grader.grade(1, 'd').correct
    assert not grader.grade(1, 'A').correct
    assert grader.grade(1, 'D').reward is None


def test_answers_are_not_trimmed():
    grader = ClueGrader()
    assert not grader.grade(1, ' D').correct
    assert not grader.grade(1, 'D ').correct
    assert not grader.grade(2, ' bonz ').correct


def test_clue_one_narrative_differs_for_pass_and_fail():
    grader = ClueGrader()
    assert grader.grade(1, 'D').narrative != grader.grade(1, 'A').narrative


def test_clue_two_case_insensitive_with_golden_key():
    grader = ClueGrader()
    result = grader.grade(2, 'bonz')
    assert result.correct
    assert result.reward == 'Golden Key'
    assert grader.grade(2, 'BONZ').correct
    assert not grader.grade(2, 'james').correct
    assert grader.grade(2, 'james').reward is None


def test_typo_alias_is_configuration():
    assert not ClueGrader().grade(2, 'znob').correct
    grader = ClueGrader(extra_answers=parse_extra_answers('2:znob'))
    assert grader.grade(2, 'ZNOB').correct
    assert grader.grade(2, 'bonz').correct


def test_unknown_clue_is_incorrect_not_error():
    result = ClueGrader().grade(99, 'anything')
    assert not result.correct
    assert result.narrative == UNKNOWN_CLUE_TEXT
    assert result.reward is None


def test_non_string_answer_is_incorrect():
    assert not ClueGrader().grade(1, None).correct
    assert not ClueGrader().grade(1, 4).correct


def test_hints():
    grader = ClueGrader()
    assert grader.hint(1) != GENERIC_HINT_TEXT
    assert grader.hint(42) == GENERIC_HINT_TEXT


def test_final_clue_is_highest_id():
    assert ClueGrader().final_clue == 2
    grader = ClueGrader({5: ClueRule(answers=('x',)), 3: ClueRule(answers=('y',))})
    assert grader.final_clue == 5


def test_parse_extra_answers_skips_garbage():
    assert parse_extra_answers('2:znob, 2:bonzz,bad,x:y,3:') == {2: ('znob', 'bonzz')}
    assert parse_extra_answers('') == {}


def test_grader_from_levels():
    levels = [
        SimpleNamespace(level_id=1, title='One', correct='D'),
        SimpleNamespace(level_id=3, title='Three', correct='A'),
    ]
    grader = ClueGrader.from_levels(levels)
    assert grader.grade(3, 'A').correct
    assert not grader.grade(3, 'a').correct
    assert not grader.grade(2, 'A').correct
    assert grader.final_clue == 3


def test_level_source_grader(flask_app):
    flask_app.config['CLUE_SOURCE'] = 'levels'
    with flask_app.app_context():
        services = flask_app.extensions['tales']
        services.reload_grader()
        # seeded level 2 answer is the option letter "A"
        assert services.grader.grade(2, 'A').correct
        assert not services.grader.grade(2, 'bonz').correct
        assert services.grader.final_clue == 3
