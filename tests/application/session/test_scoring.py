import pytest

from studymate.application.session.scoring import ScoringEngine, format_duration, score_band
from studymate.domain.session.errors import EmptySessionError


@pytest.fixture
def scoring():
    return ScoringEngine()


def test_progress_percent(scoring):
    assert scoring.progress_percent(0, 4) == 25.0
    assert scoring.progress_percent(3, 4) == 100.0


def test_progress_percent_undefined_for_empty(scoring):
    with pytest.raises(EmptySessionError):
        scoring.progress_percent(0, 0)


@pytest.mark.parametrize(
    "correct, attempts, expected",
    [
        (2, 3, 67),
        (1, 3, 33),
        (1, 2, 50),
        (1, 8, 13),  # 12.5 rounds half up
        (0, 0, 0),
        (5, 5, 100),
    ],
)
def test_accuracy_percent(scoring, correct, attempts, expected):
    assert scoring.accuracy_percent(correct, attempts) == expected


def test_session_score_is_unrounded(scoring):
    score = scoring.session_score([1, 1, 2], [1, 0, 2])
    assert score == pytest.approx(66.6666, rel=1e-4)
    assert scoring.correct_count([1, 1, 2], [1, 0, 2]) == 2


def test_session_score_ignores_unanswered(scoring):
    assert scoring.session_score([None, 0], [0, 0]) == 50.0


def test_session_score_undefined_for_empty(scoring):
    with pytest.raises(EmptySessionError):
        scoring.session_score([], [])


def test_elapsed_seconds_floors(scoring):
    assert scoring.elapsed_seconds(100.0, 165.9) == 65
    assert scoring.elapsed_seconds(100.0, 100.0) == 0


def test_mastered_count(scoring, flashcard_factory):
    items = flashcard_factory(2) + flashcard_factory(3, prefix="m", mastered=True)
    assert scoring.mastered_count(items) == 3


@pytest.mark.parametrize(
    "score, band",
    [(100.0, "high"), (80.0, "high"), (79.9, "medium"), (60.0, "medium"), (59.99, "low"), (0.0, "low")],
)
def test_score_band(score, band):
    assert score_band(score) == band


@pytest.mark.parametrize("seconds, text", [(0, "0:00"), (5, "0:05"), (65, "1:05"), (600, "10:00")])
def test_format_duration(seconds, text):
    assert format_duration(seconds) == text
