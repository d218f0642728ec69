import pytest
from unittest.mock import patch
from conftest import make_question

from jlpt_drill.app import (
    SessionExitRequested, cmd_daily, cmd_exam, cmd_mistakes, cmd_settings, console, main,
    run_quiz_session, session_int_prompt, session_prompt, show_menu,
)
from jlpt_drill.mistakes import count_mistakes, get_mistakes, record_mistake
from jlpt_drill.progress import DONE, ProgressTracker
from jlpt_drill.session import QuizSession
from jlpt_drill.settings import SettingsStore


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("jlpt_drill.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("jlpt_drill.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("jlpt_drill.app.Prompt.ask", return_value="hello"):
        result = session_prompt("test prompt")
        assert result == "hello"


def test_session_int_prompt_returns_normal_input():
    with patch("jlpt_drill.app.Prompt.ask", return_value="3"):
        result = session_int_prompt("week", choices=["1", "2", "3"])
        assert result == 3


def make_session(mistake_log=None):
    session = QuizSession(mistake_log=mistake_log)
    session.init([make_question("N2-2022-07", 1, correct=1), make_question("N2-2022-07", 2, correct=2)])
    return session


def test_run_quiz_session_to_completion():
    session = make_session()
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["1", "n", "3"]):
        assert run_quiz_session(session) is True
    assert session.score == 1
    assert session.total_answered == 2


def test_run_quiz_session_exits_on_q():
    """User answers the first question and quits; the answer stays recorded."""
    session = make_session()
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["1", "q"]):
        with pytest.raises(SessionExitRequested):
            run_quiz_session(session)
    assert session.answer_at(0).correct is True
    assert session.total_answered == 1


def test_run_quiz_session_jump_and_back():
    session = make_session()
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["j", "2", "p", "1", "n", "2"]):
        assert run_quiz_session(session) is True
    assert session.score == 2


def test_run_quiz_session_logs_wrong_answers():
    calls = []
    session = make_session(mistake_log=lambda *args: calls.append(args))
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["4", "n", "2"]):
        run_quiz_session(session)
    assert calls == [("N2-2022-07", 1, 4)]


def test_run_quiz_session_empty():
    assert run_quiz_session(QuizSession()) is False


def test_cmd_daily_marks_day_done(content_db):
    # week, day, then answers for items 1 and 2
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["1", "1", "1", "n", "2"]):
        cmd_daily(content_db)
    tracker = ProgressTracker(SettingsStore(content_db))
    assert tracker.day_status("N2", "grammar", 1, 1) == DONE
    assert count_mistakes(content_db) == 0


def test_cmd_daily_rejects_locked_day(content_db):
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["1", "5"]) as ask:
        cmd_daily(content_db)
    assert ask.call_count == 2
    tracker = ProgressTracker(SettingsStore(content_db))
    assert tracker.completed_tokens() == frozenset()


def test_cmd_daily_missing_content_is_not_marked(content_db):
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["1", "2"]):
        cmd_daily(content_db)
    assert ProgressTracker(SettingsStore(content_db)).completed_tokens() == frozenset()


def test_cmd_exam_records_mistakes(content_db):
    answers = ["N2", "language", "2022", "07", "2", "n", "3"]
    with patch("jlpt_drill.app.Prompt.ask", side_effect=answers):
        cmd_exam(content_db)
    (m,) = get_mistakes(content_db)
    assert (m.group_key, m.item_number, m.picked_position) == ("N2-2022-07", 1, 2)


def test_cmd_settings_saves_preferences(content_db):
    with patch("jlpt_drill.app.Prompt.ask", side_effect=["N3", "vocab"]):
        cmd_settings(content_db)
    tracker = ProgressTracker(SettingsStore(content_db))
    assert tracker.preferred_level() == "N3"
    assert tracker.preferred_category() == "vocab"


def test_cmd_mistakes_clears_on_confirm(content_db):
    record_mistake(content_db, "N2-2022-07", 1, 2)
    with patch("jlpt_drill.app.Confirm.ask", return_value=True):
        cmd_mistakes(content_db)
    assert count_mistakes(content_db) == 0


def test_cmd_mistakes_keeps_log_when_declined(content_db):
    record_mistake(content_db, "N2-2022-07", 1, 2)
    with patch("jlpt_drill.app.Confirm.ask", return_value=False):
        cmd_mistakes(content_db)
    assert count_mistakes(content_db) == 1


def test_show_menu_shows_mistake_count():
    with console.capture() as capture:
        show_menu(3)
    assert "(3 logged)" in capture.get()


def test_main_menu_counts_logged_mistakes(content_db):
    record_mistake(content_db, "N2-2022-07", 1, 2)
    with patch("jlpt_drill.app.DEFAULT_DB_PATH", content_db), \
            patch("jlpt_drill.app.setup_logging"), \
            patch("jlpt_drill.app.Prompt.ask", return_value="quit"):
        with console.capture() as capture:
            main()
    assert "(1 logged)" in capture.get()
