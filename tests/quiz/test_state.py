"""
Tests for the quiz session state machine.
"""

import pytest

from quiz import state
from quiz.errors import InvalidAnswerError, InvalidTransitionError, UnknownPlanError
from quiz.state import QuizPhase, QuizSession


def _answer_all(session: QuizSession, options=(4, 2, 2, 2)) -> None:
    for option in options:
        state.select_answer(session, option)
        assert state.go_next(session)


@pytest.fixture
def session():
    s = QuizSession(session_id="s1")
    state.start(s)
    return s


class TestStart:

    def test_new_session_is_intro(self):
        s = QuizSession(session_id="s1")
        assert s.current_phase == QuizPhase.INTRO
        assert s.answers == {}
        assert s.created_at and s.updated_at

    def test_start_enters_first_question(self, session):
        assert session.current_phase == QuizPhase.QUESTIONING
        assert session.current_question == 0
        assert session.current_question_id == "q1"

    def test_start_twice_rejected(self, session):
        with pytest.raises(InvalidTransitionError):
            state.start(session)


class TestQuestioning:

    def test_select_answer_records_option(self, session):
        state.select_answer(session, 3)
        assert session.answers == {"q1": 3}
        assert session.current_phase == QuizPhase.QUESTIONING

    def test_select_answer_overwrites(self, session):
        state.select_answer(session, 3)
        state.select_answer(session, 1)
        assert session.answers == {"q1": 1}

    def test_out_of_range_answer_rejected(self, session):
        with pytest.raises(InvalidAnswerError):
            state.select_answer(session, 5)
        assert session.answers == {}

    def test_q2_has_only_three_options(self, session):
        state.select_answer(session, 4)
        state.go_next(session)
        with pytest.raises(InvalidAnswerError):
            state.select_answer(session, 4)

    def test_next_without_answer_is_noop(self, session):
        assert not session.can_go_next()
        assert state.go_next(session) is False
        assert session.current_question == 0

    def test_next_advances(self, session):
        state.select_answer(session, 2)
        assert state.go_next(session) is True
        assert session.current_question == 1

    def test_previous_on_first_question_is_noop(self, session):
        assert not session.can_go_previous()
        assert state.go_previous(session) is False
        assert session.current_question == 0

    def test_previous_keeps_answers(self, session):
        state.select_answer(session, 2)
        state.go_next(session)
        state.select_answer(session, 3)

        assert state.go_previous(session)

        assert session.current_question == 0
        assert session.answers == {"q1": 2, "q2": 3}
        assert session.can_go_next()

    def test_last_question_moves_to_plan_selection(self, session):
        _answer_all(session, (4, 1, 1, 1))
        assert session.current_phase == QuizPhase.PLAN_SELECTION
        assert session.recommended_plan == 2

    def test_recommendation_uses_final_answers(self, session):
        state.select_answer(session, 1)
        state.go_next(session)
        state.go_previous(session)
        state.select_answer(session, 4)
        state.go_next(session)
        for option in (3, 3, 3):
            state.select_answer(session, option)
            state.go_next(session)
        assert session.recommended_plan == 0

    def test_answer_outside_questioning_rejected(self, session):
        _answer_all(session)
        with pytest.raises(InvalidTransitionError):
            state.select_answer(session, 1)
        with pytest.raises(InvalidTransitionError):
            state.go_next(session)
        with pytest.raises(InvalidTransitionError):
            state.go_previous(session)


class TestPlanAndCompletion:

    def test_select_plan(self, session):
        _answer_all(session)
        state.select_plan(session, "balanced")
        assert session.selected_plan == "Balanced"
        assert session.current_phase == QuizPhase.LEAD_CAPTURE

    def test_one_off_plan_can_be_chosen(self, session):
        _answer_all(session)
        state.select_plan(session, "One-Off")
        assert session.selected_plan == "One-Off"

    def test_unknown_plan_rejected(self, session):
        _answer_all(session)
        with pytest.raises(UnknownPlanError):
            state.select_plan(session, "Weekly")
        assert session.current_phase == QuizPhase.PLAN_SELECTION

    def test_select_plan_before_questions_finished(self, session):
        with pytest.raises(InvalidTransitionError) as exc_info:
            state.select_plan(session, "Balanced")
        assert exc_info.value.phase == "questioning"

    def test_complete(self, session):
        _answer_all(session)
        state.select_plan(session, "Essential")
        state.complete(session, "a@example.com")
        assert session.is_complete
        assert session.email == "a@example.com"

    def test_complete_is_terminal(self, session):
        _answer_all(session)
        state.select_plan(session, "Essential")
        state.complete(session, "a@example.com")
        with pytest.raises(InvalidTransitionError):
            state.complete(session, "b@example.com")
        with pytest.raises(InvalidTransitionError):
            state.select_plan(session, "Balanced")

    def test_completed_phases(self, session):
        assert state.get_completed_phases(session) == ["intro"]
        _answer_all(session)
        state.select_plan(session, "Essential")
        assert state.get_completed_phases(session) == ["intro", "questioning", "plan_selection"]


class TestSerialization:

    def test_json_roundtrip(self, session):
        _answer_all(session)
        state.select_plan(session, "Proactive")

        restored = QuizSession.from_json(session.to_json())

        assert restored == session
        assert restored.current_phase == QuizPhase.LEAD_CAPTURE

    def test_to_dict_uses_phase_value(self, session):
        assert session.to_dict()["current_phase"] == "questioning"
