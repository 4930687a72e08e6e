"""
ExamSession lifecycle: loading, selection, pagination, submission, restart.
Async methods are driven with asyncio.run; the timer ticks manually (tick_interval=None).
"""
import asyncio

import pytest

from conftest import FakeStore, make_question, make_questions
from quiz.engine import ExamSession
from quiz.errors import LoadError, ValidationError, WriteError
from quiz.models import SessionState


def started(store, clock=None, **kwargs):
    session = ExamSession(store, tick_interval=None, clock=clock, **kwargs)
    asyncio.run(session.start())
    return session


def answer_all(session, choices):
    for position, options in enumerate(choices):
        for option in options:
            session.select_option(position, option)


# ============= Loading =============

def test_start_loads_questions_and_activates():
    store = FakeStore(make_questions(3))
    session = started(store)
    assert session.state is SessionState.ACTIVE
    assert len(session.questions) == 3
    assert session.page == 0


def test_load_failure_stays_loading_without_retry():
    store = FakeStore(make_questions(3), fail_load=True)
    session = started(store)
    assert session.state is SessionState.LOADING
    assert isinstance(session.errors[0], LoadError)
    asyncio.run(session.start())
    assert store.load_calls == 1


def test_empty_bank_stays_loading():
    session = started(FakeStore([]))
    assert session.state is SessionState.LOADING
    assert session.errors == []
    assert session.timer.cancelled


def test_load_failure_stops_timer_thread():
    session = ExamSession(FakeStore(make_questions(2), fail_load=True), tick_interval=0.01)
    asyncio.run(session.start())
    assert session.timer.cancelled
    session.timer._thread.join(timeout=1)
    assert not session.timer.running


def test_actions_ignored_while_loading():
    session = ExamSession(FakeStore(make_questions(3)), tick_interval=None)
    assert session.select_option(0, 0) == frozenset()
    assert session.paginate(+1) == 0
    assert asyncio.run(session.submit()) is None
    assert session.answers == {}


def test_session_id_is_stable_and_read_only():
    session = started(FakeStore(make_questions(2)))
    sid = session.session_id
    session.select_option(0, 0)
    session.paginate(+1)
    assert session.session_id == sid
    with pytest.raises(AttributeError):
        session.session_id = "other"


# ============= Selection =============

def test_single_answer_selection_is_exclusive_and_clearable():
    session = started(FakeStore([make_question(1, [2])]))
    assert session.select_option(0, 1) == {1}
    assert session.select_option(0, 3) == {3}
    assert session.select_option(0, 3) == frozenset()
    assert not session.is_answered(0)
    assert 0 not in session.answers


def test_multi_answer_selection_toggles():
    session = started(FakeStore([make_question(1, [0, 2])]))
    session.select_option(0, 2)
    session.select_option(0, 0)
    session.select_option(0, 1)
    assert session.selection(0) == {0, 1, 2}
    session.select_option(0, 1)
    assert session.selection(0) == {0, 2}


def test_out_of_range_selection_is_ignored():
    session = started(FakeStore([make_question(1, [0])]))
    session.select_option(0, 0)
    assert session.select_option(0, 9) == {0}
    assert session.select_option(5, 0) == frozenset()
    assert session.answers == {0: frozenset({0})}


# ============= Pagination =============

def test_pagination_clamps_to_bounds():
    session = started(FakeStore(make_questions(25)))
    assert session.page_count == 3
    assert session.paginate(-1) == 0
    assert session.paginate(+1) == 1
    assert session.paginate(+1) == 2
    assert [pos for pos, _ in session.page_questions()] == [20, 21, 22, 23, 24]
    assert session.paginate(+1) == 2
    assert session.jump_to_page(3) == 2
    assert session.jump_to_page(-1) == 0
    assert session.jump_to_page(1) == 1
    assert [pos for pos, _ in session.page_questions()][0] == 10


def test_custom_page_size():
    session = started(FakeStore(make_questions(7)), page_size=3)
    assert session.page_count == 3
    session.jump_to_page(2)
    assert [pos for pos, _ in session.page_questions()] == [6]


# ============= Submission =============

def test_submit_with_unanswered_question_is_rejected():
    store = FakeStore(make_questions(12))
    session = started(store)
    answer_all(session, [[0]] * 12)
    session.select_option(5, 0)  # clears question 5

    outcome = asyncio.run(session.submit())

    assert not outcome.accepted
    assert outcome.unanswered == [5]
    assert isinstance(outcome.error, ValidationError)
    assert session.state is SessionState.ACTIVE
    assert store.answers == [] and store.results == []


def test_full_round_trip(clock):
    questions = [make_question(1, [0]), make_question(2, [1, 2]), make_question(3, [0])]
    store = FakeStore(questions)
    session = started(store, clock=clock)
    answer_all(session, [[0], [1, 2], [1]])
    clock.advance(95)

    outcome = asyncio.run(session.submit())

    assert outcome.accepted
    assert outcome.result.score == 2
    assert outcome.result.total_questions == 3
    assert len(store.answers) == 3
    assert len(store.results) == 1
    assert [a["is_correct"] for a in store.answers] == [True, True, False]
    assert store.answers[1]["selected_answers"] == [1, 2]
    assert store.results[0] == {
        "session_id": session.session_id,
        "score": 2,
        "total_questions": 3,
        "elapsed_seconds": 95,
    }
    assert session.state is SessionState.COMPLETED
    assert session.ended_at == clock.now
    assert session.timer.cancelled


def test_result_written_after_every_answer():
    store = FakeStore(make_questions(4))
    session = started(store)
    answer_all(session, [[0]] * 4)
    asyncio.run(session.submit())
    writes = [c for c in store.calls if c != "list_questions"]
    assert writes == [("answer", 1), ("answer", 2), ("answer", 3), ("answer", 4), "result"]


def test_elapsed_ignores_tick_drift(clock):
    store = FakeStore(make_questions(2))
    session = started(store, clock=clock)
    answer_all(session, [[0], [0]])
    for _ in range(500):
        session.timer.tick()
    clock.advance(42)

    outcome = asyncio.run(session.submit())

    assert session.timer.ticks == 500
    assert outcome.result.elapsed_seconds == 42
    assert store.results[0]["elapsed_seconds"] == 42


def test_timer_frozen_after_completion():
    session = started(FakeStore(make_questions(1)))
    session.select_option(0, 0)
    session.timer.tick()
    asyncio.run(session.submit())
    session.timer.tick()
    assert session.timer.ticks == 1
    assert session.snapshot().ticks == 1


def test_timer_does_not_tick_while_loading():
    session = ExamSession(FakeStore([]), tick_interval=None)
    session.timer.tick()
    assert session.timer.ticks == 0


def test_write_failures_do_not_block_completion():
    store = FakeStore(make_questions(3), fail_answer_ids={2}, fail_result=True)
    session = started(store)
    answer_all(session, [[0]] * 3)

    outcome = asyncio.run(session.submit())

    assert outcome.accepted
    assert session.state is SessionState.COMPLETED
    assert len(outcome.write_errors) == 2
    assert all(isinstance(e, WriteError) for e in session.errors)
    assert len(store.answers) == 2
    assert store.results == []


def test_completed_session_is_read_only():
    session = started(FakeStore(make_questions(2)))
    answer_all(session, [[0], [1]])
    asyncio.run(session.submit())
    before = dict(session.answers)
    session.select_option(0, 2)
    session.jump_to_page(0)
    assert session.answers == before
    assert asyncio.run(session.submit()) is None


# ============= Review =============

def test_load_review_joins_answers_with_questions():
    questions = [make_question(1, [0], explanation="Because A"), make_question(2, [1], explanation="Because B")]
    store = FakeStore(questions)
    session = started(store)
    answer_all(session, [[0], [2]])
    asyncio.run(session.submit())

    items = asyncio.run(session.load_review())

    assert [i.question_id for i in items] == [1, 2]
    assert items[0].is_correct and items[0].explanation is None
    assert not items[1].is_correct
    assert items[1].selected == ["Option 2-2"]
    assert items[1].correct == ["Option 2-1"]
    assert items[1].explanation == "Because B"


def test_load_review_before_completion_returns_none():
    session = started(FakeStore(make_questions(1)))
    assert asyncio.run(session.load_review()) is None


def test_load_review_empty_means_still_loading():
    store = FakeStore(make_questions(1))
    session = started(store)
    session.select_option(0, 0)
    asyncio.run(session.submit())
    store.visible = False
    assert asyncio.run(session.load_review()) is None
    assert session.errors == []


def test_load_review_read_failure_records_load_error():
    store = FakeStore(make_questions(2))
    session = started(store)
    answer_all(session, [[0], [0]])
    asyncio.run(session.submit())
    store.fail_review = True

    assert asyncio.run(session.load_review()) is None
    assert isinstance(session.errors[-1], LoadError)
    assert session.state is SessionState.COMPLETED


# ============= Restart =============

def test_restart_returns_fresh_session():
    store = FakeStore(make_questions(3))
    session = started(store)
    answer_all(session, [[0]] * 3)
    session.paginate(+1)
    asyncio.run(session.submit())

    fresh = asyncio.run(session.restart())

    assert fresh is not session
    assert fresh.session_id != session.session_id
    assert fresh.state is SessionState.ACTIVE
    assert fresh.answers == {}
    assert fresh.page == 0
    assert fresh.timer is not session.timer
    assert not fresh.timer.cancelled
    assert store.load_calls == 2
    assert session.state is SessionState.COMPLETED


def test_restart_from_loading_cancels_old_timer():
    store = FakeStore(make_questions(2), fail_load=True)
    session = started(store)
    store.fail_load = False
    fresh = asyncio.run(session.restart())
    assert session.timer.cancelled
    assert fresh.state is SessionState.ACTIVE


# ============= Snapshot =============

def test_snapshot_is_serializable(clock):
    session = started(FakeStore([make_question(1, [0, 1]), make_question(2, [0])]), clock=clock)
    session.select_option(0, 1)
    session.select_option(0, 0)
    data = session.snapshot().to_dict()
    assert data["state"] == "active"
    assert data["answers"] == {"0": [0, 1]}
    assert data["started_at"] == clock.now.isoformat()
    assert data["ended_at"] is None


def test_invalid_page_size_rejected():
    with pytest.raises(ValueError):
        ExamSession(FakeStore([]), page_size=0)
