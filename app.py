"""Salesforce Admin Quiz: paged exam with graded review, plus a practice mode."""
import asyncio
import logging

import streamlit as st

import config
from db import get_store
from quiz.engine import ExamSession
from quiz.models import SessionState
from quiz.practice import PracticeRound
from quiz.review import poll_review

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

OPTION_LABELS = "ABCDEFGHIJ"

st.set_page_config(page_title="Salesforce Admin Quiz", layout="wide")
st.sidebar.title("Salesforce Admin Quiz")
page = st.sidebar.radio("Navigate", ["Exam", "Practice"], label_visibility="collapsed")


def _new_exam() -> ExamSession:
    session = ExamSession(get_store(), page_size=config.PAGE_SIZE, tick_interval=config.TICK_INTERVAL_SECONDS)
    asyncio.run(session.start())
    return session


def _option_key(session: ExamSession, position: int, option: int) -> str:
    # Selection is part of the key so exclusive choices re-render their siblings
    selected = "-".join(str(i) for i in sorted(session.selection(position)))
    return f"opt_{session.session_id}_{position}_{option}_{selected}"


def _render_question(session: ExamSession, position: int, question, flagged: bool) -> None:
    title = f"**{position + 1}. {question.question}**"
    if flagged:
        title += "  :red[(unanswered)]"
    st.markdown(title)
    if question.is_multi_select:
        st.caption(f"Select {len(question.correct_answers)} answers")
    selection = session.selection(position)
    for i, option in enumerate(question.options):
        st.checkbox(
            f"{OPTION_LABELS[i] if i < len(OPTION_LABELS) else i + 1}. {option}",
            value=i in selection,
            key=_option_key(session, position, i),
            on_change=session.select_option,
            args=(position, i),
        )
    st.divider()


def _render_review(session: ExamSession) -> None:
    result = session.result
    st.success("Exam submitted.")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Score", f"{result.score} / {result.total_questions}")
    with col2:
        st.metric("Percentage", f"{result.percentage:.1f}%")
    with col3:
        st.metric("Time", session.timer.display())

    if session.errors:
        logger.warning(f"Session {session.session_id} finished with {len(session.errors)} store errors")

    if "review_items" not in st.session_state or st.session_state.get("review_for") != session.session_id:
        st.session_state["review_items"] = asyncio.run(
            poll_review(session, attempts=config.REVIEW_POLL_ATTEMPTS, delay=config.REVIEW_POLL_DELAY_SECONDS)
        )
        st.session_state["review_for"] = session.session_id
    items = st.session_state["review_items"]

    st.subheader("Review")
    if not items:
        st.info("Loading review...")
        if st.button("Refresh review"):
            st.session_state.pop("review_items", None)
            st.rerun()
    else:
        for n, item in enumerate(items, 1):
            mark = "✓" if item.is_correct else "✗"
            st.markdown(f"**{mark} {n}. {item.question}**")
            st.write(f"Your answer: {', '.join(item.selected) or 'none'}")
            st.write(f"Correct answer: {', '.join(item.correct)}")
            if item.explanation:
                st.info(item.explanation)

    if st.button("Start a new exam", type="primary"):
        st.session_state["exam"] = asyncio.run(session.restart())
        st.session_state.pop("review_items", None)
        st.session_state.pop("unanswered", None)
        st.rerun()


# ----- Exam -----
if page == "Exam":
    st.header("Exam")

    if "exam" not in st.session_state:
        try:
            st.session_state["exam"] = _new_exam()
        except ValueError as e:
            st.error(f"Could not connect. Check .env (SUPABASE_URL, SUPABASE_KEY). {e}")
            st.stop()
    session: ExamSession = st.session_state["exam"]

    if session.state is SessionState.LOADING:
        st.write("Loading questions...")
        st.stop()

    if session.state is SessionState.COMPLETED:
        _render_review(session)
        st.stop()

    n = len(session.questions)
    answered = n - len(session.unanswered())
    st.sidebar.metric("Time", session.timer.display())
    st.sidebar.progress(answered / n if n else 0)
    st.sidebar.caption(f"{answered}/{n} answered")

    unanswered = set(st.session_state.get("unanswered", []))
    if unanswered:
        st.warning(f"Answer every question before submitting. Missing: {', '.join(str(i + 1) for i in sorted(unanswered))}")

    st.caption(f"Page {session.page + 1} of {session.page_count}")
    for position, question in session.page_questions():
        _render_question(session, position, question, flagged=position in unanswered and not session.is_answered(position))

    col1, col2, col3, col4 = st.columns([1, 1, 1, 2])
    with col1:
        if st.button("Previous", disabled=session.page == 0):
            session.paginate(-1)
            st.rerun()
    with col2:
        if st.button("Next", disabled=session.page >= session.page_count - 1):
            session.paginate(+1)
            st.rerun()
    with col3:
        target = st.number_input("Page", min_value=1, max_value=session.page_count, value=session.page + 1,
                                 label_visibility="collapsed")
        if target - 1 != session.page:
            session.jump_to_page(int(target) - 1)
            st.rerun()
    with col4:
        if st.button("Submit exam", type="primary"):
            outcome = asyncio.run(session.submit())
            if outcome is not None and not outcome.accepted:
                st.session_state["unanswered"] = outcome.unanswered
            else:
                st.session_state.pop("unanswered", None)
            st.rerun()

# ----- Practice -----
elif page == "Practice":
    st.header("Practice")
    st.caption("One question at a time with immediate feedback. Nothing is saved.")

    if "practice" not in st.session_state:
        try:
            questions = asyncio.run(get_store().list_questions())
        except Exception as e:
            st.error(f"Failed to load questions: {e}")
            st.stop()
        if not questions:
            st.write("Loading questions...")
            st.stop()
        st.session_state["practice"] = PracticeRound(questions)
    practice: PracticeRound = st.session_state["practice"]

    feedback = st.session_state.get("practice_feedback")
    if feedback is not None:
        if feedback.is_correct:
            st.success("✓ Correct!")
        else:
            labels = ", ".join(OPTION_LABELS[i] for i in feedback.correct_answers)
            st.error(f"✗ Incorrect. The correct answer is {labels}.")
            if feedback.explanation:
                st.info(feedback.explanation)

    question = practice.current
    st.caption(f"Checked {practice.attempted} · Correct {practice.correct}")
    st.subheader(question.question)
    for i, option in enumerate(question.options):
        selected = "-".join(str(s) for s in sorted(practice.selected))
        st.checkbox(
            f"{OPTION_LABELS[i] if i < len(OPTION_LABELS) else i + 1}. {option}",
            value=i in practice.selected,
            key=f"practice_{practice.attempted}_{i}_{selected}",
            on_change=practice.select_option,
            args=(i,),
        )
    if st.button("Check", type="primary"):
        st.session_state["practice_feedback"] = practice.check()
        st.rerun()
