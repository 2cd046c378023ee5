"""Streamlit page: one question at a time, subject filter, session score and account stats."""

from __future__ import annotations

import os
from typing import Tuple

import streamlit as st
from streamlit.runtime.secrets import StreamlitSecretNotFoundError

from doctor_quest.auth import AuthStatsBridge
from doctor_quest.backend import BackendError
from doctor_quest.config import Settings, load_settings
from doctor_quest.quiz import QuizController
from doctor_quest.quiz.summary import (
    progress_fraction,
    progress_label,
    result_message,
    score_label,
    session_summary,
    stats_summary,
)
from doctor_quest.system import QuizSystem

SECRET_NAMES = ("SUPABASE_URL", "SUPABASE_ANON_KEY")
WRITE_WAIT_SECONDS = 5.0


def _export_secrets() -> None:
    """Copy Supabase credentials from Streamlit secrets into the environment."""
    for name in SECRET_NAMES:
        if os.getenv(name):
            continue
        try:
            os.environ[name] = st.secrets[name]
        except (KeyError, StreamlitSecretNotFoundError):
            continue


@st.cache_resource(show_spinner=False)
def load_app_settings() -> Settings:
    _export_secrets()
    return load_settings(os.getenv("DOCTOR_QUEST_CONFIG"))


def _viewer_session() -> Tuple[QuizSystem, QuizController, AuthStatsBridge]:
    """One backend handle, controller and auth bridge per browser session."""
    if "quiz_system" not in st.session_state:
        system = QuizSystem(load_app_settings())
        with st.spinner("Loading questions..."):
            controller, bridge = system.start_session()
        system.release_on_collect(controller, bridge)
        st.session_state.quiz_system = system
        st.session_state.quiz_controller = controller
        st.session_state.quiz_bridge = bridge
    return (
        st.session_state.quiz_system,
        st.session_state.quiz_controller,
        st.session_state.quiz_bridge,
    )


def _render_auth(system: QuizSystem, controller: QuizController) -> None:
    st.header("Account")
    if controller.user_id is not None:
        session = system.backend.get_session()
        st.write(f"Signed in as {session.email if session and session.email else controller.user_id}")
        if st.button("Sign out"):
            try:
                system.sign_out()
            except BackendError as exc:
                st.error(str(exc))
            st.rerun()
        return

    email = st.text_input("Email")
    password = st.text_input("Password", type="password")
    sign_in_col, sign_up_col = st.columns(2)
    if sign_in_col.button("Sign in", disabled=not (email and password)):
        try:
            system.sign_in(email, password)
        except BackendError as exc:
            st.error(str(exc))
        else:
            st.rerun()
    if sign_up_col.button("Create account", disabled=not (email and password)):
        try:
            session = system.sign_up(email, password)
        except BackendError as exc:
            st.error(str(exc))
        else:
            if session is None:
                st.info("Check your inbox to confirm the account, then sign in.")
            else:
                st.rerun()


def _render_stats_banner(controller: QuizController) -> None:
    snapshot = controller.stats
    if controller.user_id is None or snapshot is None:
        return
    summary = stats_summary(snapshot)
    total_col, correct_col, accuracy_col = st.columns(3)
    total_col.metric("Total", summary["total"])
    correct_col.metric("Correct", summary["correct"])
    accuracy_col.metric("Accuracy", f"{summary['accuracy']}%")
    st.caption(
        f"Current streak {summary['current_streak']} · longest {summary['longest_streak']}"
    )


def _on_subject_change(controller: QuizController) -> None:
    controller.change_subject(st.session_state.subject_filter)


def _render_subject_filter(controller: QuizController) -> None:
    choices = [controller.all_subjects] + [
        subject for subject in controller.subjects if subject != controller.all_subjects
    ]
    st.selectbox(
        "Subject",
        options=choices,
        index=choices.index(controller.subject_filter) if controller.subject_filter in choices else 0,
        format_func=lambda value: "All subjects" if value == controller.all_subjects else value,
        key="subject_filter",
        on_change=_on_subject_change,
        args=(controller,),
    )


def _option_label(key: str, text: str, controller: QuizController) -> str:
    state = controller.state
    question = controller.current_question
    label = f"{key}. {text}"
    if state.revealed and key == question.correct_option:
        return f"✅ {label}"
    if state.revealed and key == state.selected:
        return f"❌ {label}"
    return label


def _render_question(controller: QuizController) -> None:
    question = controller.current_question
    state = controller.state

    label_col, score_col = st.columns(2)
    label_col.caption(progress_label(state))
    score_col.caption(score_label(state))
    st.progress(progress_fraction(state))

    st.markdown(f"`{question.subject}`")
    st.subheader(question.question_text)

    for option in question.options():
        st.button(
            _option_label(option.key, option.text, controller),
            key=f"option_{question.id}_{option.key}",
            on_click=controller.select_answer,
            args=(option.key,),
            disabled=state.revealed,
            type="primary" if state.selected == option.key else "secondary",
            use_container_width=True,
        )

    message = result_message(question, state)
    if message and state.current_result:
        st.success(message)
    elif message:
        st.error(message)


def _render_navigation(controller: QuizController) -> None:
    state = controller.state
    previous_col, action_col, next_col = st.columns(3)
    previous_col.button(
        "← Previous",
        on_click=controller.previous,
        disabled=state.index == 0,
        use_container_width=True,
    )
    if not state.revealed:
        action_col.button(
            "Submit",
            on_click=controller.submit_answer,
            disabled=state.selected is None,
            type="primary",
            use_container_width=True,
        )
    else:
        action_col.button("Restart", on_click=controller.reset, use_container_width=True)
    next_col.button(
        "Next →",
        on_click=controller.next,
        disabled=state.is_last,
        use_container_width=True,
    )


def _render_session_summary(controller: QuizController) -> None:
    summary = session_summary(controller.state)
    if summary["answered"] == 0:
        return
    st.markdown("---")
    st.markdown("**This session**")
    answered_col, correct_col, accuracy_col = st.columns(3)
    answered_col.metric("Answered", summary["answered"])
    correct_col.metric("Correct", summary["correct"])
    accuracy_col.metric("Accuracy", f"{summary['accuracy']}%")


def render() -> None:
    st.set_page_config(page_title="DoctorQuest", page_icon="🩺", layout="centered")
    st.title("🩺 DoctorQuest")
    st.caption("Medical multiple-choice questions")

    try:
        system, controller, _bridge = _viewer_session()
    except (FileNotFoundError, ValueError) as exc:
        st.error(f"Configuration problem: {exc}")
        st.stop()

    with st.sidebar:
        _render_auth(system, controller)

    # A Submit callback queues the answer write; show the totals re-read after it.
    if not controller.wait_for_write(WRITE_WAIT_SECONDS):
        st.caption("Saving your answer...")
    _render_stats_banner(controller)
    _render_subject_filter(controller)

    if controller.current_question is None:
        st.info("No questions found in the database.")
        return

    _render_question(controller)
    _render_navigation(controller)
    _render_session_summary(controller)


__all__ = ["render"]


if __name__ == "__main__":
    render()
