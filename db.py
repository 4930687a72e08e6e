"""Supabase client and QuestionStore factories. Client is cached via Streamlit."""
import streamlit as st
from supabase import create_client, Client

import config
from quiz.store import QuestionStore


def _env_client() -> Client:
    if not config.SUPABASE_URL or not config.SUPABASE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(config.SUPABASE_URL, config.SUPABASE_KEY)


@st.cache_resource
def get_supabase() -> Client:
    return _env_client()


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return _env_client()


def build_store(client: Client) -> QuestionStore:
    return QuestionStore(
        client,
        questions_table=config.QUESTIONS_TABLE,
        answers_table=config.ANSWERS_TABLE,
        results_table=config.RESULTS_TABLE,
    )


def get_store() -> QuestionStore:
    return build_store(get_supabase())
