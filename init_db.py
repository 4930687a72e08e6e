"""
Initialize Supabase schema for the quiz.
Prints the SQL to paste into the Supabase SQL Editor; --check verifies each table is reachable.
"""
import argparse
import logging
import sys

import config

logger = logging.getLogger(__name__)

SCHEMA_SQL = f"""
-- Question bank (read-only for the app)
CREATE TABLE IF NOT EXISTS {config.QUESTIONS_TABLE} (
    id BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
    question TEXT NOT NULL,
    options JSONB NOT NULL,
    correct_answers INT[] NOT NULL CHECK (cardinality(correct_answers) >= 1),
    explanation TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- One row per question per submitted session
CREATE TABLE IF NOT EXISTS {config.ANSWERS_TABLE} (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    session_id UUID NOT NULL,
    question_id BIGINT NOT NULL REFERENCES {config.QUESTIONS_TABLE}(id),
    selected_answers INT[] NOT NULL,
    is_correct BOOLEAN NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- One row per submitted session
CREATE TABLE IF NOT EXISTS {config.RESULTS_TABLE} (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    session_id UUID NOT NULL UNIQUE,
    score INT NOT NULL,
    total_questions INT NOT NULL,
    elapsed_seconds INT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_{config.ANSWERS_TABLE}_session_id ON {config.ANSWERS_TABLE}(session_id);
"""


def check_tables() -> bool:
    """Select one row from every table. Returns False on the first failure."""
    from db import get_supabase_uncached

    client = get_supabase_uncached()
    for table in (config.QUESTIONS_TABLE, config.ANSWERS_TABLE, config.RESULTS_TABLE):
        try:
            response = client.table(table).select("*").limit(1).execute()
        except Exception as e:
            logger.error(f"Table {table} not reachable: {e}")
            return False
        logger.info(f"Table {table} OK (rows sampled: {len(response.data or [])})")
    return True


def main():
    parser = argparse.ArgumentParser(description="Print the quiz schema or check that its tables exist.")
    parser.add_argument("--check", action="store_true", help="Query each table with SUPABASE_URL/SUPABASE_KEY")
    args = parser.parse_args()

    logging.basicConfig(level=config.LOG_LEVEL, format="%(message)s")
    if args.check:
        sys.exit(0 if check_tables() else 1)

    print("Run this SQL in the Supabase SQL Editor:")
    print(SCHEMA_SQL)


if __name__ == "__main__":
    main()
