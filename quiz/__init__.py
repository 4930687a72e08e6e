"""Exam session engine, grading and Supabase store for the Salesforce Admin quiz."""
