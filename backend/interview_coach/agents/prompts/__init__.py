"""Prompt templates for the interview coach.

This module contains:
- Fixed grading rubrics per interview mode
- System prompts declaring the expected JSON output shapes
- Builders for the question and grade requests

Usage:
    from interview_coach.agents.prompts import build_question_messages, rubric_for_mode

    messages = build_question_messages(mode=InterviewMode.TECHNICAL, ...)
"""

from interview_coach.agents.prompts.interview_prompts import (
    RECENT_QUESTION_CHARS,
    RECENT_QUESTION_LIMIT,
    STAR_RUBRIC,
    STRICT_JSON_REMINDER,
    TECHNICAL_RUBRIC,
    ChatMessage,
    build_grade_messages,
    build_question_messages,
    grade_system_prompt,
    question_system_prompt,
    recently_asked,
    rubric_for_mode,
)

__all__ = [
    # Rubrics
    "STAR_RUBRIC",
    "TECHNICAL_RUBRIC",
    "rubric_for_mode",
    # Request builders
    "ChatMessage",
    "RECENT_QUESTION_CHARS",
    "RECENT_QUESTION_LIMIT",
    "STRICT_JSON_REMINDER",
    "build_grade_messages",
    "build_question_messages",
    "grade_system_prompt",
    "question_system_prompt",
    "recently_asked",
]
