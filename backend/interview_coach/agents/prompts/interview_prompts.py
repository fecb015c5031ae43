"""
Interview prompt templates.

Builds the two structured requests sent to the text generator:
- Question request (ask ONE tailored interview question)
- Grade request (score the candidate's answer against the mode's rubric)

Each request is a short list of role-tagged blocks: one "system" instruction
block that declares the expected JSON shape, and one "user" context block.
"""

import json
from typing import Literal, TypedDict

from interview_coach.services.interview_state import (
    CandidateLevel,
    CoachingSignals,
    InterviewMode,
    TranscriptMessage,
    TranscriptRole,
)

RECENT_QUESTION_LIMIT = 6
RECENT_QUESTION_CHARS = 140

STRICT_JSON_REMINDER = "Return ONLY valid JSON for the schema. No markdown. No extra keys."


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


TECHNICAL_RUBRIC = """Grade the answer 0-10 based on:
- correctness/feasibility of approach
- clarity of explanation
- tradeoffs and complexity discussion
- structured communication (steps, assumptions)
- impact (realism, constraints, edge cases)"""

# Behavioral and mixed interviews both lean on STAR
STAR_RUBRIC = """Grade the answer 0-10 using STAR + communication:
- Situation: context is clear
- Task: goal/responsibility is explicit
- Action: concrete steps, ownership, tradeoffs
- Result: measurable outcome + reflection
- Clarity: structured, concise
- Impact: scale, metrics, stakes"""


def rubric_for_mode(mode: InterviewMode) -> str:
    """Fixed scoring criteria for an interview mode."""
    if mode == InterviewMode.TECHNICAL:
        return TECHNICAL_RUBRIC
    return STAR_RUBRIC


def question_system_prompt() -> str:
    return """You are an AI interview coach.
Your job: ask ONE interview question at a time and tailor it to the candidate's profile and weaknesses.
Keep questions realistic for a real interview and appropriate to the level.
Output ONLY valid JSON matching this schema:
{
  "question": string,
  "rubric_focus": string
}"""


def grade_system_prompt() -> str:
    return """You are an interview grader and coach.
Return STRICT JSON only. No markdown, no commentary.
Use 0-10 scores. Be fair but demanding.
Schema:
{
  "overallScore": number,
  "star": {"situation": number, "task": number, "action": number, "result": number},
  "clarity": number,
  "impact": number,
  "strengths": string[],
  "improvements": string[],
  "missing": string[],
  "improvedAnswer": string,
  "signalUpdates": {"missing_metrics"?: number, "weak_result"?: number, "unclear_task"?: number, "rambling"?: number},
  "nextQuestionStrategy": string
}"""


def _focus_line(focus: list[str]) -> str:
    return ", ".join(focus) if focus else "none"


def recently_asked(recent_messages: list[TranscriptMessage]) -> list[str]:
    """The latest assistant entries, shortened, used to steer away from repeats."""
    asked = [m.content for m in recent_messages if m.role == TranscriptRole.ASSISTANT]
    return [content[:RECENT_QUESTION_CHARS] for content in asked[-RECENT_QUESTION_LIMIT:]]


def build_question_messages(
    mode: InterviewMode,
    target_role: str,
    level: CandidateLevel,
    focus: list[str],
    signals: CoachingSignals,
    recent_messages: list[TranscriptMessage],
) -> list[ChatMessage]:
    """Assemble the request for the next interview question."""
    last_topics = recently_asked(recent_messages)

    lines = [
        f"Mode: {mode.value}",
        f"Target role: {target_role}",
        f"Level: {level.value}",
        f"Focus areas (if any): {_focus_line(focus)}",
        f"Weakness signals (higher means more frequent): {json.dumps(signals.model_dump())}",
    ]
    if last_topics:
        lines.append("Recently asked (avoid repeating):\n- " + "\n- ".join(last_topics))
    lines.append("Ask the next question now.")

    return [
        {"role": "system", "content": question_system_prompt()},
        {"role": "user", "content": "\n".join(lines)},
    ]


def build_grade_messages(
    mode: InterviewMode,
    question_text: str,
    rubric: str,
    answer_text: str,
    target_role: str,
    level: CandidateLevel,
    focus: list[str],
) -> list[ChatMessage]:
    """Assemble the request that grades one answer."""
    content = f"""Mode: {mode.value}
Target role: {target_role}
Level: {level.value}
Focus: {_focus_line(focus)}

Interview question:
{question_text}

Rubric:
{rubric}

Candidate answer:
{answer_text}"""

    return [
        {"role": "system", "content": grade_system_prompt()},
        {"role": "user", "content": content},
    ]
