# app/services/llm/prompts.py
from __future__ import annotations

from typing import List, Sequence

TOPIC_QUESTIONS = """You are an AI assistant designed to generate thought-provoking questions based on a given topic and initial speech.

Topic: {topic}
Initial speech: {prior_speech}

Generate exactly three open-ended questions that encourage the user to elaborate further on the topic, taking into account their initial speech. The questions should be clear, concise, and relevant to both the topic and the user's input.

Return ONLY a JSON object of the form {{"questions": ["...", "...", "..."]}}.
"""

_CHARTS_INSTRUCTIONS = """Also create data for charts that visualize the result. "chartsData" must be a JSON string holding an array of chart objects. Each chart object has "type" ("bar" or "pie"), "title", "data" and "config".
For bar charts, "data" is an array of {{"name": str, "score": number 0-100}} and "config" is {{"score": {{"label": "Score", "color": "hsl(var(--chart-1))"}}}}.
For pie charts, "data" is an array of {{"name": str, "value": number, "fill": str}}.

Return ONLY a JSON object of the form {{"report": "...", "chartsData": "[...]"}}. Do not wrap anything in markdown.
"""

SPEECH_REPORT = """You are an AI assistant designed to analyze a user's spoken answers to questions about a topic and produce a detailed personality report.

Topic: {topic}

Questions and the user's answers:
{qa}

Analyze the answers, identify strengths and weaknesses, and write a comprehensive report with insights about the user's personality and actionable feedback on their communication.

""" + _CHARTS_INSTRUCTIONS

BOOK_SUMMARY = """You are a professional book summarizer.
Summarize the book "{title}" in 120-140 words.
Focus on key plot elements, main characters, and central themes.
Avoid spoilers and make it read naturally, engagingly, and concisely.

Return ONLY a JSON object of the form {{"summary": "..."}}.
"""

BOOK_QUESTIONS = """You are an AI assistant who creates questions based on a book summary.

Book title: {title}
Summary: {summary}

Based on the summary, generate two sets of questions:
1. Rapid-fire questions: exactly five short questions testing factual recall from the summary. Each question MUST be 10 words or less.
2. Follow-up questions: exactly two open-ended questions that make the user think more deeply about the book's themes, implications or characters.

Return ONLY a JSON object of the form {{"rapidFireQuestions": [5 strings], "followUpQuestions": [2 strings]}}.
"""

BOOK_REPORT = """You are an AI assistant designed to analyze a user's reading comprehension, critical thinking, and communication skills based on their answers to questions about a book summary.

Book title: {title}
Book summary: {summary}

Rapid-fire questions and answers (typed):
{rapid_fire}

Follow-up questions and answers (spoken):
{follow_up}

Assess the user on:
1. Reading comprehension: how well they recalled details from the summary (rapid-fire answers).
2. Critical thinking: how well they analyzed the book's themes and concepts (follow-up answers).
3. Clarity of expression: how clear and articulate the spoken answers were (follow-up answers).

Write a detailed personality report with strengths, weaknesses and actionable feedback.

""" + _CHARTS_INSTRUCTIONS


def format_qa(questions: Sequence[str], answers: Sequence[str]) -> str:
    lines: List[str] = []
    for i, q in enumerate(questions):
        a = answers[i] if i < len(answers) else ""
        lines.append(f"- Question: {q}\n  Answer: {a}")
    return "\n".join(lines) or "- (none)"


def topic_questions(topic: str, prior_speech: str) -> str:
    return TOPIC_QUESTIONS.format(topic=topic, prior_speech=prior_speech)


def speech_report(topic: str, questions: Sequence[str], answers: Sequence[str]) -> str:
    return SPEECH_REPORT.format(topic=topic, qa=format_qa(questions, answers))


def book_summary(title: str) -> str:
    return BOOK_SUMMARY.format(title=title)


def book_questions(title: str, summary: str) -> str:
    return BOOK_QUESTIONS.format(title=title, summary=summary)


def book_report(
    title: str,
    summary: str,
    rapid_fire_questions: Sequence[str],
    rapid_fire_answers: Sequence[str],
    follow_up_questions: Sequence[str],
    follow_up_answers: Sequence[str],
) -> str:
    return BOOK_REPORT.format(
        title=title,
        summary=summary,
        rapid_fire=format_qa(rapid_fire_questions, rapid_fire_answers),
        follow_up=format_qa(follow_up_questions, follow_up_answers),
    )
