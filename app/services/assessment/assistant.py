# app/services/assessment/assistant.py
from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.errors import GenerationFailed
from app.schemas.assessment import AnalysisOut, BookQuestionsOut, BookSummaryOut, TopicQuestionsOut
from app.schemas.report import Report
from app.services.llm import prompts
from app.services.llm.gemini_client import GeminiClient, strip_fences

log = logging.getLogger("assistant")

M = TypeVar("M", bound=BaseModel)


class AssessmentAssistant:
    """
    The generative-AI calls both flows depend on.

    Every method either returns well-formed output or raises
    ``GenerationFailed``; client errors, unparseable JSON and wrong question
    counts are all folded into that one error.
    """

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self.client = client or GeminiClient()

    async def _ask(self, what: str, prompt: str, model: Type[M]) -> M:
        try:
            obj = await self.client.a_generate_json(prompt)
        except Exception as e:
            log.error("[%s] generation call failed: %s", what, e)
            raise GenerationFailed(f"Could not generate {what}. Please try again.") from e
        try:
            return model.model_validate(obj)
        except ValidationError as e:
            log.error("[%s] malformed model output: %s", what, e)
            raise GenerationFailed(f"Could not generate {what}. Please try again.") from e

    @staticmethod
    def _as_report(out: AnalysisOut) -> Report:
        charts = out.charts_data
        if isinstance(charts, list):
            charts = json.dumps(charts)
        return Report(narrative_text=out.report.strip(), chart_data=strip_fences(charts))

    # --- topic flow -----------------------------------------------------------

    async def generate_topic_questions(self, topic: str, prior_speech: str) -> List[str]:
        out = await self._ask("questions", prompts.topic_questions(topic, prior_speech), TopicQuestionsOut)
        return out.questions

    async def analyze_speech(self, topic: str, questions: Sequence[str], answers: Sequence[str]) -> Report:
        out = await self._ask("the report", prompts.speech_report(topic, questions, answers), AnalysisOut)
        return self._as_report(out)

    # --- book flow ------------------------------------------------------------

    async def get_book_summary(self, title: str) -> str:
        out = await self._ask("the book summary", prompts.book_summary(title), BookSummaryOut)
        words = len(out.summary.split())
        if not 120 <= words <= 140:
            log.info("summary for %r is %d words (expected 120-140)", title, words)
        return out.summary.strip()

    async def generate_book_questions(self, title: str, summary: str) -> Tuple[List[str], List[str]]:
        out = await self._ask("questions for the book", prompts.book_questions(title, summary), BookQuestionsOut)
        return out.rapid_fire_questions, out.follow_up_questions

    async def analyze_book_answers(
        self,
        title: str,
        summary: str,
        rapid_fire_questions: Sequence[str],
        rapid_fire_answers: Sequence[str],
        follow_up_questions: Sequence[str],
        follow_up_answers: Sequence[str],
    ) -> Report:
        prompt = prompts.book_report(
            title, summary,
            rapid_fire_questions, rapid_fire_answers,
            follow_up_questions, follow_up_answers,
        )
        out = await self._ask("the analysis of your answers", prompt, AnalysisOut)
        return self._as_report(out)
