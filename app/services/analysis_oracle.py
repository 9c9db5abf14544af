"""
Analysis Oracle: scores interview transcripts and code submissions, and
composes the final hiring report.

The engine treats the oracle as a trusted but replaceable dependency. Every
failure (timeout, API error, unparseable or malformed output) surfaces as an
UpstreamError and nothing is retried here; the caller resubmits.
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict, List, Optional, Type, TypeVar

from openai import OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.core.config import OPENAI_API_KEY, OPENAI_MODEL
from app.core.errors import UpstreamError
from app.db.models.interview import InterviewType
from app.db.models.final_report import Recommendation
from app.llm.provider import LLMProvider
from app.llm.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


# ============================================
# Pydantic Result Models
# ============================================

class OracleModel(BaseModel):
    """The model answers in camelCase; we store snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class QuestionAnalysis(OracleModel):
    question: str = ""
    answer: str = ""
    score: float = 0
    feedback: str = ""


class TranscriptAnalysis(OracleModel):
    """Analysis of a TECHNICAL or MANAGERIAL interview transcript."""
    overall_score: float = Field(..., description="Score 0-100")
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    question_analysis: List[QuestionAnalysis] = Field(default_factory=list)
    summary: str = ""
    recommendation: Recommendation


class CodeAnalysis(OracleModel):
    """Analysis of a coding assessment submission."""
    overall_score: float = Field(..., description="Score 0-100")
    code_quality: float = 0
    functionality: float = 0
    efficiency: float = 0
    readability: float = 0
    best_practices: float = 0
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    suggested_improvements: List[str] = Field(default_factory=list)
    summary: str = ""
    recommendation: str = Field(..., description="STRONG_PASS | PASS | BORDERLINE | FAIL")


class FinalReportAnalysis(OracleModel):
    """Composite verdict across the three analyses."""
    overall_rating: float
    technical_score: float
    coding_score: float
    managerial_score: float
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    summary: str = ""
    recommendation: Recommendation
    suggested_hike: Optional[float] = None
    suggested_role: Optional[str] = None


# ============================================
# Oracle interface
# ============================================

class AnalysisOracle(ABC):
    """Narrow interface the lifecycle engine depends on."""

    @abstractmethod
    def analyze_transcript(self, transcript: str, interview_type: InterviewType) -> TranscriptAnalysis:
        pass

    @abstractmethod
    def analyze_code(self, code: str, requirements: str) -> CodeAnalysis:
        pass

    @abstractmethod
    def compose_final_report(
        self,
        technical: Dict[str, Any],
        coding: Dict[str, Any],
        managerial: Dict[str, Any],
    ) -> FinalReportAnalysis:
        pass


ResultT = TypeVar("ResultT", bound=BaseModel)

TECHNICAL_FOCUS = """
For this technical interview, pay special attention to:
- Accuracy of technical knowledge
- Problem-solving approach
- Ability to explain code and algorithms
- Technical communication
"""

MANAGERIAL_FOCUS = """
For this managerial interview, pay special attention to:
- Leadership and team management
- Decision making and conflict resolution
- Strategic thinking
- Communication and interpersonal skills
"""


class LLMAnalysisOracle(AnalysisOracle):
    """Analysis Oracle backed by an LLMProvider."""

    def __init__(self, provider: LLMProvider, model: str = OPENAI_MODEL):
        self.provider = provider
        self.model = model

    def analyze_transcript(self, transcript: str, interview_type: InterviewType) -> TranscriptAnalysis:
        focus = TECHNICAL_FOCUS if interview_type == InterviewType.TECHNICAL else MANAGERIAL_FOCUS
        prompt = f"""
You are an expert interviewer. Assess the following {interview_type.value.lower()} interview transcript.
The transcript contains exchanges between an Interviewer and a Candidate.

Respond with a single JSON object:
{{
  "overallScore": <number 0-100>,
  "strengths": [<at least 3 strings if possible>],
  "weaknesses": [<at least 3 strings if possible>],
  "questionAnalysis": [
    {{"question": <string>, "answer": <string>, "score": <number 0-10>, "feedback": <string>}}
  ],
  "summary": <one paragraph>,
  "recommendation": <one of "STRONG_HIRE", "HIRE", "CONSIDER", "REJECT">
}}
{focus}
TRANSCRIPT:
{transcript}
"""
        return self._ask(prompt, TranscriptAnalysis, feature="transcript_analysis")

    def analyze_code(self, code: str, requirements: str) -> CodeAnalysis:
        prompt = f"""
You are an expert code reviewer. Assess the code submission against the requirements.

Respond with a single JSON object:
{{
  "overallScore": <number 0-100>,
  "codeQuality": <number 0-10>,
  "functionality": <number 0-10>,
  "efficiency": <number 0-10>,
  "readability": <number 0-10>,
  "bestPractices": <number 0-10>,
  "strengths": [<strings>],
  "weaknesses": [<strings>],
  "suggestedImprovements": [<strings>],
  "summary": <one paragraph>,
  "recommendation": <one of "STRONG_PASS", "PASS", "BORDERLINE", "FAIL">
}}

REQUIREMENTS:
{requirements}

CODE SUBMISSION:
{code}
"""
        return self._ask(prompt, CodeAnalysis, feature="code_analysis")

    def compose_final_report(
        self,
        technical: Dict[str, Any],
        coding: Dict[str, Any],
        managerial: Dict[str, Any],
    ) -> FinalReportAnalysis:
        prompt = f"""
You are a hiring assistant. Write the final report for a candidate from their technical interview,
coding assessment and managerial interview analyses.

Respond with a single JSON object:
{{
  "overallRating": <number 0-100>,
  "technicalScore": <number 0-100>,
  "codingScore": <number 0-100>,
  "managerialScore": <number 0-100>,
  "strengths": [<key strengths across all assessments>],
  "weaknesses": [<key weaknesses across all assessments>],
  "summary": <one paragraph>,
  "recommendation": <one of "STRONG_HIRE", "HIRE", "CONSIDER", "REJECT">,
  "suggestedHike": <percentage, e.g. 10, 15, 20>,
  "suggestedRole": <string>
}}

TECHNICAL INTERVIEW ANALYSIS:
{json.dumps(technical, default=str)}

CODING ASSESSMENT ANALYSIS:
{json.dumps(coding, default=str)}

MANAGERIAL INTERVIEW ANALYSIS:
{json.dumps(managerial, default=str)}
"""
        return self._ask(prompt, FinalReportAnalysis, feature="final_report")

    def _ask(self, prompt: str, result_model: Type[ResultT], feature: str) -> ResultT:
        try:
            response = self.provider.chat(
                messages=[
                    {"role": "system", "content": "You are a rigorous hiring evaluator. Reply with JSON only."},
                    {"role": "user", "content": prompt},
                ],
                model=self.model,
                json_mode=True,
            )
        except OpenAIError as e:
            logger.error(f"Analysis oracle call failed: feature={feature}, error={type(e).__name__}", exc_info=True)
            raise UpstreamError("Analysis service is unavailable. Please try again.") from e

        payload = _extract_json(response.content)
        if payload is None:
            logger.error(f"Analysis oracle returned non-JSON output: feature={feature}, head={response.content[:100]!r}")
            raise UpstreamError("Analysis service returned an unreadable response. Please try again.")

        try:
            result = result_model.model_validate(payload)
        except PydanticValidationError as e:
            logger.error(f"Analysis oracle output failed validation: feature={feature}, errors={e.error_count()}")
            raise UpstreamError("Analysis service returned an incomplete response. Please try again.") from e

        logger.info(f"Analysis completed: feature={feature}, model={response.model}, tokens_out={response.tokens_out}")
        return result


def _extract_json(text: str) -> Optional[Dict[str, Any]]:
    """Pull the first JSON object out of a model reply, tolerating code fences."""
    if not text:
        return None
    fenced = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    candidate = fenced.group(1) if fenced else None
    if candidate is None:
        braces = re.search(r"\{.*\}", text, re.DOTALL)
        candidate = braces.group(0) if braces else None
    if candidate is None:
        return None
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class UnavailableAnalysisOracle(AnalysisOracle):
    """Stand-in used when no LLM credentials are configured; every call fails."""

    def _fail(self):
        raise UpstreamError("Analysis service is not configured")

    def analyze_transcript(self, transcript: str, interview_type: InterviewType) -> TranscriptAnalysis:
        self._fail()

    def analyze_code(self, code: str, requirements: str) -> CodeAnalysis:
        self._fail()

    def compose_final_report(self, technical, coding, managerial) -> FinalReportAnalysis:
        self._fail()


@lru_cache(maxsize=1)
def get_analysis_oracle() -> AnalysisOracle:
    """FastAPI dependency; tests override it with a fake."""
    if not OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not configured - analysis requests will fail")
        return UnavailableAnalysisOracle()
    return LLMAnalysisOracle(OpenAIProvider())
