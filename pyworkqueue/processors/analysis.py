# pyworkqueue/processors/analysis.py
import json
import logging
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from openai import OpenAI

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")

ANALYSIS_INSTRUCTIONS = (
    "Review the following document for the given target parameters and answer "
    "with a single JSON object with the keys overallScore (0-100), atsScore "
    "(0-100), problems, improvements, strengths and recommendations (lists of "
    "strings)."
)


@dataclass
class AnalysisResult:
    overall_score: float = 0
    ats_score: float = 0
    issues: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """Accepts the key variants analysis models are known to return."""
        scores = data.get("scores") or {}
        return cls(
            overall_score=data.get("overallScore") or data.get("score") or 0,
            ats_score=data.get("atsScore") or scores.get("atsCompatibility") or 0,
            issues=list(data.get("problems") or data.get("criticalIssues") or []),
            improvements=list(data.get("improvements") or []),
            recommendations=list(data.get("recommendations") or []),
            strengths=list(data.get("strengths") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_analysis_response(content: str) -> AnalysisResult:
    clean = _FENCE_RE.sub("", content.strip())
    try:
        parsed = json.loads(clean)
    except json.JSONDecodeError:
        parsed = None
    if not isinstance(parsed, dict):
        # Free text answers are kept as a single recommendation
        return AnalysisResult(recommendations=[clean])
    return AnalysisResult.from_mapping(parsed)


class OpenAIDocumentAnalyzer:
    """The expensive compute step behind the semantic cache."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: str = "gpt-4o-mini",
        max_input_chars: int = 4000,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ):
        self.client = client or OpenAI()
        self.model = model
        self.max_input_chars = max_input_chars
        self.temperature = temperature
        self.max_tokens = max_tokens

    def __call__(self, input_text: str, scope_params: Dict[str, Any]) -> AnalysisResult:
        text = input_text[: self.max_input_chars]
        params = "\n".join(f"{key}: {value}" for key, value in sorted(scope_params.items()))
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": ANALYSIS_INSTRUCTIONS},
                {"role": "user", "content": f"{params}\n\n{text}"},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("Analysis response did not contain any text")
        return parse_analysis_response(content)
