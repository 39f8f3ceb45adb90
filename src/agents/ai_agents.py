"""
AI Agents for the Personal Ledger

CRITICAL BOUNDARIES:

1. INSIGHT AGENT:
   - CAN: Interpret the numbers it is given and write advice
   - CANNOT: Recompute totals, net worth or values
   - CANNOT: Modify the ledger
   - MUST: Return a usable (fallback) result when the model fails

Every number the model sees comes from a FinancialContext, which is
built from the valuation engine's current-period totals. The prompts
state those numbers as fixed facts.

The LLM is an ADVISOR, not an ACCOUNTANT.
It NEVER makes up financial data.
"""

import json
from collections.abc import Callable, Sequence
from typing import Any, Literal, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, ValidationError

from src.config import GeminiSettings, get_settings
from src.models.ledger import SpendingInsight, Transaction
from src.reports.context import FinancialContext


logger = structlog.get_logger(__name__)

FALLBACK_TIP = "Small savings add up. Keep tracking every expense! 🌱"

INSIGHT_FIELDS = (
    "analysis",
    "asset_analysis",
    "category_breakdown",
    "suggestions",
    "saving_goal_advice",
    "tips",
)


class ChatTurn(BaseModel):
    """One message of an advisor conversation."""

    role: Literal["user", "model"]
    text: str


def extract_json(text: str) -> dict[str, Any]:
    """Pull the first JSON object out of a model reply."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ValueError("No JSON object in model response")
    data = json.loads(text[start:end])
    if not isinstance(data, dict):
        raise ValueError("Model response is not a JSON object")
    return data


def fallback_insight() -> SpendingInsight:
    """What the user sees when the report could not be generated."""
    return SpendingInsight(
        analysis="An error occurred while analyzing your data.",
        asset_analysis="Net worth analysis is unavailable right now.",
        suggestions=["Please check your entries and try again."],
        tips="Accurate entries make for better advice.",
    )


class InsightAgent:
    """
    AI agent that writes reports, tips and chat replies about the ledger.

    RESPONSIBILITIES:
    - Detailed spending and portfolio report (structured JSON)
    - One-line quick tip
    - Conversational advisor grounded in the ledger's numbers

    BOUNDARIES:
    - NEVER persists data
    - NEVER recomputes the numbers it is given
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
        quick_model: Any = None,
        chat_model_factory: Optional[Callable[[str], Any]] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model
        self._quick_model = quick_model
        self._chat_model_factory = chat_model_factory or self._build_chat_model
        if self._model is None or self._quick_model is None:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        if self._model is None:
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                    "response_mime_type": "application/json",
                },
            )
        if self._quick_model is None:
            self._quick_model = genai.GenerativeModel(
                model_name=self._settings.quick_model_name,
                generation_config={
                    "temperature": 0.7,
                    "max_output_tokens": 100,
                },
            )

    def _build_chat_model(self, system_instruction: str) -> Any:
        """A Gemini model carrying the advisor system instruction."""
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=system_instruction,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    def _system_instruction(self, context: FinancialContext) -> str:
        assets = json.dumps(
            [item.model_dump() for item in context.asset_summary],
            ensure_ascii=False,
        )
        return f"""You are the user's personal financial planner.

All figures below were computed exactly by the system.
NEVER recompute or question these numbers. Net worth {context.net_worth:,.0f} is the authoritative fact.

[Confirmed financial facts]
{context.facts_block()}

[Assets held]
{assets}

Advise only on the basis of this data. Be professional and friendly.
When asked about the portfolio or spending, cite the figures above."""

    async def generate_insight(self, context: FinancialContext) -> SpendingInsight:
        """
        Write a detailed report over the context's fixed numbers.

        Falls back to a placeholder insight if the model fails or
        returns something that does not parse.
        """
        recent = json.dumps(context.recent_transactions, ensure_ascii=False, default=str)

        prompt = f"""The following figures were computed by the system and are 100% accurate.
Write a detailed report based on them.

{context.facts_block()}

Transactions this month: {recent}

Changing or recomputing the data is forbidden. Analyze the numbers exactly as given.

Respond with ONLY a JSON object with these keys:
- "analysis": spending and cash-flow analysis
- "asset_analysis": net worth and portfolio analysis
- "category_breakdown": diagnosis of the main spending categories
- "suggestions": a list of 4 concrete suggestions
- "saving_goal_advice": long-term saving goal advice
- "tips": risk management tip"""

        try:
            response = await self._model.generate_content_async(prompt)
            data = extract_json(response.text)
            fields = {key: data[key] for key in INSIGHT_FIELDS if data.get(key) is not None}
            return SpendingInsight(**fields)
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError subclasses ValueError
            logger.warning("insight_parse_failed", error=str(e))
        except Exception as e:
            logger.error("insight_generation_failed", error=str(e))

        return fallback_insight()

    async def quick_tip(self, transactions: Sequence[Transaction]) -> str:
        """A short friendly tip (about 20 words) based on recent transactions."""
        recent = [t.model_dump(mode="json", exclude={"id"}) for t in transactions[:10]]
        prompt = (
            f"Ledger data: {json.dumps(recent, ensure_ascii=False)}. "
            "Give one short, friendly piece of financial advice in about 20 words. "
            "Include an emoji."
        )

        try:
            response = await self._quick_model.generate_content_async(prompt)
            text = (response.text or "").strip()
            if text:
                return text
        except Exception as e:
            logger.warning("quick_tip_failed", error=str(e))

        return FALLBACK_TIP

    async def chat(
        self,
        context: FinancialContext,
        message: str,
        history: Optional[Sequence[ChatTurn]] = None,
    ) -> str:
        """
        Answer one advisor message, grounded in the context.

        Args:
            context: Fixed facts for the system instruction
            message: The user's new message
            history: Earlier turns of the conversation, oldest first
        """
        contents = [
            {"role": turn.role, "parts": [turn.text]}
            for turn in (history or [])
        ]
        contents.append({"role": "user", "parts": [message]})

        try:
            chat_model = self._chat_model_factory(self._system_instruction(context))
            response = await chat_model.generate_content_async(contents)
            return response.text.strip()
        except Exception as e:
            logger.error("advisor_chat_failed", error=str(e))
            return (
                "I'm sorry, I couldn't process that request right now. "
                "Please try again in a moment."
            )
