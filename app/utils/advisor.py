"""
AI Advice
Builds a prompt from the user's recent transactions and asks Gemini for
personalised advice.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from app.core.config import settings
from app.utils.aggregator import current_month_bounds, summarize

logger = logging.getLogger(__name__)

CONTEXT_TRANSACTIONS = 20
PROMPT_TRANSACTIONS = 5


class AdvisorNotConfigured(Exception):
    pass


class AdvisorUnavailable(Exception):
    pass


def build_context(transactions: List[Dict[str, Any]], today: Optional[date] = None) -> Dict[str, Any]:
    """Spending picture for the current month from the user's most recent transactions."""
    recent = sorted(transactions, key=lambda t: (t["date"], t["id"]), reverse=True)[:CONTEXT_TRANSACTIONS]
    start, end = current_month_bounds(today)
    summary = summarize(recent, start, end)
    top = sorted(summary.category_spending.items(), key=lambda item: item[1], reverse=True)[:3]
    return {
        "totalSpent": summary.total_spent,
        "totalIncome": summary.total_income,
        "netBalance": round(summary.total_income - summary.total_spent, 2),
        "topCategories": [{"category": cat, "amount": amount} for cat, amount in top],
        "recentTransactions": recent[:PROMPT_TRANSACTIONS],
    }


def build_prompt(context: Dict[str, Any], question: Optional[str] = None) -> str:
    top = ", ".join(f"{c['category']} (₹{c['amount']:.2f})" for c in context["topCategories"])
    recent = "\n".join(
        f"- {t['date']}: {'-' if t['type'] == 'debit' else '+'}₹{t['amount']} on {t['category']} ({t['merchant']})"
        for t in context["recentTransactions"]
    )
    financial_context = (
        "User Financial Summary:\n"
        f"- Total spent this month: ₹{context['totalSpent']:.2f}\n"
        f"- Total income this month: ₹{context['totalIncome']:.2f}\n"
        f"- Net balance: ₹{context['netBalance']:.2f}\n"
        f"- Top spending categories: {top}\n\n"
        f"Recent transactions:\n{recent}\n"
    )
    if question:
        return (
            f"{financial_context}\nUser question: {question}\n\n"
            "Provide helpful, personalized financial advice based on the user's spending patterns "
            "and question. Keep the response conversational, practical, and actionable."
        )
    return (
        f"{financial_context}\n"
        "Provide personalized financial advice and recommendations to help the user improve their "
        "financial health. Focus on spending reduction, savings opportunities, and budget optimization. "
        "Keep the advice conversational and actionable."
    )


def generate_advice(prompt: str) -> str:
    if not settings.GEMINI_API_KEY:
        raise AdvisorNotConfigured("Gemini API key not configured")

    try:
        client = genai.Client(api_key=settings.GEMINI_API_KEY)
        response = client.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=0.7,
                top_k=40,
                top_p=0.95,
                max_output_tokens=1024,
            ),
        )
    except Exception as e:
        logger.error(f"Gemini request failed: {str(e)}")
        raise AdvisorUnavailable(str(e)) from e

    return response.text or "Unable to generate advice at this time."
