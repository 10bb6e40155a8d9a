# ai_fraud_module.py - Smart Assistant backed by Gemini
import os
from dataclasses import dataclass
from typing import Callable, Optional

import google.generativeai as genai

DEFAULT_MODEL = 'gemini-2.5-flash'

KEY_MISSING_ANALYSIS = "API Key not configured. Please set the API_KEY environment variable to use the Smart Assistant."
KEY_MISSING_TIPS = "API Key not configured. AI features are disabled."
ANALYSIS_ERROR = "Sorry, I encountered an error while analyzing your spending. Please try again later."

FALLBACK_SECURITY_TIPS = (
    "• Always use a strong, unique password for your financial accounts.\n"
    "• Enable two-factor authentication (2FA) if available.\n"
    "• Be wary of phishing emails asking for your login details."
)

SECURITY_TIPS_PROMPT = """
You are a cybersecurity expert providing helpful advice within a digital banking app.
Generate 3 concise, actionable security tips for users to keep their account safe.
The tone should be reassuring and professional.
Format the response as a simple string, with each tip on a new line started with a bullet point (e.g., • Tip 1...).
Do not include a heading or any introductory text.
"""


@dataclass(frozen=True)
class AssistantConfig:
    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    analysis_temperature: float = 0.5
    tips_temperature: float = 0.6

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ=None) -> 'AssistantConfig':
        environ = os.environ if environ is None else environ
        api_key = environ.get('GEMINI_API_KEY') or environ.get('API_KEY')
        if not api_key:
            print("⚠️ API_KEY environment variable not set. Gemini features will be disabled.")
        return cls(api_key=api_key, model_name=environ.get('GEMINI_MODEL', DEFAULT_MODEL))


def gemini_model_factory(config: AssistantConfig):
    """Configures the google-generativeai client and returns a GenerativeModel."""
    genai.configure(api_key=config.api_key)
    return genai.GenerativeModel(model_name=config.model_name)


def _status_value(status) -> str:
    return getattr(status, 'value', status)


def build_spending_prompt(transactions: list, question: str) -> str:
    """Prompt for spending analysis. Only completed transactions are shown to the model."""
    lines = [
        f"- To {t['payee']} for ${float(t['amount']):.2f} on {t['date']} (Memo: {t.get('memo', '')})"
        for t in transactions
        if _status_value(t['status']) == 'Completed'
    ]
    transaction_data = "\n".join(lines)

    return f"""
You are a friendly and insightful financial assistant for a digital banking application.
Analyze the user's completed transaction history provided below to answer their question.
Provide a concise, helpful, and easy-to-understand summary. Do not just list the transactions.

User's Question: "{question}"

Completed Transaction History:
{transaction_data}

Your analysis:
"""


class SmartAssistant:
    """
    Wraps the LLM calls used by the dashboard.

    The model is built lazily from `model_factory(config)` on first use, so a
    disabled assistant (no API key) never touches the network client.
    """

    def __init__(self, config: AssistantConfig, model_factory: Optional[Callable] = None):
        self.config = config
        self._model_factory = model_factory or gemini_model_factory
        self._model = None

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _get_model(self):
        if self._model is None:
            self._model = self._model_factory(self.config)
        return self._model

    def _generate(self, prompt: str, temperature: float) -> str:
        response = self._get_model().generate_content(
            prompt,
            generation_config={'temperature': temperature},
        )
        return response.text

    def analyze_spending(self, transactions: list, question: str) -> str:
        if not self.enabled:
            return KEY_MISSING_ANALYSIS

        prompt = build_spending_prompt(transactions, question)
        try:
            return self._generate(prompt, self.config.analysis_temperature)
        except Exception as e:
            print(f"❌ Error calling Gemini API: {e}")
            return ANALYSIS_ERROR

    def get_security_tips(self) -> str:
        if not self.enabled:
            return KEY_MISSING_TIPS

        try:
            return self._generate(SECURITY_TIPS_PROMPT, self.config.tips_temperature)
        except Exception as e:
            print(f"❌ Error calling Gemini API for security tips: {e}")
            return FALLBACK_SECURITY_TIPS
