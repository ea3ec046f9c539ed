#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from payslip_explainer.facts import FactsResult, get_all_sentences, get_key_facts

SIMPLE_NARRATION_FACT_LIMIT = 5
PROMPT_KEY_FACT_LIMIT = 3
SUPPORTED_LANGUAGES = ("en", "af")


class NarrationError(RuntimeError):
    """Raised when a narration collaborator cannot produce text."""


@dataclass(frozen=True)
class NarratorConfig:
    model: str = "gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 0.3  # 0 = deterministic, 1 = creative
    language: str = "en"


@dataclass(frozen=True)
class NarrationUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class NarrationResult:
    """Outcome of one narration call: text on success, an error message otherwise."""

    model: str
    explanation: str | None = None
    usage: NarrationUsage | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.explanation)


# Any callable (facts, config) -> NarrationResult; may raise NarrationError.
Narrator = Callable[[FactsResult, NarratorConfig], NarrationResult]


def build_system_prompt(language: str = "en") -> str:
    if language == "af":
        return (
            "Jy is 'n vriendelike HR-assistent wat betaalstrokies aan werknemers verduidelik.\n"
            "\n"
            "STRENG REËLS:\n"
            "- Moet NOOIT enige getalle bereken of aflei nie\n"
            "- Moet NOOIT oorsake of redes byvoeg wat nie eksplisiet genoem word nie\n"
            "- Gebruik SLEGS die feite wat verskaf word\n"
            "- Hou die verduideliking kort en duidelik\n"
            "- Wees vriendelik en professioneel\n"
            "- Gebruik ZAR vir geldbedrae\n"
            "\n"
            "Jou taak is om die gegewe feite in 'n natuurlike, leesbare paragraaf te herskryf."
        )

    return (
        "You are a friendly HR assistant explaining payslips to employees.\n"
        "\n"
        "STRICT RULES:\n"
        "- NEVER calculate or infer any numbers yourself\n"
        "- NEVER add causes or reasons not explicitly stated in the facts\n"
        "- Use ONLY the facts provided to you\n"
        "- Keep the explanation concise and clear\n"
        "- Be friendly and professional\n"
        "- Use ZAR for currency amounts\n"
        '- Address the employee directly using "you/your"\n'
        "\n"
        "Your task is to rewrite the given facts into a natural, readable explanation.\n"
        "Group related changes together and present them in a logical order.\n"
        "Start with the most important change (net pay), then explain what contributed to it."
    )


def build_user_prompt(facts: FactsResult) -> str:
    """Prompt-ready digest of a FactsResult for a text-generation collaborator."""
    key_facts = get_key_facts(facts, PROMPT_KEY_FACT_LIMIT)
    sentences = get_all_sentences(facts)

    lines = [
        f"Employee: {facts.employee_name}",
        f"Period: {facts.period_description}",
        "",
        "KEY CHANGES (most important):",
        *[f"- {fact.sentence}" for fact in key_facts],
        "",
        "ALL FACTS TO INCLUDE:",
        *[f"{index}. {sentence}" for index, sentence in enumerate(sentences, start=1)],
        "",
        "Please write a clear, friendly explanation of these payslip changes for the employee.",
        "Keep it to 2-3 short paragraphs maximum. Do not add any information not in the facts above.",
    ]
    return "\n".join(lines)


def narrate_simple(facts: FactsResult) -> str:
    """Render the top facts as a short digest without calling out to any service."""
    lines = [
        f"**Payslip Summary for {facts.employee_name}**",
        facts.period_description,
        "",
        f"**Key Takeaway:** {facts.key_takeaway}",
        "",
        "**Details:**",
    ]
    lines.extend(f"- {fact.sentence}" for fact in get_key_facts(facts, SIMPLE_NARRATION_FACT_LIMIT))
    return "\n".join(lines)
