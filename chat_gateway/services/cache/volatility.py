"""Patterns marking messages whose answers must not be cached."""

import re
from typing import Iterable, List, Optional, Pattern, Tuple

from chat_gateway.models.errors import ConfigurationError


# Relative time words, absolute dates and times, first-person identity statements.
DEFAULT_VOLATILE_PATTERNS: List[str] = [
    r"\b(now|today|yesterday|tomorrow|tonight|current(ly)?|time|date)\b",
    r"\b(сейчас|сегодня|вчера|завтра|время|дата)\b",
    r"\d{1,2}:\d{2}|\d{2}\.\d{2}\.\d{4}|\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{2,4}",
    r"\b(my name is|i am|i'm|i work|my)\b",
    r"(меня зовут|мое имя|моё имя|я работаю|\bмо[йяеё]\b)",
]

# Canonical greetings seeded at startup: (message, mode, answer).
WARMUP_ENTRIES: List[Tuple[str, str, str]] = [
    ("Hello", "fast", "Hello! I'm your AI assistant. How can I help you today?"),
    ("How are you?", "fast", "I'm doing great and ready to help with any question you have."),
    ("What can you do?", "fast", "I can answer questions, help with analysis, explain complex topics and much more!"),
    ("Thank you", "fast", "You're welcome! Always happy to help."),
    ("Привет", "fast", "Привет! Я ваш ИИ-ассистент. Чем могу помочь?"),
    ("Как дела?", "fast", "У меня всё отлично! Готов помочь вам с любыми вопросами."),
    ("Что ты умеешь?", "fast", "Я могу отвечать на вопросы, помогать с анализом, объяснять сложные темы и многое другое!"),
    ("Спасибо", "fast", "Пожалуйста! Всегда рад помочь."),
]


def compile_patterns(patterns: Optional[Iterable[str]] = None) -> List[Pattern]:
    """Compile volatile-content patterns, case-insensitively."""
    sources = DEFAULT_VOLATILE_PATTERNS if patterns is None else list(patterns)
    compiled = []
    for source in sources:
        try:
            compiled.append(re.compile(source, re.IGNORECASE))
        except re.error as e:
            raise ConfigurationError(
                f"Invalid volatile pattern {source!r}: {e}",
                config_key="cache.volatile_patterns"
            ) from e
    return compiled


def is_volatile(message: str, patterns: Iterable[Pattern]) -> bool:
    """Check whether any pattern matches the message."""
    return any(pattern.search(message) for pattern in patterns)
