"""
Language Helpers
Keyword based detection of the user's language
"""

import re
from typing import Optional


LANGUAGE_KEYWORDS = {
    "ru": ["привет", "здравствуйте", "спасибо", "пожалуйста", "да", "нет", "хорошо", "плохо"],
    "fr": ["bonjour", "merci", "oui", "excusez", "s'il vous plaît"],
    "es": ["hola", "gracias", "sí", "perdón", "disculpe", "por favor"],
    "de": ["hallo", "danke", "nein", "schlecht", "entschuldigung", "bitte"],
    "it": ["ciao", "grazie", "sì", "scusi", "mi dispiace", "per favore"],
    "zh": ["你好", "谢谢", "是", "不", "好", "坏", "对不起", "抱歉"],
}

# Words shared with English or between these languages ("no", "ja", "bien",
# "pardon", "gut") are left out

DEFAULT_LANGUAGE = "en"


def detect_language(text: str) -> str:
    """
    Guess the language of a message from greeting/politeness keywords.
    Falls back to the script (Cyrillic → ru, CJK → zh), then English.
    """
    lowered = (text or "").lower()
    words = set(re.findall(r"\w+", lowered))

    for language, keywords in LANGUAGE_KEYWORDS.items():
        if language == "zh":
            if any(keyword in lowered for keyword in keywords):
                return language
        elif any(keyword in words or (" " in keyword and keyword in lowered) for keyword in keywords):
            return language

    if re.search(r"[Ѐ-ӿ]", lowered):
        return "ru"
    if re.search(r"[一-鿿]", lowered):
        return "zh"

    return DEFAULT_LANGUAGE


def resolve_language(requested: Optional[str], text: str = "") -> str:
    """The request's language wins; otherwise detect from the message"""
    if requested and requested.strip():
        return requested.strip().lower()[:2]
    return detect_language(text)
