"""
Message dispatcher - classifies incoming events.

Classification is an ordered list of (predicate, intent) rules; the first
matching rule wins. No I/O, fully deterministic.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Callable

from app.agents.schemas import EventKind, InboundEvent, Intent

# Lowercased; matched as substrings of the lowercased message
MEAL_KEYWORDS: tuple[str, ...] = (
    "朝食", "昼食", "夕食", "夜食", "間食",
    "朝ごはん", "昼ごはん", "夜ごはん", "晩ごはん", "ご飯", "ごはん",
    "朝ご飯", "昼ご飯", "夜ご飯", "晩ご飯",
    "食べた", "食べました", "飲んだ", "飲みました",
    "おやつ", "お弁当", "弁当", "定食", "ランチ", "ディナー", "食事",
    "カロリー", "kcal",
    "breakfast", "lunch", "dinner", "meal", "snack",
)

Predicate = Callable[[InboundEvent], bool]


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Predicate
    intent: Intent


def normalize_text(text: str) -> str:
    """NFKC (full-width digits → ASCII) and strip."""
    return unicodedata.normalize("NFKC", text).strip()


def order_code_pattern(min_digits: int = 9, max_digits: int = 10) -> re.Pattern:
    if min_digits < 1 or max_digits < min_digits:
        raise ValueError(f"Invalid order code digit range: {min_digits}-{max_digits}")
    return re.compile(rf"[0-9]{{{min_digits},{max_digits}}}")


def build_rules(
    min_digits: int = 9,
    max_digits: int = 10,
    meal_keywords: tuple[str, ...] = MEAL_KEYWORDS,
) -> list[Rule]:
    """Rules in evaluation order."""
    code_re = order_code_pattern(min_digits, max_digits)
    keywords = tuple(k.lower() for k in meal_keywords)

    def is_image(event: InboundEvent) -> bool:
        return event.kind == EventKind.IMAGE

    def is_order_code(event: InboundEvent) -> bool:
        return event.kind == EventKind.TEXT and code_re.fullmatch(normalize_text(event.payload)) is not None

    def mentions_meal(event: InboundEvent) -> bool:
        if event.kind != EventKind.TEXT:
            return False
        text = normalize_text(event.payload).lower()
        return any(k in text for k in keywords)

    return [
        Rule("image", is_image, Intent.VISION_REQUEST),
        Rule("order_code", is_order_code, Intent.ORDER_CODE),
        Rule("meal_keyword", mentions_meal, Intent.MEAL_REPORT),
    ]


class IntentClassifier:
    def __init__(self, rules: list[Rule], default: Intent = Intent.GENERAL_CHAT):
        self.rules = list(rules)
        self.default = default

    def classify(self, event: InboundEvent) -> Intent:
        for rule in self.rules:
            if rule.predicate(event):
                return rule.intent
        return self.default


def get_classifier(min_digits: int = 9, max_digits: int = 10) -> IntentClassifier:
    return IntentClassifier(build_rules(min_digits, max_digits))


def extract_order_code(text: str) -> str:
    """Order code as registered (normalized digits)."""
    return normalize_text(text)
