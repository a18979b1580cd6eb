"""LangChain-based LLM abstraction layer.

All LLM calls go through this module. Switching between Ollama (dev) and
OpenAI (prod) is handled here via config; callers never know the difference.

The model describes progress photos, looks up foods and breaks meals down
into portions. Every reply is treated as untrusted text: the JSON object is
extracted, parsed and coerced into a response model before anything else
sees it.
"""

import json
import logging
import math
import re
from pathlib import Path
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from fitplan.config import settings
from fitplan.errors import ExternalFailure, ValidationError
from fitplan.intake import entry_totals
from fitplan.models import Confidence, FoodLogItem, FoodLookup, MealEstimate, MuscleAnalysis
from fitplan.units import round_half_up, round_int

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_LABEL_SEPARATORS_RE = re.compile(r"[\s\-]+")

_ANALYSIS_FAILED = "Photo analysis is currently unavailable. Please retry later."
_LOOKUP_FAILED = "Could not get nutrition data. Please try a different food name."
_MEAL_DESCRIPTION_FAILED = "Failed to analyze meal description"
_MEAL_PHOTO_FAILED = "Failed to analyze meal photo. Please try again or log manually."

_CONFIDENCE_LEVELS = ("high", "medium", "low")


def get_llm() -> BaseChatModel:
    """Instantiate and return the configured LLM client.

    Returns:
        A LangChain chat model instance (ChatOllama or ChatOpenAI).

    Raises:
        ValueError: If LLM_PROVIDER is set to an unrecognised value.
    """
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.llm_model,
            api_key=settings.openai_api_key,  # type: ignore[arg-type]
            max_tokens=1000,
        )
    elif settings.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=settings.llm_model,
            base_url=settings.ollama_base_url,
        )
    else:
        raise ValueError(f"Unknown LLM_PROVIDER: '{settings.llm_provider}'")


def _load_prompt(filename: str) -> str:
    """Read a prompt template file from the prompts directory.

    Args:
        filename: File name within backend/fitplan/prompts/.

    Returns:
        Raw prompt string.
    """
    return (PROMPTS_DIR / filename).read_text(encoding="utf-8")


# ── Output coercion ──────────────────────────────────────────────────────────


def extract_json(text: str) -> dict[str, Any]:
    """Pull the outermost JSON object out of a free-text model reply.

    Raises:
        ValueError: If no object is present or it does not parse.
    """
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        raise ValueError("Could not parse AI response")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("AI response is not a JSON object")
    return data


def normalise_label(label: str) -> str:
    """``"Upper Chest"`` / ``"upper-chest"`` → ``"upper_chest"``."""
    return _LABEL_SEPARATORS_RE.sub("_", label.strip()).lower()


def _finite_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def coerce_muscle_analysis(data: dict[str, Any]) -> MuscleAnalysis:
    """Turn a parsed model reply into a valid ``MuscleAnalysis``.

    Non-numeric or non-finite scores count as 0 and the score is then clamped
    to [1, 10]. Non-string list items are dropped and muscle labels are
    normalised to lower snake case.
    """
    score = min(max(_finite_number(data.get("overallScore")), 1.0), 10.0)
    return MuscleAnalysis(
        overall_score=score,
        lagging_muscles=[normalise_label(m) for m in _strings(data.get("laggingMuscles"))],
        strong_muscles=[normalise_label(m) for m in _strings(data.get("strongMuscles"))],
        recommendations=_strings(data.get("recommendations")),
    )


def coerce_confidence(value: Any) -> Confidence:
    """Anything other than ``"high"``, ``"medium"`` or ``"low"`` becomes ``"medium"``."""
    return value if value in _CONFIDENCE_LEVELS else "medium"


def _amount(value: Any) -> float:
    return max(_finite_number(value), 0.0)


def coerce_food_items(value: Any) -> list[FoodLogItem]:
    """Coerce the ``items`` array of a meal breakdown.

    Items without a name are dropped. Grams and calories are rounded to whole
    numbers and macros to 0.1 g; missing, negative or non-numeric amounts
    count as 0.
    """
    if not isinstance(value, list):
        return []
    items = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        items.append(FoodLogItem(
            name=name.strip(),
            grams=round_int(_amount(raw.get("grams"))),
            calories=round_int(_amount(raw.get("calories"))),
            protein=round_half_up(_amount(raw.get("protein")), 1),
            carbs=round_half_up(_amount(raw.get("carbs")), 1),
            fat=round_half_up(_amount(raw.get("fat")), 1),
        ))
    return items


def coerce_food_lookup(data: dict[str, Any], food_name: str) -> FoodLookup:
    """Turn a parsed lookup reply into a ``FoodLookup``; the asked name fills a missing one."""
    name = data.get("name")
    return FoodLookup(
        name=name.strip() if isinstance(name, str) and name.strip() else food_name,
        protein_per_100g=round_half_up(_amount(data.get("proteinPer100g")), 1),
        carbs_per_100g=round_half_up(_amount(data.get("carbsPer100g")), 1),
        fat_per_100g=round_half_up(_amount(data.get("fatPer100g")), 1),
        calories_per_100g=round_int(_amount(data.get("caloriesPer100g"))),
        confidence=coerce_confidence(data.get("confidence")),
    )


def coerce_meal_estimate(data: dict[str, Any], fallback_description: str) -> MealEstimate:
    """Turn a parsed meal breakdown into a ``MealEstimate``.

    Totals are summed from the coerced items; totals the model reports
    itself are ignored.
    """
    description = data.get("description")
    tips = data.get("tips")
    items = coerce_food_items(data.get("items"))
    return MealEstimate(
        description=(
            description.strip()
            if isinstance(description, str) and description.strip()
            else fallback_description
        ),
        items=items,
        totals=entry_totals(items),
        confidence=coerce_confidence(data.get("confidence")),
        tips=tips.strip() if isinstance(tips, str) and tips.strip() else None,
    )


# ── Photo analysis ───────────────────────────────────────────────────────────


def analyze_progress_photo(image_url: str) -> MuscleAnalysis:
    """Ask the vision model for a muscle-development analysis of a photo.

    Args:
        image_url: Retrievable URL of the progress photo.

    Returns:
        The coerced analysis.

    Raises:
        ExternalFailure: If the model call fails or its reply is unusable.
    """
    try:
        prompt = _load_prompt("muscle_analysis_prompt.txt")
        llm = get_llm()
        messages = [
            HumanMessage(
                content=[
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ]
            ),
        ]
        response = llm.invoke(messages)
        return coerce_muscle_analysis(extract_json(str(response.content)))
    except Exception as exc:
        logger.warning("Progress photo analysis failed: %s", exc)
        raise ExternalFailure(_ANALYSIS_FAILED) from exc


# ── Food lookup & meal estimates ─────────────────────────────────────────────


def _ask_for_json(messages: list) -> dict[str, Any]:
    response = get_llm().invoke(messages)
    return extract_json(str(response.content))


def lookup_food(food_name: str) -> FoodLookup:
    """Ask the model for the per-100 g nutrition facts of a named food.

    Raises:
        ValidationError: If the name is blank.
        ExternalFailure: If the model call fails or its reply is unusable.
    """
    food_name = food_name.strip()
    if not food_name:
        raise ValidationError("Food name is required", field="food_name")
    try:
        data = _ask_for_json([
            SystemMessage(content=_load_prompt("food_lookup_prompt.txt")),
            HumanMessage(content=f'Food: "{food_name}"'),
        ])
        return coerce_food_lookup(data, food_name)
    except Exception as exc:
        logger.warning("Food lookup for %r failed: %s", food_name, exc)
        raise ExternalFailure(_LOOKUP_FAILED) from exc


def estimate_meal_from_description(description: str) -> MealEstimate:
    """Break a free-text meal description down into portions and macros.

    Raises:
        ValidationError: If the description is blank.
        ExternalFailure: If the model call fails or its reply is unusable.
    """
    description = description.strip()
    if not description:
        raise ValidationError("Describe what you ate", field="description")
    try:
        data = _ask_for_json([
            SystemMessage(content=_load_prompt("meal_description_prompt.txt")),
            HumanMessage(content=f'Meal description: "{description}"'),
        ])
        return coerce_meal_estimate(data, description)
    except Exception as exc:
        logger.warning("Meal description analysis failed: %s", exc)
        raise ExternalFailure(_MEAL_DESCRIPTION_FAILED) from exc


def estimate_meal_from_photo(image_url: str) -> MealEstimate:
    """Identify the foods in a meal photo and estimate their portions.

    Raises:
        ExternalFailure: If the model call fails or its reply is unusable.
    """
    try:
        data = _ask_for_json([
            HumanMessage(
                content=[
                    {"type": "text", "text": _load_prompt("meal_photo_prompt.txt")},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ]
            ),
        ])
        return coerce_meal_estimate(data, "Meal")
    except Exception as exc:
        logger.warning("Meal photo analysis failed: %s", exc)
        raise ExternalFailure(_MEAL_PHOTO_FAILED) from exc
