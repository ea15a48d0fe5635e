from typing import Iterable, List, Optional

# Starter goals offered on every day
BASE_SUGGESTIONS = [
    "Gratitude journal (3 items)",
    "10-minute walk",
    "Hydrate (8 glasses)",
    "5-minute breathing",
    "Tidy one area",
]

# Extra goals keyed by the (lowercased) mood label
MOOD_SUGGESTIONS = {
    "down": ["Step outside for fresh air", "Make a cup of tea"],
    "struggling": ["Write 1 worry and 1 action"],
    "great": ["Plan one fun activity", "Reach out to a friend"],
    "good": ["15-minute exercise"],
}

# Journal weather moods folded onto the keys above
WEATHER_MOODS = {
    "sunny": "great",
    "partly cloudy": "good",
    "rainy": "down",
    "stormy": "struggling",
}


def get_suggested_goals(existing: Iterable[str], mood: Optional[str] = None) -> List[str]:
    """
    Starter goals for a day, minus titles the user already has.

    Titles are compared case-insensitively after trimming.
    """
    mood_key = (mood or "").lower().strip()
    mood_key = WEATHER_MOODS.get(mood_key, mood_key)
    combined = BASE_SUGGESTIONS + MOOD_SUGGESTIONS.get(mood_key, [])

    existing_lower = {title.lower().strip() for title in existing}
    return [title for title in combined if title.lower().strip() not in existing_lower]
