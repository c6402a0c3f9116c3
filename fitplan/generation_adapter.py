"""
Claude-backed plan generation adapter and instruction builder.
"""

import json

import anthropic

from fitplan.profile_normalizer import diet_tier, equipment_tier, meal_names_for


class AdapterFailure(Exception):
    """The generation service did not return usable text."""

    KINDS = ("timeout", "rate_limit", "empty_response", "service_error")

    def __init__(self, kind, message=""):
        super().__init__(message or kind)
        self.kind = kind if kind in self.KINDS else "service_error"

    def __str__(self):
        return f"{self.kind}: {self.args[0]}"


class ClaudeAdapter:
    """Sends an instruction to Claude and returns the raw response text."""

    def __init__(self, api_key, config, model=None, max_tokens=None, timeout=None, max_retries=None):
        """
        Initialize the adapter.

        Args:
            api_key: Anthropic API key
            config: Full configuration dictionary
            model: Claude model to use (defaults to config value)
            max_tokens: Maximum tokens for response (defaults to config value)
            timeout: Client timeout in seconds (defaults to config value)
            max_retries: Client-side retries (defaults to config value, else 0;
                retrying is left to whoever schedules generation)
        """
        claude_config = config.get('claude', {}) or {}
        if max_retries is None:
            max_retries = claude_config.get('max_retries', 0)
        self.client = anthropic.Anthropic(
            api_key=api_key,
            timeout=timeout or claude_config.get('timeout', 120),
            max_retries=max_retries,
        )
        self.model = model or claude_config['model']
        self.max_tokens = max_tokens or claude_config.get('max_tokens', 8000)

    def generate(self, instruction_text):
        """
        Run one generation call.

        Raises:
            AdapterFailure: on timeout, rate limiting, service errors or an
                empty response
        """
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": instruction_text}],
            )
        except anthropic.APITimeoutError as exc:
            raise AdapterFailure("timeout", str(exc)) from exc
        except anthropic.RateLimitError as exc:
            raise AdapterFailure("rate_limit", str(exc)) from exc
        except (anthropic.APIConnectionError, anthropic.APIStatusError) as exc:
            raise AdapterFailure("service_error", str(exc)) from exc
        except anthropic.APIError as exc:
            raise AdapterFailure("service_error", str(exc)) from exc

        try:
            text = message.content[0].text or ""
        except (IndexError, AttributeError):
            text = ""
        if not text.strip():
            raise AdapterFailure("empty_response", "Claude returned no text.")
        return text


def _format_schedule(slots):
    lines = []
    for slot in slots:
        kind = "training" if slot["is_training_day"] else "rest"
        lines.append(f"- {slot['key']}: {kind} day, focus {slot['focus']}")
    return "\n".join(lines)


OUTPUT_EXAMPLE = {
    "days": {
        "day1": {
            "workout": {
                "focus": ["Push"],
                "blocks": [
                    {
                        "name": "Main",
                        "items": [{"exercise": "Push-ups", "sets": 3, "reps": "8-12", "RIR": 2, "rest": "60s"}],
                    }
                ],
                "notes": "...",
            },
            "nutrition": {
                "total_kcal": 2200,
                "protein_g": 140,
                "meals": [{"name": "Breakfast", "items": [{"food": "Oats", "qty": "60g"}]}],
                "hydration_l": 2.5,
            },
            "recovery": {"mobility": ["..."], "sleep": ["..."], "careNotes": "..."},
            "reason": "...",
        }
    }
}


def build_generation_instruction(profile, targets, slots):
    """Assemble the instruction text sent to the generation service."""
    equipment = ", ".join(profile.equipment) or "bodyweight only"
    avoid = ", ".join(profile.avoid_exercises) or "none"
    preferred = ", ".join(profile.preferred_exercises) or "none"
    supplements = ", ".join(profile.supplements) or "none"
    meal_names = ", ".join(meal_names_for(profile.meal_count))

    return f"""You are an expert strength coach and sports nutritionist.

Create a 7-day training and nutrition plan for this athlete.

ATHLETE PROFILE:
- Goal: {profile.goal}
- Experience: {profile.experience_level}
- Body: {profile.weight_kg} kg, {profile.height_cm} cm, {profile.age} years
- Equipment: {equipment} (tier: {equipment_tier(profile)})
- Diet: {diet_tier(profile)}
- Avoid exercises: {avoid}
- Preferred exercises: {preferred}
- Supplements: {supplements}

DAILY TARGETS (use these exact numbers every day):
- total_kcal: {targets['energy_kcal']}
- protein_g: {targets['protein_g']}
- hydration_l: {targets['hydration_l']}

SCHEDULE:
{_format_schedule(slots)}

HARD RULES:
- Every session must fit in {profile.session_minutes} minutes.
- Exactly {profile.meal_count} meals per day, named: {meal_names}.
- Every meal item needs a concrete food name and an explicit quantity.
- Do not repeat the same exercise on more than 2 days.

OUTPUT:
Return ONLY a JSON object with exactly the keys day1..day7 under "days",
shaped like this example. No explanation, no markdown.
{json.dumps(OUTPUT_EXAMPLE, indent=2)}
"""
