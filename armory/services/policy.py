from armory.core.errors import ValidationError

PROMPT_MIN_LENGTH = 10
PROMPT_MAX_LENGTH = 500
FORBIDDEN_TERMS = ("weapon", "gun", "bomb", "violence")


def check_prompt_length(prompt: str) -> None:
    if not PROMPT_MIN_LENGTH <= len(prompt) <= PROMPT_MAX_LENGTH:
        raise ValidationError(f"prompt length must be {PROMPT_MIN_LENGTH}-{PROMPT_MAX_LENGTH}")


def normalize_weapon_prompt(prompt: str) -> str:
    """Trim a weapon prompt and enforce the length rule on the trimmed text."""
    prompt = prompt.strip()
    if not prompt:
        raise ValidationError("prompt is required")
    check_prompt_length(prompt)
    return prompt


def check_task_prompt(prompt: str) -> None:
    """
    Content policy for generation tasks. Length is measured on the raw prompt,
    terms are matched as case-insensitive substrings ("handgun" is rejected).
    """
    check_prompt_length(prompt)
    lowered = prompt.lower()
    if any(term in lowered for term in FORBIDDEN_TERMS):
        raise ValidationError("prompt contains forbidden content")
