def check_answer(expected: str, user_answer: str) -> bool:
    """
    Lenient match: case-insensitive, trimmed, and either side may contain the other.
    """
    given = (user_answer or "").strip().lower()
    correct = (expected or "").strip().lower()
    if not given or not correct:
        return False
    return given == correct or correct in given or given in correct
