"""
Turn Controller

Decides after each candidate answer whether the interviewer asks another
question or the session moves to evaluation.

max_turns counts interviewer turns after the greeting, but the candidate's
reply to the greeting (their introduction) consumes one of them even though
no interviewer turn was generated for it. Hence the "- 1": with
max_turns = 3 the interviewer asks two follow-ups and the third answer
triggers evaluation; with max_turns = 1 only the introduction is collected.
"""


def should_continue(turns_completed: int, max_turns: int) -> bool:
    """True if another interviewer turn should be generated."""
    if max_turns < 1:
        raise ValueError(f"max_turns must be >= 1, got {max_turns}")
    return turns_completed < max_turns - 1


def remaining_turns(turns_completed: int, max_turns: int) -> int:
    """Interviewer turns still available before evaluation."""
    return max(0, max_turns - 1 - turns_completed)
