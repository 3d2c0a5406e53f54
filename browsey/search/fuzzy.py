from __future__ import annotations

SUBSTRING_BASE_SCORE = 100
_WORD_SEPARATORS = "-_./"


def _is_word_start(text: str, idx: int) -> bool:
    if idx == 0:
        return True
    previous = text[idx - 1]
    return previous.isspace() or previous in _WORD_SEPARATORS


def is_subsequence(pattern: str, text: str) -> bool:
    """Return whether every character of ``pattern`` appears in ``text`` in order."""
    position = 0
    for ch in text:
        if position == len(pattern):
            break
        if ch == pattern[position]:
            position += 1
    return position == len(pattern)


def fuzzy_score(text: str, pattern: str) -> int:
    """Score ``text`` (a bare filename) against ``pattern``; 0 means no match.

    Contiguous substring hits score ``100 + 2 * len(pattern)`` and therefore
    always beat scattered subsequence hits. Subsequence hits earn 1 point per
    matched character, a growing bonus inside consecutive runs, and +3 for
    matches at a word start.
    """
    if not pattern or not text:
        return 0

    lower_text = text.lower()
    lower_pattern = pattern.lower()
    if not is_subsequence(lower_pattern, lower_text):
        return 0

    if lower_pattern in lower_text:
        return SUBSTRING_BASE_SCORE + len(lower_pattern) * 2

    score = 0
    pattern_idx = 0
    prev_match_idx = -2
    run_bonus = 0
    for idx, ch in enumerate(lower_text):
        if pattern_idx == len(lower_pattern):
            break
        if ch != lower_pattern[pattern_idx]:
            continue

        score += 1
        if idx == prev_match_idx + 1:
            run_bonus += 2
            score += run_bonus
        else:
            run_bonus = 0
        if _is_word_start(lower_text, idx):
            score += 3

        prev_match_idx = idx
        pattern_idx += 1

    return score
