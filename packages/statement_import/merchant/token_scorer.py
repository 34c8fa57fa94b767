"""Token scoring, the last resort before the sentinel keys.

Each remaining token gets a score from its position, its length and its
resemblance to known brands. The two best tokens are kept in reading order;
glue words sitting between them ("RISTORANTE DA GINO") are kept too.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .tables import MerchantTables

# ---- Tunables (private) ------------------------------------------------------

_POSITION_BASE = 100
_POSITION_STEP = 20
_LENGTH_WEIGHT = 5
_LENGTH_CAP = 50
_BRAND_FRAGMENT_BONUS = 200
_DICT_BIGRAM_BONUS = 300
_PARTIAL_MATCH_BONUS = 50
_PARTIAL_MIN_LEN = 3
_NUMERIC_PENALTY = 200
_SINGLE_CHAR_PENALTY = 200
_SHORT_PENALTY = 60
_GLUE_PENALTY = 30
_BLACKLIST_SCORE = -1000
_TOP_N = 2


@dataclass(frozen=True, slots=True)
class ScoredToken:
    index: int
    token: str
    score: int


def _is_dict_bigram(tokens: Sequence[str], i: int, tables: MerchantTables) -> bool:
    if i > 0 and f"{tokens[i - 1]} {tokens[i]}" in tables.brand_dict:
        return True
    return i + 1 < len(tokens) and f"{tokens[i]} {tokens[i + 1]}" in tables.brand_dict


def score_token(tokens: Sequence[str], i: int, tables: MerchantTables) -> int:
    tok = tokens[i]
    if tok in tables.scoring_blacklist:
        return _BLACKLIST_SCORE

    score = max(0, _POSITION_BASE - i * _POSITION_STEP)
    score += min(len(tok) * _LENGTH_WEIGHT, _LENGTH_CAP)

    if tok in tables.brand_fragments:
        score += _BRAND_FRAGMENT_BONUS
    elif len(tok) >= _PARTIAL_MIN_LEN and any(
        tok in frag or frag in tok for frag in tables.brand_fragments
    ):
        score += _PARTIAL_MATCH_BONUS
    if _is_dict_bigram(tokens, i, tables):
        score += _DICT_BIGRAM_BONUS

    if tok.isdigit():
        score -= _NUMERIC_PENALTY
    if len(tok) == 1:
        score -= _SINGLE_CHAR_PENALTY
    elif len(tok) == 2:
        score -= _GLUE_PENALTY if tok in tables.glue_words else _SHORT_PENALTY
    return score


def score_tokens(tokens: Sequence[str], tables: MerchantTables) -> list[ScoredToken]:
    return [ScoredToken(i, tok, score_token(tokens, i, tables)) for i, tok in enumerate(tokens)]


def select_tokens(tokens: Sequence[str], tables: MerchantTables) -> list[str]:
    """Return the best tokens in reading order, or ``[]`` when none scores above zero."""

    positive = [s for s in score_tokens(tokens, tables) if s.score > 0]
    top = sorted(positive, key=lambda s: (-s.score, s.index))[:_TOP_N]
    if not top:
        return []
    top.sort(key=lambda s: s.index)

    first, last = top[0].index, top[-1].index
    between = tokens[first + 1 : last]
    if len(top) == 2 and between and all(t in tables.glue_words for t in between):
        return list(tokens[first : last + 1])
    return [s.token for s in top]


__all__ = ["ScoredToken", "score_token", "score_tokens", "select_tokens"]
