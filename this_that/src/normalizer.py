"""
Coerce loosely-typed model output into fixed-shape match records.
"""

import math
from typing import Any, Dict, List, Optional

from this_that.src.snippet_filters import safe_trim

MAX_RESULTS = 3
MAX_SPECIAL = 5
MAX_LANDMARKS = 3
MAX_TAGS = 6
LANDMARK_NAME_LIMIT = 80
LANDMARK_WHY_LIMIT = 160
DEFAULT_SCORE = 0.75


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _string_list(value: Any, limit: int) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    out = [_text(v) for v in value]
    return [v for v in out if v][:limit]


def _landmarks(value: Any) -> List[Dict[str, str]]:
    if not isinstance(value, list):
        return []
    out = []
    for lm in value:
        if isinstance(lm, dict):
            name, why = _text(lm.get('name')), _text(lm.get('why'))
        else:
            name, why = _text(lm), ""
        if not name:
            continue
        out.append({
            'name': safe_trim(name, LANDMARK_NAME_LIMIT),
            'why': safe_trim(why, LANDMARK_WHY_LIMIT),
        })
        if len(out) == MAX_LANDMARKS:
            break
    return out


def _score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_SCORE
    if math.isnan(score) or isinstance(value, bool):
        return DEFAULT_SCORE
    return min(1.0, max(0.0, score))


def normalize_candidate(candidate: Dict[str, Any], rank: int) -> Dict[str, Any]:
    return {
        'rank': rank,
        'match': _text(candidate.get('match')) or _text(candidate.get('name')) or "Unknown",
        'city': _text(candidate.get('city')),
        'region': _text(candidate.get('region')),
        'blurb': _text(candidate.get('blurb')),
        'whatMakesItSpecial': _string_list(candidate.get('whatMakesItSpecial'), MAX_SPECIAL),
        'landmarks': _landmarks(candidate.get('landmarks')),
        'tags': _string_list(candidate.get('tags'), MAX_TAGS),
        'score': _score(candidate.get('score')),
        'source': "openai",
    }


def normalize_results(candidates: Any, limit: Optional[int] = MAX_RESULTS) -> List[Dict[str, Any]]:
    """Candidate[] -> NormalizedResult[], ranked 1..n by position. Never raises.

    Repeats are dropped before the limit applies; limit=None keeps every
    distinct candidate.
    """
    if not isinstance(candidates, list):
        return []
    dicts = [c for c in candidates if isinstance(c, dict)]
    return dedupe_results([normalize_candidate(c, i + 1) for i, c in enumerate(dicts)], limit)


def result_key(result: Dict[str, Any]) -> str:
    return f"{result.get('match', '')}, {result.get('city', '')}".strip().lower()


def dedupe_results(results: List[Dict[str, Any]], limit: Optional[int] = MAX_RESULTS) -> List[Dict[str, Any]]:
    """Drop repeats of "match, city" (case-insensitive), keep at most limit, re-rank 1..n."""
    seen = set()
    out = []
    for r in results:
        key = result_key(r)
        if key in seen:
            continue
        seen.add(key)
        out.append({**r, 'rank': len(out) + 1})
        if limit is not None and len(out) == limit:
            break
    return out
