"""Deterministic engagement scoring for trend posts.

Formula
-------
Each engagement signal is multiplied by a fixed weight and summed:

    score = likes * 1.0 + comments * 2.0 + shares * 3.0

Deeper engagement outweighs shallow engagement: a comment counts as two
likes and a share as three.  Shares are not recorded by the engagement
store yet, so callers pass ``shares=0``; the parameter stays part of the
contract so share tracking can be switched on without touching callers.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Constants – single source of truth for weights
# ---------------------------------------------------------------------------

WEIGHTS: dict[str, float] = {
    "like_count": 1.0,
    "comment_count": 2.0,
    "share_count": 3.0,
}


def compute_engagement_score(likes: int, comments: int, shares: int = 0) -> float:
    """Return the weighted engagement score for one post.

    Total and pure: any combination of non-negative counts yields a float.
    """
    return (
        likes * WEIGHTS["like_count"]
        + comments * WEIGHTS["comment_count"]
        + shares * WEIGHTS["share_count"]
    )
