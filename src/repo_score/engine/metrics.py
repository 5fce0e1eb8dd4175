# src/repo_score/engine/metrics.py

"""Presentation-only views over a score map: ranking and participation rates."""

from typing import Dict, List, Mapping, Tuple

from .models import ScoreModel


def sort_by_total(scores: Mapping[str, ScoreModel]) -> List[Tuple[str, ScoreModel]]:
    """Orders users by total, highest first. Ties keep their original order."""
    return sorted(scores.items(), key=lambda item: item[1].total, reverse=True)


def competition_ranks(totals: List[int]) -> List[int]:
    """Ranks an already descending list of totals (1, 1, 3 style)."""
    ranks = []
    for position, total in enumerate(totals):
        if position > 0 and total == totals[position - 1]:
            ranks.append(ranks[-1])
        else:
            ranks.append(position + 1)
    return ranks


def compute_rates(scores: Mapping[str, ScoreModel]) -> Dict[str, Tuple[float, float]]:
    """Calculates each user's share of all PRs and of all issues, in percent."""
    pr_sum = sum(score.pr_count for score in scores.values())
    issue_sum = sum(score.issue_count for score in scores.values())

    rates = {}
    for user, score in scores.items():
        pr_rate = score.pr_count / pr_sum * 100 if pr_sum else 0.0
        is_rate = score.issue_count / issue_sum * 100 if issue_sum else 0.0
        rates[user] = (pr_rate, is_rate)
    return rates


def ranked_rows(scores: Mapping[str, ScoreModel]) -> List[Dict[str, object]]:
    """Builds the rows every renderer shares: rank, user, score and rates."""
    ordered = sort_by_total(scores)
    ranks = competition_ranks([score.total for _, score in ordered])
    rates = compute_rates(scores)

    return [
        {
            "rank": rank,
            "user": user,
            "score": score,
            "pr_rate": rates[user][0],
            "is_rate": rates[user][1],
        }
        for rank, (user, score) in zip(ranks, ordered)
    ]
