"""Recommendation Scorer - Best-guess next transition with a calibrated confidence

The scorer only ranks; it never permits or denies. Role-gated transitions are
left out because there is no requester to check them against.
"""
from typing import List, Optional, Sequence, Tuple

from ..domain.models import HistoryHop, TransitionCandidate, TransitionSuggestion
from ..domain.enums import RoleMarker
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Suggestions below this confidence are not shown at all
MIN_CONFIDENCE = 0.6
MAX_CONFIDENCE = 0.95

BASE_SCORE = 1.0
REVIEW_BONUS = 1.5
PROGRESS_BONUS = 0.5
REPEAT_BONUS = 1.0

RATIONALE_REVIEW = "tasks usually move to Review after progress"
RATIONALE_QA = "QA tag detected on task"
RATIONALE_PRIORITY = "high priority items should complete swiftly"
RATIONALE_REPEAT = "same move was made most recently"
RATIONALE_FALLBACK = "pattern learned from similar tasks"


def is_high_priority(priority: Optional[str]) -> bool:
    return (priority or "").strip().upper() in ("HIGH", "HIGHEST")


def has_qa_tag(tags: Sequence[str]) -> bool:
    return any("qa" in str(tag).lower() for tag in tags or [])


def priority_weight(priority: Optional[str]) -> float:
    """Bonus for completion targets, by task priority"""
    level = (priority or "").strip().upper()
    if is_high_priority(level):
        return 1.2
    if level in ("LOW", "LOWEST"):
        return 0.4
    return 0.8


def qa_tag_weight(tags: Sequence[str]) -> float:
    """Bonus for QA targets: 2 when any tag mentions qa or test, else 1"""
    for tag in tags or []:
        lowered = str(tag).lower()
        if "qa" in lowered or "test" in lowered:
            return 2.0
    return 1.0


def normalize_confidence(best_score: float, spread: float, total: int) -> float:
    """
    Map a raw heuristic score to a confidence in [0, 0.95].

    base = 0.45 + min(best / (best + 5), 0.4)
    relative_spread = min(spread / max(best, 1), 1), or 0.1 with no spread
    crowd = min(1, 2 / total) when more than one candidate, else 1
    confidence = min(0.95, base + 0.1 * relative_spread * crowd), 3 decimals
    """
    if best_score <= 0:
        return 0.0

    if spread > 0:
        relative_spread = min(spread / max(best_score, 1), 1)
    else:
        relative_spread = 0.1

    crowd_factor = min(1, 2 / total) if total > 1 else 1
    base = 0.45 + min(best_score / (best_score + 5), 0.4)
    return min(MAX_CONFIDENCE, round(base + 0.1 * relative_spread * crowd_factor, 3))


class RecommendationScorer:
    """Stateless keyword and history heuristics over eligible transitions"""

    def eligible(
        self,
        current_status_ref: Optional[str],
        candidates: Sequence[TransitionCandidate]
    ) -> List[TransitionCandidate]:
        """Candidates the scorer may suggest, in input order"""
        eligible = []
        for candidate in candidates:
            if candidate.disabled:
                continue
            if not candidate.from_ref or not candidate.to_ref:
                continue
            if candidate.to_ref == current_status_ref:
                continue
            if not candidate.ui_trigger.is_visible:
                continue
            roles = [role for role in candidate.roles if role != RoleMarker.ANY.value]
            if roles:
                continue
            eligible.append(candidate)
        return eligible

    def score(
        self,
        candidate: TransitionCandidate,
        recent_history: Sequence[HistoryHop],
        tags: Sequence[str],
        priority: Optional[str]
    ) -> Tuple[float, List[str]]:
        """Raw score and the reasons that raised it"""
        label = candidate.to_label.lower()
        score = BASE_SCORE
        rationale: List[str] = []

        if "review" in label:
            score += REVIEW_BONUS
            rationale.append(RATIONALE_REVIEW)
        if "qa" in label:
            score += qa_tag_weight(tags)
            if has_qa_tag(tags):
                rationale.append(RATIONALE_QA)
        if "done" in label:
            score += priority_weight(priority)
            if is_high_priority(priority):
                rationale.append(RATIONALE_PRIORITY)
        if "progress" in label:
            score += PROGRESS_BONUS

        if recent_history:
            last = recent_history[-1]
            if last.from_status == candidate.from_ref and last.to_status == candidate.to_ref:
                score += REPEAT_BONUS
                rationale.append(RATIONALE_REPEAT)

        return score, rationale

    def suggest(
        self,
        current_status_ref: Optional[str],
        candidates: Sequence[TransitionCandidate],
        recent_history: Sequence[HistoryHop] = (),
        tags: Sequence[str] = (),
        priority: Optional[str] = None
    ) -> Optional[TransitionSuggestion]:
        """
        Pick the best eligible transition.

        Args:
            current_status_ref: Status the task sits on, in the same reference
                space as the candidates' from/to refs
            candidates: Transitions leaving the current status
            recent_history: Past status changes, oldest first
            tags: Task tags
            priority: Task priority

        Returns:
            The suggestion, or None when nothing is eligible or the
            confidence is below MIN_CONFIDENCE
        """
        eligible = self.eligible(current_status_ref, candidates)
        if not eligible:
            return None

        scored = [(candidate, *self.score(candidate, recent_history, tags, priority)) for candidate in eligible]

        best_candidate, best_score, best_rationale = scored[0]
        for candidate, value, rationale in scored[1:]:
            if value > best_score:
                best_candidate, best_score, best_rationale = candidate, value, rationale

        worst_score = min(value for _, value, _ in scored)
        confidence = normalize_confidence(best_score, best_score - worst_score, len(scored))

        if confidence < MIN_CONFIDENCE:
            logger.debug(
                f"No suggestion: confidence {confidence} below {MIN_CONFIDENCE}",
                extra={"transition_id": best_candidate.transition_id}
            )
            return None

        return TransitionSuggestion(
            transition_id=best_candidate.transition_id,
            transition_key=best_candidate.transition_key or f"{best_candidate.from_ref}::{best_candidate.to_ref}",
            confidence=confidence,
            rationale=best_rationale or [RATIONALE_FALLBACK],
        )
