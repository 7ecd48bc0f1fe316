import logging
from typing import Callable, Dict, Mapping

from catalog import (
    APTITUDE_AREAS,
    CATALOG,
    INTEREST_CODES,
    LEARNING_STYLE_NAMES,
    LEARNING_STYLES,
    MAX_RANKED_VALUES,
    RATING_MAX,
    RATING_MIN,
    TRAIT_KEYS,
    Catalog,
    InputKind,
    Question,
)
from schemas import AptitudeScores, ScoreBundle

logger = logging.getLogger(__name__)

NOT_DETERMINED = "Not determined"


class _Tallies:
    """Mutable counters for one scoring run."""

    def __init__(self):
        self.riasec = {code: 0 for code in INTEREST_CODES}
        self.personality = {trait: 0 for trait in TRAIT_KEYS}
        self.aptitude_correct = {area: 0 for area in APTITUDE_AREAS}
        self.aptitude_attempted = 0
        self.learning_styles = {style: 0 for style in LEARNING_STYLES}
        self.work_values = None


# ---------------------------------------------------------
# PER-KIND SCORERS
# ---------------------------------------------------------
def _score_single_choice(question, answer, tallies: _Tallies):
    if question.is_aptitude:
        tallies.aptitude_attempted += 1
        if answer == question.correct_option_id:
            tallies.aptitude_correct[question.aptitude_area] += 1
        return
    chosen = question.option(answer)
    if chosen is not None and chosen.learning_style in tallies.learning_styles:
        tallies.learning_styles[chosen.learning_style] += 1


def _score_scenario_choice(question, answer, tallies: _Tallies):
    chosen = question.option(answer)
    # skills scenarios carry no theme and contribute nothing
    if chosen is not None and chosen.theme in tallies.riasec:
        tallies.riasec[chosen.theme] += 1


def _score_rating(question, answer, tallies: _Tallies):
    if question.trait_key is None:
        return
    try:
        rating = int(answer)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric rating for %s: %r", question.id, answer)
        return
    if not RATING_MIN <= rating <= RATING_MAX:
        logger.warning("Ignoring out-of-range rating for %s: %r", question.id, answer)
        return
    if question.reverse_scored:
        rating = (RATING_MAX + RATING_MIN) - rating
    tallies.personality[question.trait_key] += rating


def _score_ranking(question, answer, tallies: _Tallies):
    if not isinstance(answer, (list, tuple)):
        return
    if len(answer) > MAX_RANKED_VALUES:
        logger.warning("Truncating %d ranked values for %s", len(answer), question.id)
    tallies.work_values = [v for v in answer if isinstance(v, str)][:MAX_RANKED_VALUES]


def _score_nothing(question, answer, tallies: _Tallies):
    pass


_SCORERS: Dict[InputKind, Callable[[Question, object, _Tallies], None]] = {
    InputKind.SINGLE_CHOICE: _score_single_choice,
    InputKind.SCENARIO_CHOICE: _score_scenario_choice,
    InputKind.RATING_SCALE: _score_rating,
    InputKind.RANKED_MULTI_SELECT: _score_ranking,
    InputKind.FREE_TEXT: _score_nothing,
    InputKind.CHALLENGE_WITH_FOLLOWUP: _score_nothing,
}

_missing = set(InputKind) - set(_SCORERS)
if _missing:
    raise RuntimeError(f"scoring has no rule for input kinds {sorted(k.value for k in _missing)}")


def dominant_learning_style(counts: Mapping[str, int]) -> str:
    """Argmax over the style counts; ties are joined with '/' in V, A, R, K order."""
    best = max(counts.values(), default=0)
    if best == 0:
        return NOT_DETERMINED
    return "/".join(LEARNING_STYLE_NAMES[s] for s in LEARNING_STYLES if counts.get(s, 0) == best)


# ---------------------------------------------------------
# MAIN ENTRYPOINT
# ---------------------------------------------------------
def score_answers(answers: Mapping[str, object], catalog: Catalog = CATALOG) -> ScoreBundle:
    """Turn the full answer set into raw tallies.

    Walks the catalog in order; questions with no answer are skipped and
    never affect a tally. No normalization is applied.
    """
    tallies = _Tallies()
    for question in catalog:
        answer = answers.get(question.id)
        if answer is None:
            continue
        _SCORERS[question.input_kind](question, answer, tallies)

    correct = tallies.aptitude_correct
    aptitude = AptitudeScores(
        verbalCorrect=correct["verbal"],
        numericalCorrect=correct["numerical"],
        abstractCorrect=correct["abstract"],
        totalCorrect=sum(correct.values()),
        totalAttempted=tallies.aptitude_attempted,
    )
    learning_style = dominant_learning_style(tallies.learning_styles)

    logger.info("Calculated RIASEC: %s", tallies.riasec)
    logger.info("Calculated Personality: %s", tallies.personality)
    logger.info("Calculated Aptitude: %s", aptitude.model_dump())
    logger.info("Determined Learning Style: %s", learning_style)
    logger.info("Processed Work Values: %s", tallies.work_values)

    # null entries count as unanswered, as in the tally loop
    snapshot = {q.id: answers[q.id] for q in catalog if answers.get(q.id) is not None}
    return ScoreBundle(
        riasec_scores=tallies.riasec,
        personality_scores=tallies.personality,
        aptitude_scores=aptitude,
        learning_style=learning_style,
        work_values=tallies.work_values,
        raw_responses_snapshot=snapshot,
    )
