import random

from catalog import CATALOG, VALUE_RANKING_QUESTION_ID
from conftest import full_answers
from recommendation import top_interest_codes
from scoring import NOT_DETERMINED, dominant_learning_style, score_answers


def test_empty_answer_set_scores_nothing():
    bundle = score_answers({})
    assert bundle.riasec_scores == {"R": 0, "I": 0, "A": 0, "S": 0, "E": 0, "C": 0}
    assert bundle.personality_scores == {"O": 0, "C": 0, "E": 0, "A": 0, "N": 0}
    assert bundle.aptitude_scores.model_dump() == {
        "verbalCorrect": 0,
        "numericalCorrect": 0,
        "abstractCorrect": 0,
        "totalCorrect": 0,
        "totalAttempted": 0,
    }
    assert bundle.learning_style == NOT_DETERMINED
    assert bundle.work_values is None
    assert bundle.raw_responses_snapshot == {}


def test_interest_and_aptitude_scenario():
    answers = {
        "interest_scenario_1": "1a",  # A
        "interest_scenario_2": "2b",  # A
        "interest_scenario_3": "3a",  # R
        "apt_verbal_analogy": "b",  # correct
        "apt_numerical_series": "a",  # wrong
    }
    bundle = score_answers(answers)

    assert bundle.riasec_scores["A"] == 2
    assert bundle.riasec_scores["R"] == 1
    assert sum(bundle.riasec_scores.values()) == 3
    assert bundle.aptitude_scores.verbalCorrect == 1
    assert bundle.aptitude_scores.numericalCorrect == 0
    assert bundle.aptitude_scores.totalCorrect == 1
    assert bundle.aptitude_scores.totalAttempted == 2
    assert top_interest_codes(bundle.riasec_scores) == ["A", "R"]


def test_reverse_scored_item_inverts_rating():
    assert score_answers({"pers_neuro_worry": 5}).personality_scores["N"] == 1
    assert score_answers({"pers_neuro_worry": 1}).personality_scores["N"] == 5
    assert score_answers({"pers_neuro_calm": 5}).personality_scores["N"] == 5
    assert score_answers({"pers_neuro_calm": 4, "pers_neuro_worry": 2}).personality_scores["N"] == 8


def test_ratings_add_to_their_trait():
    bundle = score_answers({"pers_openness_ideas": 5, "pers_openness_art": 3, "pers_agree_helpful": 2})
    assert bundle.personality_scores == {"O": 8, "C": 0, "E": 0, "A": 2, "N": 0}


def test_skill_ratings_and_unthemed_scenarios_do_not_score():
    bundle = score_answers({
        "skill_scenario_presentation": "slides",
        "skill_rating_technical": 5,
        "skill_challenge_creative_enjoyment": 5,
        "value_rating_security": 5,
    })
    assert sum(bundle.riasec_scores.values()) == 0
    assert sum(bundle.personality_scores.values()) == 0


def test_unknown_option_is_ignored():
    bundle = score_answers({"interest_scenario_1": "nope", "learn_style_info": "nope"})
    assert sum(bundle.riasec_scores.values()) == 0
    assert bundle.learning_style == NOT_DETERMINED


def test_dominant_learning_style():
    bundle = score_answers({"learn_style_info": "ls1_k", "learn_style_remember": "ls2_k", "learn_style_instructions": "ls3_v"})
    assert bundle.learning_style == "Kinesthetic"


def test_learning_style_tie_lists_all_in_fixed_order():
    bundle = score_answers({"learn_style_info": "ls1_k", "learn_style_remember": "ls2_v"})
    assert bundle.learning_style == "Visual/Kinesthetic"
    assert dominant_learning_style({"V": 1, "A": 1, "R": 1, "K": 1}) == "Visual/Auditory/Read/Write/Kinesthetic"


def test_value_ranking_copied_through():
    ranked = ["value_security", "value_variety"]
    assert score_answers({VALUE_RANKING_QUESTION_ID: ranked}).work_values == ranked


def test_over_length_ranking_is_truncated():
    ranked = ["value_security", "value_variety", "value_support", "value_creativity"]
    assert score_answers({VALUE_RANKING_QUESTION_ID: ranked}).work_values == ranked[:3]


def test_scoring_is_idempotent():
    answers = full_answers()
    first = score_answers(answers)
    second = score_answers(answers)
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_answer_insertion_order_does_not_matter():
    answers = full_answers()
    items = list(answers.items())
    random.Random(7).shuffle(items)
    assert score_answers(dict(items)) == score_answers(answers)


def test_full_answer_set_totals():
    bundle = score_answers(full_answers())
    # first option of every interest scenario
    assert bundle.riasec_scores == {"R": 2, "I": 1, "A": 1, "S": 0, "E": 0, "C": 1}
    # every rating answered 4; worry item reversed to 2
    assert bundle.personality_scores == {"O": 8, "C": 8, "E": 8, "A": 8, "N": 6}
    assert bundle.aptitude_scores.totalAttempted == 6
    assert bundle.learning_style == "Visual"
    assert len(bundle.work_values) == 3
    assert list(bundle.raw_responses_snapshot) == [q.id for q in CATALOG]


def test_null_answers_are_treated_as_unanswered():
    bundle = score_answers({"warmup_sidekick": None, "interest_scenario_1": "1a", VALUE_RANKING_QUESTION_ID: None})
    assert bundle.riasec_scores["A"] == 1
    assert bundle.work_values is None
    assert bundle.raw_responses_snapshot == {"interest_scenario_1": "1a"}


def test_non_text_ranked_entries_are_dropped():
    bundle = score_answers({VALUE_RANKING_QUESTION_ID: ["value_security", 7, None]})
    assert bundle.work_values == ["value_security"]
