"""Question catalog for the vocational assessment.

Every survey item is an immutable question object. The concrete class of a
question is its input kind; consumers dispatch on ``question.input_kind`` and
are expected to cover every member of :class:`InputKind`.

The ordered list (``CATALOG.questions``) is the order the intake walks:
sections appear in ``SECTION_ORDER`` and never interleave.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, List, Mapping, Optional, Tuple


class SectionId(str, Enum):
    WARMUP = "warmup"
    INTERESTS = "interests"
    PERSONALITY = "personality"
    APTITUDE = "aptitude"
    SKILLS = "skills"
    VALUES = "values"
    LEARNING_STYLE = "learning_style"
    GOALS = "goals"


SECTION_ORDER: Tuple[SectionId, ...] = tuple(SectionId)


class InputKind(str, Enum):
    SINGLE_CHOICE = "single_choice"
    SCENARIO_CHOICE = "scenario_choice"
    RATING_SCALE = "rating_scale"
    RANKED_MULTI_SELECT = "ranked_multi_select"
    FREE_TEXT = "free_text"
    CHALLENGE_WITH_FOLLOWUP = "challenge_with_followup"


class ScaleType(str, Enum):
    SKILL_CONFIDENCE = "skill_confidence"
    VALUE_IMPORTANCE = "value_importance"
    SKILL_ENJOYMENT = "skill_enjoyment"
    PERSONALITY_AGREEMENT = "personality_agreement"


# Holland codes in their fixed order; this order breaks ties between equal tallies
INTEREST_CODES: Tuple[str, ...] = ("R", "I", "A", "S", "E", "C")
TRAIT_KEYS: Tuple[str, ...] = ("O", "C", "E", "A", "N")
LEARNING_STYLES: Tuple[str, ...] = ("V", "A", "R", "K")
LEARNING_STYLE_NAMES: Dict[str, str] = {
    "V": "Visual",
    "A": "Auditory",
    "R": "Read/Write",
    "K": "Kinesthetic",
}
APTITUDE_AREAS: Tuple[str, ...] = ("verbal", "numerical", "abstract")

RATING_MIN = 1
RATING_MAX = 5
MAX_RANKED_VALUES = 3
HIGH_RATING_THRESHOLD = 4


class InvalidAnswerError(ValueError):
    """An answer value does not fit the question it is recorded against."""

    def __init__(self, question_id: str, message: str):
        super().__init__(f"{question_id}: {message}")
        self.question_id = question_id


@dataclass(frozen=True)
class Option:
    id: str
    text: str
    theme: Optional[str] = None
    learning_style: Optional[str] = None


@dataclass(frozen=True)
class ValueItem:
    id: str
    text: str
    rating_question_id: str

    @property
    def label(self) -> str:
        return self.text.split(": ", 1)[-1]


@dataclass(frozen=True)
class Question:
    id: str
    section_id: SectionId
    text: str

    input_kind: ClassVar[InputKind]


@dataclass(frozen=True)
class _ChoiceQuestion(Question):
    options: Tuple[Option, ...]

    def option(self, option_id: str) -> Optional[Option]:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None


@dataclass(frozen=True)
class SingleChoiceQuestion(_ChoiceQuestion):
    """Plain multiple choice; aptitude items set ``correct_option_id``."""

    correct_option_id: Optional[str] = None
    aptitude_area: Optional[str] = None

    input_kind: ClassVar[InputKind] = InputKind.SINGLE_CHOICE

    @property
    def is_aptitude(self) -> bool:
        return self.correct_option_id is not None


@dataclass(frozen=True)
class ScenarioChoiceQuestion(_ChoiceQuestion):
    input_kind: ClassVar[InputKind] = InputKind.SCENARIO_CHOICE


@dataclass(frozen=True)
class RatingQuestion(Question):
    scale_type: ScaleType
    trait_key: Optional[str] = None
    # negatively framed statement: contributes (6 - rating)
    reverse_scored: bool = False

    input_kind: ClassVar[InputKind] = InputKind.RATING_SCALE


@dataclass(frozen=True)
class RankingQuestion(Question):
    candidates: Tuple[ValueItem, ...]
    depends_on_prior_ratings: bool = True
    max_selections: int = MAX_RANKED_VALUES

    input_kind: ClassVar[InputKind] = InputKind.RANKED_MULTI_SELECT


@dataclass(frozen=True)
class FreeTextQuestion(Question):
    input_kind: ClassVar[InputKind] = InputKind.FREE_TEXT


@dataclass(frozen=True)
class ChallengeQuestion(Question):
    """Short text challenge; its enjoyment rating is the next catalog item."""

    follow_up: RatingQuestion
    multiline: bool = True

    input_kind: ClassVar[InputKind] = InputKind.CHALLENGE_WITH_FOLLOWUP


# ---------------------------------------------------------
# RATING SCALES AND SECTION INTRODUCTIONS
# ---------------------------------------------------------
SCALE_LABELS: Dict[ScaleType, Tuple[str, ...]] = {
    ScaleType.SKILL_CONFIDENCE: (
        "Not Confident", "Slightly Confident", "Moderately Confident", "Confident", "Very Confident",
    ),
    ScaleType.VALUE_IMPORTANCE: (
        "Not Important", "Slightly Important", "Moderately Important", "Important", "Very Important",
    ),
    ScaleType.SKILL_ENJOYMENT: (
        "Strongly Dislike", "Dislike", "Neutral", "Like", "Strongly Like",
    ),
    ScaleType.PERSONALITY_AGREEMENT: (
        "Strongly Disagree", "Disagree", "Neutral", "Agree", "Strongly Agree",
    ),
}

SECTION_INTROS: Dict[SectionId, str] = {
    SectionId.WARMUP: "Let's start with a couple of quick, fun questions to get warmed up!",
    SectionId.INTERESTS: (
        "Now, let's explore what kinds of activities and scenarios you find most interesting (RIASEC). "
        "This helps us understand your natural inclinations."
    ),
    SectionId.PERSONALITY: (
        "This section asks about your typical ways of thinking, feeling, and behaving (Big Five). "
        "There are no right or wrong answers."
    ),
    SectionId.APTITUDE: "Next up are some short challenges designed to gauge different thinking skills. Try your best!",
    SectionId.SKILLS: (
        "This section focuses on your confidence in various practical skills and how much you enjoy "
        "certain types of tasks."
    ),
    SectionId.VALUES: (
        "Work values are important for job satisfaction. Please rate how important each value is to you, "
        "then select your top 3."
    ),
    SectionId.LEARNING_STYLE: "How do you prefer to learn new things? Choose the option that best describes you.",
    SectionId.GOALS: "Finally, let's think about your future aspirations and what motivates you.",
}

DEFAULT_INTRO = "Get ready for the next set of questions!"


def section_title(section_id: SectionId) -> str:
    return section_id.value.replace("_", " ").title()


def scale_labels(scale_type: ScaleType) -> List[dict]:
    return [{"value": i, "label": label} for i, label in enumerate(SCALE_LABELS[scale_type], start=RATING_MIN)]


# ---------------------------------------------------------
# QUESTIONS
# ---------------------------------------------------------
def _opts(*pairs) -> Tuple[Option, ...]:
    return tuple(Option(id=i, text=t) for i, t in pairs)


def _themed(*triples) -> Tuple[Option, ...]:
    return tuple(Option(id=i, text=t, theme=th) for i, t, th in triples)


def _styled(*triples) -> Tuple[Option, ...]:
    return tuple(Option(id=i, text=t, learning_style=ls) for i, t, ls in triples)


WARMUP_QUESTIONS: Tuple[Question, ...] = (
    SingleChoiceQuestion(
        id="warmup_sidekick", section_id=SectionId.WARMUP,
        text="If you could have any animal as your loyal sidekick on daily adventures, which one would you choose?",
        options=_opts(
            ("parrot", "A persuasive parrot"), ("monkey", "A tech-savvy monkey"),
            ("dolphin", "A caring dolphin"), ("owl", "A wise owl"),
            ("chameleon", "A creative chameleon"),
        ),
    ),
    SingleChoiceQuestion(
        id="warmup_superpower", section_id=SectionId.WARMUP,
        text="If you could instantly gain one new superpower, what would it be?",
        options=_opts(
            ("mind_read", "Read minds"), ("teleport", "Teleport anywhere"),
            ("talk_animal", "Talk to animals"), ("strength", "Super strength"),
            ("control_tech", "Control technology"),
        ),
    ),
)

INTEREST_QUESTIONS: Tuple[Question, ...] = (
    ScenarioChoiceQuestion(
        id="interest_scenario_1", section_id=SectionId.INTERESTS,
        text="Imagine you're planning a school event. Which role would you prefer?",
        options=_themed(
            ("1a", "Designing the posters and decorations", "A"),
            ("1b", "Organizing the budget and schedule", "C"),
            ("1c", "Leading the planning committee and delegating tasks", "E"),
            ("1d", "Researching different venue options and comparing them", "I"),
            ("1e", "Setting up the sound system and equipment", "R"),
            ("1f", "Welcoming guests and making sure everyone feels included", "S"),
        ),
    ),
    ScenarioChoiceQuestion(
        id="interest_scenario_2", section_id=SectionId.INTERESTS,
        text="A group project needs finalizing. Which task appeals most?",
        options=_themed(
            ("2a", "Writing the final report and ensuring accuracy", "C"),
            ("2b", "Creating the visual presentation (slides/video)", "A"),
            ("2c", "Presenting the project findings to the class", "E"),
            ("2d", "Analyzing the data collected during the project", "I"),
            ("2e", "Building a physical model or prototype related to the project", "R"),
            ("2f", "Mediating disagreements within the group", "S"),
        ),
    ),
    ScenarioChoiceQuestion(
        id="interest_scenario_3", section_id=SectionId.INTERESTS,
        text="Which after-school club sounds most interesting?",
        options=_themed(
            ("3a", "Robotics club (building things)", "R"),
            ("3b", "Debate club (persuading others)", "E"),
            ("3c", "Art club (creating visuals)", "A"),
            ("3d", "Science Olympiad (investigating problems)", "I"),
            ("3e", "Tutoring club (helping others learn)", "S"),
            ("3f", "Yearbook club (organizing layouts and details)", "C"),
        ),
    ),
    ScenarioChoiceQuestion(
        id="interest_scenario_4", section_id=SectionId.INTERESTS,
        text="You find a complex gadget you've never seen before. What's your first instinct?",
        options=_themed(
            ("4a", "Take it apart to see how it works", "R"),
            ("4b", "Research what it is and how it's used", "I"),
            ("4c", "Imagine cool ways to redesign its look", "A"),
            ("4d", "Ask friends if they know what it is", "S"),
            ("4e", "Think about how you could sell it", "E"),
            ("4f", "Carefully catalogue its features and buttons", "C"),
        ),
    ),
    ScenarioChoiceQuestion(
        id="interest_scenario_5", section_id=SectionId.INTERESTS,
        text="Which part of creating a new mobile app would you enjoy most?",
        options=_themed(
            ("5a", "Coding the app's features", "I"),
            ("5b", "Designing the user interface and icons", "A"),
            ("5c", "Leading the development team", "E"),
            ("5d", "Helping users troubleshoot problems", "S"),
            ("5e", "Carefully testing the app for bugs", "C"),
            ("5f", "Building the hardware it runs on", "R"),
        ),
    ),
)


def _personality(qid: str, trait: str, text: str, reverse: bool = False) -> RatingQuestion:
    return RatingQuestion(
        id=qid, section_id=SectionId.PERSONALITY, text=text,
        scale_type=ScaleType.PERSONALITY_AGREEMENT, trait_key=trait, reverse_scored=reverse,
    )


PERSONALITY_QUESTIONS: Tuple[Question, ...] = (
    _personality("pers_openness_ideas", "O", "I have a vivid imagination and enjoy exploring new ideas."),
    _personality("pers_openness_art", "O", "I appreciate art, beauty, and creative expression."),
    _personality("pers_consc_organized", "C", "I like to keep things organized and follow a plan."),
    _personality("pers_consc_reliable", "C", "I am reliable and always finish tasks I start."),
    _personality("pers_extra_talkative", "E", "I am talkative and enjoy being around people."),
    _personality("pers_extra_energy", "E", "I have a lot of energy and enthusiasm."),
    _personality("pers_agree_helpful", "A", "I am considerate and helpful towards others."),
    _personality("pers_agree_trusting", "A", "I generally trust people and believe in the good of others."),
    # N is tallied as emotional stability, so the worry item counts against it
    _personality("pers_neuro_calm", "N", "I remain calm in stressful situations."),
    _personality("pers_neuro_worry", "N", "I tend to worry about things.", reverse=True),
)

_ABCD = ("a", "b", "c", "d")


def _aptitude(qid: str, area: str, text: str, answers: Tuple[str, ...], correct: str) -> SingleChoiceQuestion:
    return SingleChoiceQuestion(
        id=qid, section_id=SectionId.APTITUDE, text=text,
        options=_opts(*zip(_ABCD, answers)),
        correct_option_id=correct, aptitude_area=area,
    )


APTITUDE_QUESTIONS: Tuple[Question, ...] = (
    _aptitude(
        "apt_verbal_analogy", "verbal",
        "Which word completes the analogy? Tree is to Forest as Soldier is to ______",
        ("Gun", "Army", "Battle", "Uniform"), "b",
    ),
    _aptitude(
        "apt_verbal_meaning", "verbal",
        "Which word is closest in meaning to 'Diligent'?",
        ("Lazy", "Intelligent", "Hardworking", "Careless"), "c",
    ),
    _aptitude(
        "apt_numerical_series", "numerical",
        "What number comes next in the series? 2, 4, 8, 16, ___",
        ("20", "24", "32", "64"), "c",
    ),
    _aptitude(
        "apt_numerical_logic", "numerical",
        "A bat and a ball cost $1.10 in total. The bat costs $1.00 more than the ball. How much does the ball cost?",
        ("$0.05", "$0.10", "$1.00", "$0.15"), "a",
    ),
    _aptitude(
        "apt_abstract_pattern", "abstract",
        "Which shape logically completes the pattern? "
        "(Imagine a sequence: Square, Circle, Triangle, Square, Circle, ___)",
        ("Square", "Circle", "Triangle", "Star"), "c",
    ),
    _aptitude(
        "apt_abstract_odd_one_out", "abstract",
        "Which figure is the odd one out? (Imagine: 3 squares and 1 circle)",
        ("Square 1", "Square 2", "Circle", "Square 3"), "c",
    ),
)


def _skill_rating(qid: str, text: str) -> RatingQuestion:
    return RatingQuestion(id=qid, section_id=SectionId.SKILLS, text=text, scale_type=ScaleType.SKILL_CONFIDENCE)


SKILL_QUESTIONS: Tuple[Question, ...] = (
    ChallengeQuestion(
        id="skill_challenge_creative", section_id=SectionId.SKILLS,
        text="Challenge: Quickly list 3 unusual uses for a paperclip.",
        follow_up=RatingQuestion(
            id="skill_challenge_creative_enjoyment", section_id=SectionId.SKILLS,
            text="How much did you enjoy brainstorming creative ideas like that?",
            scale_type=ScaleType.SKILL_ENJOYMENT,
        ),
    ),
    ScenarioChoiceQuestion(
        id="skill_scenario_presentation", section_id=SectionId.SKILLS,
        text="You need to present a project. Which part are you most comfortable handling?",
        options=_opts(
            ("research", "Researching the topic deeply"),
            ("slides", "Creating the visual slides"),
            ("presenting", "Delivering the oral presentation"),
            ("organizing", "Organizing the team's workflow"),
        ),
    ),
    _skill_rating("skill_rating_technical", "How confident are you in your ability to use technical software or tools?"),
    _skill_rating("skill_rating_detail", "How confident are you in your ability to pay close attention to details?"),
    _skill_rating("skill_rating_teamwork", "How confident are you in your ability to work effectively as part of a team?"),
)

_VALUES = (
    ("achievement", "Achievement: Feeling of accomplishment"),
    ("independence", "Independence: Ability to work on my own"),
    ("recognition", "Recognition: Receiving credit for my work"),
    ("relationships", "Relationships: Positive connections with coworkers"),
    ("support", "Support: Having supportive management"),
    ("working_conditions", "Working Conditions: Comfortable physical environment"),
    ("variety", "Variety: Opportunity to do different things"),
    ("security", "Security: Stable and secure job"),
    ("helping_others", "Helping Others: Contributing to the well-being of others"),
    ("creativity", "Creativity: Opportunity to use my own ideas"),
)

VALUE_ITEMS: Tuple[ValueItem, ...] = tuple(
    ValueItem(id=f"value_{key}", text=text, rating_question_id=f"value_rating_{key}") for key, text in _VALUES
)

VALUE_RANKING_QUESTION_ID = "value_ranking_top3"

VALUE_QUESTIONS: Tuple[Question, ...] = tuple(
    RatingQuestion(
        id=item.rating_question_id, section_id=SectionId.VALUES, text=item.text,
        scale_type=ScaleType.VALUE_IMPORTANCE,
    )
    for item in VALUE_ITEMS
) + (
    RankingQuestion(
        id=VALUE_RANKING_QUESTION_ID, section_id=SectionId.VALUES,
        text=(
            "From the values you rated as 'Important' (4) or 'Very Important' (5), "
            "please select your Top 3 most crucial work values."
        ),
        candidates=VALUE_ITEMS,
        depends_on_prior_ratings=True,
    ),
)

LEARNING_STYLE_QUESTIONS: Tuple[Question, ...] = (
    SingleChoiceQuestion(
        id="learn_style_info", section_id=SectionId.LEARNING_STYLE,
        text="When learning something new, I prefer to:",
        options=_styled(
            ("ls1_v", "Look at diagrams, charts, and pictures.", "V"),
            ("ls1_a", "Listen to someone explain it or discuss it.", "A"),
            ("ls1_r", "Read about it in detail.", "R"),
            ("ls1_k", "Try it out myself, hands-on.", "K"),
        ),
    ),
    SingleChoiceQuestion(
        id="learn_style_remember", section_id=SectionId.LEARNING_STYLE,
        text="I remember things best when I:",
        options=_styled(
            ("ls2_v", "Visualize them in my mind.", "V"),
            ("ls2_a", "Hear them spoken.", "A"),
            ("ls2_r", "Write them down or read notes.", "R"),
            ("ls2_k", "Physically do or practice them.", "K"),
        ),
    ),
    SingleChoiceQuestion(
        id="learn_style_instructions", section_id=SectionId.LEARNING_STYLE,
        text="When following instructions, I prefer:",
        options=_styled(
            ("ls3_v", "Watching a demonstration or seeing pictures.", "V"),
            ("ls3_a", "Listening to verbal instructions.", "A"),
            ("ls3_r", "Reading written instructions.", "R"),
            ("ls3_k", "Jumping in and figuring it out as I go.", "K"),
        ),
    ),
)

GOAL_QUESTIONS: Tuple[Question, ...] = (
    FreeTextQuestion(
        id="goals_subjects", section_id=SectionId.GOALS,
        text="What subjects or activities in school do you enjoy the most right now, and why?",
    ),
    FreeTextQuestion(
        id="goals_problems", section_id=SectionId.GOALS,
        text="Are there any real-world problems or causes you feel passionate about or would like to help solve?",
    ),
    FreeTextQuestion(
        id="goals_future", section_id=SectionId.GOALS,
        text=(
            "Imagine yourself 5 years after finishing your current schooling. "
            "What's one thing you hope you are doing or achieving?"
        ),
    ),
)


# ---------------------------------------------------------
# CATALOG
# ---------------------------------------------------------
class CatalogError(ValueError):
    pass


def _flatten(questions) -> List[Question]:
    flat: List[Question] = []
    for q in questions:
        flat.append(q)
        if isinstance(q, ChallengeQuestion):
            flat.append(q.follow_up)
    return flat


class Catalog:
    """Ordered, validated question list with section lookups."""

    def __init__(self, questions):
        self.questions: Tuple[Question, ...] = tuple(_flatten(questions))
        validate_catalog(self.questions)
        self._index = {q.id: i for i, q in enumerate(self.questions)}
        self.sections: Tuple[SectionId, ...] = tuple(
            s for s in SECTION_ORDER if any(q.section_id == s for q in self.questions)
        )

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self):
        return iter(self.questions)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._index

    def get(self, question_id: str) -> Optional[Question]:
        idx = self._index.get(question_id)
        return None if idx is None else self.questions[idx]

    def index_of(self, question_id: str) -> int:
        return self._index[question_id]

    def section_questions(self, section_id: SectionId) -> List[Question]:
        return [q for q in self.questions if q.section_id == section_id]

    def first_index_of(self, section_id: SectionId) -> int:
        for i, q in enumerate(self.questions):
            if q.section_id == section_id:
                return i
        raise KeyError(section_id)

    def section_answers(self, section_id: SectionId, answers: Mapping[str, object]) -> Dict[str, object]:
        """The subset of ``answers`` that belongs to ``section_id``, in catalog order."""
        return {q.id: answers[q.id] for q in self.section_questions(section_id) if q.id in answers}


def validate_catalog(questions) -> None:
    seen = set()
    section_rank = {s: i for i, s in enumerate(SECTION_ORDER)}
    last_rank = -1
    for q in questions:
        if q.id in seen:
            raise CatalogError(f"duplicate question id {q.id!r}")
        seen.add(q.id)

        rank = section_rank[q.section_id]
        if rank < last_rank:
            raise CatalogError(f"question {q.id!r} breaks section order")
        last_rank = rank

        if isinstance(q, _ChoiceQuestion):
            option_ids = [o.id for o in q.options]
            if not option_ids or len(set(option_ids)) != len(option_ids):
                raise CatalogError(f"question {q.id!r} has missing or duplicate option ids")
            for o in q.options:
                if o.theme is not None and o.theme not in INTEREST_CODES:
                    raise CatalogError(f"question {q.id!r} option {o.id!r} has unknown theme {o.theme!r}")
                if o.learning_style is not None and o.learning_style not in LEARNING_STYLES:
                    raise CatalogError(f"question {q.id!r} option {o.id!r} has unknown style {o.learning_style!r}")
        if isinstance(q, SingleChoiceQuestion) and q.is_aptitude:
            if q.option(q.correct_option_id) is None:
                raise CatalogError(f"question {q.id!r} correct option is not offered")
            if q.aptitude_area not in APTITUDE_AREAS:
                raise CatalogError(f"question {q.id!r} has unknown aptitude area {q.aptitude_area!r}")
        if isinstance(q, RatingQuestion) and q.trait_key is not None and q.trait_key not in TRAIT_KEYS:
            raise CatalogError(f"question {q.id!r} has unknown trait {q.trait_key!r}")


CATALOG = Catalog(
    WARMUP_QUESTIONS
    + INTEREST_QUESTIONS
    + PERSONALITY_QUESTIONS
    + APTITUDE_QUESTIONS
    + SKILL_QUESTIONS
    + VALUE_QUESTIONS
    + LEARNING_STYLE_QUESTIONS
    + GOAL_QUESTIONS
)


# ---------------------------------------------------------
# ANSWER CHECKS
# ---------------------------------------------------------
def is_answered(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def ranking_candidates(question: RankingQuestion, answers: Mapping[str, object]) -> List[ValueItem]:
    """Value items the user may rank: those rated 4 or 5 when ratings gate the list."""
    if not question.depends_on_prior_ratings:
        return list(question.candidates)
    eligible = []
    for item in question.candidates:
        rating = answers.get(item.rating_question_id)
        if isinstance(rating, int) and not isinstance(rating, bool) and rating >= HIGH_RATING_THRESHOLD:
            eligible.append(item)
    return eligible


def validate_answer(question: Question, value, answers: Mapping[str, object]):
    """Return the answer in its canonical shape or raise InvalidAnswerError."""
    kind = question.input_kind
    if kind in (InputKind.SINGLE_CHOICE, InputKind.SCENARIO_CHOICE):
        if not isinstance(value, str) or question.option(value) is None:
            raise InvalidAnswerError(question.id, f"{value!r} is not one of the offered options")
        return value
    if kind is InputKind.RATING_SCALE:
        if isinstance(value, bool) or not isinstance(value, int) or not RATING_MIN <= value <= RATING_MAX:
            raise InvalidAnswerError(question.id, f"rating must be an integer {RATING_MIN}-{RATING_MAX}")
        return value
    if kind is InputKind.RANKED_MULTI_SELECT:
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise InvalidAnswerError(question.id, "ranking must be a list of value ids")
        if len(value) > question.max_selections:
            raise InvalidAnswerError(question.id, f"at most {question.max_selections} values may be ranked")
        if len(set(value)) != len(value):
            raise InvalidAnswerError(question.id, "ranking contains duplicate values")
        allowed = {item.id for item in ranking_candidates(question, answers)}
        unknown = [v for v in value if v not in allowed]
        if unknown:
            raise InvalidAnswerError(question.id, f"values {unknown} were not rated important")
        return list(value)
    if kind in (InputKind.FREE_TEXT, InputKind.CHALLENGE_WITH_FOLLOWUP):
        if not isinstance(value, str):
            raise InvalidAnswerError(question.id, "answer must be text")
        return value
    raise TypeError(f"unhandled input kind {kind!r}")


def serialize_question(question: Question) -> dict:
    data = {
        "id": question.id,
        "section_id": question.section_id.value,
        "text": question.text,
        "input_kind": question.input_kind.value,
    }
    if isinstance(question, _ChoiceQuestion):
        data["options"] = [
            {k: v for k, v in (("id", o.id), ("text", o.text), ("theme", o.theme),
                               ("learning_style", o.learning_style)) if v is not None}
            for o in question.options
        ]
    if isinstance(question, RatingQuestion):
        data["scale_type"] = question.scale_type.value
        data["scale"] = scale_labels(question.scale_type)
    if isinstance(question, RankingQuestion):
        data["depends_on_prior_ratings"] = question.depends_on_prior_ratings
        data["max_selections"] = question.max_selections
        data["candidates"] = [{"id": v.id, "text": v.text} for v in question.candidates]
    if isinstance(question, ChallengeQuestion):
        data["follow_up_id"] = question.follow_up.id
        data["multiline"] = question.multiline
    return data
