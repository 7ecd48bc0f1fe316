import pytest

from database import Base, engine
from models import SectionRecord
from persistence import PersistenceError, PersistenceGateway
from schemas import AptitudeScores, ScoreBundle, SuggestedProfile


def _bundle(**kw):
    data = dict(
        riasec_scores={"R": 1, "I": 0, "A": 2, "S": 0, "E": 0, "C": 0},
        personality_scores={"O": 5, "C": 0, "E": 0, "A": 0, "N": 1},
        aptitude_scores=AptitudeScores(verbalCorrect=1, totalCorrect=1, totalAttempted=2),
        learning_style="Visual",
        work_values=["value_security"],
        raw_responses_snapshot={"interest_scenario_1": "1a", "pers_neuro_worry": 5},
    )
    data.update(kw)
    return ScoreBundle(**data)


def test_section_save_overwrites_existing_row(db):
    gw = PersistenceGateway(db)
    assert gw.save_section("u1", "main_vocational", "warmup", {"warmup_sidekick": "owl"})
    assert gw.save_section("u1", "main_vocational", "warmup", {"warmup_sidekick": "parrot", "warmup_superpower": "teleport"})

    rows = db.query(SectionRecord).filter_by(user_id="u1").all()
    assert len(rows) == 1
    assert gw.load_sections("u1", "main_vocational") == [
        ("warmup", {"warmup_sidekick": "parrot", "warmup_superpower": "teleport"}),
    ]


def test_sections_are_scoped_by_assessment(db):
    gw = PersistenceGateway(db)
    gw.save_section("u1", "main_vocational", "warmup", {"warmup_sidekick": "owl"})
    gw.save_section("u1", "pilot", "warmup", {"warmup_sidekick": "parrot"})
    assert gw.load_sections("u1", "pilot") == [("warmup", {"warmup_sidekick": "parrot"})]
    assert gw.users_with_sections("main_vocational") == ["u1"]


def test_empty_section_is_not_written(db):
    gw = PersistenceGateway(db)
    assert gw.save_section("u1", "main_vocational", "goals", {}) is False
    assert gw.load_sections("u1", "main_vocational") == []


def test_section_save_requires_keys(db):
    with pytest.raises(ValueError):
        PersistenceGateway(db).save_section("", "main_vocational", "warmup", {"warmup_sidekick": "owl"})


def test_score_bundle_round_trip(db):
    gw = PersistenceGateway(db)
    gw.save_score_bundle("u1", _bundle())
    assert gw.load_score_bundle("u1") == _bundle()

    gw.save_score_bundle("u1", _bundle(work_values=None, learning_style="Not determined"))
    loaded = gw.load_score_bundle("u1")
    assert loaded.work_values is None
    assert loaded.learning_style == "Not determined"
    assert gw.load_score_bundle("nobody") is None


def test_suggested_profile_round_trip(db):
    gw = PersistenceGateway(db)
    gw.save_suggested_profile(SuggestedProfile(
        user_id="u1", top_interest_codes=["A", "R"], suggested_occupation_codes=["27-1024.00"],
    ))
    profile = gw.load_suggested_profile("u1")
    assert profile.top_interest_codes == ["A", "R"]
    assert profile.suggested_occupation_codes == ["27-1024.00"]
    assert profile.updated_at is not None


def test_empty_suggestions_are_stored_as_null(db):
    from models import SuggestedProfileRecord

    gw = PersistenceGateway(db)
    gw.save_suggested_profile(SuggestedProfile(user_id="u1"))
    row = db.get(SuggestedProfileRecord, "u1")
    assert row.assessment_summary is None
    assert row.suggested_onet_codes is None
    assert gw.load_suggested_profile("u1").suggested_occupation_codes == []


def test_analysis_upsert(db):
    gw = PersistenceGateway(db)
    gw.save_analysis("u1", "main_vocational", "report", "story", True)
    gw.save_analysis("u1", "main_vocational", "report 2", "story 2", False)
    row = gw.load_analysis("u1", "main_vocational")
    assert (row.structured_report, row.narrative_story, row.success) == ("report 2", "story 2", False)


def test_write_failure_raises_persistence_error(db):
    Base.metadata.drop_all(bind=engine)
    gw = PersistenceGateway(db)
    with pytest.raises(PersistenceError):
        gw.save_section("u1", "main_vocational", "warmup", {"warmup_sidekick": "owl"})
    with pytest.raises(PersistenceError):
        gw.load_sections("u1", "main_vocational")


def test_read_failures_raise_persistence_error(db):
    Base.metadata.drop_all(bind=engine)
    gw = PersistenceGateway(db)
    with pytest.raises(PersistenceError):
        gw.load_score_bundle("u1")
    with pytest.raises(PersistenceError):
        gw.load_suggested_profile("u1")
    with pytest.raises(PersistenceError):
        gw.load_analysis("u1", "main_vocational")
    with pytest.raises(PersistenceError):
        gw.users_with_sections("main_vocational")
