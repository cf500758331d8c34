import pytest

from salescoach.models.models import Behavior, Step, Substep
from salescoach.utils.rubric import DEFAULT_RUBRIC, seed_default_rubric, split_behavior_description, validate_rubric


class TestSplitBehaviorDescription:
    def test_single_behavior(self):
        assert split_behavior_description("Plans calls a week ahead") == ["Plans calls a week ahead"]

    def test_splits_on_semicolon_and_strips(self):
        assert split_behavior_description("Is calm; Is genuine ;") == ["Is calm", "Is genuine"]


class TestValidateRubric:
    def test_default_rubric_is_valid(self):
        assert validate_rubric(DEFAULT_RUBRIC) == []

    def test_invalid_level_reported(self):
        rubric = [{"title": "Opening", "substeps": [("Greeting", [(5, "Says hello")])]}]
        errors = validate_rubric(rubric)
        assert len(errors) == 1
        assert "Invalid proficiency level 5" in errors[0]

    def test_missing_title_and_empty_description(self):
        rubric = [{"title": "", "substeps": [("Greeting", [(1, " ; ")])]}]
        assert len(validate_rubric(rubric)) == 2


class TestSeedDefaultRubric:
    def test_seeds_all_steps_and_behaviors(self, db):
        assert seed_default_rubric(db) == 103
        titles = [step.title for step in db.query(Step).order_by(Step.order)]
        assert titles == [
            "Preparation", "Opening", "Need Dialog", "Solution Dialog",
            "Objection Resolution", "Asking for Commitment", "Follow up",
        ]
        assert db.query(Behavior).count() == 103

    def test_behaviors_per_step(self, db):
        seed_default_rubric(db)
        preparation = db.query(Step).filter(Step.title == "Preparation").one()
        assert sum(len(substep.behaviors) for substep in preparation.substeps) == 21
        assert all(step.target_score == 3 for step in db.query(Step))

    def test_compound_descriptions_are_split_in_order(self, db):
        seed_default_rubric(db)
        rapport = db.query(Substep).filter(Substep.title == "Maintaining rapport").one()
        assert [b.order for b in rapport.behaviors] == [1, 2, 3, 4, 5, 6]
        assert [b.description for b in rapport.behaviors if b.proficiency_level == 2] == [
            "Demonstrates appreciation for the client's business",
            "Personalises the Close",
            "Is genuine",
        ]

    def test_objection_handling_split(self, db):
        seed_default_rubric(db)
        substep = db.query(Substep).filter(Substep.title == "Objection handling").one()
        assert len(substep.behaviors) == 9
        assert sum(1 for b in substep.behaviors if b.proficiency_level == 4) == 4

    def test_descriptions_keep_backslash_text(self, db):
        seed_default_rubric(db)
        descriptions = {b.description for b in db.query(Behavior)}
        assert "Prepares a hook\\hinge" in descriptions
        assert "Creates interest with a catchy hook/hinge" in descriptions
        assert any("customer\\technical, market knowledge" in d for d in descriptions)
        assert any(d.startswith("Raises an issue\\challenge") and "him\\her" in d for d in descriptions)

    def test_second_seed_is_skipped(self, db):
        seed_default_rubric(db)
        assert seed_default_rubric(db) == 0
        assert db.query(Step).count() == 7

    def test_invalid_rubric_raises(self, db):
        with pytest.raises(ValueError):
            seed_default_rubric(db, [{"title": "Broken", "substeps": [("Only", [(0, "Nothing")])]}])
        assert db.query(Step).count() == 0

    def test_custom_rubric(self, db):
        rubric = [{"title": "Opening", "description": "Start", "substeps": [("Greeting", [(1, "Says hello; Smiles")])]}]
        assert seed_default_rubric(db, rubric) == 2
        step = db.query(Step).one()
        assert step.order == 1
        assert step.substeps[0].title == "Greeting"
