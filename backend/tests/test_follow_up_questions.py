"""Tests for the follow-up question generator."""

from telehealth.schemas.base import QuestionType
from telehealth.services.condition_scorer import score
from telehealth.services.differential_ranker import rank
from telehealth.services.follow_up_questions import (
    MAX_FOLLOW_UP_QUESTIONS,
    _template_for,
    generate_questions,
)
from telehealth.services.symptom_normalizer import normalize


def _setup(*symptoms: dict):
    normalized = normalize(list(symptoms))
    return rank(score(normalized), normalized), normalized


class TestGenerateQuestions:
    """Tests for generate_questions()."""

    def test_fewer_than_two_candidates(self) -> None:
        """Test no questions are asked without a differential."""
        ranked, normalized = _setup({"name": "painful urination"})

        assert len(ranked) == 1
        assert generate_questions(ranked, normalized) == []
        assert generate_questions([], normalized) == []

    def test_single_pair(self) -> None:
        """Test one pair yields the symptom with the largest weight difference."""
        ranked, normalized = _setup({"name": "headache"}, {"name": "nausea"})
        questions = generate_questions(ranked[:2], normalized)

        assert len(questions) == 1
        question = questions[0]
        assert question.id == "q_light_sensitivity"
        assert question.symptom_key == "light_sensitivity"
        assert question.priority == 0.7
        assert question.reduces_uncertainty == ("tension_headache", "migraine")
        assert question.purpose == "Helps tell apart Tension Headache and Migraine"
        assert question.type == QuestionType.YES_NO

    def test_highest_priority_first(self) -> None:
        """Test questions are ordered by priority."""
        ranked, normalized = _setup({"name": "headache"}, {"name": "nausea"})
        questions = generate_questions(ranked, normalized)

        assert questions[0].symptom_key == "stiff_neck"
        assert questions[0].priority == 1.0
        priorities = [q.priority for q in questions]
        assert priorities == sorted(priorities, reverse=True)

    def test_reported_symptoms_never_asked(self) -> None:
        """Test questions only cover symptoms that were not reported."""
        ranked, normalized = _setup({"name": "headache"}, {"name": "nausea"})
        keys = {q.symptom_key for q in generate_questions(ranked, normalized)}

        assert "headache" not in keys
        assert "nausea" not in keys

    def test_bounded(self) -> None:
        """Test the number of questions is bounded."""
        ranked, normalized = _setup({"name": "headache"}, {"name": "nausea"})

        assert len(generate_questions(ranked, normalized)) <= MAX_FOLLOW_UP_QUESTIONS
        assert len(generate_questions(ranked, normalized, max_questions=2)) == 2

    def test_merged_question_lists_all_conditions(self) -> None:
        """Test a symptom chosen for several pairs names every condition it separates."""
        ranked, normalized = _setup({"name": "headache"}, {"name": "nausea"})
        stiff_neck = next(q for q in generate_questions(ranked, normalized) if q.symptom_key == "stiff_neck")

        assert "meningitis" in stiff_neck.reduces_uncertainty
        assert len(stiff_neck.reduces_uncertainty) >= 2
        rank_order = [c.id for c in ranked]
        positions = [rank_order.index(i) for i in stiff_neck.reduces_uncertainty]
        assert positions == sorted(positions)

    def test_question_text_from_template(self) -> None:
        """Test known symptoms use their templated wording and options."""
        ranked, normalized = _setup({"name": "headache"}, {"name": "nausea"})
        stiff_neck = next(q for q in generate_questions(ranked, normalized) if q.symptom_key == "stiff_neck")

        assert stiff_neck.question == "Is your neck stiff or painful when you bend your head forward?"
        assert _template_for("headache").type == QuestionType.SELECT
        assert len(_template_for("headache").options) == 4

    def test_fallback_question(self) -> None:
        """Test symptoms without a template get a generic yes/no question."""
        template = _template_for("chest_tightness")

        assert template.question == "Do you also have chest tightness?"
        assert template.type == QuestionType.YES_NO
        assert template.options == ()
