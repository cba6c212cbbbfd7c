"""Tests for the insight registry: catalogue completeness, role gating and dispatch."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from officehours.models import Role
from officehours.services.insights import registry
from officehours.services.insights.filters import (
    COURSE_ID,
    TIMEFRAME,
    EntityKind,
    Filter,
    FilterConfigurationError,
)
from officehours.services.insights.outputs import (
    BarChartOutput,
    InsightComponent,
    InsightSize,
    SimpleDisplayOutput,
)
from officehours.services.insights.registry import (
    INSIGHTS,
    InsightContractError,
    InsightDefinition,
    InsightForbiddenError,
    InsightNotFoundError,
    compute_insight,
    get_insight,
    list_insights,
)

EXPECTED_COMPONENTS = {
    "TotalStudents": InsightComponent.SIMPLE_DISPLAY,
    "TotalQuestionsAsked": InsightComponent.SIMPLE_DISPLAY,
    "MedianWaitTime": InsightComponent.SIMPLE_DISPLAY,
    "QuestionTypeBreakdown": InsightComponent.BAR_CHART,
    "MostActiveStudents": InsightComponent.SIMPLE_TABLE,
    "QuestionToStudentRatio": InsightComponent.SIMPLE_DISPLAY,
    "MedianHelpingTime": InsightComponent.SIMPLE_DISPLAY,
}


def _definition(name="Fake", component=InsightComponent.SIMPLE_DISPLAY, compute=None, **kwargs):
    return InsightDefinition(
        name=name,
        display_name="Fake Insight",
        description="Used in tests",
        roles=frozenset({Role.PROFESSOR}),
        component=component,
        size=InsightSize.SMALL,
        compute=compute or AsyncMock(return_value=SimpleDisplayOutput(value=1)),
        **kwargs,
    )


def _mock_db():
    db = AsyncMock()
    db.execute = AsyncMock()
    return db


# ── Catalogue ─────────────────────────────────────

class TestInsightCatalogue:
    def test_all_insights_registered(self):
        assert set(INSIGHTS) == set(EXPECTED_COMPONENTS)

    def test_components(self):
        for name, component in EXPECTED_COMPONENTS.items():
            assert INSIGHTS[name].component == component, name

    def test_professor_only(self):
        for definition in INSIGHTS.values():
            assert definition.roles == frozenset({Role.PROFESSOR})

    def test_sizes(self):
        assert INSIGHTS["QuestionTypeBreakdown"].size == InsightSize.DEFAULT
        assert INSIGHTS["MostActiveStudents"].size == InsightSize.DEFAULT
        assert INSIGHTS["TotalStudents"].size == InsightSize.SMALL

    def test_name_matches_key(self):
        for name, definition in INSIGHTS.items():
            assert definition.name == name

    def test_question_insights_accept_course_and_timeframe(self):
        for name in ("TotalQuestionsAsked", "MedianWaitTime", "MedianHelpingTime",
                     "QuestionTypeBreakdown", "MostActiveStudents"):
            assert INSIGHTS[name].entity == EntityKind.QUESTION
            assert set(INSIGHTS[name].allowed_filters) == {COURSE_ID, TIMEFRAME}

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            INSIGHTS["Extra"] = _definition()

    def test_get_insight(self):
        assert get_insight("TotalStudents").display_name == "Total Students"

    def test_get_unknown_insight(self):
        with pytest.raises(InsightNotFoundError):
            get_insight("NotAnInsight")


class TestListInsights:
    def test_lists_every_insight(self):
        listing = list_insights()
        assert set(listing) == set(EXPECTED_COMPONENTS)

    def test_metadata_fields(self):
        meta = list_insights()["QuestionTypeBreakdown"]
        assert meta == {
            "name": "QuestionTypeBreakdown",
            "display_name": "Question Type Breakdown",
            "description": "What is the distribution of student-selected question-types on the question form?",
            "component": "BarChart",
            "size": "default",
            "roles": ["professor"],
            "allowed_filters": ["courseId", "timeframe"],
        }

    def test_ratio_advertises_filters_of_both_counts(self):
        meta = list_insights()["QuestionToStudentRatio"]
        assert meta["allowed_filters"] == ["courseId", "timeframe", "role"]
        assert INSIGHTS["QuestionToStudentRatio"].entity is None

    def test_most_active_description_names_limit(self):
        assert "(limit 75)" in list_insights()["MostActiveStudents"]["description"]


# ── Definition validation ─────────────────────────

class TestInsightDefinition:
    def test_unsupported_filter_rejected_at_construction(self):
        with pytest.raises(FilterConfigurationError):
            _definition(entity=EntityKind.ENROLLMENT, allowed_filters=(COURSE_ID, TIMEFRAME))

    def test_derived_insight_skips_validation(self):
        definition = _definition(allowed_filters=("anything",))
        assert definition.entity is None

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            registry._build_registry([_definition(), _definition()])

    def test_metadata_sorts_roles(self):
        definition = InsightDefinition(
            name="Fake",
            display_name="Fake",
            description="",
            roles=frozenset({Role.TA, Role.PROFESSOR}),
            component=InsightComponent.SIMPLE_DISPLAY,
            size=InsightSize.SMALL,
            compute=AsyncMock(),
        )
        assert definition.metadata()["roles"] == ["professor", "ta"]


# ── compute_insight ───────────────────────────────

class TestComputeInsight:
    @pytest.mark.asyncio
    async def test_unknown_insight(self):
        db = _mock_db()
        with pytest.raises(InsightNotFoundError):
            await compute_insight(db, "NotAnInsight", Role.PROFESSOR, [])
        db.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.STUDENT, Role.TA, None, "student", "dean"])
    async def test_forbidden_roles_issue_no_queries(self, role):
        db = _mock_db()
        with pytest.raises(InsightForbiddenError):
            await compute_insight(db, "TotalStudents", role, [])
        assert db.execute.await_count == 0

    @pytest.mark.asyncio
    async def test_dispatches_to_compute_with_filters(self, monkeypatch):
        compute = AsyncMock(return_value=SimpleDisplayOutput(value=42))
        monkeypatch.setattr(registry, "INSIGHTS", {"Fake": _definition(compute=compute)})
        db = _mock_db()
        filters = [Filter(type=COURSE_ID, courseId=7)]

        output = await compute_insight(db, "Fake", Role.PROFESSOR, filters)

        assert output.payload() == 42
        compute.assert_awaited_once_with(db, filters)

    @pytest.mark.asyncio
    async def test_role_given_as_string(self, monkeypatch):
        monkeypatch.setattr(registry, "INSIGHTS", {"Fake": _definition()})
        output = await compute_insight(_mock_db(), "Fake", "professor", [])
        assert output.component == "SimpleDisplay"

    @pytest.mark.asyncio
    async def test_wrong_component_is_a_contract_error(self, monkeypatch):
        chart = BarChartOutput(
            data=[], x_field="x", y_field="y", series_field="y", x_axis_name="x", y_axis_name="y",
        )
        definition = _definition(compute=AsyncMock(return_value=chart))
        monkeypatch.setattr(registry, "INSIGHTS", {"Fake": definition})

        with pytest.raises(InsightContractError):
            await compute_insight(_mock_db(), "Fake", Role.PROFESSOR, [])

    @pytest.mark.asyncio
    async def test_database_errors_propagate(self, monkeypatch):
        definition = _definition(compute=AsyncMock(side_effect=RuntimeError("connection reset")))
        monkeypatch.setattr(registry, "INSIGHTS", {"Fake": definition})

        with pytest.raises(RuntimeError, match="connection reset"):
            await compute_insight(_mock_db(), "Fake", Role.PROFESSOR, [])

    @pytest.mark.asyncio
    async def test_real_insight_for_professor(self):
        db = _mock_db()
        result = MagicMock()
        result.scalar.return_value = 12
        db.execute.return_value = result

        output = await compute_insight(db, "TotalStudents", Role.PROFESSOR, [])

        assert output.payload() == 12
        assert db.execute.await_count == 1
