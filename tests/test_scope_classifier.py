import pytest

from modification_service.models.modification_models import ComponentType, ModificationStrategy
from modification_service.orchestrator.scope_classifier import ScopeClassifier, parse_component_type, parse_strategy
from modification_service.orchestrator.scope_heuristics import (
    component_name_for,
    normalize_component_name,
    pascal_case,
    score_request,
)
from test_helpers import CLASSIFY, FailingReasoningService, ScriptedReasoningService

RED_BUTTON = "make the signup button red"
ABOUT_PAGE = "add a new About page"
REDESIGN = "redesign the entire layout with a dark mode theme and responsive navigation"


def _classifier(reply, settings):
    return ScopeClassifier(ScriptedReasoningService([(CLASSIFY, reply)]), settings)


class TestHeuristics:
    def test_single_element_colour_change(self):
        score = score_request(RED_BUTTON)

        assert score.strategy == ModificationStrategy.NODE_EDIT
        assert score.confidence == 85

    def test_new_page_request(self):
        score = score_request(ABOUT_PAGE)

        assert score.strategy == ModificationStrategy.COMPONENT_ADDITION
        assert score.confidence == 40

    def test_sweeping_change(self):
        score = score_request(REDESIGN)

        assert score.strategy == ModificationStrategy.FULL_FILE
        assert score.confidence == 70

    def test_unclear_request_defaults_to_full_file(self):
        score = score_request("please do something nice with the homepage files")

        assert score.strategy == ModificationStrategy.FULL_FILE
        assert score.confidence == 50
        assert score.reasoning == "Default for unclear requests"

    def test_confidence_is_capped(self):
        request = "just change the one button color to red, only this specific button text"

        assert score_request(request).confidence == 95

    def test_component_naming(self):
        assert component_name_for(ABOUT_PAGE) == "About"
        assert component_name_for("create a pricing card component") == "PricingCard"
        assert component_name_for('build a widget called "stats-panel"') == "StatsPanel"
        assert component_name_for("add a new page") == "NewPage"
        assert component_name_for("create something") == "NewComponent"

    def test_name_normalization(self):
        assert pascal_case("about-us page") == "AboutUsPage"
        assert normalize_component_name("contact us") == "ContactUs"
        assert normalize_component_name("123abc") is None
        assert normalize_component_name("") is None


def test_strategy_and_component_type_parsing():
    assert parse_strategy("targeted_nodes") == ModificationStrategy.NODE_EDIT
    assert parse_strategy(" full-file ") == ModificationStrategy.FULL_FILE
    assert parse_strategy("REWRITE_EVERYTHING") is None
    assert parse_strategy(3) is None
    assert parse_component_type("Route") == ComponentType.PAGE
    assert parse_component_type("component") == ComponentType.COMPONENT
    assert parse_component_type("widget") is None


@pytest.mark.asyncio
async def test_agreement_is_accepted(settings):
    classifier = _classifier('{"strategy": "NODE_EDIT", "reasoning": "one element changes"}', settings)

    scope = await classifier.classify(RED_BUTTON, "Files: 3", "")

    assert scope.strategy == ModificationStrategy.NODE_EDIT
    assert scope.reasoning == "one element changes"
    assert scope.heuristic_confidence == 85
    assert scope.component_name is None


@pytest.mark.asyncio
async def test_prompt_carries_summary_context_and_heuristic(settings):
    reasoning = ScriptedReasoningService([(CLASSIFY, '{"strategy": "NODE_EDIT"}')])

    await ScopeClassifier(reasoning, settings).classify(RED_BUTTON, "Files: 3", "Recent changes (last 1 of 1):")

    prompt = reasoning.prompts[0]
    assert "Request: make the signup button red" in prompt
    assert "Files: 3" in prompt
    assert "Recent changes (last 1 of 1):" in prompt
    assert "Keyword pre-analysis: NODE_EDIT (confidence 85/100)" in prompt


@pytest.mark.asyncio
async def test_service_wins_disagreement_and_confident_heuristic_is_noted(settings):
    classifier = _classifier('{"strategy": "FULL_FILE", "reasoning": "the form needs restyling"}', settings)

    scope = await classifier.classify(RED_BUTTON, "", "")

    assert scope.strategy == ModificationStrategy.FULL_FILE
    assert scope.reasoning == (
        "the form needs restyling (keyword analysis suggested NODE_EDIT with 85% confidence; service decision kept)"
    )


@pytest.mark.asyncio
async def test_unconfident_heuristic_disagreement_is_not_noted(settings):
    classifier = _classifier('{"strategy": "NODE_EDIT", "reasoning": "edit the nav"}', settings)

    scope = await classifier.classify(ABOUT_PAGE, "", "")

    assert scope.strategy == ModificationStrategy.NODE_EDIT
    assert scope.reasoning == "edit the nav"


@pytest.mark.asyncio
async def test_unavailable_service_uses_confident_heuristic(settings):
    scope = await ScopeClassifier(FailingReasoningService(), settings).classify(REDESIGN, "", "")

    assert scope.strategy == ModificationStrategy.FULL_FILE
    assert scope.reasoning.startswith("Service reply unusable; using keyword analysis")


@pytest.mark.asyncio
async def test_unavailable_service_and_weak_heuristic_default_to_node_edit(settings):
    scope = await ScopeClassifier(FailingReasoningService(), settings).classify(ABOUT_PAGE, "", "")

    assert scope.strategy == ModificationStrategy.NODE_EDIT
    assert "(40%)" in scope.reasoning


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["I would edit a node", '{"strategy": "REWRITE_EVERYTHING"}', '{"reasoning": "x"}'])
async def test_unusable_reply_takes_degraded_path(settings, reply):
    scope = await _classifier(reply, settings).classify(REDESIGN, "", "")

    assert scope.strategy == ModificationStrategy.FULL_FILE
    assert scope.reasoning.startswith("Service reply unusable")


@pytest.mark.asyncio
async def test_alias_strategy_is_accepted(settings):
    scope = await _classifier('```json\n{"strategy": "TARGETED_NODES"}\n```', settings).classify(RED_BUTTON, "", "")

    assert scope.strategy == ModificationStrategy.NODE_EDIT
    assert scope.reasoning == "No reasoning given"


@pytest.mark.asyncio
async def test_component_addition_uses_service_name_and_type(settings):
    reply = '{"strategy": "COMPONENT_ADDITION", "componentName": "about us", "componentType": "page"}'

    scope = await _classifier(reply, settings).classify("add something about the company", "", "")

    assert scope.strategy == ModificationStrategy.COMPONENT_ADDITION
    assert scope.component_name == "AboutUs"
    assert scope.component_type == ComponentType.PAGE


@pytest.mark.asyncio
async def test_component_addition_derives_missing_name_from_request(settings):
    scope = await _classifier('{"strategy": "COMPONENT_ADDITION"}', settings).classify(ABOUT_PAGE, "", "")

    assert scope.component_name == "About"
    assert scope.component_type == ComponentType.PAGE


def test_offline_component_scope(settings):
    classifier = ScopeClassifier(FailingReasoningService(), settings)

    scope = classifier.component_scope("create a pricing card component", "fallback after failed edits")

    assert scope.strategy == ModificationStrategy.COMPONENT_ADDITION
    assert scope.component_name == "PricingCard"
    assert scope.component_type == ComponentType.COMPONENT
    assert scope.reasoning == "fallback after failed edits"
