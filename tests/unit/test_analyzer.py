"""Tests for query analysis: the model path and the parser fallback."""

import json

from wavepulse.exceptions import GenerationError
from wavepulse.query.analyzer import (
    QueryAnalyzer,
    QueryParser,
    extract_structured_data,
    resolve_base_path,
)


def model_answer(**overrides) -> str:
    answer = {
        "intent": "how",
        "domain": ["base"],
        "subAgents": ["BaseAgent"],
        "basePath": "runtime",
        "analysisDepth": "deep",
        "keywords": ["basecomponent"],
        "requiresValidation": False,
        "reasoning": "lifecycle question",
    }
    answer.update(overrides)
    return json.dumps(answer)


def test_parser_base_component_question():
    analysis = QueryParser().analyze("How does BaseComponent work?")
    assert analysis.intent == "how"
    assert analysis.domain == ("base",)
    assert analysis.sub_agents == ("BaseAgent",)
    assert analysis.base_path == "both"
    assert analysis.method == "parser"
    assert analysis.confidence == 0.7


def test_parser_style_definition_question_selects_several_agents():
    analysis = QueryParser().analyze("What is the class name for the button style element?")
    assert analysis.intent == "what"
    assert set(analysis.domain) == {"component", "style", "styledefinition"}
    assert analysis.sub_agents == ("ComponentAgent", "StyleAgent", "StyleDefinitionAgent")
    assert analysis.base_path == "both"


def test_parser_codegen_only_question():
    analysis = QueryParser().analyze("Why does the transpiler generate this?")
    assert analysis.intent == "why"
    assert analysis.base_path == "codegen"
    assert "TranspilerAgent" in analysis.sub_agents


def test_parser_unmatched_question_defaults_to_base_agent():
    analysis = QueryParser().analyze("tell me something")
    assert analysis.intent == "general"
    assert analysis.domain == ("general",)
    assert analysis.sub_agents == ("BaseAgent",)


def test_parser_depth_and_validation_flags():
    parser = QueryParser()
    assert parser.determine_depth("give me a detailed answer") == "comprehensive"
    assert parser.determine_depth("quick question") == "shallow"
    assert parser.determine_depth("button") == "deep"
    assert parser.requires_validation("please verify this")
    assert not parser.requires_validation("button")


def test_resolve_base_path():
    assert resolve_base_path(["transpiler"]) == "codegen"
    assert resolve_base_path(["component", "binding"]) == "runtime"
    assert resolve_base_path(["component", "transpiler"]) == "both"
    assert resolve_base_path(["general"]) == "both"


def test_extract_structured_data_from_prose():
    data = extract_structured_data("This is a how question about the Button widget")
    assert data["intent"] == "how"
    assert data["domain"] == ["component"]
    assert data["subAgents"] == ["ComponentAgent"]
    assert "Button" in data["keywords"]


def test_extract_structured_data_defaults_to_base():
    data = extract_structured_data("nothing recognizable")
    assert data["subAgents"] == ["BaseAgent"]


async def test_model_analysis_is_used(settings, make_llm):
    llm = make_llm(default=model_answer())
    analysis = await QueryAnalyzer(llm, settings).analyze("How does BaseComponent work?")
    assert analysis.method == "model"
    assert analysis.confidence == 0.9
    assert analysis.sub_agents == ("BaseAgent",)
    assert analysis.base_path == "runtime"
    assert analysis.reasoning == "lifecycle question"
    assert llm.calls[0]["json_output"] is True
    assert llm.calls[0]["seed"] == settings.gemini_seed


async def test_model_base_path_is_derived_when_missing(settings, make_llm):
    llm = make_llm(default=model_answer(basePath=None, domain=["transpiler"], subAgents=["TranspilerAgent"]))
    analysis = await QueryAnalyzer(llm, settings).analyze("how is code generated")
    assert analysis.base_path == "codegen"


async def test_unknown_sub_agent_falls_back_to_parser(settings, make_llm):
    llm = make_llm(default=model_answer(subAgents=["WizardAgent"]))
    analysis = await QueryAnalyzer(llm, settings).analyze("How does BaseComponent work?")
    assert analysis.method == "parser"
    assert analysis.sub_agents == ("BaseAgent",)


async def test_invalid_intent_falls_back_to_parser(settings, make_llm):
    llm = make_llm(default=model_answer(intent="ponder"))
    analysis = await QueryAnalyzer(llm, settings).analyze("How does BaseComponent work?")
    assert analysis.method == "parser"


async def test_model_error_falls_back_to_parser(settings, make_llm):
    llm = make_llm(default=GenerationError("unavailable"))
    analysis = await QueryAnalyzer(llm, settings).analyze("How does BaseComponent work?")
    assert analysis.method == "parser"
    assert analysis.intent == "how"


async def test_prose_answer_is_mined_for_structure(settings, make_llm):
    llm = make_llm(default="This is a how question about the Button widget")
    analysis = await QueryAnalyzer(llm, settings).analyze("how do buttons render")
    assert analysis.method == "model"
    assert analysis.sub_agents == ("ComponentAgent",)
    assert analysis.base_path == "runtime"
