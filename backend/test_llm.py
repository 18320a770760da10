"""LLM boundary: HTTP client, output parsing, extractor/refiner/flowchart passes"""

import json

import pytest
import requests

from conftest import make_summary
from reqgraph.ir.requirements_ir import RequirementsSummary
from reqgraph.llm.base import LLMClient
from reqgraph.llm.client import ChatCompletionsClient
from reqgraph.llm.parser import (
    SummaryParseError,
    parse_requirements_summary,
    safe_load_json,
    summary_to_dict,
)
from reqgraph.pipeline.extractor import (
    RequirementsExtractor,
    RequirementsRefiner,
    build_transcript,
)
from reqgraph.pipeline.flowchart import FlowchartGenerationError, FlowchartGenerator
from reqgraph.validation.diagnostics import DiagnosticsReport


class FakeLLM(LLMClient):
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def generate(self, messages, response_format="text", temperature=None):
        self.calls.append((messages, response_format))
        return self.reply


class FakeResponse:
    def __init__(self, content, status=200):
        self.content = content
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return {"choices": [{"message": {"content": self.content}}]}


# ---------------- HTTP client ----------------

def test_client_posts_chat_completion(monkeypatch):
    sent = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        sent.update(url=url, json=json, headers=headers, timeout=timeout)
        return FakeResponse('```json\n{"primaryGoal": "x"}\n```')

    monkeypatch.setattr(requests, "post", fake_post)

    client = ChatCompletionsClient(
        model="small", base_url="http://llm.local/v1/", api_key="k", timeout=5, temperature=0.1
    )
    out = client.generate([{"role": "user", "content": "hi"}], response_format="json")

    assert out == '{"primaryGoal": "x"}'
    assert sent["url"] == "http://llm.local/v1/chat/completions"
    assert sent["json"]["model"] == "small"
    assert sent["json"]["temperature"] == 0.1
    assert sent["json"]["response_format"] == {"type": "json_object"}
    assert sent["headers"] == {"Authorization": "Bearer k"}
    assert sent["timeout"] == 5


def test_client_text_mode_keeps_content(monkeypatch):
    sent = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        sent.update(json=json, headers=headers)
        return FakeResponse("```mermaid\ngraph LR\n```")

    monkeypatch.setattr(requests, "post", fake_post)

    client = ChatCompletionsClient(model="m", base_url="http://llm.local", api_key=None)
    out = client.generate([], temperature=0.9)

    assert out == "```mermaid\ngraph LR\n```"
    assert "response_format" not in sent["json"]
    assert sent["json"]["temperature"] == 0.9
    assert sent["headers"] == {}


def test_client_raises_on_http_error(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse("", status=500))
    client = ChatCompletionsClient(model="m", base_url="http://llm.local")
    with pytest.raises(requests.HTTPError):
        client.generate([])


# ---------------- parsing ----------------

def test_safe_load_json_never_throws():
    assert safe_load_json('{"a": 1}') == {"a": 1}
    assert safe_load_json('Here you go: {"a": {"b": 2}} hope it helps') == {"a": {"b": 2}}
    assert safe_load_json("[1, 2]") == {}
    assert safe_load_json("{broken") == {}
    assert safe_load_json("") == {}
    assert safe_load_json(None) == {}


def test_summary_to_dict_rejects_unusable_output():
    with pytest.raises(SummaryParseError):
        summary_to_dict("nothing to see")
    with pytest.raises(SummaryParseError):
        summary_to_dict(42)


def test_parse_coerces_loose_model_output():
    summary = parse_requirements_summary({
        "businessContext": {"companyName": "Acme", "industry": None},
        "mainActors": ["Owner", {"name": "Clerk", "description": None}],
        "candidateModules": [{"name": "Payroll", "priority": "Must Have"}, {"name": "Intake", "priority": "urgent"}],
        "painPoints": [{"description": "late invoices", "impact": "HIGH", "frequency": None}],
        "risksAndConstraints": ["tight budget"],
        "secondaryGoals": None,
        "someUnknownKey": "ignored",
    })

    assert summary.business_context.company_name == "Acme"
    assert summary.actor_names() == ["Owner", "Clerk"]
    assert summary.main_actors[1].description == ""
    assert [m.priority for m in summary.candidate_modules] == ["must-have", "should-have"]
    assert summary.pain_points[0].impact == "high"
    assert summary.pain_points[0].frequency == "sometimes"
    assert summary.risks_and_constraints[0].type == "unknown"
    assert summary.secondary_goals == []


def test_parse_merges_over_base():
    base = make_summary(
        actors=[("Owner", "")],
        modules=[("Payroll", "monthly staff payroll", "should-have")],
        open_questions=["Budget?"],
    )

    refined = parse_requirements_summary(
        '{"candidate_modules": [{"name": "Payroll"}, {"name": "Timesheets"}], "openQuestions": null}',
        base=base,
    )

    assert refined.module_names() == ["Payroll", "Timesheets"]
    assert refined.actor_names() == ["Owner"]
    assert refined.open_questions == ["Budget?"]
    # base is untouched
    assert base.module_names() == ["Payroll"]


def test_parse_wraps_validation_errors():
    with pytest.raises(SummaryParseError):
        parse_requirements_summary({"mainActors": [{"description": "no name"}]})


def test_summary_to_dict_uses_wire_keys(invoicing_summary):
    data = invoicing_summary.to_dict()
    assert "mainActors" in data and "candidateModules" in data
    assert RequirementsSummary.from_dict(data) == invoicing_summary
    assert RequirementsSummary.from_dict(None) == RequirementsSummary()


# ---------------- transcript ----------------

def test_build_transcript_handles_multimodal_content():
    history = [
        {"role": "system", "content": "hidden"},
        {"role": "user", "content": [
            {"type": "text", "text": "Here is our sheet"},
            {"type": "image_url", "image_url": {"url": "data:..."}},
            {"type": "image_url", "image_url": {"url": "data:..."}},
        ]},
        {"role": "assistant", "content": None},
        {"content": "no role"},
    ]
    assert build_transcript(history) == (
        "USER: Here is our sheet [2 image(s) uploaded]\n\n"
        "ASSISTANT: \n\n"
        "USER: no role"
    )


# ---------------- model passes ----------------

def test_extractor_parses_json_reply(invoicing_summary):
    llm = FakeLLM(json.dumps(invoicing_summary.to_dict()))
    summary = RequirementsExtractor(client=llm)("USER: we invoice clients")

    assert summary == invoicing_summary
    messages, response_format = llm.calls[0]
    assert response_format == "json"
    assert messages[0]["role"] == "system"
    assert messages[1] == {"role": "user", "content": "USER: we invoice clients"}


def test_refiner_sends_summary_and_diagnostics(invoicing_summary):
    llm = FakeLLM('{"openQuestions": ["Who approves?"]}')
    report = DiagnosticsReport(actors_with_no_connections=["Owner"])

    refined = RequirementsRefiner(client=llm)("transcript", invoicing_summary, report)

    assert refined.open_questions == ["Who approves?"]
    assert refined.module_names() == invoicing_summary.module_names()

    user_message = llm.calls[0][0][1]["content"]
    payload = json.loads(user_message[user_message.index("{"):])
    assert payload["transcript"] == "transcript"
    assert payload["originalRequirementsSummary"]["mainActors"][0]["name"] == "Consultant"
    assert payload["mermaidDiagnostics"]["actorsWithNoConnections"] == ["Owner"]


def test_flowchart_generator_strips_fences(invoicing_summary):
    llm = FakeLLM('```mermaid\nflowchart LR\n  a["A"] --> b["B"]\n```')
    generator = FlowchartGenerator(client=llm)

    assert generator.generate_flowchart(invoicing_summary) == 'flowchart LR\n  a["A"] --> b["B"]'
    assert llm.calls[0][1] == "text"

    attached = generator.attach(invoicing_summary)
    assert attached.workflow_diagram.startswith("flowchart LR")
    assert invoicing_summary.workflow_diagram == ""


@pytest.mark.parametrize("reply, message", [
    ("", "No flowchart diagram generated"),
    ("```mermaid\n```", "No flowchart diagram generated"),
    ("Here is a lovely diagram of your business.", "valid Mermaid"),
])
def test_flowchart_generator_rejects_bad_output(invoicing_summary, reply, message):
    with pytest.raises(FlowchartGenerationError, match=message):
        FlowchartGenerator(client=FakeLLM(reply)).generate_flowchart(invoicing_summary)


def test_partial_business_context_merges_into_base():
    base = RequirementsSummary(
        business_context={"companyName": "Omnigo", "industry": "staffing", "region": "EU"},
        main_actors=["Owner"],
    )

    refined = parse_requirements_summary(
        {"businessContext": {"industry": "consulting", "size_description": "12 staff", "region": None}},
        base=base,
    )

    assert refined.business_context.company_name == "Omnigo"
    assert refined.business_context.industry == "consulting"
    assert refined.business_context.region == "EU"
    assert refined.business_context.size_description == "12 staff"
    assert refined.actor_names() == ["Owner"]
    assert base.business_context.industry == "staffing"


def test_flowchart_generator_accepts_fence_inside_prose(invoicing_summary):
    reply = "Here is your diagram:\n\n```mermaid\nflowchart\n  a --> b\n```\n\nLet me know!"
    diagram = FlowchartGenerator(client=FakeLLM(reply)).generate_flowchart(invoicing_summary)
    assert diagram == "flowchart\n  a --> b"
