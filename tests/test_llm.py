from types import SimpleNamespace

import openai
import pytest

from errors import SchemaParseError
from facts import ContactInfo, ExtractedFacts, FaqPair
from llm import (
	build_schema_prompt,
	call_openai_schema,
	generate_schema_with_llm,
	parse_schema_response,
	strip_non_schema_fields,
)


def _facts():
	return ExtractedFacts(
		url="https://brightsmile.com/",
		title="Bright Smile Dental",
		business_name="Bright Smile Dental",
		contact=ContactInfo(phone="+1-512-555-0199"),
		faqs=[FaqPair("Do you offer whitening?", "Yes.")],
		body_text="x" * 5000,
	)


def test_prompt_describes_facts_and_truncates_text():
	prompt = build_schema_prompt("https://brightsmile.com/", _facts(), "DentalBusiness", max_chars=100)
	assert "Business Name: Bright Smile Dental" in prompt
	assert "Requested schema type: DentalBusiness" in prompt
	assert "Telephone: +1-512-555-0199" in prompt
	assert "Q: Do you offer whitening?" in prompt
	assert "x" * 101 not in prompt


def test_parse_schema_response_variants():
	assert parse_schema_response('```json\n{"@type": "WebPage"}\n```') == {"@type": "WebPage"}
	assert parse_schema_response('{"@type": "Thing"}') == {"@type": "Thing"}
	assert parse_schema_response('Here you go: {"@type": "Thing"} hope it helps') == {"@type": "Thing"}
	with pytest.raises(SchemaParseError):
		parse_schema_response("no json here")
	with pytest.raises(SchemaParseError):
		parse_schema_response("   ")


def test_strip_non_schema_fields_is_recursive():
	doc = {"@type": "WebPage", "headings": ["a"], "mainEntity": {"@type": "Thing", "evidence": "x", "name": "n"}, "step": [{"tag": "h2", "text": "t"}]}
	assert strip_non_schema_fields(doc) == {"@type": "WebPage", "mainEntity": {"@type": "Thing", "name": "n"}, "step": [{"text": "t"}]}


class _FakeCompletions:
	def __init__(self, outcomes):
		self.outcomes = list(outcomes)
		self.prompts = []

	def create(self, **kwargs):
		self.prompts.append(kwargs["messages"][1]["content"])
		outcome = self.outcomes.pop(0)
		if isinstance(outcome, Exception):
			raise outcome
		return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


def _patch_client(monkeypatch, completions):
	client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
	monkeypatch.setattr(openai, "OpenAI", lambda api_key=None: client)


def test_call_openai_truncates_on_token_limit(monkeypatch):
	completions = _FakeCompletions([
		Exception("Error code: 429 - Request too large: tokens per min (TPM) limit"),
		'{"@type": "LocalBusiness", "outline": [1], "name": "Bright Smile"}',
	])
	_patch_client(monkeypatch, completions)
	result = call_openai_schema("gpt-4o-mini", "sk-test", "p" * 1000)
	assert result == {"@type": "LocalBusiness", "name": "Bright Smile"}
	assert len(completions.prompts[1]) == 700


def test_call_openai_reraises_other_errors(monkeypatch):
	_patch_client(monkeypatch, _FakeCompletions([RuntimeError("boom")]))
	with pytest.raises(RuntimeError):
		call_openai_schema("gpt-4o-mini", "sk-test", "prompt")


def test_generate_schema_without_key_falls_back():
	doc = generate_schema_with_llm("https://brightsmile.com/", _facts(), "gpt-4o-mini", "")
	assert doc == {"@context": "https://schema.org", "@type": "WebPage", "name": "Bright Smile Dental", "url": "https://brightsmile.com/"}


def test_generate_schema_falls_back_on_failure(monkeypatch):
	_patch_client(monkeypatch, _FakeCompletions(["not json at all"]))
	doc = generate_schema_with_llm("https://brightsmile.com/", _facts(), "gpt-4o-mini", "sk-test")
	assert doc["@type"] == "WebPage"
