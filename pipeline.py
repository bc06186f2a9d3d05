"""Linear generation pipeline.

Idle -> Extracting -> Normalizing -> Synthesizing -> Cleaning -> Validated | Rejected

No stage retries and nothing backtracks. A fetch or parse failure swaps in a
placeholder record built from the URL; strict-mode violations stop the run
before any document is built.
"""
import urllib.parse as urlparse
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import requests
from colorama import Fore, Style

from cleaner import ValidationReport, clean_schema, validate_schema
from console import log_info, log_warn
from errors import FetchError, HtmlParseError, PipelineError, ValidationRejected
from facts import ExtractedFacts, FactSheet
from llm import generate_schema_with_llm
from normalizer import facts_from_extracted, is_business_type, normalize_facts
from page_extractor import extract_page, placeholder_facts
from settings import GeneratorConfig
from synthesizer import build_local_seo_meta_tags, synthesize, unwrap_document, wrap_document

IDLE = "Idle"
EXTRACTING = "Extracting"
NORMALIZING = "Normalizing"
SYNTHESIZING = "Synthesizing"
CLEANING = "Cleaning"
VALIDATED = "Validated"
REJECTED = "Rejected"


@dataclass
class PipelineResult:
	document: Dict[str, Any]
	markup: str
	report: ValidationReport
	facts: FactSheet
	notices: List[str] = field(default_factory=list)
	meta_tags: Optional[str] = None
	extracted: Optional[ExtractedFacts] = None
	generated: Optional[Dict[str, Any]] = None
	state: str = VALIDATED

	def to_dict(self) -> Dict[str, Any]:
		out: Dict[str, Any] = {
			"state": self.state,
			"schema": self.document,
			"markup": self.markup,
			"validation": self.report.to_dict(),
			"notices": list(self.notices),
			"form": self.facts.to_form(),
			"is_placeholder": self.facts.is_placeholder,
		}
		if self.meta_tags:
			out["meta_tags"] = self.meta_tags
		if self.extracted is not None:
			out["hints"] = self.extracted.to_dict().get("hints")
		if self.generated is not None:
			out["generated_schema"] = self.generated
		return out


def _stage(state: str, detail: str = "") -> str:
	log_info(f"Stage: {Fore.WHITE}{state}{Style.RESET_ALL}" + (f" ({detail})" if detail else ""))
	return state


# ---------------------------------------------------------------------------
# Fetch layer
# ---------------------------------------------------------------------------

def make_session(config: GeneratorConfig) -> requests.Session:
	session = requests.Session()
	session.headers.update({"User-Agent": config.user_agent})
	return session


def _get_text(session: requests.Session, url: str, timeout: int) -> str:
	resp = session.get(url, timeout=timeout)
	if resp.status_code >= 400:
		raise requests.HTTPError(f"HTTP {resp.status_code}", response=resp)
	# Improve encoding handling to avoid garbled characters
	if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
		resp.encoding = resp.apparent_encoding or "utf-8"
	content_type = resp.headers.get("content-type", "")
	if "json" in content_type:
		# allorigins-style proxies wrap the page: {"contents": "<html>..."}
		try:
			data = resp.json()
		except ValueError:
			data = None
		if isinstance(data, dict) and isinstance(data.get("contents"), str):
			return data["contents"]
	return resp.text


def fetch_html(url: str, config: GeneratorConfig, session: Optional[requests.Session] = None) -> str:
	"""Direct fetch first, then each configured proxy prefix. Raises FetchError when all fail."""
	session = session or make_session(config)
	sources = [("direct", url)] + [
		(prefix, prefix + urlparse.quote(url, safe="")) for prefix in config.proxy_prefixes
	]
	attempts: List[str] = []
	for label, target in sources:
		try:
			text = _get_text(session, target, config.timeout)
		except requests.RequestException as exc:
			log_warn(f"Request failed {url} via {label}: {exc}")
			attempts.append(f"{label}: {exc}")
			continue
		if text and text.strip():
			log_info(f"Fetched {url} via {label} ({len(text):,} chars)")
			return text
		attempts.append(f"{label}: empty response")
	raise FetchError(url, attempts)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _run(
	sheet: FactSheet,
	config: GeneratorConfig,
	automated: bool,
	extracted: Optional[ExtractedFacts] = None,
	images: Optional[List[str]] = None,
	social_profiles: Optional[List[str]] = None,
	steps: Optional[List[str]] = None,
	with_llm: bool = False,
) -> PipelineResult:
	_stage(NORMALIZING, "lenient" if automated else "strict")
	normalized = normalize_facts(sheet, automated=automated, default_country=config.default_country)
	if normalized.errors:
		_stage(REJECTED, f"{len(normalized.errors)} problem(s)")
		raise ValidationRejected(normalized.errors)
	facts = normalized.facts

	_stage(SYNTHESIZING, facts.content_type)
	document = synthesize(facts, facts.content_type, images=images, social_profiles=social_profiles, steps=steps)

	_stage(CLEANING)
	cleaned = clean_schema(document)
	if not cleaned:
		raise PipelineError("No document could be produced from the available facts")
	report = validate_schema(cleaned)

	generated = None
	if with_llm and extracted is not None:
		generated = clean_schema(generate_schema_with_llm(
			extracted.url, extracted, config.model, config.openai_api_key, facts.content_type,
		))

	state = _stage(VALIDATED, "valid" if report.valid else f"{len(report.errors)} advisory error(s)")
	return PipelineResult(
		document=cleaned,
		markup=wrap_document(cleaned),
		report=report,
		facts=facts,
		notices=normalized.notices,
		meta_tags=build_local_seo_meta_tags(facts) if is_business_type(facts.content_type) else None,
		extracted=extracted,
		generated=generated,
		state=state,
	)


def _extract_or_placeholder(html: Optional[str], url: str, config: GeneratorConfig) -> ExtractedFacts:
	_stage(EXTRACTING, url)
	if html is not None:
		try:
			return extract_page(html, url, config)
		except HtmlParseError as exc:
			log_warn(f"Could not parse HTML for {url}: {exc}; using placeholder")
	return placeholder_facts(url)


def generate_from_html(
	html: Optional[str],
	source_url: str,
	config: Optional[GeneratorConfig] = None,
	content_type: Optional[str] = None,
	with_llm: bool = False,
) -> PipelineResult:
	config = config or GeneratorConfig()
	extracted = _extract_or_placeholder(html, source_url, config)
	if extracted.hints.rejection_reason:
		log_warn(f"{source_url}: {extracted.hints.rejection_reason}")
	sheet = facts_from_extracted(extracted, content_type)
	return _run(sheet, config, automated=not config.strict, extracted=extracted, with_llm=with_llm)


def generate_from_url(
	url: str,
	config: Optional[GeneratorConfig] = None,
	session: Optional[requests.Session] = None,
	content_type: Optional[str] = None,
	with_llm: bool = False,
) -> PipelineResult:
	config = config or GeneratorConfig()
	_stage(IDLE, url)
	try:
		html = fetch_html(url, config, session)
	except FetchError as exc:
		log_warn(f"{exc}; using placeholder")
		html = None
	return generate_from_html(html, url, config, content_type, with_llm)


def generate_from_manual(
	form: Mapping[str, Any],
	config: Optional[GeneratorConfig] = None,
	images: Optional[List[str]] = None,
	social_profiles: Optional[List[str]] = None,
	steps: Optional[List[str]] = None,
	automated: bool = False,
) -> PipelineResult:
	"""Manual entry skips extraction; human input is strict unless flagged as automated."""
	config = config or GeneratorConfig()
	_stage(IDLE, "manual entry")
	sheet = FactSheet.from_form(form)
	return _run(sheet, config, automated=automated, images=images, social_profiles=social_profiles, steps=steps)


def validate_markup(markup: str) -> ValidationReport:
	"""Re-validate an embeddable envelope (or bare JSON) as produced by wrap_document."""
	return validate_schema(unwrap_document(markup))
