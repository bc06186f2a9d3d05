"""Generative boundary: describe extracted facts to OpenAI and read back a JSON-LD object.

The deterministic pipeline never depends on anything in this module. A
generated document is passed through the same clean and validate passes as
a synthesized one.
"""
import json
import re
from typing import Any, Dict, List, Optional

from console import log_error, log_info, log_warn
from errors import SchemaParseError
from facts import ExtractedFacts

NON_SCHEMA_FIELDS = (
	"extracted_text", "extractedText", "rawText", "content", "raw_text", "full_text",
	"outline", "sections", "headings", "tag", "level", "evidence", "metadata",
)

SYSTEM_PROMPT = (
	"You are a structured data expert. Produce STRICTLY VALID schema.org JSON-LD based ONLY on the provided page facts. "
	"Rules: 1) DO NOT INVENT values. If unknown, OMIT. 2) Use only schema.org properties valid for the selected @type(s). "
	"3) Do NOT include ratings, reviewCount, aggregateRating, offers, prices, or similar unless explicit numeric values are present. "
	"4) Output MUST be a single JSON object suitable for <script type=\"application/ld+json\"> with @context and @type. "
	"5) NEVER include debug fields (e.g., tag, level, headings, evidence) or any non-schema keys. "
	"6) Favor content that answers spoken questions: short descriptions, FAQ pairs, opening hours, contact details."
)

FENCE_RE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")


def strip_non_schema_fields(value: Any) -> Any:
	"""Recursively drop debug/extraction keys a model sometimes echoes back."""
	if isinstance(value, dict):
		return {k: strip_non_schema_fields(v) for k, v in value.items() if k not in NON_SCHEMA_FIELDS}
	if isinstance(value, list):
		return [strip_non_schema_fields(item) for item in value]
	return value


def _line(parts: List[str], label: str, value: Any) -> None:
	if value is None or value == "" or value == []:
		return
	if isinstance(value, list):
		value = ", ".join(str(v) for v in value)
	parts.append(f"{label}: {value}")


def build_schema_prompt(url: str, facts: ExtractedFacts, content_type: Optional[str] = None, max_chars: int = 3000) -> str:
	"""Describe the extracted facts in plain language for a free-text generation call."""
	contact = facts.contact
	address = contact.parsed_address if contact else None
	parts: List[str] = [f"Page URL: {url}"]
	_line(parts, "Page Title", facts.title)
	_line(parts, "Main Heading", facts.heading)
	_line(parts, "Requested schema type", content_type or facts.business_type)
	_line(parts, "Business Name", facts.business_name)
	_line(parts, "Meta Description", facts.meta_description)
	_line(parts, "Keywords", facts.meta_keywords)
	if contact:
		_line(parts, "Telephone", contact.phone)
		_line(parts, "Email", contact.email)
		_line(parts, "Address", contact.address)
	if address:
		_line(parts, "City", address.city)
		_line(parts, "Region", address.region)
		_line(parts, "Postal Code", address.postal_code)
		_line(parts, "Country", address.country)
	if facts.coordinates:
		parts.append(f"Coordinates: {facts.coordinates.latitude}, {facts.coordinates.longitude}")
	if facts.opening_hours:
		parts.append("Opening Hours: " + "; ".join(f"{e.day} {e.opens}-{e.closes}" for e in facts.opening_hours))
	if facts.aggregate_rating and facts.aggregate_rating.count:
		parts.append(f"Rating: {facts.aggregate_rating.value} from {facts.aggregate_rating.count} reviews")
	_line(parts, "Price Range", facts.price_range)
	_line(parts, "Service Areas", facts.service_areas)
	_line(parts, "Payment Methods", facts.payment_methods)
	_line(parts, "Languages", facts.languages)
	_line(parts, "Slogan", facts.slogan)
	_line(parts, "Founded", facts.founding_year)
	_line(parts, "Social Profiles", facts.social_links)
	if facts.services:
		parts.append("Services: " + "; ".join(s.name for s in facts.services))
	if facts.faqs:
		parts.append("FAQs:")
		for pair in facts.faqs:
			parts.append(f"Q: {pair.question}")
			if pair.answer:
				parts.append(f"A: {pair.answer}")
	if facts.body_text:
		parts.append("\n=== PAGE TEXT (truncated) ===")
		parts.append(facts.body_text[:max_chars])
	parts.append("\n=== YOUR TASK ===")
	parts.append("Generate schema.org JSON-LD for this page using only the facts above.")
	return "\n".join(parts)


def parse_schema_response(text: Optional[str]) -> Dict[str, Any]:
	"""Recover a JSON object from a fenced or bare model response."""
	if not text or not text.strip():
		raise SchemaParseError("empty response")
	candidates = [m.group(1) for m in FENCE_RE.finditer(text)]
	candidates.append(text.strip())
	start, end = text.find("{"), text.rfind("}")
	if 0 <= start < end:
		candidates.append(text[start:end + 1])
	for candidate in candidates:
		try:
			data = json.loads(candidate.strip())
		except json.JSONDecodeError:
			continue
		if isinstance(data, dict):
			return data
	raise SchemaParseError("response does not contain a JSON object")


def _is_token_limit(exc: Exception) -> bool:
	message = str(exc)
	return "429" in message and ("token" in message.lower() or "TPM" in message or "rate_limit" in message.lower())


def call_openai_schema(model: str, api_key: str, prompt: str, max_retries: int = 2) -> Dict[str, Any]:
	"""Send the prompt to OpenAI, shrinking it by 30% on each token-limit error."""
	from openai import OpenAI

	client = OpenAI(api_key=api_key)
	current = prompt
	for attempt in range(max_retries + 1):
		try:
			resp = client.chat.completions.create(
				model=model,
				messages=[
					{"role": "system", "content": SYSTEM_PROMPT},
					{"role": "user", "content": current},
				],
				response_format={"type": "json_object"},
				temperature=0.2,
			)
		except Exception as exc:
			if not _is_token_limit(exc) or attempt == max_retries:
				raise
			current = current[: int(len(current) * 0.7)]
			log_warn(f"Token limit exceeded (attempt {attempt + 1}/{max_retries}). Truncating prompt and retrying...")
			continue
		return strip_non_schema_fields(parse_schema_response(resp.choices[0].message.content))
	raise SchemaParseError("no response received")


def generate_schema_with_llm(url: str, facts: ExtractedFacts, model: str, api_key: str, content_type: Optional[str] = None) -> Dict[str, Any]:
	"""Generated document for the page, or a minimal WebPage when the call fails."""
	if not api_key:
		log_warn("OPENAI_API_KEY not set; skipping generative schema")
		return _fallback(url, facts)
	log_info(f"Requesting generative schema for {url} with {model}")
	try:
		return call_openai_schema(model, api_key, build_schema_prompt(url, facts, content_type))
	except Exception as exc:
		log_error(f"LLM error for {url}: {exc}")
		return _fallback(url, facts)


def _fallback(url: str, facts: ExtractedFacts) -> Dict[str, Any]:
	return {
		"@context": "https://schema.org",
		"@type": "WebPage",
		"name": facts.title or facts.business_name or url,
		"url": url,
	}
