"""Fact Normalizer / Inference Engine.

Turns ExtractedFacts (automated) or a manual-entry field map (human) into a
FactSheet, filling gaps with the fixed inference tables. Human input is
checked strictly and rejected on the first pass; scraped input degrades by
dropping the bad field and logging a warning.
"""
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from console import log_info, log_warn
from facts import (
	DEFAULT_FAQ_ANSWER,
	ExtractedFacts,
	FactSheet,
	FaqPair,
	OpeningHoursEntry,
	ServiceFacts,
	pair_faq_text,
)
from patterns import (
	DEFAULT_BUSINESS_CATEGORY,
	canonical_price_tier,
	classify_price_tier,
	format_phone_number,
	infer_postal_code_from_city,
	infer_region_from_city,
	is_canonical_price_tier,
	is_valid_email,
	is_valid_postal_code,
	is_valid_url,
	match_postal_code,
	normalize_country,
	tier_from_language,
)

NON_BUSINESS_TYPES = ("Article", "HowTo")
MAX_DESCRIPTION_CHARS = 300


@dataclass
class NormalizationResult:
	facts: FactSheet
	notices: List[str] = field(default_factory=list)
	errors: List[str] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not self.errors


def is_business_type(content_type: Optional[str]) -> bool:
	return (content_type or DEFAULT_BUSINESS_CATEGORY) not in NON_BUSINESS_TYPES


def _summary(text: Optional[str], limit: int = MAX_DESCRIPTION_CHARS) -> Optional[str]:
	if not text:
		return None
	text = text.strip()
	if len(text) <= limit:
		return text
	cut = text[:limit]
	sentence_end = cut.rfind(". ")
	if sentence_end > limit // 2:
		return cut[: sentence_end + 1]
	return cut.rsplit(" ", 1)[0] + "..."


def facts_from_extracted(extracted: ExtractedFacts, content_type: Optional[str] = None) -> FactSheet:
	"""Flatten an extraction record into the shared fact map."""
	kind = content_type or extracted.business_type or DEFAULT_BUSINESS_CATEGORY
	contact = extracted.contact
	address = contact.parsed_address if contact else None
	rating = extracted.aggregate_rating
	restaurant = extracted.restaurant
	name = extracted.business_name or extracted.heading or extracted.title or extracted.hints.expected_name
	description = extracted.meta_description or _summary(extracted.body_text)

	sheet = FactSheet(
		content_type=kind,
		name=name,
		website_url=extracted.url,
		description=description,
		page_title=extracted.title,
		page_h1=extracted.heading,
		telephone=contact.phone if contact else None,
		email=contact.email if contact else None,
		street_address=address.street if address else (contact.address if contact else None),
		address_locality=address.city if address else None,
		address_region=address.region if address else None,
		postal_code=address.postal_code if address else None,
		address_country=address.country if address else None,
		latitude=extracted.coordinates.latitude if extracted.coordinates else None,
		longitude=extracted.coordinates.longitude if extracted.coordinates else None,
		google_map=extracted.map_url,
		service_areas=extracted.service_areas,
		voice_summary=extracted.meta_description,
		voice_keywords=extracted.meta_keywords,
		faqs=extracted.faqs,
		rating_value=rating.value if rating else extracted.rating,
		review_count=rating.count if rating else extracted.review_count,
		reviews=extracted.reviews,
		services_offered=extracted.services,
		business_hours=extracted.business_hours,
		opening_hours=extracted.opening_hours,
		price_range=extracted.price_range,
		founding_date=str(extracted.founding_year) if extracted.founding_year else None,
		payment_methods=extracted.payment_methods,
		currencies=extracted.currencies,
		amenities=extracted.amenities,
		cuisines=restaurant.cuisines if restaurant else None,
		accepts_reservations=restaurant.accepts_reservations if restaurant else None,
		offers_delivery=restaurant.offers_delivery if restaurant else None,
		offers_takeaway=restaurant.offers_takeaway if restaurant else None,
		menu_url=restaurant.menu_url if restaurant else None,
		slogan=extracted.slogan,
		languages=extracted.languages,
		wheelchair_accessible=extracted.wheelchair_accessible,
		smoking_allowed=extracted.smoking_allowed,
		logo_url=extracted.logo_url,
		images=[img.src for img in extracted.images] if extracted.images else None,
		social_profiles=extracted.social_links,
		is_placeholder=extracted.is_placeholder,
	)
	if kind == "Article":
		sheet.headline = extracted.heading or extracted.title
		sheet.publisher_name = extracted.business_name
		sheet.publisher_logo_url = extracted.logo_url
	elif kind == "HowTo":
		sheet.how_to_name = extracted.heading or extracted.title
		sheet.how_to_description = description
	return sheet


class _Checker:
	"""Collects problems, as hard errors (strict) or as dropped-field notices (lenient)."""

	def __init__(self, facts: FactSheet, automated: bool) -> None:
		self.facts = facts
		self.automated = automated
		self.errors: List[str] = []
		self.notices: List[str] = []

	def note(self, message: str) -> None:
		log_info(message)
		self.notices.append(message)

	def warn(self, message: str) -> None:
		log_warn(message)
		self.notices.append(message)

	def problem(self, attr: str, error: str) -> None:
		if self.automated:
			setattr(self.facts, attr, None)
			self.warn(f"{error} - removed from schema")
		else:
			self.errors.append(error)

	def missing(self, error: str) -> None:
		if self.automated:
			self.warn(error)
		else:
			self.errors.append(error)


def _blank(value: Any) -> bool:
	return value is None or (isinstance(value, str) and not value.strip())


def _number(value: Any) -> Optional[float]:
	if value is None or isinstance(value, bool):
		return None
	try:
		number = float(str(value).strip())
	except ValueError:
		return None
	return number if math.isfinite(number) else None


def _check_required(check: _Checker) -> None:
	facts = check.facts
	kind = facts.content_type
	if kind == "Article":
		if _blank(facts.headline):
			check.missing("Article headline is required")
		if _blank(facts.author_name):
			check.missing("Author name is required")
		if _blank(facts.publisher_name):
			check.missing("Publisher name is required")
	elif kind == "HowTo":
		if _blank(facts.how_to_name):
			check.missing("How-to title is required")
		if not facts.how_to_steps:
			check.missing("At least one how-to step is required")
	else:
		if _blank(facts.name):
			check.missing("Business name is required")
		if _blank(facts.description):
			check.missing("Business description is required")
		_check_address_presence(check)


def _check_address_presence(check: _Checker) -> None:
	facts = check.facts
	parts = (
		("street address", facts.street_address),
		("city", facts.address_locality),
		("state/region", facts.address_region),
	)
	if check.automated:
		if all(_blank(v) for _, v in parts) and _blank(facts.postal_code):
			check.warn("No address information found - placeholders will be used")
		return
	missing = [label for label, value in parts if _blank(value)]
	if missing:
		check.errors.append("Complete address is required: missing " + ", ".join(missing))


def _normalize_postal_code(check: _Checker, country: str) -> None:
	facts = check.facts
	region_code = normalize_country(country)
	if not _blank(facts.postal_code):
		facts.postal_code = str(facts.postal_code).strip()
		if not is_valid_postal_code(facts.postal_code, country):
			check.problem("postal_code", f"Invalid postal code format for {region_code or country}: {facts.postal_code}")
		return
	from_text = match_postal_code(
		" ".join(v for v in (facts.street_address, facts.address_locality, facts.address_region) if v),
		country,
		last=True,
	)
	if from_text:
		facts.postal_code = from_text
		check.note(f"Postal code {from_text} found in the address text")
		return
	if check.automated and not _blank(facts.address_locality) and region_code == "US":
		inferred = infer_postal_code_from_city(facts.address_locality)
		if inferred:
			facts.postal_code = inferred
			check.note(f"Inferred postal code from city {facts.address_locality}: {inferred}")


def _normalize_region(check: _Checker) -> None:
	facts = check.facts
	if not _blank(facts.address_region) or _blank(facts.address_locality):
		return
	region = infer_region_from_city(facts.address_locality)
	if region:
		facts.address_region = region
		check.note(f"Inferred region {region} from city {facts.address_locality}")


def _normalize_price_range(check: _Checker) -> None:
	facts = check.facts
	if not _blank(facts.price_range):
		if is_canonical_price_tier(facts.price_range):
			facts.price_range = facts.price_range.strip()
			return
		converted = canonical_price_tier(facts.price_range)
		check.note(f"Converted price range {facts.price_range!r} to {converted}")
		facts.price_range = converted
		return
	textual = tier_from_language(f"{facts.name or ''} {facts.description or ''}")
	if _blank(facts.address_locality) and not textual:
		return
	detected = classify_price_tier(facts.address_locality, facts.content_type, facts.name, facts.description)
	facts.price_range = detected
	check.note(f"Auto-detected price range {detected}")


def _check_formats(check: _Checker) -> None:
	facts = check.facts
	if not _blank(facts.email) and not is_valid_email(facts.email):
		check.problem("email", "Invalid email format")
	for attr, label in (
		("website_url", "website URL"),
		("publisher_logo_url", "publisher logo URL"),
		("logo_url", "logo URL"),
		("menu_url", "menu URL"),
		("google_map", "map URL"),
	):
		value = getattr(facts, attr)
		if not _blank(value) and not is_valid_url(value):
			check.problem(attr, f"Invalid {label}")

	if facts.social_profiles:
		bad = [i for i, url in enumerate(facts.social_profiles) if not is_valid_url(url)]
		if bad and check.automated:
			facts.social_profiles = [u for u in facts.social_profiles if is_valid_url(u)] or None
			check.warn(f"Dropped {len(bad)} invalid social profile URL(s)")
		else:
			check.errors.extend(f"Invalid social profile URL at index {i}" for i in bad)

	_check_range(check, "latitude", -90, 90, "Invalid latitude (must be between -90 and 90)")
	_check_range(check, "longitude", -180, 180, "Invalid longitude (must be between -180 and 180)")
	_check_range(check, "rating_value", 1, 5, "Rating must be between 1 and 5")

	if not _blank(facts.review_count):
		count = _number(facts.review_count)
		if count is None or count < 1 or count != int(count):
			check.problem("review_count", "Review count must be a positive number")
		else:
			facts.review_count = int(count)


def _check_range(check: _Checker, attr: str, low: float, high: float, error: str) -> None:
	value = getattr(check.facts, attr)
	if _blank(value):
		return
	number = _number(value)
	if number is None or not low <= number <= high:
		check.problem(attr, error)
	else:
		setattr(check.facts, attr, number)


def normalize_facts(sheet: FactSheet, automated: bool = True, default_country: str = "US") -> NormalizationResult:
	"""Validate and gap-fill a fact sheet. Never mutates the input."""
	facts = replace(sheet)
	check = _Checker(facts, automated)
	_check_required(check)

	if is_business_type(facts.content_type):
		# A declared country without a registered pattern falls through to the generic one
		country = (default_country or "US") if _blank(facts.address_country) else str(facts.address_country).strip()
		_normalize_postal_code(check, country)
		_normalize_region(check)
		_normalize_price_range(check)

	if not _blank(facts.telephone):
		facts.telephone = format_phone_number(facts.telephone)

	_check_formats(check)
	return NormalizationResult(facts=facts, notices=check.notices, errors=check.errors)


def process_faq_text(questions: Optional[str], answers: Optional[str], fallback: str = DEFAULT_FAQ_ANSWER) -> List[FaqPair]:
	"""Pair newline-separated FAQ text and fill missing answers with the fallback."""
	return [
		FaqPair(question=p.question, answer=p.answer or fallback)
		for p in pair_faq_text(questions, answers)
		if p.question
	]


# ---------------------------------------------------------------------------
# Generated document -> manual-entry form
# ---------------------------------------------------------------------------

def _first(value: Any) -> Any:
	if isinstance(value, list):
		return value[0] if value else None
	return value


def _text(value: Any) -> Optional[str]:
	value = _first(value)
	if isinstance(value, dict):
		value = value.get("name") or value.get("url") or value.get("text")
	if value is None or isinstance(value, (dict, list)):
		return None
	text = str(value).strip()
	return text or None


def _names(value: Any) -> Optional[List[str]]:
	items = value if isinstance(value, list) else [value] if value else []
	names = [n for n in (_text(i) for i in items) if n]
	return names or None


def _find_entity(doc: Mapping[str, Any]) -> Tuple[Mapping[str, Any], Optional[Mapping[str, Any]]]:
	graph = doc.get("@graph")
	if isinstance(graph, list):
		for node in graph:
			if isinstance(node, dict) and _text(node.get("@type")) not in ("WebPage", "WebSite", "FAQPage", "BreadcrumbList"):
				return node, doc
	main = doc.get("mainEntity")
	if _text(doc.get("@type")) == "WebPage" and isinstance(main, dict):
		return main, doc
	return doc, None


def _faq_pairs(entity: Mapping[str, Any], doc: Mapping[str, Any]) -> Optional[List[FaqPair]]:
	containers = [entity.get("mainEntityOfPage"), entity.get("subjectOf")]
	if _text(doc.get("@type")) == "FAQPage":
		containers.append(doc)
	for node in doc.get("@graph") or []:
		if isinstance(node, dict) and _text(node.get("@type")) == "FAQPage":
			containers.append(node)
	pairs = []
	for container in containers:
		if not isinstance(container, dict) or _text(container.get("@type")) != "FAQPage":
			continue
		for question in container.get("mainEntity") or []:
			if isinstance(question, dict) and question.get("name"):
				answer = question.get("acceptedAnswer")
				pairs.append(FaqPair(
					question=str(question["name"]).strip(),
					answer=_text(answer.get("text")) if isinstance(answer, dict) else None,
				))
	return pairs or None


def _hours_lines(specs: Any) -> Tuple[Optional[str], Optional[List[OpeningHoursEntry]]]:
	entries = []
	for spec in specs if isinstance(specs, list) else [specs] if specs else []:
		if not isinstance(spec, dict) or not spec.get("opens") or not spec.get("closes"):
			continue
		days = spec.get("dayOfWeek")
		for day in days if isinstance(days, list) else [days]:
			if isinstance(day, str) and day:
				entries.append(OpeningHoursEntry(day=day.rstrip("/").split("/")[-1], opens=str(spec["opens"]), closes=str(spec["closes"])))
	if not entries:
		return None, None
	return "\n".join(f"{e.day}: {e.opens}-{e.closes}" for e in entries), entries


def form_from_schema(doc: Mapping[str, Any]) -> Dict[str, Any]:
	"""Map a JSON-LD document (generated or synthesized) back onto the manual-entry field map."""
	if not isinstance(doc, Mapping):
		return {}
	entity, wrapper = _find_entity(doc)
	kind = _text(entity.get("@type")) or DEFAULT_BUSINESS_CATEGORY
	sheet = FactSheet(content_type=kind)

	if kind == "Article":
		author = entity.get("author")
		sheet.headline = _text(entity.get("headline"))
		sheet.author_name = _text(author)
		sheet.author_type = _text(author.get("@type")) if isinstance(author, dict) else None
		publisher = entity.get("publisher")
		sheet.publisher_name = _text(publisher)
		if isinstance(publisher, dict):
			sheet.publisher_logo_url = _text(publisher.get("logo"))
		sheet.date_published = _text(entity.get("datePublished"))
		sheet.date_modified = _text(entity.get("dateModified"))
		sheet.voice_summary = _text(entity.get("description"))
		sheet.voice_keywords = _text(entity.get("keywords"))
		sheet.images = _names(entity.get("image"))
		return sheet.to_form()

	if kind == "HowTo":
		sheet.how_to_name = _text(entity.get("name"))
		sheet.how_to_description = _text(entity.get("description"))
		steps = entity.get("step") or []
		sheet.how_to_steps = [s for s in (_text(step.get("text") if isinstance(step, dict) else step) for step in steps) if s] or None
		sheet.images = _names(entity.get("image"))
		return sheet.to_form()

	address = entity.get("address") if isinstance(entity.get("address"), dict) else {}
	geo = entity.get("geo") if isinstance(entity.get("geo"), dict) else {}
	rating = entity.get("aggregateRating") if isinstance(entity.get("aggregateRating"), dict) else {}
	sheet.name = _text(entity.get("name"))
	sheet.description = _text(entity.get("description"))
	sheet.website_url = _text(entity.get("url")) or (_text(wrapper.get("url")) if wrapper else None)
	sheet.page_title = _text(wrapper.get("name")) if wrapper else None
	sheet.page_h1 = _text(wrapper.get("headline")) if wrapper else None
	sheet.voice_summary = _text(wrapper.get("description")) if wrapper else None
	sheet.voice_keywords = _text((wrapper or entity).get("keywords"))
	sheet.telephone = _text(entity.get("telephone"))
	sheet.email = _text(entity.get("email"))
	sheet.street_address = _text(address.get("streetAddress"))
	sheet.address_locality = _text(address.get("addressLocality"))
	sheet.address_region = _text(address.get("addressRegion"))
	sheet.postal_code = _text(address.get("postalCode"))
	sheet.address_country = _text(address.get("addressCountry"))
	sheet.latitude = _text(geo.get("latitude"))
	sheet.longitude = _text(geo.get("longitude"))
	sheet.google_map = _text(entity.get("hasMap"))
	sheet.rating_value = _text(rating.get("ratingValue"))
	sheet.review_count = _text(rating.get("reviewCount"))
	sheet.price_range = _text(entity.get("priceRange"))
	sheet.founding_date = _text(entity.get("foundingDate"))
	sheet.slogan = _text(entity.get("slogan"))
	sheet.logo_url = _text(entity.get("logo"))
	sheet.menu_url = _text(entity.get("hasMenu"))
	sheet.service_areas = _names(entity.get("areaServed"))
	sheet.alternative_names = _names(entity.get("alternateName"))
	sheet.payment_methods = _names(entity.get("paymentAccepted"))
	if isinstance(entity.get("currenciesAccepted"), str):
		sheet.currencies = [c.strip() for c in entity["currenciesAccepted"].split(",") if c.strip()] or None
	sheet.languages = _names(entity.get("knowsLanguage"))
	sheet.cuisines = _names(entity.get("servesCuisine"))
	sheet.awards = _names(entity.get("award"))
	sheet.social_profiles = _names(entity.get("sameAs"))
	sheet.images = _names(entity.get("image"))
	if isinstance(entity.get("acceptsReservations"), bool):
		sheet.accepts_reservations = entity["acceptsReservations"]
	if isinstance(entity.get("smokingAllowed"), bool):
		sheet.smoking_allowed = entity["smokingAllowed"]
	offers = entity.get("makesOffer") or []
	services = []
	for offer in offers if isinstance(offers, list) else [offers]:
		item = offer.get("itemOffered") if isinstance(offer, dict) else None
		name = _text(item) if item else _text(offer)
		if name:
			services.append(ServiceFacts(name=name, description=_text(item.get("description")) if isinstance(item, dict) else None))
	sheet.services_offered = services or None
	catalog = entity.get("hasOfferCatalog")
	if isinstance(catalog, dict):
		sheet.special_offers = _names(catalog.get("itemListElement"))
	sheet.business_hours, sheet.opening_hours = _hours_lines(entity.get("openingHoursSpecification"))
	if not sheet.business_hours and isinstance(entity.get("openingHours"), (str, list)):
		hours = entity["openingHours"]
		sheet.business_hours = "\n".join(hours) if isinstance(hours, list) else hours
	sheet.faqs = _faq_pairs(entity, doc)
	return sheet.to_form()
