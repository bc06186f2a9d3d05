"""Fact records passed between the extractor, the normalizer and the synthesizer.

Absence is always None, never "", so later stages can tell "not found" from
"found empty".
"""
import re
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class GeoPoint:
	latitude: float
	longitude: float


@dataclass(frozen=True)
class OpeningHoursEntry:
	day: str
	opens: str
	closes: str


@dataclass(frozen=True)
class ParsedAddress:
	street: Optional[str] = None
	city: Optional[str] = None
	region: Optional[str] = None
	postal_code: Optional[str] = None
	country: Optional[str] = None


@dataclass(frozen=True)
class ContactInfo:
	phone: Optional[str] = None
	email: Optional[str] = None
	address: Optional[str] = None
	parsed_address: Optional[ParsedAddress] = None


@dataclass(frozen=True)
class RatingSummary:
	value: float
	count: Optional[int] = None
	best: float = 5
	worst: float = 1


@dataclass(frozen=True)
class ReviewFacts:
	author: Optional[str] = None
	body: Optional[str] = None
	rating: Optional[float] = None
	date: Optional[str] = None


@dataclass(frozen=True)
class ServiceFacts:
	name: str
	description: Optional[str] = None
	price: Optional[str] = None


@dataclass(frozen=True)
class FaqPair:
	question: str
	answer: Optional[str] = None


@dataclass(frozen=True)
class ImageRef:
	src: str
	alt: Optional[str] = None
	title: Optional[str] = None


@dataclass(frozen=True)
class RestaurantFacts:
	cuisines: Optional[List[str]] = None
	accepts_reservations: Optional[bool] = None
	offers_delivery: Optional[bool] = None
	offers_takeaway: Optional[bool] = None
	menu_url: Optional[str] = None


@dataclass(frozen=True)
class ValidationHints:
	expected_name: Optional[str] = None
	extracted_name: Optional[str] = None
	content_matches_url: Optional[bool] = None
	has_minimum_data: bool = False
	rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class ExtractedFacts:
	"""Raw harvest from one page. Created once per fetch and never mutated."""
	url: str
	title: Optional[str] = None
	heading: Optional[str] = None
	body_text: Optional[str] = None
	meta_description: Optional[str] = None
	meta_keywords: Optional[str] = None
	business_name: Optional[str] = None
	logo_url: Optional[str] = None
	coordinates: Optional[GeoPoint] = None
	opening_hours: Optional[List[OpeningHoursEntry]] = None
	contact: Optional[ContactInfo] = None
	aggregate_rating: Optional[RatingSummary] = None
	reviews: Optional[List[ReviewFacts]] = None
	service_areas: Optional[List[str]] = None
	payment_methods: Optional[List[str]] = None
	currencies: Optional[List[str]] = None
	amenities: Optional[Dict[str, bool]] = None
	restaurant: Optional[RestaurantFacts] = None
	slogan: Optional[str] = None
	founding_year: Optional[int] = None
	languages: Optional[List[str]] = None
	map_url: Optional[str] = None
	wheelchair_accessible: Optional[bool] = None
	smoking_allowed: Optional[bool] = None
	services: Optional[List[ServiceFacts]] = None
	# Legacy / simple fields
	images: Optional[List[ImageRef]] = None
	social_links: Optional[List[str]] = None
	faqs: Optional[List[FaqPair]] = None
	business_hours: Optional[str] = None
	rating: Optional[float] = None
	review_count: Optional[int] = None
	price_range: Optional[str] = None
	business_type: Optional[str] = None
	hints: ValidationHints = field(default_factory=ValidationHints)
	is_placeholder: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return _drop_none(asdict(self))


def _drop_none(value: Any) -> Any:
	if isinstance(value, dict):
		return {k: _drop_none(v) for k, v in value.items() if v is not None}
	if isinstance(value, list):
		return [_drop_none(v) for v in value]
	return value


# Manual-entry field names (camelCase, as the form posts them) -> FactSheet fields.
FORM_FIELD_ALIASES: Dict[str, str] = {
	"contentType": "content_type",
	"websiteUrl": "website_url",
	"pageTitle": "page_title",
	"pageH1": "page_h1",
	"authorName": "author_name",
	"authorType": "author_type",
	"publisherName": "publisher_name",
	"publisherLogoUrl": "publisher_logo_url",
	"datePublished": "date_published",
	"dateModified": "date_modified",
	"howToName": "how_to_name",
	"howToDescription": "how_to_description",
	"streetAddress": "street_address",
	"addressLocality": "address_locality",
	"addressRegion": "address_region",
	"postalCode": "postal_code",
	"addressCountry": "address_country",
	"voiceSummary": "voice_summary",
	"voiceKeywords": "voice_keywords",
	"faqQuestions": "faq_questions",
	"faqAnswers": "faq_answers",
	"serviceAreas": "service_areas",
	"ratingValue": "rating_value",
	"reviewCount": "review_count",
	"googleMap": "google_map",
	"servicesOffered": "services_offered",
	"businessHours": "business_hours",
	"priceRange": "price_range",
	"alternativeNames": "alternative_names",
	"foundingDate": "founding_date",
	"paymentMethods": "payment_methods",
	"specialOffers": "special_offers",
	"socialProfiles": "social_profiles",
	"steps": "how_to_steps",
	"howToSteps": "how_to_steps",
	"logoUrl": "logo_url",
}

# Text fields that arrive as one string but carry a list.
COMMA_LIST_FIELDS = ("service_areas", "alternative_names", "payment_methods", "currencies", "languages", "cuisines")
LINE_LIST_FIELDS = ("awards", "special_offers", "images", "social_profiles", "how_to_steps")
NUMERIC_FIELDS = ("latitude", "longitude", "rating_value", "review_count")

DEFAULT_FAQ_ANSWER = "Contact us for more information."


def _blank_entry(value: Any) -> bool:
	return value is None or value == [] or value == {} or (isinstance(value, str) and not value.strip())


def merge_forms(entered: Mapping[str, Any], fallback: Mapping[str, Any]) -> Dict[str, Any]:
	"""Field map keyed by FactSheet names: entered values, blanks filled from fallback."""
	merged = {FORM_FIELD_ALIASES.get(key, key): value for key, value in fallback.items()}
	for key, value in entered.items():
		name = FORM_FIELD_ALIASES.get(key, key)
		if not _blank_entry(value) or name not in merged:
			merged[name] = value
	return merged


@dataclass
class FactSheet:
	"""Flat fact map shared by the manual and automated paths (NormalizedFacts)."""
	content_type: str = "LocalBusiness"
	name: Optional[str] = None
	website_url: Optional[str] = None
	description: Optional[str] = None
	page_title: Optional[str] = None
	page_h1: Optional[str] = None
	# Article
	headline: Optional[str] = None
	author_name: Optional[str] = None
	author_type: Optional[str] = None
	publisher_name: Optional[str] = None
	publisher_logo_url: Optional[str] = None
	date_published: Optional[str] = None
	date_modified: Optional[str] = None
	# How-to
	how_to_name: Optional[str] = None
	how_to_description: Optional[str] = None
	how_to_steps: Optional[List[str]] = None
	# Contact and location
	telephone: Optional[str] = None
	email: Optional[str] = None
	street_address: Optional[str] = None
	address_locality: Optional[str] = None
	address_region: Optional[str] = None
	postal_code: Optional[str] = None
	address_country: Optional[str] = None
	latitude: Optional[Any] = None
	longitude: Optional[Any] = None
	google_map: Optional[str] = None
	service_areas: Optional[List[str]] = None
	# Voice / SEO
	voice_summary: Optional[str] = None
	voice_keywords: Optional[str] = None
	faqs: Optional[List[FaqPair]] = None
	# Reputation
	rating_value: Optional[Any] = None
	review_count: Optional[Any] = None
	reviews: Optional[List[ReviewFacts]] = None
	# Business details
	services_offered: Optional[List[ServiceFacts]] = None
	business_hours: Optional[str] = None
	opening_hours: Optional[List[OpeningHoursEntry]] = None
	price_range: Optional[str] = None
	alternative_names: Optional[List[str]] = None
	founding_date: Optional[str] = None
	payment_methods: Optional[List[str]] = None
	currencies: Optional[List[str]] = None
	awards: Optional[List[str]] = None
	special_offers: Optional[List[str]] = None
	amenities: Optional[Dict[str, bool]] = None
	cuisines: Optional[List[str]] = None
	accepts_reservations: Optional[bool] = None
	offers_delivery: Optional[bool] = None
	offers_takeaway: Optional[bool] = None
	menu_url: Optional[str] = None
	slogan: Optional[str] = None
	languages: Optional[List[str]] = None
	wheelchair_accessible: Optional[bool] = None
	smoking_allowed: Optional[bool] = None
	logo_url: Optional[str] = None
	images: Optional[List[str]] = None
	social_profiles: Optional[List[str]] = None
	is_placeholder: bool = False

	@classmethod
	def from_form(cls, form: Mapping[str, Any]) -> "FactSheet":
		"""Build from a manual-entry field map (camelCase or snake_case keys)."""
		known = {f.name for f in fields(cls)}
		values: Dict[str, Any] = {}
		for key, raw in form.items():
			name = FORM_FIELD_ALIASES.get(key, key)
			if name in known:
				values[name] = raw

		questions = form.get("faqQuestions") or form.get("faq_questions")
		answers = form.get("faqAnswers") or form.get("faq_answers")

		for name in COMMA_LIST_FIELDS:
			if name in values:
				values[name] = _split(values[name], ",")
		for name in LINE_LIST_FIELDS:
			if name in values:
				values[name] = _split(values[name], "\n")
		if "services_offered" in values:
			values["services_offered"] = _services(values["services_offered"])
		if "reviews" in values:
			values["reviews"] = _records(values["reviews"], ReviewFacts)
		if "opening_hours" in values:
			values["opening_hours"] = _records(values["opening_hours"], OpeningHoursEntry)
		if "faqs" in values:
			items = values["faqs"] if isinstance(values["faqs"], list) else []
			values["faqs"] = [pair for pair in (_faq(item) for item in items) if pair]
		if isinstance(questions, str) and questions.strip():
			values["faqs"] = pair_faq_text(questions, answers if isinstance(answers, str) else None)

		for key, value in list(values.items()):
			if isinstance(value, (int, float)) and not isinstance(value, bool) and key not in NUMERIC_FIELDS:
				value = str(value)
			if isinstance(value, str):
				values[key] = value.strip() or None
			elif isinstance(value, list) and not value:
				values[key] = None
		if not values.get("content_type"):
			values.pop("content_type", None)
		values.pop("is_placeholder", None)
		return cls(**values)

	def to_form(self) -> Dict[str, Any]:
		"""Render back to the camelCase field map, omitting absent values."""
		reverse = {v: k for k, v in FORM_FIELD_ALIASES.items() if k not in ("howToSteps",)}
		out: Dict[str, Any] = {}
		for f in fields(self):
			value = getattr(self, f.name)
			if value is None or f.name == "is_placeholder":
				continue
			key = reverse.get(f.name, f.name)
			if f.name == "faqs":
				out["faqQuestions"] = "\n".join(p.question for p in value)
				out["faqAnswers"] = "\n".join(p.answer or DEFAULT_FAQ_ANSWER for p in value)
			elif f.name in COMMA_LIST_FIELDS:
				out[key] = ", ".join(value)
			elif f.name in LINE_LIST_FIELDS:
				out[key] = list(value) if f.name in ("images", "social_profiles", "how_to_steps") else "\n".join(value)
			elif f.name == "services_offered":
				out[key] = "\n".join(s.name for s in value)
			elif isinstance(value, (list, dict)):
				out[key] = _drop_none(asdict(self)[f.name])
			else:
				out[key] = value if isinstance(value, (bool, str)) else str(value)
		return out


def _split(value: Any, sep: str) -> Optional[List[str]]:
	if value is None:
		return None
	if isinstance(value, (list, tuple)):
		items = [str(v).strip() for v in value]
	else:
		items = [part.strip() for part in str(value).split(sep)]
	items = [i for i in items if i]
	return items or None


def _services(value: Any) -> Optional[List[ServiceFacts]]:
	if value is None:
		return None
	if isinstance(value, str):
		names = _split(value, "\n") or []
		return [ServiceFacts(name=n) for n in names] or None
	services: List[ServiceFacts] = []
	for item in value:
		if isinstance(item, ServiceFacts):
			services.append(item)
		elif isinstance(item, Mapping) and item.get("name"):
			services.append(ServiceFacts(name=str(item["name"]).strip(), description=item.get("description"), price=item.get("price")))
		elif isinstance(item, str) and item.strip():
			services.append(ServiceFacts(name=item.strip()))
	return services or None


def _records(value: Any, record_type: type) -> Optional[List[Any]]:
	if not isinstance(value, (list, tuple)):
		return None
	allowed = {f.name for f in fields(record_type)}
	records: List[Any] = []
	for item in value:
		if isinstance(item, record_type):
			records.append(item)
		elif isinstance(item, Mapping):
			try:
				records.append(record_type(**{k: v for k, v in item.items() if k in allowed}))
			except TypeError:
				continue
	return records or None


def _faq(item: Any) -> Optional[FaqPair]:
	if isinstance(item, FaqPair):
		return item
	if isinstance(item, Mapping) and item.get("question"):
		return FaqPair(question=str(item["question"]).strip(), answer=item.get("answer"))
	return None


def pair_faq_text(questions: Optional[str], answers: Optional[str]) -> List[FaqPair]:
	"""Pair newline-separated questions and answers, stripping list numbering."""
	if not questions:
		return []
	question_list = [q.strip() for q in questions.split("\n") if q.strip()]
	answer_list = [a.strip() for a in (answers or "").split("\n") if a.strip()]
	pairs: List[FaqPair] = []
	for index, question in enumerate(question_list):
		text = re.sub(r"^\d+[.)]\s*", "", question)
		answer = answer_list[index] if index < len(answer_list) else None
		pairs.append(FaqPair(question=text, answer=answer))
	return pairs
