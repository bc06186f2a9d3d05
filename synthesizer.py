"""Schema Synthesizer: normalized facts -> unvalidated JSON-LD document.

Three templates: a WebPage wrapping a business entity, an Article, and a
HowTo. Sub-nodes are only built when supporting data exists; the cleaner
removes whatever still ends up half-formed.
"""
import datetime as dt
import html as ihtml
import json
import re
from typing import Any, Dict, List, Optional

from errors import PipelineError, SchemaParseError
from facts import DEFAULT_FAQ_ANSWER, FactSheet, OpeningHoursEntry
from nodes import (
	AggregateRating,
	Answer,
	BusinessEntity,
	GeoCoordinates,
	HowToStep,
	Image,
	Named,
	NodeKind,
	Offer,
	OpeningHours,
	PostalAddress,
	Question,
	Rating,
	Review,
	WebPage,
)
from patterns import BUSINESS_TYPES, infer_region_from_city, parse_opening_hours

SCHEMA_CONTEXT = "https://schema.org"
CONTENT_TYPES = BUSINESS_TYPES + ("Article", "HowTo")

PLACEHOLDER_STREET = "Address available upon request"
PLACEHOLDER_CITY = "Local Area"
PLACEHOLDER_REGION = "State"
DEFAULT_COUNTRY = "US"

ENVELOPE_OPEN = '<script type="application/ld+json">'
ENVELOPE_CLOSE = "</script>"
ENVELOPE_RE = re.compile(r'<script[^>]*type=["\']application/ld\+json["\'][^>]*>\s*([\s\S]*?)\s*</script>', re.I)


def _now() -> str:
	return dt.datetime.now(dt.timezone.utc).isoformat()


def _present(value: Any) -> bool:
	return value is not None and value != "" and value != []


def synthesize(
	facts: FactSheet,
	content_type: Optional[str] = None,
	images: Optional[List[str]] = None,
	social_profiles: Optional[List[str]] = None,
	steps: Optional[List[str]] = None,
) -> Dict[str, Any]:
	"""Build the document for the selected content type. Auxiliary lists override the fact sheet's own."""
	kind = content_type or facts.content_type or "LocalBusiness"
	if kind not in CONTENT_TYPES:
		raise PipelineError(f"Unsupported content type: {kind}")
	images = images if images is not None else (facts.images or [])
	social_profiles = social_profiles if social_profiles is not None else (facts.social_profiles or [])
	steps = steps if steps is not None else (facts.how_to_steps or [])

	if kind == "Article":
		return build_article(facts, images)
	if kind == "HowTo":
		return build_how_to(facts, images, steps)
	return build_business_page(facts, kind, images, social_profiles)


# ---------------------------------------------------------------------------
# Article / HowTo
# ---------------------------------------------------------------------------

def _image_list(images: List[str], name: Optional[str] = None) -> Optional[List[Dict[str, Any]]]:
	nodes = [Image.create(url=src, name=name) for src in images if src]
	return nodes or None


def build_article(facts: FactSheet, images: List[str]) -> Dict[str, Any]:
	published = facts.date_published or _now()
	publisher_logo = Image.create(url=facts.publisher_logo_url) if facts.publisher_logo_url else None
	doc = {"@context": SCHEMA_CONTEXT}
	doc.update(NodeKind.create(
		"Article",
		headline=facts.headline,
		author=NodeKind.create(facts.author_type or "Person", name=facts.author_name),
		publisher=NodeKind.create("Organization", name=facts.publisher_name, logo=publisher_logo),
		datePublished=published,
		dateModified=facts.date_modified or published,
		image=_image_list(images),
		description=facts.voice_summary or facts.how_to_description or facts.description,
		keywords=facts.voice_keywords,
	))
	return doc


def build_how_to(facts: FactSheet, images: List[str], steps: List[str]) -> Dict[str, Any]:
	step_nodes = [
		HowToStep.create(position=index, text=text.strip())
		for index, text in enumerate((s for s in steps if s and s.strip()), start=1)
	]
	doc = {"@context": SCHEMA_CONTEXT}
	doc.update(NodeKind.create(
		"HowTo",
		name=facts.how_to_name,
		description=facts.how_to_description,
		image=_image_list(images),
		step=step_nodes,
	))
	return doc


# ---------------------------------------------------------------------------
# Business page
# ---------------------------------------------------------------------------

def build_address(facts: FactSheet) -> Optional[Dict[str, Any]]:
	"""Address sub-node with last-resort placeholders for the components still missing."""
	street = facts.street_address
	city = facts.address_locality
	region = facts.address_region
	postal = facts.postal_code
	if not any(_present(v) for v in (street, city, region, postal)):
		return None
	if not street and (city or region):
		street = PLACEHOLDER_STREET
	if not city and region:
		city = PLACEHOLDER_CITY
	if not region and city:
		region = infer_region_from_city(city) or PLACEHOLDER_REGION
	return PostalAddress.create(
		streetAddress=street,
		addressLocality=city,
		addressRegion=region,
		postalCode=postal,
		addressCountry=facts.address_country or DEFAULT_COUNTRY,
	)


def _opening_hours(facts: FactSheet) -> Optional[List[Dict[str, Any]]]:
	entries = facts.opening_hours
	if not entries and facts.business_hours:
		entries = [OpeningHoursEntry(day=d, opens=o, closes=c) for d, o, c in parse_opening_hours(facts.business_hours)]
	nodes = [OpeningHours.create(dayOfWeek=e.day, opens=e.opens, closes=e.closes) for e in entries or []]
	return nodes or None


def faq_answer_fallback(telephone: Optional[str]) -> str:
	return f"Contact us at {telephone or 'our phone number'} for more information."


def _faq_page(facts: FactSheet) -> Optional[Dict[str, Any]]:
	if not facts.faqs:
		return None
	fallback = faq_answer_fallback(facts.telephone) if facts.telephone else DEFAULT_FAQ_ANSWER
	questions = [
		Question.create(name=pair.question, acceptedAnswer=Answer.create(text=pair.answer or fallback))
		for pair in facts.faqs
		if pair.question
	]
	return NodeKind.create("FAQPage", mainEntity=questions) if questions else None


def _price_fields(price: Optional[str]) -> Dict[str, Any]:
	if not price:
		return {}
	amount = re.search(r"\d[\d,]*(?:\.\d+)?", price)
	if not amount:
		return {"description": price}
	fields: Dict[str, Any] = {"price": amount.group(0).replace(",", "")}
	if "$" in price or "USD" in price.upper():
		fields["priceCurrency"] = "USD"
	elif "£" in price or "GBP" in price.upper():
		fields["priceCurrency"] = "GBP"
	elif "€" in price or "EUR" in price.upper():
		fields["priceCurrency"] = "EUR"
	return fields


def _offers(facts: FactSheet) -> Optional[List[Dict[str, Any]]]:
	offers = []
	for service in facts.services_offered or []:
		item = Named.create("Service", name=service.name, description=service.description)
		offers.append(Offer.create(itemOffered=item, **_price_fields(service.price)))
	return offers or None


def _offer_catalog(facts: FactSheet) -> Optional[Dict[str, Any]]:
	if not facts.special_offers:
		return None
	return NodeKind.create(
		"OfferCatalog",
		name="Special Offers",
		itemListElement=[Offer.create(name=offer) for offer in facts.special_offers],
	)


def _reviews(facts: FactSheet) -> Optional[List[Dict[str, Any]]]:
	nodes = []
	for review in facts.reviews or []:
		nodes.append(Review.create(
			author=Named.create("Person", name=review.author) if review.author else None,
			reviewBody=review.body,
			reviewRating=Rating.create(ratingValue=review.rating) if review.rating is not None else None,
			datePublished=review.date,
		))
	return nodes or None


def _amenities(facts: FactSheet) -> Optional[List[Dict[str, Any]]]:
	flags: Dict[str, bool] = dict(facts.amenities or {})
	if facts.offers_delivery is not None:
		flags.setdefault("Delivery", facts.offers_delivery)
	if facts.offers_takeaway is not None:
		flags.setdefault("Takeout", facts.offers_takeaway)
	if facts.wheelchair_accessible is not None:
		flags.setdefault("Wheelchair Accessible", facts.wheelchair_accessible)
	nodes = [Named.create("LocationFeatureSpecification", name=name, value=value) for name, value in flags.items()]
	return nodes or None


def build_business_entity(facts: FactSheet, kind: str, images: List[str], social_profiles: List[str]) -> Dict[str, Any]:
	geo = None
	if _present(facts.latitude) and _present(facts.longitude):
		geo = GeoCoordinates.create(latitude=facts.latitude, longitude=facts.longitude)
	rating = None
	if _present(facts.rating_value) and _present(facts.review_count):
		rating = AggregateRating.create(ratingValue=facts.rating_value, reviewCount=facts.review_count)
	logo_src = facts.logo_url or (images[0] if images else None)

	return BusinessEntity.create(
		kind,
		name=facts.name,
		description=facts.description,
		url=facts.website_url,
		telephone=facts.telephone,
		email=facts.email,
		address=build_address(facts),
		geo=geo,
		hasMap=facts.google_map,
		logo=Image.create(url=logo_src) if logo_src else None,
		image=_image_list(images, facts.name),
		slogan=facts.slogan,
		priceRange=facts.price_range,
		paymentAccepted=facts.payment_methods,
		currenciesAccepted=", ".join(facts.currencies) if facts.currencies else None,
		foundingDate=facts.founding_date,
		alternateName=facts.alternative_names,
		openingHoursSpecification=_opening_hours(facts),
		aggregateRating=rating,
		review=_reviews(facts),
		areaServed=[Named.create("Place", name=area) for area in facts.service_areas or []],
		makesOffer=_offers(facts),
		hasOfferCatalog=_offer_catalog(facts),
		award=facts.awards,
		amenityFeature=_amenities(facts),
		servesCuisine=facts.cuisines,
		acceptsReservations=facts.accepts_reservations,
		hasMenu=facts.menu_url,
		knowsLanguage=facts.languages,
		smokingAllowed=facts.smoking_allowed,
		mainEntityOfPage=_faq_page(facts),
		sameAs=list(social_profiles) or None,
	)


def build_business_page(facts: FactSheet, kind: str, images: List[str], social_profiles: List[str]) -> Dict[str, Any]:
	page_name = facts.page_title or facts.name
	doc = {"@context": SCHEMA_CONTEXT}
	doc.update(WebPage.create(
		url=facts.website_url,
		name=page_name,
		headline=facts.page_h1 or facts.page_title or facts.name,
		image=_image_list(images, page_name),
		mainEntity=build_business_entity(facts, kind, images, social_profiles),
		keywords=facts.voice_keywords,
		description=facts.voice_summary or facts.description,
	))
	return doc


# ---------------------------------------------------------------------------
# Envelope and meta tags
# ---------------------------------------------------------------------------

def wrap_document(doc: Dict[str, Any]) -> str:
	"""Embed the document in the application/ld+json script envelope."""
	return f"{ENVELOPE_OPEN}\n{json.dumps(doc, indent=2, ensure_ascii=False)}\n{ENVELOPE_CLOSE}"


def unwrap_document(markup: str) -> Dict[str, Any]:
	"""Recover the JSON-LD tree from an envelope (or from bare JSON)."""
	if not isinstance(markup, str) or not markup.strip():
		raise SchemaParseError("no markup to unwrap")
	match = ENVELOPE_RE.search(markup)
	payload = match.group(1) if match else markup.strip()
	try:
		data = json.loads(payload)
	except json.JSONDecodeError as exc:
		raise SchemaParseError(f"envelope does not contain valid JSON: {exc}") from exc
	if not isinstance(data, dict):
		raise SchemaParseError("envelope JSON is not an object")
	return data


def _meta_tag(name: str, content: Any) -> Optional[str]:
	if not _present(content):
		return None
	return f'<meta name="{name}" content="{ihtml.escape(str(content), quote=True)}">'


def build_local_seo_meta_tags(facts: FactSheet) -> str:
	"""Render the local SEO <meta> tags that accompany a business document."""
	region = None
	if facts.address_region:
		country = facts.address_country or DEFAULT_COUNTRY
		region = f"{country}-{facts.address_region}"
	position = None
	if _present(facts.latitude) and _present(facts.longitude):
		position = f"{facts.latitude};{facts.longitude}"
	tags = [
		_meta_tag("description", facts.voice_summary or facts.description),
		_meta_tag("geo.region", region),
		_meta_tag("geo.placename", facts.address_locality),
		_meta_tag("geo.postal-code", facts.postal_code),
		_meta_tag("geo.position", position),
		_meta_tag("ICBM", f"{facts.latitude}, {facts.longitude}" if position else None),
		_meta_tag("keywords", facts.voice_keywords),
		_meta_tag("voice-summary", facts.voice_summary),
		_meta_tag("price-range", facts.price_range),
	]
	return "\n".join(t for t in tags if t)
