import copy

from cleaner import address_score, clean_schema, validate_schema
from facts import DEFAULT_FAQ_ANSWER, FactSheet, FaqPair, ReviewFacts
from nodes import BusinessEntity, NodeKind, kind_for
from synthesizer import PLACEHOLDER_STREET, synthesize


def _page(entity):
	return {"@context": "https://schema.org", "@type": "WebPage", "url": "https://example.org", "name": "Example", "mainEntity": entity}


def _full_sheet():
	return FactSheet(
		content_type="LocalBusiness",
		name="Harbor Hardware",
		description="Neighborhood hardware store.",
		website_url="https://harborhardware.com",
		telephone="(555) 123-4567",
		street_address="12 Harbor Road",
		address_locality="Portland",
		address_region="OR",
		postal_code="97201",
		latitude=45.52,
		longitude=-122.68,
		rating_value=4.7,
		review_count=31,
		reviews=[ReviewFacts(author="Sam", body="Great keys.", rating=5), ReviewFacts(author="Ghost", body="  ")],
		faqs=[FaqPair("Do you cut keys?")],
		business_hours="Mon-Sat: 8am-6pm",
		awards=[],
		accepts_reservations=False,
	)


def test_clean_is_idempotent():
	once = clean_schema(synthesize(_full_sheet()))
	assert clean_schema(once) == once


def test_clean_does_not_mutate_input():
	doc = synthesize(_full_sheet())
	before = copy.deepcopy(doc)
	clean_schema(doc)
	assert doc == before


def test_empty_values_are_pruned_but_false_and_zero_kept():
	cleaned = clean_schema({"@type": "Thing", "a": None, "b": "", "c": [], "d": {}, "e": False, "f": 0, "g": [None, "", "x"]})
	assert cleaned == {"@type": "Thing", "e": False, "f": 0, "g": ["x"]}


def test_nameless_business_is_dropped_from_parent():
	cleaned = clean_schema(_page({"@type": "LocalBusiness", "telephone": "555-123-4567"}))
	assert "mainEntity" not in cleaned


def test_business_repair_formats_phone_and_drops_bad_fields():
	cleaned = clean_schema({
		"@type": "Restaurant",
		"name": "  Luigi's ",
		"telephone": "(312) 555-0147",
		"email": "broken@",
		"url": "//luigis.example",
		"sameAs": ["https://facebook.com/luigis", "not a url"],
	})
	assert cleaned == {
		"@type": "Restaurant",
		"name": "Luigi's",
		"telephone": "+1-312-555-0147",
		"url": "https://luigis.example",
		"sameAs": ["https://facebook.com/luigis"],
	}


def test_rating_outside_bounds_is_dropped():
	cleaned = clean_schema(_page({"@type": "LocalBusiness", "name": "X", "aggregateRating": {"@type": "AggregateRating", "ratingValue": "7", "reviewCount": "4"}}))
	assert "aggregateRating" not in cleaned["mainEntity"]


def test_rating_is_canonicalized():
	cleaned = clean_schema({"@type": "AggregateRating", "ratingValue": 4.50, "reviewCount": 12.0})
	assert cleaned == {"@type": "AggregateRating", "ratingValue": "4.5", "reviewCount": "12", "bestRating": "5", "worstRating": "1"}


def test_geo_outside_bounds_is_dropped():
	cleaned = clean_schema(_page({"@type": "LocalBusiness", "name": "X", "geo": {"@type": "GeoCoordinates", "latitude": 91, "longitude": 0}}))
	assert "geo" not in cleaned["mainEntity"]


def test_address_without_components_is_dropped():
	entity = {"@type": "LocalBusiness", "name": "X", "address": {"@type": "PostalAddress", "postalCode": "nope", "addressCountry": "US"}}
	assert "address" not in clean_schema(entity)


def test_address_defaults_country():
	cleaned = clean_schema({"@type": "PostalAddress", "addressLocality": " Portland "})
	assert cleaned == {"@type": "PostalAddress", "addressLocality": "Portland", "addressCountry": "US"}


def test_question_without_answer_gets_default():
	cleaned = clean_schema({"@type": "Question", "name": "Open Sundays?"})
	assert cleaned["acceptedAnswer"] == {"@type": "Answer", "text": DEFAULT_FAQ_ANSWER}


def test_invalid_opening_hours_are_dropped():
	cleaned = clean_schema([
		{"@type": "OpeningHoursSpecification", "dayOfWeek": "Monday", "opens": "09:00", "closes": "17:00"},
		{"@type": "OpeningHoursSpecification", "dayOfWeek": "Tuesday", "opens": "9am", "closes": "17:00"},
	])
	assert [c["dayOfWeek"] for c in cleaned] == ["Monday"]


def test_empty_review_is_dropped():
	entity = clean_schema(synthesize(_full_sheet()))["mainEntity"]
	assert [r["author"]["name"] for r in entity["review"]] == ["Sam"]
	assert entity["acceptsReservations"] is False
	assert "award" not in entity


def test_kind_registry():
	assert kind_for({"@type": "DentalBusiness"}) is BusinessEntity
	assert kind_for({"@type": ["Restaurant", "Thing"]}) is BusinessEntity
	assert kind_for({"@type": "Unheard"}) is NodeKind
	assert kind_for({}) is NodeKind


def test_validate_clean_business_page():
	report = validate_schema(clean_schema(synthesize(_full_sheet())))
	assert report.valid
	assert report.errors == []


def test_validate_reports_shallow_problems():
	report = validate_schema({"@type": "WebPage", "mainEntity": {"@type": "LocalBusiness"}})
	assert not report.valid
	assert "Missing @context property" in report.errors
	assert "WebPage schema missing url property" in report.errors
	assert "Business schema missing name property" in report.errors
	assert "Business schema missing address property" in report.warnings


def test_validate_article_and_howto():
	article = validate_schema({"@context": "https://schema.org", "@type": "Article", "author": {"name": "A"}})
	assert "Article schema missing headline" in article.errors
	assert "Article schema missing publisher name" in article.errors
	howto = validate_schema({"@context": "https://schema.org", "@type": "HowTo", "name": "Fix"})
	assert howto.errors == ["HowTo schema missing steps"]


def test_validate_never_raises_on_garbage():
	assert validate_schema("nope").errors == ["Schema must be an object"]


def test_address_score_ignores_placeholders():
	assert address_score({"streetAddress": PLACEHOLDER_STREET, "addressLocality": "Portland"}) == 1
	assert address_score({}) == 0


def test_non_finite_numbers_drop_nodes_without_raising():
	for count in ("Infinity", "nan", "1e400"):
		assert clean_schema({"@type": "AggregateRating", "ratingValue": "4", "reviewCount": count}) is None
	cleaned = clean_schema(_page({
		"@type": "LocalBusiness",
		"name": "X",
		"aggregateRating": {"@type": "AggregateRating", "ratingValue": "NaN", "reviewCount": "3"},
		"geo": {"@type": "GeoCoordinates", "latitude": "inf", "longitude": "0"},
	}))
	assert cleaned["mainEntity"] == {"@type": "LocalBusiness", "name": "X"}
