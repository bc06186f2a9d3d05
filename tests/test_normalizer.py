from facts import FactSheet
from normalizer import (
	facts_from_extracted,
	form_from_schema,
	normalize_facts,
	process_faq_text,
)
from page_extractor import extract_page, placeholder_facts


def _sheet(**overrides):
	values = dict(
		content_type="LocalBusiness",
		name="Harbor Hardware",
		description="Neighborhood hardware store.",
		street_address="12 Harbor Road",
		address_locality="Portland",
		address_region="OR",
		postal_code="97201",
	)
	values.update(overrides)
	return FactSheet(**values)


def test_strict_missing_address_is_one_combined_error():
	sheet = _sheet(street_address=None, address_locality=None, address_region=None, postal_code=None)
	result = normalize_facts(sheet, automated=False)
	assert result.errors == ["Complete address is required: missing street address, city, state/region"]
	assert not result.ok


def test_strict_partial_address_names_only_missing_parts():
	result = normalize_facts(_sheet(address_region=None), automated=False)
	assert result.errors == ["Complete address is required: missing state/region"]


def test_lenient_missing_address_only_warns():
	sheet = _sheet(street_address=None, address_locality=None, address_region=None, postal_code=None)
	result = normalize_facts(sheet, automated=True)
	assert result.ok
	assert any("No address information" in n for n in result.notices)


def test_strict_required_fields():
	result = normalize_facts(_sheet(name=" ", description=None), automated=False)
	assert "Business name is required" in result.errors
	assert "Business description is required" in result.errors


def test_article_and_howto_required_fields():
	article = normalize_facts(FactSheet(content_type="Article", headline="Hi"), automated=False)
	assert article.errors == ["Author name is required", "Publisher name is required"]
	howto = normalize_facts(FactSheet(content_type="HowTo", how_to_name="Fix a tap"), automated=False)
	assert howto.errors == ["At least one how-to step is required"]


def test_invalid_email_strict_vs_lenient():
	strict = normalize_facts(_sheet(email="nobody@nowhere"), automated=False)
	assert strict.errors == ["Invalid email format"]
	lenient = normalize_facts(_sheet(email="nobody@nowhere"), automated=True)
	assert lenient.ok
	assert lenient.facts.email is None
	assert any("Invalid email format" in n for n in lenient.notices)


def test_invalid_postal_code_strict_vs_lenient():
	strict = normalize_facts(_sheet(postal_code="ABC"), automated=False)
	assert strict.errors == ["Invalid postal code format for US: ABC"]
	lenient = normalize_facts(_sheet(postal_code="ABC"), automated=True)
	assert lenient.facts.postal_code is None


def test_region_inferred_from_city():
	result = normalize_facts(_sheet(address_locality="Austin", address_region=None, postal_code="78701"), automated=True)
	assert result.facts.address_region == "TX"
	assert any("Inferred region TX" in n for n in result.notices)


def test_postal_code_inferred_from_city_only_when_automated():
	sheet = _sheet(address_locality="Chicago", address_region="IL", postal_code=None)
	assert normalize_facts(sheet, automated=True).facts.postal_code == "60601"
	assert normalize_facts(sheet, automated=False).facts.postal_code is None


def test_postal_code_found_in_street_text():
	sheet = _sheet(street_address="12 Harbor Road, Portland OR 97209", postal_code=None)
	assert normalize_facts(sheet, automated=False).facts.postal_code == "97209"


def test_price_range_explicit_canonical_wins():
	result = normalize_facts(_sheet(address_locality="New York", address_region="NY", postal_code="10001", price_range="$"))
	assert result.facts.price_range == "$"


def test_price_range_descriptive_is_converted():
	assert normalize_facts(_sheet(price_range="Luxury")).facts.price_range == "$$$$"


def test_price_range_detected_from_city():
	sheet = _sheet(address_locality="New York", address_region="NY", postal_code="10001")
	assert normalize_facts(sheet).facts.price_range == "$$$$"
	sheet = _sheet(address_locality="Detroit", address_region="MI", postal_code="48201")
	assert normalize_facts(sheet).facts.price_range == "$"


def test_price_range_language_beats_city():
	sheet = _sheet(
		address_locality="New York", address_region="NY", postal_code="10001",
		description="Affordable hardware for every apartment.",
	)
	assert normalize_facts(sheet).facts.price_range == "$"


def test_ranges_and_counts():
	lenient = normalize_facts(_sheet(latitude="95", longitude="-122.6", rating_value="4.5", review_count="12"))
	assert lenient.facts.latitude is None
	assert lenient.facts.longitude == -122.6
	assert lenient.facts.rating_value == 4.5
	assert lenient.facts.review_count == 12

	strict = normalize_facts(_sheet(rating_value="6", review_count="0"), automated=False)
	assert strict.errors == ["Rating must be between 1 and 5", "Review count must be a positive number"]


def test_social_profiles_strict_index_errors_and_lenient_filter():
	profiles = ["https://facebook.com/harbor", "facebook/harbor"]
	strict = normalize_facts(_sheet(social_profiles=profiles), automated=False)
	assert strict.errors == ["Invalid social profile URL at index 1"]
	lenient = normalize_facts(_sheet(social_profiles=profiles), automated=True)
	assert lenient.facts.social_profiles == ["https://facebook.com/harbor"]


def test_phone_is_formatted_and_input_untouched():
	sheet = _sheet(telephone="(555) 123-4567")
	result = normalize_facts(sheet)
	assert result.facts.telephone == "+1-555-123-4567"
	assert sheet.telephone == "(555) 123-4567"


def test_process_faq_text():
	pairs = process_faq_text("1. Do you cut keys?\n2) Do you deliver?", "Yes, while you wait.")
	assert [p.question for p in pairs] == ["Do you cut keys?", "Do you deliver?"]
	assert pairs[0].answer == "Yes, while you wait."
	assert pairs[1].answer == "Contact us for more information."


def test_facts_from_extracted(restaurant_html, config):
	extracted = extract_page(restaurant_html, "https://luigistrattoria.com/", config)
	sheet = facts_from_extracted(extracted)
	assert sheet.content_type == "Restaurant"
	assert sheet.name == "Luigi's Trattoria"
	assert sheet.address_locality == "Chicago"
	assert sheet.description.startswith("Family-run Italian restaurant")
	assert sheet.website_url == "https://luigistrattoria.com/"


def test_facts_from_placeholder_keeps_flag():
	sheet = facts_from_extracted(placeholder_facts("https://harbor-hardware.com"))
	assert sheet.is_placeholder is True
	assert sheet.name == "Harbor Hardware"


def test_form_from_schema_reads_business_page():
	doc = {
		"@context": "https://schema.org",
		"@type": "WebPage",
		"url": "https://harborhardware.com",
		"name": "Harbor Hardware | Portland",
		"mainEntity": {
			"@type": "LocalBusiness",
			"name": "Harbor Hardware",
			"telephone": "+1-555-123-4567",
			"address": {"@type": "PostalAddress", "streetAddress": "12 Harbor Road", "addressLocality": "Portland"},
			"areaServed": [{"@type": "Place", "name": "Portland"}, {"@type": "Place", "name": "Beaverton"}],
			"openingHoursSpecification": [{"@type": "OpeningHoursSpecification", "dayOfWeek": "Monday", "opens": "09:00", "closes": "17:00"}],
		},
	}
	form = form_from_schema(doc)
	assert form["name"] == "Harbor Hardware"
	assert form["websiteUrl"] == "https://harborhardware.com"
	assert form["pageTitle"] == "Harbor Hardware | Portland"
	assert form["streetAddress"] == "12 Harbor Road"
	assert form["serviceAreas"] == "Portland, Beaverton"
	assert form["businessHours"] == "Monday: 09:00-17:00"


def test_form_from_schema_ignores_non_objects():
	assert form_from_schema(["not", "a", "doc"]) == {}


def test_non_finite_review_count_is_rejected_not_raised():
	for raw in ("nan", "inf", "1e400"):
		strict = normalize_facts(_sheet(review_count=raw), automated=False)
		assert strict.errors == ["Review count must be a positive number"]
		lenient = normalize_facts(_sheet(review_count=raw), automated=True)
		assert lenient.ok
		assert lenient.facts.review_count is None
	strict = normalize_facts(_sheet(rating_value="NaN", latitude="inf"), automated=False)
	assert "Rating must be between 1 and 5" in strict.errors
	assert "Invalid latitude (must be between -90 and 90)" in strict.errors


def test_declared_country_without_pattern_uses_generic_postal_rule():
	sheet = _sheet(street_address="Bahnhofstrasse 1", address_locality="Zurich", address_region="ZH", address_country="Switzerland", postal_code="8001")
	strict = normalize_facts(sheet, automated=False)
	assert strict.errors == []
	assert strict.facts.postal_code == "8001"

	lenient = normalize_facts(_sheet(address_country="Switzerland", postal_code="CH-X"), automated=True)
	assert lenient.facts.postal_code is None
	assert any("Invalid postal code format for Switzerland: CH-X" in n for n in lenient.notices)


def test_declared_registered_country_uses_its_pattern():
	strict = normalize_facts(_sheet(address_country="Canada", postal_code="97201"), automated=False)
	assert strict.errors == ["Invalid postal code format for CA: 97201"]
