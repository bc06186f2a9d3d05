import json

import pytest
import requests

from conftest import FakeResponse, FakeSession
from errors import FetchError, ValidationRejected
from pipeline import (
	VALIDATED,
	fetch_html,
	generate_from_html,
	generate_from_manual,
	generate_from_url,
	validate_markup,
)
from settings import GeneratorConfig


def test_fetch_direct(config):
	session = FakeSession({"https://shop.example": FakeResponse("<html><body>ok</body></html>")})
	assert fetch_html("https://shop.example", config, session) == "<html><body>ok</body></html>"
	assert session.calls == ["https://shop.example"]


def test_fetch_falls_back_to_proxy_with_json_envelope():
	config = GeneratorConfig(proxy_prefixes=["https://proxy.example/get?url="])
	session = FakeSession({
		"https://shop.example": requests.ConnectionError("refused"),
		"https://proxy.example/": FakeResponse(json.dumps({"contents": "<html>via proxy</html>"}), content_type="application/json"),
	})
	assert fetch_html("https://shop.example", config, session) == "<html>via proxy</html>"
	assert session.calls[1] == "https://proxy.example/get?url=https%3A%2F%2Fshop.example"


def test_fetch_http_error_and_empty_body_count_as_failures():
	config = GeneratorConfig(proxy_prefixes=["https://proxy.example/raw?url="])
	session = FakeSession({
		"https://shop.example": FakeResponse("blocked", status_code=403),
		"https://proxy.example/": FakeResponse("   "),
	})
	with pytest.raises(FetchError) as excinfo:
		fetch_html("https://shop.example", config, session)
	assert len(excinfo.value.attempts) == 2
	assert excinfo.value.url == "https://shop.example"


def test_fetch_fixes_latin1_default_encoding(config):
	response = FakeResponse("<html>café</html>", encoding="ISO-8859-1")
	session = FakeSession({"https://shop.example": response})
	fetch_html("https://shop.example", config, session)
	assert response.encoding == "utf-8"


def test_generate_from_html_end_to_end(restaurant_html, config):
	result = generate_from_html(restaurant_html, "https://luigistrattoria.com/", config)
	assert result.state == VALIDATED
	assert result.report.valid
	entity = result.document["mainEntity"]
	assert entity["@type"] == "Restaurant"
	assert entity["telephone"] == "+1-312-555-0147"
	assert entity["address"]["postalCode"] == "60606"
	assert entity["aggregateRating"] == {
		"@type": "AggregateRating", "ratingValue": "4.6", "reviewCount": "128", "bestRating": "5", "worstRating": "1",
	}
	assert entity["priceRange"] == "$$$"
	assert result.markup.startswith('<script type="application/ld+json">')
	assert '<meta name="geo.placename" content="Chicago">' in result.meta_tags


def test_generate_from_html_infers_missing_region_and_tier(dental_html, config):
	result = generate_from_html(dental_html, "https://brightsmile.com/", config)
	entity = result.document["mainEntity"]
	assert entity["name"] == "Bright Smile Dental"
	assert entity["address"]["addressRegion"] == "TX"
	assert entity["priceRange"] == "$$$"
	assert entity["sameAs"] == ["https://www.facebook.com/brightsmile"]


def test_unparseable_html_uses_placeholder(config):
	result = generate_from_html("", "https://joes-auto-repair.com/", config)
	assert result.facts.is_placeholder
	assert result.document["mainEntity"]["@type"] == "AutomotiveBusiness"
	assert result.document["mainEntity"]["name"] == "Joes Auto Repair"
	assert "address" not in result.document["mainEntity"]
	assert result.to_dict()["is_placeholder"] is True


def test_fetch_failure_uses_placeholder(config):
	result = generate_from_url("https://harbor-hardware.com/", config, session=FakeSession())
	assert result.state == VALIDATED
	assert result.facts.is_placeholder
	assert result.document["mainEntity"]["name"] == "Harbor Hardware"


def test_lenient_run_drops_bad_fields_with_notices(config):
	html = """<html><head><script type="application/ld+json">
	{"@type": "LocalBusiness", "name": "Odd Shop", "description": "Curiosities.",
	 "address": {"streetAddress": "1 Elm Street", "addressLocality": "Springfield", "addressRegion": "IL", "postalCode": "ABCDE"}}
	</script></head><body><p>Curiosities of every kind.</p></body></html>"""
	result = generate_from_html(html, "https://oddshop.example/", config)
	assert "postalCode" not in result.document["mainEntity"]["address"]
	assert any("Invalid postal code" in n for n in result.notices)


def test_strict_url_run_rejects(config):
	html = "<html><head><title>Shop | Home</title></head><body><p>Welcome to the shop.</p></body></html>"
	with pytest.raises(ValidationRejected) as excinfo:
		generate_from_html(html, "https://shop.example/", config.with_overrides(strict=True))
	assert "Complete address is required: missing street address, city, state/region" in excinfo.value.errors


def test_manual_entry(business_form, config):
	result = generate_from_manual(business_form, config)
	entity = result.document["mainEntity"]
	assert entity["telephone"] == "+1-555-123-4567"
	assert len(entity["openingHoursSpecification"]) == 5
	answers = [q["acceptedAnswer"]["text"] for q in entity["mainEntityOfPage"]["mainEntity"]]
	assert answers == ["Yes, while you wait.", "Contact us at +1-555-123-4567 for more information."]
	assert result.extracted is None


def test_manual_entry_missing_address_is_rejected(config):
	form = {"name": "Harbor Hardware", "description": "Hardware store."}
	with pytest.raises(ValidationRejected) as excinfo:
		generate_from_manual(form, config)
	assert excinfo.value.errors == ["Complete address is required: missing street address, city, state/region"]


def test_validate_markup(business_form, config):
	result = generate_from_manual(business_form, config)
	assert validate_markup(result.markup).valid
