import json

import pytest

import app as api
import pipeline
from conftest import FakeResponse, FakeSession


@pytest.fixture
def client():
	api.app.config["TESTING"] = True
	return api.app.test_client()


def test_health(client):
	resp = client.get("/health")
	assert resp.status_code == 200
	assert resp.get_json()["status"] == "healthy"


def test_unknown_route_is_json_404(client):
	resp = client.get("/nope")
	assert resp.status_code == 404
	assert resp.get_json() == {"error": "Endpoint not found"}


def test_non_json_body_is_rejected(client):
	resp = client.post("/generate/manual", data="name=x")
	assert resp.status_code == 400


def test_unknown_content_type_is_rejected(client, business_form):
	resp = client.post("/generate/manual", json={"form": business_form, "content_type": "Spaceport"})
	assert resp.status_code == 400


def test_generate_manual(client, business_form):
	resp = client.post("/generate/manual", json={"form": business_form, "social_profiles": ["https://facebook.com/harbor"]})
	assert resp.status_code == 200
	body = resp.get_json()
	assert body["state"] == "Validated"
	assert body["schema"]["mainEntity"]["sameAs"] == ["https://facebook.com/harbor"]
	assert body["validation"]["valid"] is True
	assert "<meta" in body["meta_tags"]


def test_generate_manual_strict_rejection_is_422(client):
	resp = client.post("/generate/manual", json={"form": {"name": "Harbor Hardware", "description": "Hardware."}})
	assert resp.status_code == 422
	assert resp.get_json()["errors"] == ["Complete address is required: missing street address, city, state/region"]


def test_generate_manual_fills_blanks_from_generated_schema(client):
	generated = {
		"@context": "https://schema.org",
		"@type": "LocalBusiness",
		"name": "Generated Name",
		"description": "Hardware store.",
		"address": {"@type": "PostalAddress", "streetAddress": "12 Harbor Road", "addressLocality": "Portland", "addressRegion": "OR"},
	}
	resp = client.post("/generate/manual", json={"form": {"name": "Typed Name"}, "generated_schema": generated})
	assert resp.status_code == 200
	entity = resp.get_json()["schema"]["mainEntity"]
	assert entity["name"] == "Typed Name"
	assert entity["address"]["streetAddress"] == "12 Harbor Road"


def test_generate_html(client, restaurant_html):
	resp = client.post("/generate/html", json={"html": restaurant_html, "source_url": "https://luigistrattoria.com/"})
	assert resp.status_code == 200
	assert resp.get_json()["schema"]["mainEntity"]["@type"] == "Restaurant"


def test_generate_html_requires_source_url(client, restaurant_html):
	assert client.post("/generate/html", json={"html": restaurant_html}).status_code == 400


def test_generate_url_uses_placeholder_when_fetch_fails(client, monkeypatch):
	monkeypatch.setattr(pipeline, "make_session", lambda config: FakeSession())
	resp = client.post("/generate/url", json={"url": "https://harbor-hardware.com/"})
	assert resp.status_code == 200
	assert resp.get_json()["is_placeholder"] is True


def test_generate_url_stream(client, monkeypatch, dental_html):
	monkeypatch.setattr(pipeline, "make_session", lambda config: FakeSession({"https://brightsmile.com": FakeResponse(dental_html)}))
	resp = client.post("/generate/url/stream", json={"url": "https://brightsmile.com/"})
	assert resp.mimetype == "text/event-stream"
	events = [json.loads(line[len("data: "):]) for line in resp.get_data(as_text=True).splitlines() if line.startswith("data: ")]
	assert events[-1]["type"] == "complete"
	assert events[-1]["result"]["schema"]["mainEntity"]["name"] == "Bright Smile Dental"
	assert any(e["type"] == "info" for e in events[:-1])


def test_validate_endpoint(client):
	markup = '<script type="application/ld+json">{"@context": "https://schema.org", "@type": "HowTo", "name": "Fix"}</script>'
	resp = client.post("/validate", json={"markup": markup})
	assert resp.status_code == 200
	assert resp.get_json()["errors"] == ["HowTo schema missing steps"]

	resp = client.post("/validate", json={"markup": "<script type=\"application/ld+json\">nope</script>"})
	assert resp.status_code == 400


def test_meta_tags_endpoint(client):
	resp = client.post("/meta-tags", json={"form": {"name": "Bright Smile", "address_locality": "Austin", "postal_code": "78701"}})
	assert resp.status_code == 200
	tags = resp.get_json()["meta_tags"]
	assert '<meta name="geo.region" content="US-TX">' in tags
	assert '<meta name="geo.postal-code" content="78701">' in tags


def test_generate_manual_snake_case_entries_beat_generated_values(client, business_form):
	generated = {
		"@context": "https://schema.org",
		"@type": "LocalBusiness",
		"name": "Generated Name",
		"telephone": "+1-555-000-0000",
		"address": {"@type": "PostalAddress", "streetAddress": "1 Generated Rd", "addressLocality": "Salem", "addressRegion": "OR"},
	}
	form = dict(business_form, street_address="99 Entered Ave")
	resp = client.post("/generate/manual", json={"form": form, "generated_schema": generated})
	assert resp.status_code == 200
	entity = resp.get_json()["schema"]["mainEntity"]
	assert entity["name"] == "Harbor Hardware"
	assert entity["telephone"] == "+1-555-123-4567"
	assert entity["address"]["streetAddress"] == "99 Entered Ave"
	assert entity["address"]["addressLocality"] == "Portland"
