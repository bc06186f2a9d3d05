import json

import pytest
import requests

from settings import GeneratorConfig

RESTAURANT_JSONLD = {
	"@context": "https://schema.org",
	"@type": "Restaurant",
	"name": "Luigi's Trattoria",
	"telephone": "(312) 555-0147",
	"address": {
		"@type": "PostalAddress",
		"streetAddress": "200 W Madison St",
		"addressLocality": "Chicago",
		"addressRegion": "IL",
		"postalCode": "60606",
		"addressCountry": "US",
	},
	"geo": {"@type": "GeoCoordinates", "latitude": 41.882, "longitude": -87.634},
	"aggregateRating": {"@type": "AggregateRating", "ratingValue": "4.6", "reviewCount": "128"},
	"openingHoursSpecification": [
		{
			"@type": "OpeningHoursSpecification",
			"dayOfWeek": ["https://schema.org/Monday", "Tuesday"],
			"opens": "11:00",
			"closes": "22:00",
		}
	],
	"sameAs": ["https://www.instagram.com/luigistrattoria"],
}

RESTAURANT_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Luigi's Trattoria | Italian Restaurant in Chicago</title>
<meta name="description" content="Family-run Italian restaurant serving handmade pasta in downtown Chicago since 1998.">
<script type="application/ld+json">%s</script>
<script type="application/ld+json">{ this is not json }</script>
</head>
<body>
<h1>Handmade pasta in the Loop</h1>
<p>Our restaurant has served handmade pasta and wood-fired dishes to the Loop since 1998.
Book a table for lunch or dinner, or order takeout for the office.</p>
<details><summary>Do you take reservations?</summary><p>Yes, online or by phone.</p></details>
</body>
</html>
""" % json.dumps(RESTAURANT_JSONLD)

DENTAL_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Bright Smile Dental | Family Dentist in Austin</title>
<meta name="description" content="Gentle family dentistry in Austin, Texas. Cleanings, whitening and emergency visits.">
</head>
<body>
<header><a href="tel:+15125550199">Call (512) 555-0199</a></header>
<h1>Bright Smile Dental</h1>
<p>We have welcomed families in central Austin for years with gentle cleanings, whitening
and same-day emergency visits. New patients are always welcome at our Congress Avenue office.</p>
<details><summary>Do you offer whitening?</summary><p>Yes, in-office whitening is available.</p></details>
<footer>
<address>456 Congress Avenue<br>Austin, TX 78701</address>
<a href="mailto:hello@brightsmile.com">hello@brightsmile.com</a>
<a href="https://www.facebook.com/brightsmile">Facebook</a>
<a href="https://www.facebook.com/sharer/sharer.php?u=brightsmile.com">Share</a>
</footer>
</body>
</html>
"""


class FakeResponse:
	def __init__(self, text="", status_code=200, content_type="text/html; charset=utf-8", encoding="utf-8"):
		self.text = text
		self.status_code = status_code
		self.headers = {"content-type": content_type}
		self.encoding = encoding
		self.apparent_encoding = "utf-8"

	def json(self):
		return json.loads(self.text)


class FakeSession:
	"""Stands in for requests.Session: maps URL prefixes to responses or exceptions."""

	def __init__(self, routes=None):
		self.routes = routes or {}
		self.calls = []
		self.headers = {}

	def get(self, url, timeout=None):
		self.calls.append(url)
		for prefix, outcome in self.routes.items():
			if url.startswith(prefix):
				if isinstance(outcome, Exception):
					raise outcome
				return outcome
		raise requests.ConnectionError(f"no route for {url}")


@pytest.fixture
def config():
	return GeneratorConfig()


@pytest.fixture
def restaurant_html():
	return RESTAURANT_HTML


@pytest.fixture
def dental_html():
	return DENTAL_HTML


@pytest.fixture
def business_form():
	return {
		"content_type": "LocalBusiness",
		"name": "Harbor Hardware",
		"description": "Neighborhood hardware store with keys cut while you wait.",
		"website_url": "https://harborhardware.com",
		"telephone": "(555) 123-4567",
		"email": "info@harborhardware.com",
		"street_address": "12 Harbor Road",
		"address_locality": "Portland",
		"address_region": "OR",
		"postal_code": "97201",
		"business_hours": "Monday-Friday: 9:00 AM-5:00 PM",
		"faq_questions": "1. Do you cut keys?\n2. Do you deliver?",
		"faq_answers": "Yes, while you wait.",
	}
