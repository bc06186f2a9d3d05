"""Page Extractor: turn one fetched HTML page into an ExtractedFacts record.

Each fact category is an ordered list of strategies. A strategy takes the
PageContext and returns a value or None; ``first_of`` folds the list with
first-success semantics. Nothing found is never an error here, the field is
simply left as None.
"""
import datetime as dt
import html as ihtml
import json
import math
import re
import urllib.parse as urlparse
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag
from slugify import slugify

from console import log_info, log_warn
from errors import HtmlParseError, PipelineError
from facts import (
	ContactInfo,
	ExtractedFacts,
	FaqPair,
	GeoPoint,
	ImageRef,
	OpeningHoursEntry,
	ParsedAddress,
	RatingSummary,
	RestaurantFacts,
	ReviewFacts,
	ServiceFacts,
	ValidationHints,
)
from patterns import (
	AMENITIES,
	BUSINESS_TYPES,
	COUNTRY_ALIASES,
	CUISINES,
	CURRENCY_CODES,
	CURRENCY_SYMBOLS,
	LANGUAGES,
	PAYMENT_METHODS,
	STREET_SUFFIX_RE,
	US_STATE_CODES,
	US_STATES,
	canonical_price_tier,
	classify_business_category,
	ensure_absolute_url,
	find_emails,
	find_phone_numbers,
	find_terms,
	find_vocabulary,
	is_map_link,
	is_placeholder_email,
	is_social_link,
	is_valid_email,
	match_postal_code,
	normalize_country,
	parse_opening_hours,
)
from settings import GeneratorConfig

# Upper bound on any text handed to a regex scan.
SCAN_LIMIT = 50000
MIN_BODY_CHARS = 100
MAX_SOCIAL_LINKS = 10
MAX_SERVICE_AREAS = 20

CONTENT_SELECTORS = (
	"main", ".main-content", ".content", ".post-content", ".entry-content",
	".article-content", ".page-content", "#content", "article",
)
HEADING_SELECTORS = (".page-title", ".entry-title", ".post-title", ".main-title")
TITLE_SEPARATORS = re.compile(r"\s+[|\-–—:·]\s+")

FOOTER_ADDRESS_SELECTORS = (
	"footer [itemtype*='PostalAddress']", "footer address", "footer .address",
	".footer [itemtype*='PostalAddress']", ".footer address", ".footer .address",
)
ADDRESS_SELECTORS = (
	"[itemtype*='PostalAddress']", "address", ".address", ".contact-address",
	".postal-address", ".street-address", ".location-address", ".location",
)
PHONE_SELECTORS = (".phone", ".telephone", ".tel", ".phone-number", "[itemprop='telephone']")
EMAIL_SELECTORS = (".email", ".e-mail", "[itemprop='email']")
HOURS_SELECTORS = (
	".hours", ".business-hours", ".opening-hours", ".store-hours", ".office-hours",
	"#hours", "[itemprop='openingHours']",
)
FAQ_ITEM_SELECTORS = (".faq-item", ".faq", ".qa-item", ".question-answer", ".accordion-item")
REVIEW_SELECTORS = (".review", ".testimonial", "[itemprop='review']", ".customer-review")
SERVICE_SELECTORS = (".service", ".services li", ".service-item", ".service-card", ".services-list li")
SERVICE_AREA_SELECTORS = (".service-area li", ".service-areas li", ".areas-served li", ".service-area", ".service-areas")
PRICE_SELECTORS = (".price-range", ".pricing", ".cost", ".price")
SLOGAN_SELECTORS = (".slogan", ".tagline", ".site-tagline", ".hero-tagline", "[itemprop='slogan']")
RATING_SELECTORS = (".rating", ".star-rating", ".stars", ".review-score", ".average-rating")

ERROR_PAGE_MARKERS = (
	"page not found", "not found", "error 404", "403 forbidden", "access denied",
	"bad gateway", "service unavailable", "proxy error", "cors error", "just a moment",
	"enable javascript", "domain for sale", "coming soon",
)
GENERIC_PATH_SEGMENTS = {
	"", "index", "index.html", "index.php", "home", "about", "about-us", "contact",
	"contact-us", "services", "en", "us", "blog",
}

TWO_LETTER_DAYS = {"Mo": "Monday", "Tu": "Tuesday", "We": "Wednesday", "Th": "Thursday", "Fr": "Friday", "Sa": "Saturday", "Su": "Sunday"}

PRICE_AMOUNT = re.compile(r"\$\s?\d[\d,]*(?:\.\d{2})?(?:\s?(?:-|–|to)\s?\$?\d[\d,]*(?:\.\d{2})?)?")
FOUNDING_PATTERN = re.compile(r"\b(?:since|established(?: in)?|est\.?|founded(?: in)?)\s+(1[89]\d{2}|20\d{2})\b", re.I)
STREET_PATTERN = re.compile(
	r"\b\d{1,6}[A-Za-z]?\s+(?:[A-Za-z0-9.'-]+\s+){0,5}?(?i:" + STREET_SUFFIX_RE + r")(?![A-Za-z])"
	r"(?:\s*,?\s*(?i:suite|ste\.?|unit|apt\.?|#)\s*[\w-]+)?"
)
FOOTER_ADDRESS_PATTERNS = (
	re.compile(
		r"\b\d{1,6}\s+[\w .'#-]{2,60}?(?i:" + STREET_SUFFIX_RE + r")(?![A-Za-z])[\w .,'#-]{0,80}?"
		r"(?:\b[A-Z]{2}\s+)?\b\d{5}(?:-\d{4})?\b"
	),
	re.compile(r"\b\d{1,6}\s+[\w .'#-]{2,60}?(?i:" + STREET_SUFFIX_RE + r")(?![A-Za-z])[\w .,'#-]{0,60}?,\s*[A-Z]{2}\b"),
	re.compile(r"\b[A-Z][A-Za-z .'-]{1,40},\s*[A-Z]{2}\s+\d{5}(?:-\d{4})?\b"),
)
CITY_STATE_PATTERN = re.compile(r"([^,\d][^,]*?),\s*([A-Z]{2})\b(?:\s*,?\s*\d{5}(?:-\d{4})?)?")
CITY_STATE_NO_COMMA = re.compile(r"([A-Za-z][A-Za-z .'-]*?)\s+([A-Z]{2})\s+\d{5}(?:-\d{4})?\b")
MAP_COORDINATE_PATTERNS = (
	re.compile(r"@(-?\d{1,3}\.\d+),(-?\d{1,3}\.\d+)"),
	re.compile(r"!3d(-?\d{1,3}\.\d+)!4d(-?\d{1,3}\.\d+)"),
	re.compile(r"[?&](?:q|ll|center|query|sll)=(-?\d{1,3}\.\d+)(?:,|%2C)\s*(-?\d{1,3}\.\d+)", re.I),
)


@dataclass
class PageContext:
	"""Everything the strategies read from. Built once per page."""
	soup: BeautifulSoup
	url: str
	config: GeneratorConfig
	jsonld: List[Dict[str, Any]] = field(default_factory=list)
	body_text: str = ""
	header_text: str = ""
	footer_text: str = ""

	@property
	def scan_text(self) -> str:
		return f"{self.header_text}\n{self.body_text}\n{self.footer_text}"[:SCAN_LIMIT]

	def nodes_of_type(self, *types: str) -> List[Dict[str, Any]]:
		wanted = set(types)
		return [n for n in self.jsonld if wanted & set(_types_of(n))]

	def business_nodes(self) -> List[Dict[str, Any]]:
		return [n for n in self.jsonld if _is_business_node(n)]


Strategy = Callable[[PageContext], Any]


def first_of(strategies: Sequence[Strategy], ctx: PageContext) -> Any:
	"""Try each strategy in turn and return the first non-empty result."""
	for strategy in strategies:
		value = strategy(ctx)
		if value is not None and value != "" and value != [] and value != {}:
			return value
	return None


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_html(html: Any) -> BeautifulSoup:
	if not isinstance(html, str) or not html.strip():
		raise HtmlParseError("HTML is empty or not text")
	if "<" not in html:
		raise HtmlParseError("input does not contain any markup")
	soup = BeautifulSoup(html, "lxml")
	if soup.find(True) is None:
		raise HtmlParseError("no element tree could be built from the HTML")
	return soup


def _collapse(text: Optional[str]) -> str:
	return re.sub(r"\s+", " ", ihtml.unescape(text or "")).strip()


def _text(el: Optional[Tag], sep: str = " ") -> str:
	if el is None:
		return ""
	if sep == "\n":
		lines = [_collapse(line) for line in el.get_text("\n").split("\n")]
		return "\n".join(line for line in lines if line)
	return _collapse(el.get_text(sep))


def _clean_value(value: Any) -> Optional[str]:
	if value is None:
		return None
	text = _collapse(str(value))
	return text or None


def _meta(soup: BeautifulSoup, *names: str) -> Optional[str]:
	for name in names:
		tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
		if tag and tag.get("content"):
			value = _clean_value(tag["content"])
			if value:
				return value
	return None


def _select_first_text(soup: BeautifulSoup, selectors: Iterable[str], min_len: int = 1) -> Optional[str]:
	for selector in selectors:
		for el in soup.select(selector):
			text = _text(el)
			if len(text) >= min_len:
				return text
	return None


def _types_of(node: Dict[str, Any]) -> List[str]:
	raw = node.get("@type")
	if isinstance(raw, list):
		return [str(t) for t in raw]
	return [str(raw)] if raw else []


def _is_business_node(node: Dict[str, Any]) -> bool:
	for t in _types_of(node):
		if t in BUSINESS_TYPES or t.endswith("Business") or t in ("Store", "Dentist", "Attorney", "Physician", "Plumber", "Electrician", "HomeAndConstructionBusiness", "FoodEstablishment", "Corporation"):
			return True
	return False


def _flatten_jsonld(data: Any, out: List[Dict[str, Any]]) -> None:
	if isinstance(data, list):
		for item in data:
			_flatten_jsonld(item, out)
	elif isinstance(data, dict):
		if "@graph" in data:
			_flatten_jsonld(data["@graph"], out)
		if "@type" in data:
			out.append(data)
		main_entity = data.get("mainEntity")
		if isinstance(main_entity, dict) and "@type" in main_entity and not isinstance(main_entity.get("acceptedAnswer"), dict):
			_flatten_jsonld(main_entity, out)


def collect_jsonld(soup: BeautifulSoup) -> List[Dict[str, Any]]:
	"""Parse every application/ld+json block on the page; broken blocks are skipped."""
	nodes: List[Dict[str, Any]] = []
	for script in soup.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.I)}):
		raw = script.string or script.get_text() or ""
		if not raw.strip():
			continue
		try:
			data = json.loads(raw.strip())
		except json.JSONDecodeError:
			log_warn("Skipping malformed JSON-LD block")
			continue
		_flatten_jsonld(data, nodes)
	return nodes


def build_context(html: str, url: str, config: Optional[GeneratorConfig] = None) -> PageContext:
	soup = parse_html(html)
	jsonld = collect_jsonld(soup)
	for tag in soup(["script", "style", "noscript", "template"]):
		tag.decompose()
	header = soup.find("header")
	footer = soup.find("footer") or soup.select_one(".footer, #footer")
	body = soup.body or soup
	return PageContext(
		soup=soup,
		url=url,
		config=config or GeneratorConfig(),
		jsonld=jsonld,
		body_text=_text(body)[:SCAN_LIMIT],
		header_text=_text(header)[:5000],
		footer_text=_text(footer, "\n")[:5000],
	)


def _jsonld_value(ctx: PageContext, key: str, nodes: Optional[List[Dict[str, Any]]] = None) -> Any:
	for node in nodes if nodes is not None else ctx.business_nodes():
		value = node.get(key)
		if value not in (None, "", [], {}):
			return value
	return None


def _as_list(value: Any) -> List[Any]:
	if value is None:
		return []
	return value if isinstance(value, list) else [value]


def _name_of(value: Any) -> Optional[str]:
	if isinstance(value, dict):
		return _clean_value(value.get("name"))
	if isinstance(value, str):
		return _clean_value(value)
	return None


def _to_float(value: Any) -> Optional[float]:
	if value is None or isinstance(value, bool):
		return None
	try:
		number = float(str(value).replace(",", "").strip())
	except ValueError:
		return None
	return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
	number = _to_float(value)
	return int(number) if number is not None else None


def _dedupe(items: Iterable[Any]) -> List[Any]:
	seen = set()
	out = []
	for item in items:
		key = item.lower() if isinstance(item, str) else item
		if key in seen:
			continue
		seen.add(key)
		out.append(item)
	return out


# ---------------------------------------------------------------------------
# Title, heading, body, meta
# ---------------------------------------------------------------------------

def _title_from_meta(ctx: PageContext) -> Optional[str]:
	return _meta(ctx.soup, "og:title", "twitter:title")


def _title_from_title_tag(ctx: PageContext) -> Optional[str]:
	return _clean_value(ctx.soup.title.get_text()) if ctx.soup.title else None


def _heading_from_h1(ctx: PageContext) -> Optional[str]:
	h1 = ctx.soup.find("h1")
	return _text(h1) or None


def _heading_from_classes(ctx: PageContext) -> Optional[str]:
	return _select_first_text(ctx.soup, HEADING_SELECTORS)


TITLE_STRATEGIES: List[Strategy] = [_title_from_meta, _title_from_title_tag, _heading_from_h1]
HEADING_STRATEGIES: List[Strategy] = [_heading_from_h1, _heading_from_classes]


def extract_body_text(ctx: PageContext) -> Optional[str]:
	"""Longest main-content region, or the whole page when none is long enough."""
	best = ""
	for selector in CONTENT_SELECTORS:
		for el in ctx.soup.select(selector):
			text = _text(el)
			if len(text) > len(best):
				best = text
	if len(best) < MIN_BODY_CHARS:
		best = ctx.body_text
	best = _collapse(best)
	return best[: ctx.config.max_content_chars] or None


def _meta_description(ctx: PageContext) -> Optional[str]:
	return _meta(ctx.soup, "description", "og:description", "twitter:description")


def _meta_keywords(ctx: PageContext) -> Optional[str]:
	return _meta(ctx.soup, "keywords")


# ---------------------------------------------------------------------------
# Business name and logo
# ---------------------------------------------------------------------------

def _name_from_jsonld(ctx: PageContext) -> Optional[str]:
	return _name_of(_jsonld_value(ctx, "name")) or _name_of(_jsonld_value(ctx, "name", ctx.nodes_of_type("Organization", "WebSite")))


def _name_from_site_name(ctx: PageContext) -> Optional[str]:
	return _meta(ctx.soup, "og:site_name", "application-name")


def _name_from_title(ctx: PageContext) -> Optional[str]:
	title = _title_from_title_tag(ctx)
	if not title:
		return None
	parts = [p.strip() for p in TITLE_SEPARATORS.split(title) if p.strip()]
	if len(parts) < 2:
		return None
	# "Service in City | Brand" puts the brand last; "Brand | Tagline" puts it first.
	shortest = min(parts, key=len)
	return shortest if len(shortest) <= 60 else None


BUSINESS_NAME_STRATEGIES: List[Strategy] = [_name_from_jsonld, _name_from_site_name, _name_from_title, _heading_from_h1]


def _logo_from_jsonld(ctx: PageContext) -> Optional[str]:
	logo = _jsonld_value(ctx, "logo") or _jsonld_value(ctx, "logo", ctx.nodes_of_type("Organization"))
	if isinstance(logo, dict):
		logo = logo.get("url") or logo.get("contentUrl")
	return ensure_absolute_url(logo, ctx.url) if isinstance(logo, str) and logo.strip() else None


def _logo_from_img(ctx: PageContext) -> Optional[str]:
	for img in ctx.soup.find_all("img"):
		markers = " ".join([
			" ".join(img.get("class", [])), img.get("id", ""), img.get("alt", ""), img.get("src", ""),
			" ".join(img.parent.get("class", [])) if isinstance(img.parent, Tag) else "",
		]).lower()
		src = img.get("src") or img.get("data-src")
		if "logo" in markers and src and not src.startswith("data:"):
			return ensure_absolute_url(src, ctx.url)
	return None


def _logo_from_icon(ctx: PageContext) -> Optional[str]:
	links = ctx.soup.find_all("link", href=True)
	for wanted in ("apple-touch-icon", "icon"):
		for link in links:
			if wanted in [r.lower() for r in link.get("rel", [])]:
				return ensure_absolute_url(link["href"], ctx.url)
	return None


LOGO_STRATEGIES: List[Strategy] = [_logo_from_jsonld, _logo_from_img, _logo_from_icon]


# ---------------------------------------------------------------------------
# Contact block
# ---------------------------------------------------------------------------

def _phone_from_tel_link(ctx: PageContext) -> Optional[str]:
	for a in ctx.soup.select("a[href^='tel:'], a[href^='TEL:']"):
		number = urlparse.unquote(a["href"][4:]).strip()
		if len(re.sub(r"\D", "", number)) >= 7:
			return number
	return None


def _phone_from_jsonld(ctx: PageContext) -> Optional[str]:
	value = _jsonld_value(ctx, "telephone")
	return _clean_value(value) if isinstance(value, str) else None


def _phone_from_class(ctx: PageContext) -> Optional[str]:
	for selector in PHONE_SELECTORS:
		for el in ctx.soup.select(selector):
			found = find_phone_numbers(_text(el))
			if found:
				return found[0]
	return None


def _phone_from_text(ctx: PageContext) -> Optional[str]:
	found = find_phone_numbers(ctx.scan_text)
	return found[0] if found else None


PHONE_STRATEGIES: List[Strategy] = [_phone_from_tel_link, _phone_from_jsonld, _phone_from_class, _phone_from_text]


def _usable_email(value: Optional[str]) -> Optional[str]:
	if value and is_valid_email(value) and not is_placeholder_email(value):
		return value.strip()
	return None


def _email_from_mailto(ctx: PageContext) -> Optional[str]:
	for a in ctx.soup.select("a[href^='mailto:'], a[href^='MAILTO:']"):
		address = urlparse.unquote(a["href"][7:].split("?")[0])
		email = _usable_email(address)
		if email:
			return email
	return None


def _email_from_jsonld(ctx: PageContext) -> Optional[str]:
	value = _jsonld_value(ctx, "email")
	if isinstance(value, str):
		return _usable_email(value.replace("mailto:", ""))
	return None


def _email_from_class(ctx: PageContext) -> Optional[str]:
	for selector in EMAIL_SELECTORS:
		for el in ctx.soup.select(selector):
			found = find_emails(_text(el))
			if found:
				return found[0]
	return None


def _email_from_text(ctx: PageContext) -> Optional[str]:
	found = find_emails(ctx.scan_text)
	return found[0] if found else None


EMAIL_STRATEGIES: List[Strategy] = [_email_from_mailto, _email_from_jsonld, _email_from_class, _email_from_text]


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------

def _postal_address_node(ctx: PageContext) -> Optional[Dict[str, Any]]:
	address = _jsonld_value(ctx, "address") or _jsonld_value(ctx, "address", ctx.nodes_of_type("Organization", "Place"))
	if isinstance(address, list):
		address = next((a for a in address if isinstance(a, dict)), address[0] if address else None)
	if isinstance(address, dict):
		return address
	if isinstance(address, str) and address.strip():
		return {"streetAddress": address.strip(), "_raw": True}
	return None


def _address_from_jsonld(ctx: PageContext) -> Optional[Tuple[str, Optional[ParsedAddress]]]:
	node = _postal_address_node(ctx)
	if not node:
		return None
	if node.get("_raw"):
		return node["streetAddress"], None
	country = node.get("addressCountry")
	if isinstance(country, dict):
		country = country.get("name")
	parsed = ParsedAddress(
		street=_clean_value(node.get("streetAddress")),
		city=_clean_value(node.get("addressLocality")),
		region=_clean_value(node.get("addressRegion")),
		postal_code=_clean_value(node.get("postalCode")),
		country=normalize_country(country) or _clean_value(country),
	)
	parts = [parsed.street, parsed.city, " ".join(p for p in (parsed.region, parsed.postal_code) if p)]
	raw = ", ".join(p for p in parts if p)
	if not raw:
		return None
	return raw, parsed


def _address_text(el: Tag) -> Optional[str]:
	text = _text(el, "\n").replace("\n", ", ")
	text = re.sub(r"(,\s*)+", ", ", text).strip(" ,")
	return text if len(text) > 10 and re.search(r"\d", text) else None


def _address_from_footer_elements(ctx: PageContext) -> Optional[Tuple[str, None]]:
	for selector in FOOTER_ADDRESS_SELECTORS:
		for el in ctx.soup.select(selector):
			text = _address_text(el)
			if text:
				return text, None
	return None


def _address_from_elements(ctx: PageContext) -> Optional[Tuple[str, None]]:
	for selector in ADDRESS_SELECTORS:
		for el in ctx.soup.select(selector):
			text = _address_text(el)
			if text and len(text) < 200:
				return text, None
	return None


def _address_from_footer_text(ctx: PageContext) -> Optional[Tuple[str, None]]:
	text = ctx.footer_text.replace("\n", ", ")
	for pattern in FOOTER_ADDRESS_PATTERNS:
		match = pattern.search(text)
		if match:
			return match.group(0).strip(" ,"), None
	return None


ADDRESS_STRATEGIES: List[Strategy] = [
	_address_from_jsonld, _address_from_footer_elements, _address_from_elements, _address_from_footer_text,
]


def _detect_country(text: str) -> Optional[str]:
	tail = [p.strip().lower().rstrip(".") for p in text.split(",")][-2:]
	for part in reversed(tail):
		if part in COUNTRY_ALIASES and len(part) > 2:
			return COUNTRY_ALIASES[part]
		words = part.split()
		if words and words[-1] in COUNTRY_ALIASES and len(words[-1]) > 2:
			return COUNTRY_ALIASES[words[-1]]
	return None


def _strip_street(segment: str, street: Optional[str]) -> str:
	if street and street in segment:
		segment = segment.replace(street, "")
	return segment.strip(" ,.")


def _us_region_and_city(text: str, street: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
	for pattern in (CITY_STATE_PATTERN, CITY_STATE_NO_COMMA):
		for match in pattern.finditer(text):
			if match.group(2) in US_STATE_CODES:
				city = _strip_street(match.group(1), street)
				return match.group(2), city or None
	for name in sorted(US_STATES, key=len, reverse=True):
		match = re.search(r"\b" + re.escape(name) + r"\b", text, re.I)
		if not match:
			continue
		before = text[: match.start()].rstrip(" ,")
		city = _strip_street(before.split(",")[-1], street) if before else ""
		if city.lower() == name:
			city = ""
		return US_STATES[name], city or None
	return None, None


def _generic_city(text: str, street: Optional[str], postal: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
	segments = [s.strip() for s in text.split(",") if s.strip()]
	region = None
	for index, segment in enumerate(segments):
		if postal and postal in segment:
			rest = segment.replace(postal, "").strip()
			region_match = re.fullmatch(r"(?:(.*?)\s+)?([A-Z]{2,3})", rest)
			if region_match and region_match.group(1):
				return region_match.group(2), region_match.group(1)
			if region_match:
				region = region_match.group(2)
				rest = ""
			if rest and not re.search(r"\d", rest):
				return region, rest
			if index > 0:
				return region, _strip_street(segments[index - 1], street) or None
	if len(segments) >= 2:
		return region, _strip_street(segments[1], street) or None
	return region, None


def decompose_address(raw: Optional[str], default_country: str = "US") -> Optional[ParsedAddress]:
	"""Split a free-text address into street / city / region / postal / country."""
	text = _collapse(raw)
	if not text:
		return None
	country = _detect_country(text) or normalize_country(default_country) or default_country
	postal = match_postal_code(text, country, last=True)
	street_match = STREET_PATTERN.search(text)
	street = street_match.group(0).strip(" ,") if street_match else None
	if country == "US":
		region, city = _us_region_and_city(text, street)
	else:
		region, city = _generic_city(text, street, postal)
	if city and (re.search(r"\d{3,}", city) or city.lower() in COUNTRY_ALIASES):
		city = None
	return ParsedAddress(street=street, city=city, region=region, postal_code=postal, country=country)


# ---------------------------------------------------------------------------
# Coordinates, map link, opening hours
# ---------------------------------------------------------------------------

def _geo(lat: Any, lng: Any) -> Optional[GeoPoint]:
	latitude, longitude = _to_float(lat), _to_float(lng)
	if latitude is None or longitude is None:
		return None
	if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
		return None
	return GeoPoint(latitude=latitude, longitude=longitude)


def _geo_from_jsonld(ctx: PageContext) -> Optional[GeoPoint]:
	geo = _jsonld_value(ctx, "geo") or _jsonld_value(ctx, "geo", ctx.nodes_of_type("Place"))
	if isinstance(geo, dict):
		return _geo(geo.get("latitude"), geo.get("longitude"))
	return None


def _geo_from_meta(ctx: PageContext) -> Optional[GeoPoint]:
	position = _meta(ctx.soup, "geo.position")
	if position and ";" in position:
		return _geo(*position.split(";", 1))
	icbm = _meta(ctx.soup, "ICBM")
	if icbm and "," in icbm:
		return _geo(*icbm.split(",", 1))
	return _geo(
		_meta(ctx.soup, "place:location:latitude", "og:latitude"),
		_meta(ctx.soup, "place:location:longitude", "og:longitude"),
	)


def _coordinates_in(url: str) -> Optional[GeoPoint]:
	decoded = urlparse.unquote(url)
	for pattern in MAP_COORDINATE_PATTERNS:
		match = pattern.search(decoded)
		if match:
			point = _geo(match.group(1), match.group(2))
			if point:
				return point
	return None


def _geo_from_map_link(ctx: PageContext) -> Optional[GeoPoint]:
	for el in ctx.soup.select("a[href], iframe[src]"):
		target = el.get("href") or el.get("src") or ""
		if is_map_link(target):
			point = _coordinates_in(target)
			if point:
				return point
	return None


GEO_STRATEGIES: List[Strategy] = [_geo_from_jsonld, _geo_from_meta, _geo_from_map_link]


def _map_from_jsonld(ctx: PageContext) -> Optional[str]:
	value = _jsonld_value(ctx, "hasMap")
	if isinstance(value, dict):
		value = value.get("url")
	return value if isinstance(value, str) and value.startswith("http") else None


def _map_from_links(ctx: PageContext) -> Optional[str]:
	for el in ctx.soup.select("a[href], iframe[src]"):
		target = el.get("href") or el.get("src") or ""
		if is_map_link(target):
			return ensure_absolute_url(target, ctx.url)
	return None


MAP_STRATEGIES: List[Strategy] = [_map_from_jsonld, _map_from_links]


def _expand_day_codes(text: str) -> str:
	return re.sub(r"\b(Mo|Tu|We|Th|Fr|Sa|Su)\b", lambda m: TWO_LETTER_DAYS[m.group(1)], text)


def _day_name(value: Any) -> Optional[str]:
	if not isinstance(value, str):
		return None
	name = value.rstrip("/").split("/")[-1].strip()
	return name if name in TWO_LETTER_DAYS.values() else None


def _hours_from_specification(ctx: PageContext) -> Optional[List[OpeningHoursEntry]]:
	entries: List[OpeningHoursEntry] = []
	for spec in _as_list(_jsonld_value(ctx, "openingHoursSpecification")):
		if not isinstance(spec, dict):
			continue
		opens, closes = _clean_value(spec.get("opens")), _clean_value(spec.get("closes"))
		if not opens or not closes:
			continue
		for day in _as_list(spec.get("dayOfWeek")):
			name = _day_name(day)
			if name:
				entries.append(OpeningHoursEntry(day=name, opens=opens[:5], closes=closes[:5]))
	return entries or None


def _hours_from_strings(ctx: PageContext) -> Optional[List[OpeningHoursEntry]]:
	values = [v for v in _as_list(_jsonld_value(ctx, "openingHours")) if isinstance(v, str)]
	values += [el.get("content") for el in ctx.soup.select("[itemprop='openingHours'][content]")]
	lines = "\n".join(_expand_day_codes(v) for v in values if v)
	entries = [OpeningHoursEntry(day=d, opens=o, closes=c) for d, o, c in parse_opening_hours(lines)]
	return entries or None


def _hours_text(ctx: PageContext) -> Optional[str]:
	for selector in HOURS_SELECTORS:
		for el in ctx.soup.select(selector):
			text = _text(el, "\n")
			if text and re.search(r"\d", text):
				return text[:1000]
	return None


def _hours_from_text(ctx: PageContext) -> Optional[List[OpeningHoursEntry]]:
	text = _hours_text(ctx) or ctx.footer_text
	entries = [OpeningHoursEntry(day=d, opens=o, closes=c) for d, o, c in parse_opening_hours(text)]
	return entries or None


HOURS_STRATEGIES: List[Strategy] = [_hours_from_specification, _hours_from_strings, _hours_from_text]


# ---------------------------------------------------------------------------
# Media and links
# ---------------------------------------------------------------------------

def _image_size_ok(img: Tag) -> bool:
	for attr in ("width", "height"):
		value = _to_int(re.sub(r"[^\d.]", "", img.get(attr, "") or "") or None)
		if value is not None and value < 50:
			return False
	return True


def extract_images(ctx: PageContext) -> Optional[List[ImageRef]]:
	images: List[ImageRef] = []
	seen = set()
	og_image = _meta(ctx.soup, "og:image", "twitter:image")
	if og_image:
		src = ensure_absolute_url(og_image, ctx.url)
		images.append(ImageRef(src=src))
		seen.add(src)
	for img in ctx.soup.find_all("img"):
		src = img.get("src") or img.get("data-src") or img.get("data-lazy-src")
		if not src or src.startswith("data:") or not _image_size_ok(img):
			continue
		lowered = src.lower()
		if any(marker in lowered for marker in ("pixel", "spacer", "tracking", "1x1")):
			continue
		src = ensure_absolute_url(src, ctx.url)
		if src in seen:
			continue
		seen.add(src)
		images.append(ImageRef(src=src, alt=_clean_value(img.get("alt")), title=_clean_value(img.get("title"))))
		if len(images) >= ctx.config.max_images:
			break
	return images[: ctx.config.max_images] or None


def _social_from_jsonld(ctx: PageContext) -> Optional[List[str]]:
	links = [v for v in _as_list(_jsonld_value(ctx, "sameAs")) if isinstance(v, str) and is_social_link(v)]
	return _dedupe(links)[:MAX_SOCIAL_LINKS] or None


def _social_from_anchors(ctx: PageContext) -> Optional[List[str]]:
	links = []
	for a in ctx.soup.find_all("a", href=True):
		href = ensure_absolute_url(a["href"], ctx.url)
		if not is_social_link(href):
			continue
		if any(marker in href for marker in ("sharer", "/share", "intent/tweet", "shareArticle")):
			continue
		links.append(href.rstrip("/"))
	return _dedupe(links)[:MAX_SOCIAL_LINKS] or None


SOCIAL_STRATEGIES: List[Strategy] = [_social_from_jsonld, _social_from_anchors]


# ---------------------------------------------------------------------------
# FAQs
# ---------------------------------------------------------------------------

def _faq_answer_text(answer: Any) -> Optional[str]:
	if isinstance(answer, list):
		answer = answer[0] if answer else None
	if isinstance(answer, dict):
		answer = answer.get("text")
	if not isinstance(answer, str):
		return None
	return _collapse(BeautifulSoup(answer, "lxml").get_text(" ")) if "<" in answer else _clean_value(answer)


def _faqs_from_jsonld(ctx: PageContext) -> Optional[List[FaqPair]]:
	pairs: List[FaqPair] = []
	for page in ctx.nodes_of_type("FAQPage"):
		for item in _as_list(page.get("mainEntity")):
			if isinstance(item, dict) and item.get("name"):
				pairs.append(FaqPair(question=_collapse(item["name"]), answer=_faq_answer_text(item.get("acceptedAnswer"))))
	for item in ctx.nodes_of_type("Question"):
		if item.get("name"):
			pairs.append(FaqPair(question=_collapse(item["name"]), answer=_faq_answer_text(item.get("acceptedAnswer"))))
	return pairs or None


def _faqs_from_details(ctx: PageContext) -> Optional[List[FaqPair]]:
	pairs = []
	for details in ctx.soup.find_all("details"):
		summary = details.find("summary")
		if not summary:
			continue
		question = _text(summary)
		answer = _collapse(details.get_text(" ").replace(summary.get_text(" "), "", 1))
		if question:
			pairs.append(FaqPair(question=question, answer=answer or None))
	return pairs or None


def _faqs_from_items(ctx: PageContext) -> Optional[List[FaqPair]]:
	pairs = []
	for selector in FAQ_ITEM_SELECTORS:
		for item in ctx.soup.select(selector):
			q_el = item.select_one(".question, .faq-question, .accordion-header, .accordion-button, h3, h4, dt, button")
			a_el = item.select_one(".answer, .faq-answer, .accordion-body, .accordion-collapse, dd, p")
			if q_el and a_el:
				question, answer = _text(q_el), _text(a_el)
				if question and answer and question != answer:
					pairs.append(FaqPair(question=question, answer=answer))
		if pairs:
			return pairs
	return None


def _faqs_from_definition_lists(ctx: PageContext) -> Optional[List[FaqPair]]:
	pairs = []
	for dl in ctx.soup.find_all("dl"):
		dt_tags = dl.find_all("dt", recursive=False)
		dd_tags = dl.find_all("dd", recursive=False)
		for i, dt_tag in enumerate(dt_tags):
			question = _text(dt_tag)
			if not question.endswith("?"):
				continue
			answer = _text(dd_tags[i]) if i < len(dd_tags) else ""
			pairs.append(FaqPair(question=question, answer=answer or None))
	return pairs or None


FAQ_STRATEGIES: List[Strategy] = [_faqs_from_jsonld, _faqs_from_details, _faqs_from_items, _faqs_from_definition_lists]


# ---------------------------------------------------------------------------
# Ratings and reviews
# ---------------------------------------------------------------------------

def _rating(value: Any, count: Any) -> Optional[RatingSummary]:
	number = _to_float(value)
	if number is None or not 1 <= number <= 5:
		return None
	total = _to_int(count)
	if total is not None and total < 0:
		total = None
	return RatingSummary(value=number, count=total)


def _rating_from_jsonld(ctx: PageContext) -> Optional[RatingSummary]:
	node = _jsonld_value(ctx, "aggregateRating") or _jsonld_value(ctx, "aggregateRating", ctx.jsonld)
	if isinstance(node, dict):
		return _rating(node.get("ratingValue"), node.get("reviewCount") or node.get("ratingCount"))
	return None


def _rating_from_itemprop(ctx: PageContext) -> Optional[RatingSummary]:
	value_el = ctx.soup.select_one("[itemprop='ratingValue']")
	if not value_el:
		return None
	count_el = ctx.soup.select_one("[itemprop='reviewCount'], [itemprop='ratingCount']")
	value = value_el.get("content") or _text(value_el)
	count = (count_el.get("content") or _text(count_el)) if count_el else None
	return _rating(value, count)


def _rating_from_selectors(ctx: PageContext) -> Optional[RatingSummary]:
	for selector in RATING_SELECTORS:
		for el in ctx.soup.select(selector):
			text = _text(el)
			match = re.search(r"\b([1-5](?:\.\d)?)\s*(?:/\s*5|out of 5|stars?)", text, re.I)
			if not match:
				continue
			count = re.search(r"(\d[\d,]*)\s*(?:reviews?|ratings?)", text, re.I)
			summary = _rating(match.group(1), count.group(1) if count else None)
			if summary:
				return summary
	return None


RATING_STRATEGIES: List[Strategy] = [_rating_from_jsonld, _rating_from_itemprop, _rating_from_selectors]


def _reviews_from_jsonld(ctx: PageContext) -> Optional[List[ReviewFacts]]:
	reviews = []
	for item in _as_list(_jsonld_value(ctx, "review")) + ctx.nodes_of_type("Review"):
		if not isinstance(item, dict):
			continue
		body = _clean_value(item.get("reviewBody") or item.get("description"))
		if not body:
			continue
		rating = item.get("reviewRating")
		reviews.append(ReviewFacts(
			author=_name_of(item.get("author")),
			body=body,
			rating=_to_float(rating.get("ratingValue")) if isinstance(rating, dict) else None,
			date=_clean_value(item.get("datePublished")),
		))
	return reviews or None


def _reviews_from_elements(ctx: PageContext) -> Optional[List[ReviewFacts]]:
	reviews = []
	for selector in REVIEW_SELECTORS:
		for el in ctx.soup.select(selector):
			author_el = el.select_one(".author, .review-author, .reviewer, .name, cite, [itemprop='author']")
			body_el = el.select_one(".review-body, .review-text, .testimonial-text, [itemprop='reviewBody'], blockquote, p")
			author = _text(author_el) or None
			body = _text(body_el) if body_el else _text(el)
			if author and body.endswith(author):
				body = body[: -len(author)].strip(" -–—")
			if len(body) < 15:
				continue
			rating_text = _text(el.select_one(".rating, .stars, [itemprop='ratingValue']"))
			stars = rating_text.count("★")
			rating_match = re.search(r"\b([1-5](?:\.\d)?)\b", rating_text)
			time_el = el.find("time")
			reviews.append(ReviewFacts(
				author=author,
				body=body,
				rating=float(rating_match.group(1)) if rating_match else (float(stars) if 1 <= stars <= 5 else None),
				date=(time_el.get("datetime") or _text(time_el)) if time_el else None,
			))
		if reviews:
			break
	return reviews or None


REVIEW_STRATEGIES: List[Strategy] = [_reviews_from_jsonld, _reviews_from_elements]


# ---------------------------------------------------------------------------
# Business details
# ---------------------------------------------------------------------------

def _split_place_list(text: str) -> List[str]:
	places = []
	for part in re.split(r",|;|\band\b|&|/|\|", text):
		part = re.sub(r"\b(?:the|surrounding areas?|nearby|communities|and more)\b", "", part, flags=re.I)
		part = _collapse(part).strip(" .")
		if not part or len(part) > 40 or len(part.split()) > 4 or not part[0].isupper():
			continue
		places.append(part)
	return places


def _areas_from_jsonld(ctx: PageContext) -> Optional[List[str]]:
	names = [_name_of(a) for a in _as_list(_jsonld_value(ctx, "areaServed"))]
	return _dedupe(n for n in names if n)[:MAX_SERVICE_AREAS] or None


def _areas_from_elements(ctx: PageContext) -> Optional[List[str]]:
	areas: List[str] = []
	for selector in SERVICE_AREA_SELECTORS:
		for el in ctx.soup.select(selector):
			areas.extend(_split_place_list(_text(el)))
		if areas:
			break
	return _dedupe(areas)[:MAX_SERVICE_AREAS] or None


def _areas_from_text(ctx: PageContext) -> Optional[List[str]]:
	match = re.search(
		r"(?:proudly serving|serving|service areas?|areas? (?:we )?served?|we serve)\s*:?\s*([^.\n]{3,200})",
		ctx.body_text[:SCAN_LIMIT],
		re.I,
	)
	if not match:
		return None
	return _dedupe(_split_place_list(match.group(1)))[:MAX_SERVICE_AREAS] or None


SERVICE_AREA_STRATEGIES: List[Strategy] = [_areas_from_jsonld, _areas_from_elements, _areas_from_text]


def _payments_from_jsonld(ctx: PageContext) -> Optional[List[str]]:
	value = _jsonld_value(ctx, "paymentAccepted")
	if isinstance(value, str):
		value = value.split(",")
	return _dedupe(_clean_value(v) for v in _as_list(value) if _clean_value(v)) or None


def _payments_from_text(ctx: PageContext) -> Optional[List[str]]:
	return find_vocabulary(ctx.scan_text, PAYMENT_METHODS) or None


PAYMENT_STRATEGIES: List[Strategy] = [_payments_from_jsonld, _payments_from_text]


def _currencies_from_jsonld(ctx: PageContext) -> Optional[List[str]]:
	value = _jsonld_value(ctx, "currenciesAccepted")
	if isinstance(value, str):
		return [c.strip().upper() for c in value.split(",") if c.strip()] or None
	return None


def _currencies_from_text(ctx: PageContext) -> Optional[List[str]]:
	text = ctx.scan_text
	found = [code for code in CURRENCY_CODES if re.search(r"\b" + code + r"\b", text)]
	for symbol, code in CURRENCY_SYMBOLS.items():
		if re.search(re.escape(symbol) + r"\s?\d", text) and code not in found:
			found.append(code)
	if "USD" not in found and normalize_country(ctx.config.default_country) == "US" and re.search(r"\$\s?\d", text):
		found.append("USD")
	return found or None


CURRENCY_STRATEGIES: List[Strategy] = [_currencies_from_jsonld, _currencies_from_text]


def extract_amenities(ctx: PageContext) -> Optional[Dict[str, bool]]:
	features = {}
	for item in _as_list(_jsonld_value(ctx, "amenityFeature")):
		if isinstance(item, dict) and item.get("name"):
			features[_collapse(item["name"])] = item.get("value") is not False
	for label in find_vocabulary(ctx.scan_text, AMENITIES):
		features.setdefault(label, True)
	return features or None


def _flag(text: str, positive: str, negative: Optional[str] = None) -> Optional[bool]:
	if negative and re.search(negative, text, re.I):
		return False
	if re.search(positive, text, re.I):
		return True
	return None


def extract_restaurant(ctx: PageContext, category: str) -> Optional[RestaurantFacts]:
	cuisine = _jsonld_value(ctx, "servesCuisine")
	if category != "Restaurant" and not cuisine:
		return None
	text = re.sub(r"american express", "", ctx.scan_text, flags=re.I)
	cuisines = [c for c in (_clean_value(v) for v in _as_list(cuisine)) if c] or find_terms(text, CUISINES)
	reservations = _jsonld_value(ctx, "acceptsReservations")
	if not isinstance(reservations, bool):
		reservations = _flag(text, r"\breservations?\b|\bbook a table\b|opentable|resy\.com", r"\bno reservations\b|\bwalk-ins only\b")
	menu = _jsonld_value(ctx, "hasMenu") or _jsonld_value(ctx, "menu")
	if isinstance(menu, dict):
		menu = menu.get("url")
	if not isinstance(menu, str):
		menu = None
		for a in ctx.soup.find_all("a", href=True):
			if "menu" in a["href"].lower() or _text(a).lower() in ("menu", "our menu", "view menu", "see menu"):
				menu = ensure_absolute_url(a["href"], ctx.url)
				break
	facts = RestaurantFacts(
		cuisines=_dedupe(cuisines) or None,
		accepts_reservations=reservations,
		offers_delivery=_flag(text, r"\bdelivery\b|doordash|uber ?eats|grubhub|postmates", r"\bno delivery\b"),
		offers_takeaway=_flag(text, r"\btake-?out\b|\btake-?away\b|\bto go\b|\bcurbside pick-?up\b"),
		menu_url=menu,
	)
	if facts == RestaurantFacts():
		return None
	return facts


def _slogan_from_jsonld(ctx: PageContext) -> Optional[str]:
	return _clean_value(_jsonld_value(ctx, "slogan"))


def _slogan_from_elements(ctx: PageContext) -> Optional[str]:
	text = _select_first_text(ctx.soup, SLOGAN_SELECTORS, min_len=3)
	return text if text and len(text) <= 150 else None


SLOGAN_STRATEGIES: List[Strategy] = [_slogan_from_jsonld, _slogan_from_elements]


def _plausible_year(value: Any) -> Optional[int]:
	match = re.search(r"\b(1[89]\d{2}|20\d{2})\b", str(value or ""))
	if not match:
		return None
	year = int(match.group(1))
	return year if year <= dt.datetime.now(dt.timezone.utc).year else None


def _founding_from_jsonld(ctx: PageContext) -> Optional[int]:
	return _plausible_year(_jsonld_value(ctx, "foundingDate"))


def _founding_from_text(ctx: PageContext) -> Optional[int]:
	for match in FOUNDING_PATTERN.finditer(ctx.scan_text):
		year = _plausible_year(match.group(1))
		if year:
			return year
	return None


FOUNDING_STRATEGIES: List[Strategy] = [_founding_from_jsonld, _founding_from_text]


def _languages_from_jsonld(ctx: PageContext) -> Optional[List[str]]:
	values = _as_list(_jsonld_value(ctx, "knowsLanguage")) + _as_list(_jsonld_value(ctx, "availableLanguage"))
	names = [_name_of(v) for v in values]
	return _dedupe(n for n in names if n) or None


def _languages_from_text(ctx: PageContext) -> Optional[List[str]]:
	text = ctx.scan_text
	found: List[str] = []
	if re.search(r"se habla espa[nñ]ol", text, re.I):
		found.append("Spanish")
	for match in re.finditer(r"(?:we speak|languages? spoken|fluent in|bilingual in|languages?)\s*:?\s*([^.\n]{0,120})", text, re.I):
		found.extend(find_terms(match.group(1), LANGUAGES))
	return _dedupe(found) or None


LANGUAGE_STRATEGIES: List[Strategy] = [_languages_from_jsonld, _languages_from_text]


def _offer_service(offer: Any) -> Optional[ServiceFacts]:
	if not isinstance(offer, dict):
		return None
	item = offer.get("itemOffered") if isinstance(offer.get("itemOffered"), dict) else offer
	name = _clean_value(item.get("name"))
	if not name:
		return None
	price = offer.get("price")
	currency = offer.get("priceCurrency")
	price_text = None
	if price not in (None, ""):
		price_text = f"{price} {currency}".strip() if currency else str(price)
	return ServiceFacts(name=name, description=_clean_value(item.get("description")), price=price_text)


def _services_from_jsonld(ctx: PageContext) -> Optional[List[ServiceFacts]]:
	offers = _as_list(_jsonld_value(ctx, "makesOffer"))
	catalog = _jsonld_value(ctx, "hasOfferCatalog")
	if isinstance(catalog, dict):
		offers += _as_list(catalog.get("itemListElement"))
	services = [s for s in (_offer_service(o) for o in offers) if s]
	return services or None


def _services_from_elements(ctx: PageContext) -> Optional[List[ServiceFacts]]:
	services = []
	for selector in SERVICE_SELECTORS:
		for el in ctx.soup.select(selector):
			heading = el.find(["h2", "h3", "h4", "h5", "strong"])
			name = _text(heading) if heading else _text(el).split(". ")[0]
			if not name or len(name) >= 100:
				continue
			paragraph = el.find("p")
			description = _text(paragraph) if paragraph and heading else None
			price = PRICE_AMOUNT.search(_text(el))
			services.append(ServiceFacts(name=name, description=description or None, price=price.group(0) if price else None))
		if services:
			break
	return services or None


SERVICE_STRATEGIES: List[Strategy] = [_services_from_jsonld, _services_from_elements]


def _price_from_jsonld(ctx: PageContext) -> Optional[str]:
	value = _jsonld_value(ctx, "priceRange")
	return canonical_price_tier(value) if isinstance(value, str) else None


def _price_from_elements(ctx: PageContext) -> Optional[str]:
	for selector in PRICE_SELECTORS:
		for el in ctx.soup.select(selector):
			text = _text(el)
			run = re.search(r"(?<![\d$])\${1,4}(?![\d$\s]?\d)", text)
			if run:
				return canonical_price_tier(run.group(0))
			lowered = text.lower()
			if any(w in lowered for w in ("luxury", "exclusive", "premium", "expensive", "upscale", "moderate", "budget", "cheap", "affordable")):
				return canonical_price_tier(text)
	return None


PRICE_STRATEGIES: List[Strategy] = [_price_from_jsonld, _price_from_elements]


def _category_from_jsonld(ctx: PageContext) -> Optional[str]:
	for node in ctx.business_nodes():
		for t in _types_of(node):
			if t in BUSINESS_TYPES and t != "Organization":
				return t
	return None


def _category_from_keywords(ctx: PageContext) -> str:
	return classify_business_category(ctx.body_text)


CATEGORY_STRATEGIES: List[Strategy] = [_category_from_jsonld, _category_from_keywords]


def _accessibility(ctx: PageContext) -> Optional[bool]:
	return _flag(
		ctx.scan_text,
		r"wheelchair[- ]accessible|ada[- ]compliant|accessible entrance|handicap(?:ped)?[- ]accessible",
		r"not wheelchair[- ]accessible|no wheelchair access",
	)


def _smoking(ctx: PageContext) -> Optional[bool]:
	value = _jsonld_value(ctx, "smokingAllowed")
	if isinstance(value, bool):
		return value
	return _flag(
		ctx.scan_text,
		r"smoking (?:area|section|permitted|allowed)|cigar lounge",
		r"no smoking|non-smoking|smoke-free|smoking is not (?:permitted|allowed)|smoking prohibited",
	)


# ---------------------------------------------------------------------------
# Validation hints
# ---------------------------------------------------------------------------

def expected_name_from_url(url: str) -> Optional[str]:
	"""Derive a human name from the URL slug, or from the host when the path is generic."""
	parsed = urlparse.urlparse(url)
	segments = [s for s in parsed.path.split("/") if s]
	candidate = segments[-1] if segments else ""
	candidate = re.sub(r"\.(html?|php|aspx?)$", "", candidate.lower())
	if candidate in GENERIC_PATH_SEGMENTS or not re.search(r"[a-z]{3,}", candidate):
		host = (parsed.hostname or "").lower()
		if host.startswith("www."):
			host = host[4:]
		candidate = host.split(".")[0] if host else ""
	words = [w for w in re.split(r"[-_+\s]+", candidate) if w]
	return " ".join(w.capitalize() for w in words) or None


def _content_matches(expected: Optional[str], haystack: str) -> Optional[bool]:
	if not expected:
		return None
	tokens = [t for t in slugify(expected).split("-") if len(t) >= 3]
	if not tokens:
		return None
	target = slugify(haystack[:SCAN_LIMIT])
	squashed = target.replace("-", "")
	hits = sum(1 for t in tokens if t in target or t in squashed)
	if len(tokens) == 1:
		return hits == 1 or tokens[0] in squashed
	return hits * 2 >= len(tokens) or "".join(tokens) in squashed


def _looks_like_error_page(title: Optional[str], heading: Optional[str], body: Optional[str]) -> Optional[str]:
	head = f"{title or ''} {heading or ''}".lower()
	if re.search(r"\b404\b|\b50[23]\b", head):
		return "page reports an HTTP error"
	sample = f"{head} {(body or '')[:500].lower()}"
	for marker in ERROR_PAGE_MARKERS:
		if marker in head or (marker in sample and len(body or "") < 500):
			return f"page looks like an error or placeholder page ({marker})"
	return None


def build_hints(url: str, name: Optional[str], title: Optional[str], heading: Optional[str], body: Optional[str], contact: Optional[ContactInfo]) -> ValidationHints:
	expected = expected_name_from_url(url)
	extracted = name or heading or title
	matches = _content_matches(expected, " ".join(filter(None, [name, heading, title, (body or "")[:2000]])))
	has_contact = bool(contact and (contact.phone or contact.email or contact.address))
	has_minimum = bool(name) or has_contact
	reason = _looks_like_error_page(title, heading, body)
	if not reason and not has_minimum:
		reason = "insufficient data: no business name or contact channel found"
	return ValidationHints(
		expected_name=expected,
		extracted_name=extracted,
		content_matches_url=matches,
		has_minimum_data=has_minimum,
		rejection_reason=reason,
	)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _extract_contact(ctx: PageContext) -> Optional[ContactInfo]:
	phone = first_of(PHONE_STRATEGIES, ctx)
	email = first_of(EMAIL_STRATEGIES, ctx)
	found = first_of(ADDRESS_STRATEGIES, ctx)
	address, parsed = (found if found else (None, None))
	if address and parsed is None:
		parsed = decompose_address(address, ctx.config.default_country)
	if parsed and parsed.country is None:
		parsed = ParsedAddress(parsed.street, parsed.city, parsed.region, parsed.postal_code, ctx.config.default_country)
	contact = ContactInfo(phone=phone, email=email, address=address, parsed_address=parsed)
	return None if contact == ContactInfo() else contact


def extract_page(html: str, url: str, config: Optional[GeneratorConfig] = None) -> ExtractedFacts:
	"""Harvest one page. Raises HtmlParseError only when the HTML cannot be parsed."""
	ctx = build_context(html, url, config)
	cfg = ctx.config

	title = first_of(TITLE_STRATEGIES, ctx)
	heading = first_of(HEADING_STRATEGIES, ctx)
	body = extract_body_text(ctx)
	name = first_of(BUSINESS_NAME_STRATEGIES, ctx)
	contact = _extract_contact(ctx)
	rating = first_of(RATING_STRATEGIES, ctx)
	category = first_of(CATEGORY_STRATEGIES, ctx)
	hours_text = _hours_text(ctx)
	faqs = first_of(FAQ_STRATEGIES, ctx)
	reviews = first_of(REVIEW_STRATEGIES, ctx)
	services = first_of(SERVICE_STRATEGIES, ctx)

	facts = ExtractedFacts(
		url=url,
		title=title,
		heading=heading,
		body_text=body,
		meta_description=_meta_description(ctx),
		meta_keywords=_meta_keywords(ctx),
		business_name=name,
		logo_url=first_of(LOGO_STRATEGIES, ctx),
		coordinates=first_of(GEO_STRATEGIES, ctx),
		opening_hours=first_of(HOURS_STRATEGIES, ctx),
		contact=contact,
		aggregate_rating=rating,
		reviews=reviews[: cfg.max_reviews] if reviews else None,
		service_areas=first_of(SERVICE_AREA_STRATEGIES, ctx),
		payment_methods=first_of(PAYMENT_STRATEGIES, ctx),
		currencies=first_of(CURRENCY_STRATEGIES, ctx),
		amenities=extract_amenities(ctx),
		restaurant=extract_restaurant(ctx, category),
		slogan=first_of(SLOGAN_STRATEGIES, ctx),
		founding_year=first_of(FOUNDING_STRATEGIES, ctx),
		languages=first_of(LANGUAGE_STRATEGIES, ctx),
		map_url=first_of(MAP_STRATEGIES, ctx),
		wheelchair_accessible=_accessibility(ctx),
		smoking_allowed=_smoking(ctx),
		services=services[: cfg.max_services] if services else None,
		images=extract_images(ctx),
		social_links=first_of(SOCIAL_STRATEGIES, ctx),
		faqs=_dedupe_faqs(faqs)[: cfg.max_faqs] if faqs else None,
		business_hours=hours_text,
		rating=rating.value if rating else None,
		review_count=rating.count if rating else None,
		price_range=first_of(PRICE_STRATEGIES, ctx),
		business_type=category,
		hints=build_hints(url, name, title, heading, body, contact),
	)
	log_info(
		f"Extracted {url}: name={facts.business_name!r}, type={facts.business_type}, "
		f"faqs={len(facts.faqs or [])}, images={len(facts.images or [])}"
	)
	return facts


def _dedupe_faqs(pairs: List[FaqPair]) -> List[FaqPair]:
	seen = set()
	out = []
	for pair in pairs:
		key = pair.question.lower()
		if key not in seen:
			seen.add(key)
			out.append(pair)
	return out


def placeholder_facts(url: str) -> ExtractedFacts:
	"""Deterministic stand-in record built only from the URL (domain name, path keywords)."""
	parsed = urlparse.urlparse(url or "")
	host = (parsed.hostname or "").lower()
	if not host:
		raise PipelineError(f"Cannot derive any facts from URL: {url!r}")
	if host.startswith("www."):
		host = host[4:]
	label = host.split(".")[0]
	name = " ".join(w.capitalize() for w in re.split(r"[-_]+", label) if w) or host
	path_words = " ".join(re.split(r"[/\-_.]+", parsed.path.lower()))
	category = classify_business_category(f"{label.replace('-', ' ')} {path_words}")
	return ExtractedFacts(
		url=url,
		title=name,
		business_name=name,
		meta_description=f"Placeholder record for {name}: page content could not be retrieved.",
		business_type=category,
		hints=ValidationHints(
			expected_name=expected_name_from_url(url),
			extracted_name=name,
			content_matches_url=None,
			has_minimum_data=True,
			rejection_reason="page content could not be retrieved; placeholder built from the URL",
		),
		is_placeholder=True,
	)
