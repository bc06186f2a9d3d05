"""Regional recognizers and fixed vocabularies.

Every function here is pure: no network, no state kept between calls. Each
compiled pattern is applied with a fresh search, so nothing depends on a
previous match position.
"""
import re
import urllib.parse as urlparse
from typing import Dict, Iterable, List, Optional, Tuple

# Postal codes by region. Patterns are written without anchors; full-match
# validation uses re.fullmatch on the same pattern.
POSTAL_CODE_PATTERNS: Dict[str, str] = {
	"US": r"\d{5}(?:-\d{4})?",
	"CA": r"[A-Za-z]\d[A-Za-z]\s?\d[A-Za-z]\d",
	"UK": r"[A-Za-z]{1,2}\d[A-Za-z\d]?\s?\d[A-Za-z]{2}",
	"AU": r"\d{4}",
	"DE": r"\d{5}",
	"FR": r"\d{5}",
}
GENERIC_POSTAL_CODE_PATTERN = r"\d{3,10}"

COUNTRY_ALIASES: Dict[str, str] = {
	"us": "US", "usa": "US", "u.s.": "US", "u.s.a.": "US", "united states": "US",
	"united states of america": "US", "america": "US",
	"ca": "CA", "can": "CA", "canada": "CA",
	"uk": "UK", "gb": "UK", "gbr": "UK", "united kingdom": "UK", "great britain": "UK",
	"england": "UK", "scotland": "UK", "wales": "UK",
	"au": "AU", "aus": "AU", "australia": "AU",
	"de": "DE", "deu": "DE", "germany": "DE", "deutschland": "DE",
	"fr": "FR", "fra": "FR", "france": "FR",
}


def normalize_country(country: Optional[str]) -> Optional[str]:
	"""Map a free-form country hint to a registered region code, if any."""
	if not country:
		return None
	return COUNTRY_ALIASES.get(country.strip().lower())


def _postal_pattern(country_hint: Optional[str]) -> str:
	code = normalize_country(country_hint)
	if code:
		return POSTAL_CODE_PATTERNS[code]
	return GENERIC_POSTAL_CODE_PATTERN


def match_postal_code(text: Optional[str], country_hint: Optional[str] = None, last: bool = False) -> Optional[str]:
	"""Return the first (or last) postal code in text for the hinted region."""
	if not text:
		return None
	pattern = r"(?<![A-Za-z0-9-])(" + _postal_pattern(country_hint) + r")(?![A-Za-z0-9])"
	matches = [m.group(1).strip() for m in re.finditer(pattern, text)]
	if not matches:
		return None
	return matches[-1] if last else matches[0]


def is_valid_postal_code(code: Optional[str], country_hint: Optional[str] = None) -> bool:
	if not code:
		return False
	return re.fullmatch(_postal_pattern(country_hint), code.strip()) is not None


# ---------------------------------------------------------------------------
# City tables
# ---------------------------------------------------------------------------

CITY_REGIONS: Dict[str, str] = {
	"new york": "NY", "manhattan": "NY", "brooklyn": "NY", "buffalo": "NY", "rochester": "NY",
	"los angeles": "CA", "san diego": "CA", "san jose": "CA", "san francisco": "CA",
	"fresno": "CA", "sacramento": "CA", "oakland": "CA", "bakersfield": "CA", "anaheim": "CA",
	"santa ana": "CA", "riverside": "CA", "stockton": "CA", "chula vista": "CA", "irvine": "CA",
	"fremont": "CA", "san bernardino": "CA", "palo alto": "CA", "cupertino": "CA",
	"mountain view": "CA", "beverly hills": "CA",
	"chicago": "IL", "peoria": "IL", "rockford": "IL",
	"houston": "TX", "san antonio": "TX", "dallas": "TX", "austin": "TX", "fort worth": "TX",
	"el paso": "TX", "arlington": "TX", "corpus christi": "TX", "plano": "TX", "laredo": "TX",
	"lubbock": "TX", "garland": "TX", "irving": "TX",
	"phoenix": "AZ", "tucson": "AZ", "mesa": "AZ", "chandler": "AZ", "glendale": "AZ",
	"gilbert": "AZ", "scottsdale": "AZ",
	"philadelphia": "PA", "pittsburgh": "PA",
	"jacksonville": "FL", "miami": "FL", "tampa": "FL", "orlando": "FL", "hialeah": "FL",
	"st. petersburg": "FL", "st petersburg": "FL",
	"columbus": "OH", "cleveland": "OH", "cincinnati": "OH", "toledo": "OH", "akron": "OH",
	"dayton": "OH", "youngstown": "OH",
	"charlotte": "NC", "raleigh": "NC", "greensboro": "NC", "durham": "NC", "winston-salem": "NC",
	"indianapolis": "IN", "fort wayne": "IN", "evansville": "IN",
	"seattle": "WA", "spokane": "WA", "yakima": "WA",
	"denver": "CO", "colorado springs": "CO", "aurora": "CO",
	"washington": "DC", "washington dc": "DC",
	"boston": "MA",
	"detroit": "MI",
	"nashville": "TN", "memphis": "TN",
	"portland": "OR",
	"oklahoma city": "OK", "tulsa": "OK",
	"las vegas": "NV", "henderson": "NV", "reno": "NV", "north las vegas": "NV",
	"baltimore": "MD",
	"louisville": "KY", "lexington": "KY",
	"milwaukee": "WI", "madison": "WI", "green bay": "WI",
	"albuquerque": "NM",
	"atlanta": "GA",
	"kansas city": "MO", "st. louis": "MO", "st louis": "MO",
	"omaha": "NE", "lincoln": "NE",
	"minneapolis": "MN", "saint paul": "MN", "st. paul": "MN",
	"wichita": "KS",
	"new orleans": "LA", "baton rouge": "LA",
	"honolulu": "HI",
	"anchorage": "AK",
	"newark": "NJ", "jersey city": "NJ",
	"norfolk": "VA", "chesapeake": "VA", "richmond": "VA",
	"boise": "ID", "boise city": "ID",
	"birmingham": "AL",
	"salt lake city": "UT",
	"des moines": "IA", "cedar rapids": "IA", "sioux city": "IA",
	"fargo": "ND", "bismarck": "ND",
	"rapid city": "SD",
	"billings": "MT", "great falls": "MT",
}

CITY_POSTAL_CODES: Dict[str, str] = {
	"new york": "10001",
	"los angeles": "90001",
	"chicago": "60601",
	"houston": "77001",
	"phoenix": "85001",
	"philadelphia": "19101",
	"san antonio": "78201",
	"san diego": "92101",
	"dallas": "75201",
	"san jose": "95101",
	"austin": "78701",
	"seattle": "98101",
	"denver": "80201",
	"washington": "20001",
	"boston": "02101",
	"las vegas": "89101",
	"atlanta": "30301",
	"miami": "33101",
	"charlotte": "28201",
	"portland": "97201",
	"san francisco": "94101",
}

CITY_PRICE_TIERS: Dict[str, str] = {
	# Ultra high-cost cities
	"new york": "$$$$", "manhattan": "$$$$", "san francisco": "$$$$", "palo alto": "$$$$",
	"cupertino": "$$$$", "mountain view": "$$$$", "beverly hills": "$$$$", "monaco": "$$$$",
	"hong kong": "$$$$", "zurich": "$$$$", "geneva": "$$$$",
	# High-cost cities
	"los angeles": "$$$", "seattle": "$$$", "boston": "$$$", "washington": "$$$",
	"washington dc": "$$$", "chicago": "$$$", "miami": "$$$", "san diego": "$$$",
	"san jose": "$$$", "oakland": "$$$", "denver": "$$$", "austin": "$$$", "portland": "$$$",
	"vancouver": "$$$", "toronto": "$$$", "london": "$$$", "paris": "$$$", "tokyo": "$$$",
	"sydney": "$$$", "melbourne": "$$$",
	# Mid-cost cities
	"atlanta": "$$", "dallas": "$$", "houston": "$$", "phoenix": "$$", "nashville": "$$",
	"charlotte": "$$", "raleigh": "$$", "tampa": "$$", "orlando": "$$", "las vegas": "$$",
	"salt lake city": "$$", "minneapolis": "$$", "milwaukee": "$$", "indianapolis": "$$",
	"columbus": "$$", "cincinnati": "$$", "pittsburgh": "$$", "baltimore": "$$",
	"richmond": "$$", "jacksonville": "$$", "san antonio": "$$", "fort worth": "$$",
	"albuquerque": "$$", "tucson": "$$", "sacramento": "$$", "fresno": "$$",
	# Lower-cost cities
	"detroit": "$", "cleveland": "$", "buffalo": "$", "kansas city": "$",
	"oklahoma city": "$", "tulsa": "$", "memphis": "$", "louisville": "$", "lexington": "$",
	"toledo": "$", "akron": "$", "youngstown": "$", "dayton": "$", "fort wayne": "$",
	"evansville": "$", "peoria": "$", "rockford": "$", "green bay": "$", "des moines": "$",
	"cedar rapids": "$", "sioux city": "$", "fargo": "$", "bismarck": "$", "rapid city": "$",
	"billings": "$", "great falls": "$", "boise": "$", "spokane": "$", "yakima": "$",
}

CATEGORY_PRICE_TIERS: Dict[str, str] = {
	"LegalService": "$$$",
	"MedicalBusiness": "$$$",
	"DentalBusiness": "$$",
	"Restaurant": "$$",
	"HVACBusiness": "$$",
	"ProfessionalService": "$$",
	"HomeAndConstructionBusiness": "$$",
	"AutomotiveBusiness": "$",
	"LocalBusiness": "$$",
}


def _city_key(city: Optional[str]) -> str:
	return re.sub(r"\s+", " ", (city or "").strip().lower())


def infer_region_from_city(city: Optional[str]) -> Optional[str]:
	"""Look the city up in the fixed city -> region table. No guessing."""
	if not city:
		return None
	return CITY_REGIONS.get(_city_key(city))


def infer_postal_code_from_city(city: Optional[str]) -> Optional[str]:
	if not city:
		return None
	return CITY_POSTAL_CODES.get(_city_key(city))


# ---------------------------------------------------------------------------
# Price tiers
# ---------------------------------------------------------------------------

PRICE_TIERS = ("$", "$$", "$$$", "$$$$")
DEFAULT_PRICE_TIER = "$$"

# Checked in order; the first group with a hit decides the tier.
TIER_LANGUAGE: List[Tuple[str, Tuple[str, ...]]] = [
	("$$$$", ("luxury", "premium", "exclusive", "high-end", "high end")),
	("$$$", ("upscale", "boutique", "sophisticated")),
	("$", ("affordable", "budget", "discount", "cheap", "inexpensive")),
	("$$", ("value", "reasonable", "reasonably priced", "moderate")),
]

DESCRIPTIVE_TIERS: List[Tuple[str, Tuple[str, ...]]] = [
	("$$$$", ("luxury", "exclusive", "premium", "very expensive")),
	("$$$", ("expensive", "upscale", "high-end", "high end")),
	("$$", ("moderate", "mid-range", "mid range", "midrange", "reasonable")),
	("$", ("inexpensive", "cheap", "budget", "affordable")),
]


def _contains_word(text: str, phrase: str) -> bool:
	return re.search(r"(?<![a-z])" + re.escape(phrase) + r"(?![a-z])", text) is not None


def tier_from_language(text: Optional[str]) -> Optional[str]:
	"""Return the tier signalled by explicit price language, if any."""
	lowered = (text or "").lower()
	if not lowered.strip():
		return None
	for tier, words in TIER_LANGUAGE:
		if any(_contains_word(lowered, w) for w in words):
			return tier
	return None


def classify_price_tier(
	city: Optional[str],
	category: Optional[str],
	name: Optional[str] = None,
	description: Optional[str] = None,
) -> str:
	"""Text signal > city cost-of-living > category default > "$$"."""
	textual = tier_from_language(f"{name or ''} {description or ''}")
	if textual:
		return textual
	city_tier = CITY_PRICE_TIERS.get(_city_key(city))
	if city_tier:
		return city_tier
	category_tier = CATEGORY_PRICE_TIERS.get(category or "")
	if category_tier:
		return category_tier
	return DEFAULT_PRICE_TIER


def is_canonical_price_tier(value: Optional[str]) -> bool:
	return bool(value) and value.strip() in PRICE_TIERS


def canonical_price_tier(value: Optional[str]) -> Optional[str]:
	"""Convert an explicit price range (symbols or words) into one of the four tiers."""
	if not value or not value.strip():
		return None
	cleaned = value.strip()
	if re.fullmatch(r"\$+", cleaned):
		return PRICE_TIERS[min(len(cleaned), 4) - 1]
	lowered = cleaned.lower()
	for tier, words in DESCRIPTIVE_TIERS:
		if any(w in lowered for w in words):
			return tier
	dollars = re.search(r"\$+", cleaned)
	if dollars:
		return PRICE_TIERS[min(len(dollars.group(0)), 4) - 1]
	return DEFAULT_PRICE_TIER


# ---------------------------------------------------------------------------
# Contact formats
# ---------------------------------------------------------------------------

PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)")
UK_PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+44\s?|0)\d{2,4}[\s-]?\d{3,4}[\s-]?\d{3,4}(?!\d)")
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PLACEHOLDER_EMAIL_MARKERS = ("example.com", "example.org", "test.com", "placeholder", "domain.com", "yourdomain", "email.com")


def format_phone_number(raw: Optional[str]) -> Optional[str]:
	if not raw:
		return raw
	digits = re.sub(r"\D", "", raw)

	# US/Canada numbers
	if len(digits) == 10:
		return f"+1-{digits[0:3]}-{digits[3:6]}-{digits[6:]}"
	if len(digits) == 11 and digits.startswith("1"):
		return f"+1-{digits[1:4]}-{digits[4:7]}-{digits[7:]}"

	# UK numbers
	if 10 <= len(digits) <= 11 and (digits.startswith("44") or digits.startswith("0")):
		national = digits if digits.startswith("44") else "44" + digits[1:]
		return f"+{national[0:2]}-{national[2:5]}-{national[5:8]}-{national[8:]}"

	if len(digits) >= 7:
		return raw.strip()
	return raw


def find_phone_numbers(text: Optional[str]) -> List[str]:
	if not text:
		return []
	found = [m.group(0).strip() for m in PHONE_PATTERN.finditer(text)]
	found += [m.group(0).strip() for m in UK_PHONE_PATTERN.finditer(text) if m.group(0).strip() not in found]
	return found


def is_placeholder_email(email: str) -> bool:
	lowered = email.lower()
	return any(marker in lowered for marker in PLACEHOLDER_EMAIL_MARKERS)


def find_emails(text: Optional[str]) -> List[str]:
	if not text:
		return []
	results: List[str] = []
	for match in EMAIL_PATTERN.finditer(text):
		email = match.group(0)
		if is_placeholder_email(email) or email in results:
			continue
		# Retina image names look like emails (logo@2x.png)
		if re.search(r"\.(png|jpe?g|gif|svg|webp)$", email, re.I):
			continue
		results.append(email)
	return results


def is_valid_email(email: Optional[str]) -> bool:
	if not email:
		return False
	return re.fullmatch(r"[^\s@]+@[^\s@]+\.[^\s@]+", email.strip()) is not None


def is_valid_url(url: Optional[str]) -> bool:
	if not url or not isinstance(url, str):
		return False
	try:
		parsed = urlparse.urlparse(url.strip())
	except ValueError:
		return False
	return parsed.scheme in ("http", "https") and bool(parsed.netloc) and " " not in parsed.netloc


def ensure_absolute_url(url: Optional[str], base: Optional[str] = None) -> Optional[str]:
	"""Resolve protocol-relative URLs, and relative ones when a base is known."""
	if not url:
		return url
	url = url.strip()
	if url.startswith("http://") or url.startswith("https://"):
		return url
	if url.startswith("//"):
		scheme = urlparse.urlparse(base).scheme if base else ""
		return f"{scheme or 'https'}:{url}"
	if base:
		return urlparse.urljoin(base, url)
	return url


def is_valid_time_format(value: Optional[str]) -> bool:
	if not value:
		return False
	return re.fullmatch(r"([01]?\d|2[0-3]):[0-5]\d", value.strip()) is not None


# ---------------------------------------------------------------------------
# U.S. states
# ---------------------------------------------------------------------------

US_STATES: Dict[str, str] = {
	"alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR", "california": "CA",
	"colorado": "CO", "connecticut": "CT", "delaware": "DE", "florida": "FL", "georgia": "GA",
	"hawaii": "HI", "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
	"kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
	"massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
	"missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
	"new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
	"north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
	"oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
	"south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT", "vermont": "VT",
	"virginia": "VA", "washington": "WA", "west virginia": "WV", "wisconsin": "WI",
	"wyoming": "WY", "district of columbia": "DC",
}
US_STATE_CODES = frozenset(US_STATES.values())

STREET_SUFFIXES = (
	"street", "st", "avenue", "ave", "road", "rd", "boulevard", "blvd", "drive", "dr",
	"lane", "ln", "way", "court", "ct", "place", "pl", "parkway", "pkwy", "highway", "hwy",
	"circle", "cir", "terrace", "suite", "square", "sq", "trail", "trl",
)
STREET_SUFFIX_RE = r"(?:" + "|".join(STREET_SUFFIXES) + r")\.?"


# ---------------------------------------------------------------------------
# Category vocabularies
# ---------------------------------------------------------------------------

DEFAULT_BUSINESS_CATEGORY = "LocalBusiness"

# Priority order matters: the first category with a keyword hit wins.
BUSINESS_CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
	("Restaurant", ("restaurant", "cafe", "café", "diner", "bistro", "food", "menu", "dining")),
	("MedicalBusiness", ("medical", "doctor", "clinic", "hospital", "health", "physician")),
	("LegalService", ("law", "lawyer", "attorney", "legal", "counsel")),
	("HVACBusiness", ("hvac", "heating", "cooling", "air conditioning", "furnace")),
	("HomeAndConstructionBusiness", ("construction", "contractor", "builder", "renovation", "remodeling")),
	("ProfessionalService", ("consulting", "consultant", "professional service")),
	("AutomotiveBusiness", ("auto", "car", "automotive", "mechanic", "repair")),
]

BUSINESS_TYPES = (
	"LocalBusiness", "Restaurant", "ProfessionalService", "LegalService", "MedicalBusiness",
	"HVACBusiness", "HomeAndConstructionBusiness", "AutomotiveBusiness", "DentalBusiness",
	"Organization",
)


def classify_business_category(text: Optional[str]) -> str:
	lowered = (text or "").lower()
	for category, keywords in BUSINESS_CATEGORY_KEYWORDS:
		if any(_contains_word(lowered, k) for k in keywords):
			return category
	return DEFAULT_BUSINESS_CATEGORY


PAYMENT_METHODS: Dict[str, Tuple[str, ...]] = {
	"Cash": ("cash",),
	"Credit Card": ("credit card", "credit cards", "all major cards", "major credit"),
	"Debit Card": ("debit card", "debit cards"),
	"Visa": ("visa",),
	"Mastercard": ("mastercard", "master card"),
	"American Express": ("american express", "amex"),
	"Discover": ("discover card",),
	"PayPal": ("paypal",),
	"Apple Pay": ("apple pay",),
	"Google Pay": ("google pay",),
	"Venmo": ("venmo",),
	"Check": ("personal checks", "checks accepted", "check accepted"),
	"Financing": ("financing available", "financing options"),
}

CURRENCY_CODES = ("USD", "CAD", "GBP", "EUR", "AUD")
CURRENCY_SYMBOLS: Dict[str, str] = {"£": "GBP", "€": "EUR"}

AMENITIES: Dict[str, Tuple[str, ...]] = {
	"Free Wi-Fi": ("free wifi", "free wi-fi", "wifi", "wi-fi"),
	"Parking": ("free parking", "parking available", "parking lot", "on-site parking", "valet"),
	"Outdoor Seating": ("outdoor seating", "patio", "terrace seating"),
	"Pet Friendly": ("pet friendly", "pet-friendly", "dog friendly", "dog-friendly"),
	"Air Conditioning": ("air-conditioned", "air conditioned"),
	"Restrooms": ("restroom", "restrooms"),
	"Family Friendly": ("family friendly", "family-friendly", "kid friendly", "kid-friendly"),
}

CUISINES = (
	"American", "Italian", "Mexican", "Chinese", "Japanese", "Thai", "Indian", "French",
	"Greek", "Mediterranean", "Spanish", "Korean", "Vietnamese", "Middle Eastern", "Seafood",
	"Steakhouse", "Pizza", "Sushi", "Barbecue", "Vegan", "Vegetarian", "Cajun", "Caribbean",
)

LANGUAGES = (
	"English", "Spanish", "French", "German", "Italian", "Portuguese", "Chinese", "Mandarin",
	"Cantonese", "Japanese", "Korean", "Vietnamese", "Tagalog", "Arabic", "Russian", "Hindi",
	"Polish", "Hebrew",
)

SOCIAL_DOMAINS = (
	"facebook.com", "twitter.com", "x.com", "linkedin.com",
	"instagram.com", "youtube.com", "tiktok.com", "pinterest.com",
)

MAP_LINK_MARKERS = ("google.com/maps", "maps.google.", "goo.gl/maps", "maps.app.goo.gl", "maps.apple.com", "bing.com/maps")


def find_vocabulary(text: Optional[str], vocabulary: Dict[str, Tuple[str, ...]]) -> List[str]:
	"""Return the vocabulary labels whose phrases occur in text, in vocabulary order."""
	lowered = (text or "").lower()
	return [label for label, phrases in vocabulary.items() if any(_contains_word(lowered, p) for p in phrases)]


def find_terms(text: Optional[str], terms: Iterable[str]) -> List[str]:
	lowered = (text or "").lower()
	return [t for t in terms if _contains_word(lowered, t.lower())]


def is_social_link(href: Optional[str]) -> bool:
	if not href:
		return False
	host = (urlparse.urlparse(href).hostname or "").lower()
	return any(host == d or host.endswith("." + d) for d in SOCIAL_DOMAINS)


def is_map_link(href: Optional[str]) -> bool:
	lowered = (href or "").lower()
	return any(marker in lowered for marker in MAP_LINK_MARKERS)


# ---------------------------------------------------------------------------
# Opening hours
# ---------------------------------------------------------------------------

DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DAY_ALIASES: Dict[str, str] = {
	"mon": "Monday", "tue": "Tuesday", "tues": "Tuesday", "wed": "Wednesday",
	"thu": "Thursday", "thur": "Thursday", "thurs": "Thursday", "fri": "Friday",
	"sat": "Saturday", "sun": "Sunday",
}

_DAY_RE = r"(?:mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?"
_TIME_RE = r"\d{1,2}(?::\d{2})?\s*(?:[ap]\.?\s?m\.?)?"
_SEP_RE = r"\s*(?:-|–|—|to|through|thru)\s*"
HOURS_LINE = re.compile(
	r"^\s*(?P<start>" + _DAY_RE + r")(?:" + _SEP_RE + r"(?P<end>" + _DAY_RE + r"))?"
	r"\s*:?\s*(?P<opens>" + _TIME_RE + r")" + r"\s*(?:-|–|—|to)\s*" + r"(?P<closes>" + _TIME_RE + r")\s*$",
	re.IGNORECASE,
)


def normalize_day(token: Optional[str]) -> Optional[str]:
	if not token:
		return None
	key = token.strip().rstrip(".").lower()
	for day in DAYS:
		if key == day.lower():
			return day
	return DAY_ALIASES.get(key) or DAY_ALIASES.get(key[:3])


def expand_day_range(start: str, end: Optional[str] = None) -> List[str]:
	"""Expand "Monday".."Friday" into the explicit list, wrapping past Sunday."""
	first = normalize_day(start)
	if not first:
		return []
	if not end:
		return [first]
	last = normalize_day(end)
	if not last:
		return []
	i, j = DAYS.index(first), DAYS.index(last)
	if j >= i:
		return list(DAYS[i:j + 1])
	return list(DAYS[i:]) + list(DAYS[:j + 1])


def normalize_time(value: Optional[str]) -> Optional[str]:
	"""Turn "9am", "9:00 AM", "17:00" into zero-padded 24h "HH:MM"."""
	if not value:
		return None
	match = re.fullmatch(r"\s*(\d{1,2})(?::(\d{2}))?\s*(?:([ap])\.?\s?m\.?)?\s*", value, re.IGNORECASE)
	if not match:
		return None
	hour = int(match.group(1))
	minute = int(match.group(2) or 0)
	meridiem = (match.group(3) or "").lower()
	if meridiem:
		if hour < 1 or hour > 12:
			return None
		hour = hour % 12 + (12 if meridiem == "p" else 0)
	if hour > 23 or minute > 59:
		return None
	return f"{hour:02d}:{minute:02d}"


def parse_opening_hours(text: Optional[str]) -> List[Tuple[str, str, str]]:
	"""Parse free-text hours into (day, opens, closes) triples; bad lines are dropped."""
	if not text:
		return []
	entries: List[Tuple[str, str, str]] = []
	for line in text.splitlines():
		match = HOURS_LINE.match(line)
		if not match:
			continue
		opens = normalize_time(match.group("opens"))
		closes = normalize_time(match.group("closes"))
		if not opens or not closes:
			continue
		for day in expand_day_range(match.group("start"), match.group("end")):
			entries.append((day, opens, closes))
	return entries
