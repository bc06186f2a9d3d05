import pytest

from patterns import (
	POSTAL_CODE_PATTERNS,
	canonical_price_tier,
	classify_business_category,
	classify_price_tier,
	ensure_absolute_url,
	expand_day_range,
	format_phone_number,
	infer_postal_code_from_city,
	infer_region_from_city,
	is_valid_email,
	is_valid_postal_code,
	is_valid_time_format,
	is_valid_url,
	match_postal_code,
	normalize_time,
	parse_opening_hours,
)


@pytest.mark.parametrize("text,country,expected", [
	("200 W Madison St, Chicago, IL 60606", "US", "60606"),
	("PO Box 9, Springfield, IL 62704-1234", "US", "62704-1234"),
	("290 Bremner Blvd, Toronto, ON M5V 3L9", "CA", "M5V 3L9"),
	("10 Downing Street, London SW1A 2AA", "UK", "SW1A 2AA"),
	("1 Macquarie St, Sydney NSW 2000", "AU", "2000"),
	("Unter den Linden 77, 10117 Berlin", "DE", "10117"),
	("8 Rue de Rivoli, 75004 Paris", "France", "75004"),
])
def test_match_postal_code_per_region(text, country, expected):
	assert match_postal_code(text, country) == expected


def test_match_postal_code_ignores_codes_inside_longer_tokens():
	assert match_postal_code("Order #A12345-7 shipped", "US") is None


def test_match_postal_code_first_and_last():
	text = "Suite 10001, Austin, TX 78701"
	assert match_postal_code(text, "US") == "10001"
	assert match_postal_code(text, "US", last=True) == "78701"


def test_match_postal_code_repeated_calls_are_independent():
	text = "Chicago, IL 60606"
	assert match_postal_code(text, "US") == match_postal_code(text, "US") == "60606"


POSTAL_FIXTURES = {
	"US": (["12345", "90210", "12345-6789"], ["1234", "123456", "12345-678", "ABCDE"]),
	"CA": (["K1A 0B1", "M5V3L9", "h2x 1y4"], ["12345", "K1A-0B1", "KK1 0B1"]),
	"UK": (["SW1A 1AA", "M1 1AE", "B33 8TH", "CR2 6XH", "EC1A1BB"], ["12345", "SW1A 1A", "1AA SW1"]),
	"AU": (["2000", "3000", "0800"], ["200", "20000", "ABCD"]),
	"DE": (["10115", "80331"], ["1011", "101155", "D-10115"]),
	"FR": (["75008", "13001"], ["7500", "750080", "75 008"]),
}


def test_every_registered_region_has_fixtures():
	assert set(POSTAL_FIXTURES) == set(POSTAL_CODE_PATTERNS)


@pytest.mark.parametrize("region,code", [(r, c) for r, (valid, _) in POSTAL_FIXTURES.items() for c in valid])
def test_valid_postal_codes(region, code):
	assert is_valid_postal_code(code, region)


@pytest.mark.parametrize("region,code", [(r, c) for r, (_, invalid) in POSTAL_FIXTURES.items() for c in invalid])
def test_invalid_postal_codes(region, code):
	assert not is_valid_postal_code(code, region)


def test_postal_code_aliases_and_generic_fallback():
	assert is_valid_postal_code("12345-6789", "usa")
	assert is_valid_postal_code("K1A 0B1", "Canada")
	assert is_valid_postal_code("SW1A 1AA", "United Kingdom")
	# Unregistered countries use the generic numeric pattern
	assert is_valid_postal_code("8001", "Switzerland")
	assert is_valid_postal_code("123456", None)
	assert not is_valid_postal_code("12", "Switzerland")
	assert not is_valid_postal_code("ABC-12", "Switzerland")
	assert not is_valid_postal_code("", "US")
	assert match_postal_code("Bahnhofstrasse 1, 8001 Zurich", "Switzerland") == "8001"


def test_infer_region_from_city():
	assert infer_region_from_city("Austin") == "TX"
	assert infer_region_from_city("  new   york ") == "NY"
	assert infer_region_from_city("Atlantis") is None
	assert infer_region_from_city(None) is None


def test_infer_postal_code_from_city():
	assert infer_postal_code_from_city("Chicago") == "60601"
	assert infer_postal_code_from_city("Atlantis") is None


@pytest.mark.parametrize("city,category,name,description,expected", [
	("New York", "Restaurant", None, None, "$$$$"),
	("Detroit", "LocalBusiness", None, None, "$"),
	(None, "LocalBusiness", "Luxury Day Spa", None, "$$$$"),
	("New York", "Restaurant", None, "Affordable slices by the window", "$"),
	("Atlantis", "LocalBusiness", None, None, "$$"),
])
def test_classify_price_tier(city, category, name, description, expected):
	assert classify_price_tier(city, category, name, description) == expected


@pytest.mark.parametrize("value,expected", [
	("$$", "$$"),
	("$$$$$$", "$$$$"),
	("very expensive", "$$$$"),
	("Upscale", "$$$"),
	("mid-range", "$$"),
	("cheap eats", "$"),
	("$10-$20", "$"),
	("call for quote", "$$"),
])
def test_canonical_price_tier(value, expected):
	assert canonical_price_tier(value) == expected


def test_format_phone_number_us():
	assert format_phone_number("(555) 123-4567") == "+1-555-123-4567"
	assert format_phone_number("1 555 123 4567") == "+1-555-123-4567"


def test_format_phone_number_uk():
	assert format_phone_number("020 7946 0958") == "+44-207-946-0958"


@pytest.mark.parametrize("raw", ["(555) 123-4567", "020 7946 0958", "+33 1 42 68 53 00", "12345"])
def test_format_phone_number_is_idempotent(raw):
	once = format_phone_number(raw)
	assert format_phone_number(once) == once


def test_email_and_url_validation():
	assert is_valid_email("info@harborhardware.com")
	assert not is_valid_email("info@harborhardware")
	assert not is_valid_email("not an email")
	assert is_valid_url("https://example.org/path")
	assert not is_valid_url("ftp://example.org")
	assert not is_valid_url("example.org")


def test_ensure_absolute_url():
	assert ensure_absolute_url("//cdn.example.org/logo.png") == "https://cdn.example.org/logo.png"
	assert ensure_absolute_url("/img/a.png", "https://example.org/about") == "https://example.org/img/a.png"


def test_time_format():
	assert is_valid_time_format("09:00")
	assert is_valid_time_format("9:30")
	assert not is_valid_time_format("24:00")
	assert not is_valid_time_format("9am")
	assert normalize_time("9am") == "09:00"
	assert normalize_time("5:30 PM") == "17:30"
	assert normalize_time("13pm") is None


def test_expand_day_range_wraps_past_sunday():
	assert expand_day_range("Fri", "Mon") == ["Friday", "Saturday", "Sunday", "Monday"]


def test_parse_opening_hours_weekday_range():
	entries = parse_opening_hours("Monday-Friday: 9:00 AM-5:00 PM")
	assert [day for day, _, _ in entries] == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
	assert all(opens == "09:00" and closes == "17:00" for _, opens, closes in entries)


def test_parse_opening_hours_drops_unparseable_lines():
	text = "Saturday: 10am - 2pm\nSunday: Closed\nHolidays vary"
	assert parse_opening_hours(text) == [("Saturday", "10:00", "14:00")]


def test_classify_business_category():
	assert classify_business_category("Best tacos, see our menu") == "Restaurant"
	assert classify_business_category("Trusted HVAC and furnace service") == "HVACBusiness"
	assert classify_business_category("We take good care of you") == "LocalBusiness"
