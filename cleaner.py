"""Tree cleaning and shallow validation for synthesized JSON-LD documents."""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from console import log_warn
from nodes import Node, kind_for
from patterns import BUSINESS_TYPES, is_valid_email, is_valid_postal_code, is_valid_url
from synthesizer import PLACEHOLDER_CITY, PLACEHOLDER_REGION, PLACEHOLDER_STREET

VALIDATED_BUSINESS_TYPES = tuple(t for t in BUSINESS_TYPES if t != "Organization")


def _is_empty(value: Any) -> bool:
	return value is None or value == "" or value == [] or value == {}


def clean_schema(value: Any) -> Any:
	"""Return a pruned, repaired copy of value. The input is never modified.

	Children are cleaned first, then the node's kind rule runs, then empty
	keys are pruned. A rejected node comes back as None and disappears from
	its parent. Running this twice gives the same result as running it once.
	"""
	if isinstance(value, list):
		cleaned = [clean_schema(item) for item in value]
		return [item for item in cleaned if not _is_empty(item)]
	if isinstance(value, dict):
		return _clean_node(value)
	return value


def _clean_node(node: Node) -> Optional[Node]:
	children: Node = {}
	for key, child in node.items():
		cleaned = clean_schema(child)
		if not _is_empty(cleaned):
			children[key] = cleaned
	if "@type" not in children:
		return children
	repaired = kind_for(children).repair(children)
	if repaired is None:
		return None
	return {key: child for key, child in repaired.items() if not _is_empty(child)}


@dataclass
class ValidationReport:
	valid: bool
	errors: List[str] = field(default_factory=list)
	warnings: List[str] = field(default_factory=list)

	def to_dict(self) -> Dict[str, Any]:
		return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _type_of(node: Any) -> Optional[str]:
	if not isinstance(node, dict):
		return None
	raw = node.get("@type")
	if isinstance(raw, list):
		raw = raw[0] if raw else None
	return raw if isinstance(raw, str) else None


def _number(value: Any) -> Optional[float]:
	try:
		number = float(value)
	except (TypeError, ValueError):
		return None
	return number if math.isfinite(number) else None


def address_score(address: Dict[str, Any]) -> int:
	"""How many of street / city / region / postal carry real (non-placeholder) data."""
	street = address.get("streetAddress")
	city = address.get("addressLocality")
	region = address.get("addressRegion")
	return sum([
		bool(street) and street != PLACEHOLDER_STREET,
		bool(city) and city != PLACEHOLDER_CITY,
		bool(region) and region != PLACEHOLDER_REGION,
		bool(address.get("postalCode")),
	])


def _validate_business(business: Dict[str, Any], errors: List[str], warnings: List[str]) -> None:
	if not business.get("name"):
		errors.append("Business schema missing name property")

	address = business.get("address")
	if not isinstance(address, dict):
		warnings.append("Business schema missing address property")
	else:
		postal = address.get("postalCode")
		if postal and not is_valid_postal_code(str(postal), address.get("addressCountry")):
			warnings.append(f"Business address has invalid postal code format: {postal}")
		score = address_score(address)
		if score == 0:
			warnings.append("Business address has no meaningful location information")
		elif score < 2:
			warnings.append("Business address is incomplete but has some location information")

	rating = business.get("aggregateRating")
	if isinstance(rating, dict):
		value = _number(rating.get("ratingValue"))
		if value is None or not 1 <= value <= 5:
			errors.append("Invalid rating value (must be between 1 and 5)")
		count = _number(rating.get("reviewCount"))
		if count is None or count < 1:
			errors.append("Invalid review count (must be positive number)")

	geo = business.get("geo")
	if isinstance(geo, dict):
		lat, lng = _number(geo.get("latitude")), _number(geo.get("longitude"))
		if lat is None or not -90 <= lat <= 90:
			errors.append("Invalid latitude (must be between -90 and 90)")
		if lng is None or not -180 <= lng <= 180:
			errors.append("Invalid longitude (must be between -180 and 180)")

	if business.get("email") and not is_valid_email(business["email"]):
		errors.append("Invalid email format")
	if business.get("url") and not is_valid_url(business["url"]):
		errors.append("Invalid business URL format")
	same_as = business.get("sameAs")
	if isinstance(same_as, list):
		for index, url in enumerate(same_as):
			if not is_valid_url(url):
				errors.append(f"Invalid social media URL at index {index}")
	price = business.get("priceRange")
	if isinstance(price, str) and not set(price) <= {"$"}:
		warnings.append(f"Price range should use $ format, got: {price}")


def validate_schema(doc: Any) -> ValidationReport:
	"""Shallow, advisory check of an already-cleaned document. Never raises."""
	errors: List[str] = []
	warnings: List[str] = []
	if not isinstance(doc, dict):
		return ValidationReport(valid=False, errors=["Schema must be an object"])

	if not doc.get("@context"):
		errors.append("Missing @context property")
	kind = _type_of(doc)
	if not kind:
		errors.append("Missing @type property")

	if kind == "WebPage":
		if not doc.get("url"):
			errors.append("WebPage schema missing url property")
		elif not is_valid_url(doc["url"]):
			errors.append("WebPage schema has invalid URL")
		main = doc.get("mainEntity")
		if not doc.get("name") and not (isinstance(main, dict) and main.get("name")):
			errors.append("WebPage schema missing name property")

	main_entity = doc.get("mainEntity")
	if kind in VALIDATED_BUSINESS_TYPES:
		_validate_business(doc, errors, warnings)
	elif kind == "WebPage" and _type_of(main_entity) in VALIDATED_BUSINESS_TYPES:
		_validate_business(main_entity, errors, warnings)

	if kind == "Article":
		if not doc.get("headline"):
			errors.append("Article schema missing headline")
		author, publisher = doc.get("author"), doc.get("publisher")
		if not isinstance(author, dict) or not author.get("name"):
			errors.append("Article schema missing author name")
		if not isinstance(publisher, dict) or not publisher.get("name"):
			errors.append("Article schema missing publisher name")
		if not doc.get("datePublished"):
			errors.append("Article schema missing datePublished")

	if kind == "HowTo":
		if not doc.get("name"):
			errors.append("HowTo schema missing name")
		steps = doc.get("step")
		if not isinstance(steps, list) or not steps:
			errors.append("HowTo schema missing steps")

	for warning in warnings:
		log_warn(warning)
	return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
