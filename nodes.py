"""Typed schema.org node variants.

Every node kind owns two things: a constructor that sets the ``@type``
discriminator before any other key, and a ``repair`` rule the cleaner applies
before generic pruning. ``repair`` never mutates its input; it returns a new
dict, or None when the node cannot be made minimally valid.
"""
import math
from typing import Any, Dict, Optional, Type

from facts import DEFAULT_FAQ_ANSWER
from patterns import (
	BUSINESS_TYPES,
	ensure_absolute_url,
	format_phone_number,
	is_valid_email,
	is_valid_postal_code,
	is_valid_time_format,
	is_valid_url,
)

Node = Dict[str, Any]

_REGISTRY: Dict[str, Type["NodeKind"]] = {}


def register(*type_names: str):
	def decorator(cls):
		for name in type_names:
			_REGISTRY[name] = cls
		return cls
	return decorator


def kind_for(node: Node) -> Type["NodeKind"]:
	raw = node.get("@type")
	if isinstance(raw, list):
		raw = raw[0] if raw else None
	return _REGISTRY.get(raw, NodeKind) if isinstance(raw, str) else NodeKind


def _blank(value: Any) -> bool:
	return value is None or value == "" or value == [] or value == {}


def _float(value: Any) -> Optional[float]:
	if value is None or isinstance(value, bool):
		return None
	try:
		number = float(str(value).strip())
	except ValueError:
		return None
	return number if math.isfinite(number) else None


def number_text(value: float) -> str:
	"""Canonical string for a number: "4.5", "5", "120"."""
	if float(value).is_integer():
		return str(int(value))
	return ("%f" % value).rstrip("0").rstrip(".")


class NodeKind:
	"""Untyped or unregistered node: no kind-specific rule."""
	type_name = "Thing"

	@classmethod
	def create(cls, type_name: Optional[str] = None, **props: Any) -> Node:
		node: Node = {"@type": type_name or cls.type_name}
		for key, value in props.items():
			if not _blank(value):
				node[key] = value
		return node

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		return dict(node)


@register("PostalAddress")
class PostalAddress(NodeKind):
	type_name = "PostalAddress"
	COMPONENTS = ("streetAddress", "addressLocality", "addressRegion", "postalCode")

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		out = dict(node)
		for key in cls.COMPONENTS + ("addressCountry",):
			if isinstance(out.get(key), str):
				out[key] = out[key].strip()
		country = out.get("addressCountry") or "US"
		if out.get("postalCode") and not is_valid_postal_code(str(out["postalCode"]), country):
			out.pop("postalCode")
		if all(_blank(out.get(k)) for k in cls.COMPONENTS):
			return None
		out["addressCountry"] = country
		return out


@register("GeoCoordinates")
class GeoCoordinates(NodeKind):
	type_name = "GeoCoordinates"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		lat, lng = _float(node.get("latitude")), _float(node.get("longitude"))
		if lat is None or lng is None:
			return None
		if not (-90 <= lat <= 90 and -180 <= lng <= 180):
			return None
		return dict(node, latitude=lat, longitude=lng)


@register("OpeningHoursSpecification")
class OpeningHours(NodeKind):
	type_name = "OpeningHoursSpecification"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		if _blank(node.get("dayOfWeek")) or _blank(node.get("opens")) or _blank(node.get("closes")):
			return None
		if not is_valid_time_format(str(node["opens"])) or not is_valid_time_format(str(node["closes"])):
			return None
		return dict(node)


@register("AggregateRating")
class AggregateRating(NodeKind):
	type_name = "AggregateRating"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		value = _float(node.get("ratingValue"))
		count = _float(node.get("reviewCount"))
		if value is None or count is None:
			return None
		if not 1 <= value <= 5 or count < 1:
			return None
		return dict(
			node,
			ratingValue=number_text(value),
			reviewCount=str(int(count)),
			bestRating="5",
			worstRating="1",
		)


@register("Rating")
class Rating(NodeKind):
	type_name = "Rating"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		value = _float(node.get("ratingValue"))
		if value is None or not 1 <= value <= 5:
			return None
		return dict(node, ratingValue=number_text(value), bestRating="5", worstRating="1")


@register("Review")
class Review(NodeKind):
	type_name = "Review"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		body = node.get("reviewBody")
		if not isinstance(body, str) or not body.strip():
			return None
		return dict(node, reviewBody=body.strip())


@register("ImageObject")
class Image(NodeKind):
	type_name = "ImageObject"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		url = node.get("url")
		if not isinstance(url, str) or not url.strip():
			return None
		return dict(node, url=ensure_absolute_url(url))


@register(*BUSINESS_TYPES)
class BusinessEntity(NodeKind):
	type_name = "LocalBusiness"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		name = node.get("name")
		if not isinstance(name, str) or not name.strip():
			return None
		out = dict(node, name=name.strip())
		if isinstance(out.get("telephone"), str) and out["telephone"].strip():
			out["telephone"] = format_phone_number(out["telephone"])
		if "email" in out and not is_valid_email(out.get("email")):
			out.pop("email")
		if isinstance(out.get("url"), str):
			out["url"] = ensure_absolute_url(out["url"])
		if isinstance(out.get("sameAs"), list):
			links = [ensure_absolute_url(u) for u in out["sameAs"] if isinstance(u, str)]
			out["sameAs"] = [u for u in links if is_valid_url(u)]
		return out


@register("Question")
class Question(NodeKind):
	type_name = "Question"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		name = node.get("name")
		if not isinstance(name, str) or not name.strip():
			return None
		out = dict(node, name=name.strip())
		if _blank(out.get("acceptedAnswer")):
			out["acceptedAnswer"] = Answer.create(text=DEFAULT_FAQ_ANSWER)
		return out


@register("Answer")
class Answer(NodeKind):
	type_name = "Answer"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		text = node.get("text")
		if not isinstance(text, str) or not text.strip():
			return dict(node, text=DEFAULT_FAQ_ANSWER)
		return dict(node, text=text.strip())


@register("Offer")
class Offer(NodeKind):
	type_name = "Offer"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		if _blank(node.get("name")) and _blank(node.get("itemOffered")):
			return None
		return dict(node)


@register("Service", "Place", "LocationFeatureSpecification", "Person")
class Named(NodeKind):
	"""Nodes that mean nothing without a name."""

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		name = node.get("name")
		if not isinstance(name, str) or not name.strip():
			return None
		return dict(node, name=name.strip())


@register("HowToStep")
class HowToStep(NodeKind):
	type_name = "HowToStep"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		text = node.get("text")
		if not isinstance(text, str) or not text.strip():
			return None
		return dict(node, text=text.strip())


@register("WebPage")
class WebPage(NodeKind):
	type_name = "WebPage"

	@classmethod
	def repair(cls, node: Node) -> Optional[Node]:
		out = dict(node)
		if isinstance(out.get("url"), str):
			out["url"] = ensure_absolute_url(out["url"])
		return out
