from typing import List, Optional


class SchemaGeneratorError(Exception):
	"""Base class for errors raised by the schema pipeline."""


class FetchError(SchemaGeneratorError):
	"""Every attempted source failed to return HTML for a URL."""

	def __init__(self, url: str, attempts: Optional[List[str]] = None) -> None:
		self.url = url
		self.attempts = attempts or []
		detail = "; ".join(self.attempts) if self.attempts else "no sources attempted"
		super().__init__(f"Failed to fetch {url}: {detail}")


class HtmlParseError(SchemaGeneratorError):
	"""The HTML could not be turned into an element tree."""


class ValidationRejected(SchemaGeneratorError):
	"""Strict-mode input failed one or more hard constraints."""

	def __init__(self, errors: List[str]) -> None:
		self.errors = list(errors)
		super().__init__(", ".join(self.errors))


class PipelineError(SchemaGeneratorError):
	"""No document can be produced at all."""


class SchemaParseError(SchemaGeneratorError):
	"""Text that should carry a JSON-LD object does not."""
