import argparse
import json
import os
import sys
import urllib.parse as urlparse
from typing import Any, Dict, List, Optional

from colorama import init as colorama_init
from slugify import slugify

from console import log_banner, log_error, log_info, log_warn
from errors import SchemaGeneratorError, ValidationRejected
from pipeline import PipelineResult, generate_from_html, generate_from_manual, generate_from_url, validate_markup
from settings import GeneratorConfig, load_config
from synthesizer import CONTENT_TYPES


def safe_slug_from_url(url: str) -> str:
	parsed = urlparse.urlparse(url)
	path = parsed.path.strip("/") or "home"
	candidate = f"{parsed.hostname or 'site'}-{path}"
	slug = slugify(candidate, max_length=120)
	return slug or "page"


def ensure_dir(path: str) -> None:
	os.makedirs(path, exist_ok=True)


def write_outputs(result: PipelineResult, output_dir: str, slug: str) -> List[str]:
	"""Write <slug>.json (full result) and <slug>.html (embeddable markup plus meta tags)."""
	ensure_dir(output_dir)
	json_path = os.path.join(output_dir, f"{slug}.json")
	with open(json_path, "w", encoding="utf-8") as f:
		json.dump(result.to_dict(), f, ensure_ascii=False, indent=2)
	html_path = os.path.join(output_dir, f"{slug}.html")
	with open(html_path, "w", encoding="utf-8") as f:
		if result.meta_tags:
			f.write(result.meta_tags + "\n")
		f.write(result.markup + "\n")
	return [json_path, html_path]


def _report(result: PipelineResult) -> None:
	for notice in result.notices:
		log_info(f"Notice: {notice}")
	for error in result.report.errors:
		log_warn(f"Validation: {error}")
	status = "valid" if result.report.valid else "with validation errors"
	log_info(f"Schema generated ({result.document.get('@type')}) {status}")


def _read_manual(source: str) -> Dict[str, Any]:
	if source == "-":
		data = json.load(sys.stdin)
	elif os.path.isfile(source):
		with open(source, "r", encoding="utf-8") as f:
			data = json.load(f)
	else:
		data = json.loads(source)
	if not isinstance(data, dict):
		raise ValueError("manual input must be a JSON object")
	return data


def _pop_list(form: Dict[str, Any], key: str) -> Optional[List[str]]:
	value = form.pop(key, None)
	if isinstance(value, str):
		value = [line.strip() for line in value.splitlines() if line.strip()]
	return value or None


def run(args: argparse.Namespace, config: GeneratorConfig) -> int:
	if args.command == "validate":
		with open(args.file, "r", encoding="utf-8") as f:
			report = validate_markup(f.read())
		print(json.dumps(report.to_dict(), indent=2))
		return 0 if report.valid else 1

	if args.command == "url":
		log_banner(f"Generating schema for {args.url}")
		result = generate_from_url(args.url, config, content_type=args.content_type, with_llm=args.with_llm)
		slug = safe_slug_from_url(args.url)
	elif args.command == "html":
		with open(args.file, "r", encoding="utf-8") as f:
			html = f.read()
		log_banner(f"Generating schema from {args.file}")
		result = generate_from_html(html, args.source_url, config, content_type=args.content_type, with_llm=args.with_llm)
		slug = safe_slug_from_url(args.source_url)
	else:
		form = _read_manual(args.source)
		if args.content_type:
			form["content_type"] = args.content_type
		images = _pop_list(form, "images")
		social = _pop_list(form, "social_profiles")
		steps = _pop_list(form, "how_to_steps")
		log_banner("Generating schema from manual entry")
		result = generate_from_manual(form, config, images=images, social_profiles=social, steps=steps)
		if form.get("website_url"):
			slug = safe_slug_from_url(str(form["website_url"]))
		else:
			slug = slugify(str(form.get("name") or "")) or "manual"

	_report(result)
	for path in write_outputs(result, args.output_dir, slug):
		log_info(f"Wrote {path}")
	return 0


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="voice-schema", description="Generate voice-search friendly schema.org JSON-LD.")
	parser.add_argument("--config", help="Path to project config JSON (default: schema_config.json)")
	parser.add_argument("--api-key", help="OpenAI API key override (will take precedence)")
	parser.add_argument("--model", help="OpenAI model for the optional generative schema")
	parser.add_argument("--default-country", help="Country assumed when an address does not name one")
	parser.add_argument("--timeout", type=int, help="Per-request timeout in seconds")
	parser.add_argument("--output-dir", default="./output", help="Directory for outputs")
	sub = parser.add_subparsers(dest="command", required=True)

	def add_common(p: argparse.ArgumentParser) -> None:
		p.add_argument("--content-type", choices=CONTENT_TYPES, help="Schema type to produce (default: detected)")

	url_p = sub.add_parser("url", help="Fetch a page and generate its schema")
	url_p.add_argument("url")
	url_p.add_argument("--strict", action="store_true", help="Reject instead of dropping invalid fields")
	url_p.add_argument("--with-llm", action="store_true", help="Also request a generative schema from OpenAI")
	add_common(url_p)

	html_p = sub.add_parser("html", help="Generate a schema from a saved HTML file")
	html_p.add_argument("file")
	html_p.add_argument("--source-url", required=True, help="URL the HTML was served from")
	html_p.add_argument("--strict", action="store_true", help="Reject instead of dropping invalid fields")
	html_p.add_argument("--with-llm", action="store_true", help="Also request a generative schema from OpenAI")
	add_common(html_p)

	manual_p = sub.add_parser("manual", help="Generate a schema from a JSON object of form fields")
	manual_p.add_argument("source", help="JSON file, inline JSON, or - for stdin")
	add_common(manual_p)

	validate_p = sub.add_parser("validate", help="Validate an embeddable <script> block or bare JSON-LD file")
	validate_p.add_argument("file")
	return parser


def main(argv: Optional[List[str]] = None) -> int:
	args = build_parser().parse_args(argv)

	# Init color output; load_config reads .env
	colorama_init(autoreset=True)

	overrides: Dict[str, Any] = {}
	if args.api_key:
		overrides["openai_api_key"] = args.api_key
	if args.model:
		overrides["model"] = args.model
	if args.default_country:
		overrides["default_country"] = args.default_country
	if args.timeout:
		overrides["timeout"] = args.timeout
	if getattr(args, "strict", False):
		overrides["strict"] = True
	config = load_config(args.config, overrides)

	try:
		return run(args, config)
	except ValidationRejected as exc:
		log_error("Input rejected:")
		for error in exc.errors:
			log_error(f"  - {error}")
		return 2
	except (SchemaGeneratorError, OSError, ValueError) as exc:
		log_error(str(exc))
		return 1


if __name__ == "__main__":
	sys.exit(main())
