#!/usr/bin/env python3
"""
Web API wrapper for the voice search schema generator
Exposes HTTP endpoints for generating, validating and describing schema markup
"""
import json
import os
import queue
import threading
from datetime import datetime, timezone

from flask import Flask, jsonify, request, Response, stream_with_context
from flask_cors import CORS

from console import log_error, set_progress_callback
from errors import PipelineError, SchemaParseError, ValidationRejected
from facts import FactSheet, merge_forms
from normalizer import form_from_schema, normalize_facts
from pipeline import generate_from_html, generate_from_manual, generate_from_url, validate_markup
from settings import load_config
from synthesizer import CONTENT_TYPES, build_local_seo_meta_tags

# Resolved once at startup; requests may override individual fields
CONFIG = load_config()

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes


def _now() -> str:
	return datetime.now(timezone.utc).isoformat()


def _json_body():
	if not request.is_json:
		return None, (jsonify({"error": "Request must be JSON"}), 400)
	data = request.get_json(silent=True)
	if not isinstance(data, dict):
		return None, (jsonify({"error": "Request body must be a JSON object"}), 400)
	content_type = data.get("content_type")
	if content_type and content_type not in CONTENT_TYPES:
		return None, (jsonify({"error": f"Unsupported content_type: {content_type}"}), 400)
	return data, None


def _request_config(data):
	return CONFIG.with_overrides(
		strict=data.get("strict"),
		default_country=data.get("default_country"),
		timeout=data.get("timeout"),
		model=data.get("model"),
		openai_api_key=data.get("api_key"),
	)


def _rejected(exc: ValidationRejected):
	return jsonify({"error": "Validation failed", "errors": exc.errors}), 422


@app.route("/health", methods=["GET"])
def health():
	"""Health check endpoint"""
	return jsonify({
		"status": "healthy",
		"service": "Voice Schema Generator",
		"timestamp": _now(),
		"openai_configured": bool(CONFIG.openai_api_key),
	}), 200


@app.route("/generate/url", methods=["POST"])
def generate_url_endpoint():
	"""
	Fetch a page and generate its schema.

	Request body (JSON):
	{
		"url": "https://example.com",  # Required
		"content_type": "Restaurant",  # Optional, detected when omitted
		"strict": false,  # Optional, reject instead of dropping invalid fields
		"with_llm": false,  # Optional, also request a generative schema
		"api_key": "sk-..."  # Optional, overrides env var
	}
	"""
	data, error = _json_body()
	if error:
		return error
	if not data.get("url"):
		return jsonify({"error": "url is required"}), 400
	try:
		result = generate_from_url(
			data["url"], _request_config(data),
			content_type=data.get("content_type"), with_llm=bool(data.get("with_llm")),
		)
	except ValidationRejected as exc:
		return _rejected(exc)
	except PipelineError as exc:
		return jsonify({"error": str(exc)}), 422
	return jsonify(result.to_dict()), 200


@app.route("/generate/url/stream", methods=["POST"])
def generate_url_stream_endpoint():
	"""
	Same request as /generate/url, but streams pipeline progress via Server-Sent Events (SSE)
	and sends the result as the final event.
	"""
	data, error = _json_body()
	if error:
		return error
	if not data.get("url"):
		return jsonify({"error": "url is required"}), 400
	config = _request_config(data)

	def generate():
		"""Generator function for SSE streaming"""
		progress_queue = queue.Queue()

		def progress_callback(level, message):
			progress_queue.put({"type": level, "message": message, "timestamp": _now()})

		def run_pipeline():
			set_progress_callback(progress_callback)
			try:
				result = generate_from_url(
					data["url"], config,
					content_type=data.get("content_type"), with_llm=bool(data.get("with_llm")),
				)
				progress_queue.put({"type": "complete", "message": "Schema generated", "result": result.to_dict()})
			except ValidationRejected as exc:
				progress_queue.put({"type": "rejected", "message": "Validation failed", "errors": exc.errors})
			except Exception as exc:
				log_error(f"Pipeline failed for {data['url']}: {exc}")
				progress_queue.put({"type": "error", "message": f"Pipeline failed: {exc}"})
			finally:
				set_progress_callback(None)

		worker = threading.Thread(target=run_pipeline, daemon=True)
		worker.start()

		while True:
			try:
				update = progress_queue.get(timeout=1)
			except queue.Empty:
				if not worker.is_alive() and progress_queue.empty():
					break
				# Send heartbeat
				yield ": heartbeat\n\n"
				continue
			yield f"data: {json.dumps(update)}\n\n"
			if update["type"] in ("complete", "rejected", "error"):
				break

	return Response(stream_with_context(generate()), mimetype="text/event-stream", headers={
		"Cache-Control": "no-cache",
		"Connection": "keep-alive",
		"X-Accel-Buffering": "no"
	})


@app.route("/generate/html", methods=["POST"])
def generate_html_endpoint():
	"""Generate a schema from HTML the caller already has: {"html": "...", "source_url": "..."}"""
	data, error = _json_body()
	if error:
		return error
	if not data.get("source_url"):
		return jsonify({"error": "source_url is required"}), 400
	try:
		result = generate_from_html(
			data.get("html"), data["source_url"], _request_config(data),
			content_type=data.get("content_type"), with_llm=bool(data.get("with_llm")),
		)
	except ValidationRejected as exc:
		return _rejected(exc)
	except PipelineError as exc:
		return jsonify({"error": str(exc)}), 422
	return jsonify(result.to_dict()), 200


@app.route("/generate/manual", methods=["POST"])
def generate_manual_endpoint():
	"""
	Generate a schema from manual form entry. Human input is always strict.

	Request body (JSON):
	{
		"form": {"name": "...", "street_address": "...", ...},  # Required
		"images": ["https://..."],  # Optional
		"social_profiles": ["https://..."],  # Optional
		"steps": ["..."],  # Optional, HowTo only
		"generated_schema": {...}  # Optional, fills blank form fields
	}
	"""
	data, error = _json_body()
	if error:
		return error
	form = data.get("form")
	if not isinstance(form, dict):
		return jsonify({"error": "form is required"}), 400
	form = dict(form)
	generated = data.get("generated_schema")
	if isinstance(generated, dict):
		# Entered values win over generated ones
		form = merge_forms(form, form_from_schema(generated))
	if data.get("content_type"):
		form["content_type"] = data["content_type"]
	try:
		result = generate_from_manual(
			form, _request_config(data),
			images=data.get("images"), social_profiles=data.get("social_profiles"), steps=data.get("steps"),
		)
	except ValidationRejected as exc:
		return _rejected(exc)
	except PipelineError as exc:
		return jsonify({"error": str(exc)}), 422
	return jsonify(result.to_dict()), 200


@app.route("/validate", methods=["POST"])
def validate_endpoint():
	"""Validate a document: {"markup": "<script ...>...</script>"} or {"schema": {...}}"""
	data, error = _json_body()
	if error:
		return error
	markup = data.get("markup")
	if markup is None and isinstance(data.get("schema"), dict):
		markup = json.dumps(data["schema"])
	if not markup:
		return jsonify({"error": "markup or schema is required"}), 400
	try:
		report = validate_markup(markup)
	except SchemaParseError as exc:
		return jsonify({"error": str(exc)}), 400
	return jsonify(report.to_dict()), 200


@app.route("/meta-tags", methods=["POST"])
def meta_tags_endpoint():
	"""Render local SEO meta tags for a form: {"form": {...}}"""
	data, error = _json_body()
	if error:
		return error
	form = data.get("form")
	if not isinstance(form, dict):
		return jsonify({"error": "form is required"}), 400
	normalized = normalize_facts(FactSheet.from_form(form), automated=True, default_country=CONFIG.default_country)
	return jsonify({"meta_tags": build_local_seo_meta_tags(normalized.facts), "notices": normalized.notices}), 200


@app.errorhandler(404)
def not_found(error):
	return jsonify({"error": "Endpoint not found"}), 404


@app.errorhandler(500)
def internal_error(error):
	return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
	port = int(os.environ.get("PORT", 8000))
	debug = os.environ.get("DEBUG", "false").lower() == "true"

	app.run(host="0.0.0.0", port=port, debug=debug)
