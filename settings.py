import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

USER_AGENT_DEFAULT = (
	"Voice-Schema-Generator/1.0 (+https://github.com/) "
	"Contact: webmaster@example.com"
)

CONFIG_DIR = os.path.expanduser("~/.voice_schema")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")
PROJECT_CONFIG_FILE = "schema_config.json"

# Environment variable -> config field
ENV_KEYS = {
	"OPENAI_API_KEY": "openai_api_key",
	"VOICE_SCHEMA_MODEL": "model",
	"VOICE_SCHEMA_DEFAULT_COUNTRY": "default_country",
	"VOICE_SCHEMA_TIMEOUT": "timeout",
	"VOICE_SCHEMA_PROXIES": "proxy_prefixes",
	"VOICE_SCHEMA_USER_AGENT": "user_agent",
}


@dataclass
class GeneratorConfig:
	default_country: str = "US"
	strict: bool = False
	timeout: int = 20
	user_agent: str = USER_AGENT_DEFAULT
	proxy_prefixes: List[str] = field(default_factory=list)
	openai_api_key: str = ""
	model: str = "gpt-4o-mini"
	max_content_chars: int = 3000
	max_images: int = 10
	max_reviews: int = 10
	max_services: int = 20
	max_faqs: int = 10

	def with_overrides(self, **overrides: Any) -> "GeneratorConfig":
		"""Return a copy with every non-None override applied."""
		known = {f.name for f in fields(self)}
		changes = {k: v for k, v in overrides.items() if k in known and v is not None}
		return replace(self, **changes)


def read_json(path: str) -> Dict:
	try:
		with open(path, "r", encoding="utf-8") as f:
			data = json.load(f)
		return data if isinstance(data, dict) else {}
	except (OSError, json.JSONDecodeError):
		return {}


def _coerce(name: str, value: Any) -> Any:
	if name == "proxy_prefixes":
		if isinstance(value, str):
			return [p.strip() for p in value.split(",") if p.strip()]
		return list(value or [])
	if name == "timeout" or name.startswith("max_"):
		try:
			return int(value)
		except (TypeError, ValueError):
			return None
	if name == "strict":
		if isinstance(value, str):
			return value.strip().lower() in ("1", "true", "yes")
		return bool(value)
	if name == "default_country" and isinstance(value, str):
		return value.strip().upper() or None
	return value


def _layer(data: Dict) -> Dict[str, Any]:
	known = {f.name for f in fields(GeneratorConfig)}
	layer: Dict[str, Any] = {}
	for key, value in data.items():
		if key in known and value not in (None, ""):
			coerced = _coerce(key, value)
			if coerced is not None:
				layer[key] = coerced
	return layer


def load_config(
	config_path: Optional[str] = None,
	overrides: Optional[Dict[str, Any]] = None,
	use_dotenv: bool = True,
) -> GeneratorConfig:
	"""Resolve configuration: overrides > environment > project file > user file > defaults."""
	if use_dotenv:
		load_dotenv()

	user_cfg = _layer(read_json(CONFIG_FILE))
	project_cfg = _layer(read_json(config_path or PROJECT_CONFIG_FILE))
	env_cfg = _layer({
		name: os.environ.get(env_key)
		for env_key, name in ENV_KEYS.items()
		if os.environ.get(env_key)
	})
	override_cfg = _layer(overrides or {})

	merged: Dict[str, Any] = {}
	for layer in (user_cfg, project_cfg, env_cfg, override_cfg):
		merged.update(layer)
	return GeneratorConfig(**merged)
