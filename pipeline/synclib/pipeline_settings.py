import os

import yaml


DEFAULT_SETTINGS_PATH = "settings.yaml"


#============================================
def get_repo_root() -> str:
	"""
	Return repository root based on this module location.
	"""
	module_dir = os.path.dirname(os.path.abspath(__file__))
	pipeline_dir = os.path.dirname(module_dir)
	repo_root = os.path.dirname(pipeline_dir)
	return repo_root


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd first, then repo root.
	"""
	if os.path.isabs(path_text):
		return path_text
	cwd_candidate = os.path.abspath(path_text)
	if os.path.isfile(cwd_candidate):
		return cwd_candidate
	repo_root = get_repo_root()
	repo_candidate = os.path.join(repo_root, path_text)
	return os.path.abspath(repo_candidate)


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	if not os.path.isfile(resolved_path):
		return {}, resolved_path
	with open(resolved_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle.read())
	if data is None:
		return {}, resolved_path
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {resolved_path}")
	return data, resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	"""
	Read a string setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read an integer setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return int(value)
	except ValueError as error:
		raise RuntimeError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_bool(settings: dict, keys: list[str], default_value: bool) -> bool:
	"""
	Read a boolean setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if isinstance(value, bool):
		return value
	if isinstance(value, str):
		text = value.strip().lower()
		if text in {"1", "true", "yes", "on"}:
			return True
		if text in {"0", "false", "no", "off"}:
			return False
		raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")
	if isinstance(value, int):
		return value != 0
	if value is None:
		return default_value
	raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")


#============================================
def get_setting_list(settings: dict, keys: list[str]) -> list[str]:
	"""
	Read a list of strings from nested path; a bare string becomes one item.
	"""
	value = get_nested_value(settings, keys, [])
	if value is None:
		return []
	if isinstance(value, str):
		value = [value]
	if not isinstance(value, list):
		raise RuntimeError(f"Invalid list for setting path {'.'.join(keys)}: {value}")
	items = []
	for item in value:
		text = str(item).strip()
		if text:
			items.append(text)
	return items


#============================================
def get_secret(settings: dict, keys: list[str], env_name: str) -> str:
	"""
	Resolve a credential from settings first, then the environment.
	"""
	value = get_setting_str(settings, keys, "")
	if value:
		return value
	return (os.environ.get(env_name, "") or "").strip()


#============================================
def get_github_username(settings: dict, default_value: str = "") -> str:
	"""
	Resolve GitHub username from settings, then GITHUB_USERNAME.
	"""
	value = get_secret(settings, ["github", "username"], "GITHUB_USERNAME")
	if value:
		return value
	return default_value


#============================================
def get_timezone_name(settings: dict, default_value: str) -> str:
	"""
	Resolve the local civil timezone name from settings, then TZ.
	"""
	value = get_setting_str(settings, ["timezone"], "")
	if value:
		return value
	env_value = (os.environ.get("TZ", "") or "").strip()
	if env_value:
		return env_value
	return default_value


#============================================
def get_squash_expansion_scope(settings: dict) -> str:
	"""
	Resolve which repositories get squash-merge expansion.

	The work scope needs work prefixes to match anything; without them
	every repository is expanded.
	"""
	value = get_setting_str(settings, ["github", "squash_expansion"], "work").lower()
	if value not in {"work", "all", "off"}:
		raise RuntimeError(
			"Invalid setting github.squash_expansion: "
			+ f"{value} (expected work, all, or off)"
		)
	if value == "work" and not get_setting_list(settings, ["github", "work_prefixes"]):
		return "all"
	return value


#============================================
def get_calendar_identities(settings: dict) -> dict[str, dict]:
	"""
	Read configured calendar identities keyed by name (work, personal).
	"""
	identities = get_nested_value(settings, ["calendar", "identities"], {})
	if identities is None:
		return {}
	if not isinstance(identities, dict):
		raise RuntimeError("Invalid settings: calendar.identities must be a mapping.")
	result = {}
	for name, config in identities.items():
		if not isinstance(config, dict):
			continue
		prefix = f"{str(name).upper()}_GOOGLE"
		identity = {
			"client_id": get_secret(config, ["client_id"], f"{prefix}_CLIENT_ID"),
			"client_secret": get_secret(config, ["client_secret"], f"{prefix}_CLIENT_SECRET"),
			"refresh_token": get_secret(config, ["refresh_token"], f"{prefix}_REFRESH_TOKEN"),
			"calendar_id": get_setting_str(config, ["calendar_id"], "primary") or "primary",
		}
		result[str(name)] = identity
	return result
