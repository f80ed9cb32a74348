"""KEY=VALUE panel config file loader with typed accessors."""

from pathlib import Path


class WebConfig:
    """Parse ``tmodweb.env`` once and hand out typed settings."""

    def __init__(self, config_path, base_dir):
        self.config_path = Path(config_path)
        self.base_dir = Path(base_dir)
        self.values = self._load()

    def _load(self):
        values = {}
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except OSError:
            return values
        for raw in text.splitlines():
            line = raw.strip()
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            if not key:
                continue
            if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
                value = value[1:-1]
            values[key] = value
        return values

    def _raw(self, name):
        """Return the stripped raw value, or None when missing or blank."""
        value = self.values.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def get_str(self, name, default):
        raw = self._raw(name)
        return default if raw is None else raw

    def get_int(self, name, default, minimum=None):
        """Integer setting; unparsable values fall back, small ones clamp up."""
        raw = self._raw(name)
        if raw is None:
            return default
        try:
            parsed = int(raw)
        except ValueError:
            return default
        if minimum is not None:
            parsed = max(minimum, parsed)
        return parsed

    def get_float(self, name, default, minimum=None):
        """Float setting; unparsable values fall back, small ones clamp up."""
        raw = self._raw(name)
        if raw is None:
            return default
        try:
            parsed = float(raw)
        except ValueError:
            return default
        if minimum is not None:
            parsed = max(minimum, parsed)
        return parsed

    def get_path(self, name, default):
        """Path setting; relative values resolve against ``base_dir``."""
        raw = self._raw(name)
        if raw is None:
            return Path(default)
        candidate = Path(raw)
        if candidate.is_absolute():
            return candidate
        return self.base_dir / candidate
