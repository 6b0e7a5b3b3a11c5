from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml


class ConfigValidationError(ValueError):
    """Raised when a ParserConfig field has an invalid value."""


class ConfigLoadError(Exception):
    """Raised when a config file cannot be read or parsed."""


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name}={value} must be > 0")


def _check_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigValidationError(f"{name}={value} must be >= 0")


_MISSING_YEAR_POLICIES = ("current", "order_series")


@dataclass
class ParserConfig:
    """Tunables for order-summary extraction."""

    # ── Geometry (report units, tuned to one report's font metrics) ────
    # Vertical bucket size used to cluster words into rows.
    row_bucket_size: float = 5.0
    # Max |bottom - header_y| for a word to sit on the order-number header row.
    header_row_tolerance: float = 10.0
    # Max |bottom - part_bottom| for a word to sit on a part-number row.
    part_row_tolerance: float = 5.0
    # Max horizontal distance from a column centre to a quantity token.
    column_tolerance: float = 30.0

    # ── Text windows ───────────────────────────────────────────────────
    # Characters at the top of the page treated as the header area.
    header_scan_chars: int = 500
    # Characters after a part number examined by the concatenated fallback.
    fallback_context_chars: int = 200

    # ── Header fields ──────────────────────────────────────────────────
    known_suppliers: Tuple[str, ...] = (
        "AGC Automotive",
        "Toyota",
        "Denso",
        "Aisin",
        "Bridgestone",
    )
    # Year for month/day-only timestamps: "current" or "order_series".
    missing_year: str = "current"

    # ── Orders / line items ────────────────────────────────────────────
    # Order number assumed when none can be discovered.
    default_order_number: str = "001"
    # Resolve quantities by word coordinates when a column map exists.
    use_coordinate_quantities: bool = True
    # Scan for concatenated rows when no clean row matched.
    enable_concatenated_fallback: bool = True

    # ── Page layer (pdfplumber) ────────────────────────────────────────
    tocr_x_tolerance: float = 3.0
    tocr_y_tolerance: float = 3.0
    tocr_keep_blank_chars: bool = False
    tocr_use_text_flow: bool = False
    tocr_clip_to_page: bool = True
    tocr_filter_control_chars: bool = True

    # ── Diagnostics ────────────────────────────────────────────────────
    # Dump raw and reconstructed page text at DEBUG level.
    log_page_text: bool = False

    def __post_init__(self) -> None:
        """Validate field ranges to catch misconfiguration early."""
        if isinstance(self.known_suppliers, (list, str)):
            if isinstance(self.known_suppliers, str):
                self.known_suppliers = (self.known_suppliers,)
            else:
                self.known_suppliers = tuple(self.known_suppliers)

        for name in (
            "row_bucket_size",
            "header_row_tolerance",
            "part_row_tolerance",
            "tocr_x_tolerance",
            "tocr_y_tolerance",
        ):
            _check_positive(name, getattr(self, name))

        _check_non_negative("column_tolerance", self.column_tolerance)

        for name in ("header_scan_chars", "fallback_context_chars"):
            val = getattr(self, name)
            if val < 1:
                raise ConfigValidationError(f"{name}={val} must be >= 1")

        if self.missing_year not in _MISSING_YEAR_POLICIES:
            raise ConfigValidationError(
                f"missing_year={self.missing_year!r} must be one of "
                f"{', '.join(_MISSING_YEAR_POLICIES)}"
            )

        num = self.default_order_number
        if not (len(num) == 3 and num.isdigit() and 1 <= int(num) <= 999):
            raise ConfigValidationError(
                f"default_order_number={num!r} must be a 3-digit number in 001-999"
            )

        if any(not s.strip() for s in self.known_suppliers):
            raise ConfigValidationError("known_suppliers must not contain blank names")

    # ── Serialisation / loading ───────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        """Return public fields as a plain dict (tuples become lists)."""
        d: Dict[str, Any] = {}
        for f in fields(self):
            if f.name.startswith("_"):
                continue
            val = getattr(self, f.name)
            d[f.name] = list(val) if isinstance(val, tuple) else val
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Build a config from *data*, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ParserConfig":
        """Load a config from a YAML mapping."""
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigLoadError(f"Cannot read config {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigLoadError(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Config {path} must contain a mapping at top level")
        return cls.from_dict(data)

    @classmethod
    def from_toml(cls, path: Path | str) -> "ParserConfig":
        """Load a config from TOML; a ``[kanbanparse]`` or ``[parser]`` table wins."""
        path = Path(path)
        try:
            with open(path, "rb") as fh:
                data = tomllib.load(fh)
        except OSError as exc:
            raise ConfigLoadError(f"Cannot read config {path}: {exc}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigLoadError(f"Invalid TOML in {path}: {exc}") from exc
        for section in ("kanbanparse", "parser"):
            if isinstance(data.get(section), dict):
                data = data[section]
                break
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "ParserConfig":
        """Load a config, picking the format from the file suffix."""
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if suffix == ".toml":
            return cls.from_toml(path)
        raise ConfigLoadError(f"Unsupported config format {suffix!r}: {path}")
