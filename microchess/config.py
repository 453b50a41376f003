from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class Strength:
    """Search effort knobs.

    Attributes:
        exchange_depth (int): How many recaptures the exchange search chases
            after the opponent's first capture.
        check_threshold (int): Phases ranked below this value run the
            king-exposure test on every candidate (0 disables it entirely).
    """

    exchange_depth: int = 4
    check_threshold: int = 2

    def __post_init__(self) -> None:
        if self.exchange_depth < 0:
            raise ValueError("exchange_depth must be >= 0")
        if self.check_threshold < 0:
            raise ValueError("check_threshold must be >= 0")


LEVELS: Dict[str, Strength] = {
    "super_blitz": Strength(exchange_depth=0, check_threshold=0),
    "blitz": Strength(exchange_depth=4, check_threshold=0),
    "normal": Strength(exchange_depth=4, check_threshold=2),
}
DEFAULT_LEVEL = "normal"


def level(name: str) -> Strength:
    try:
        return LEVELS[name]
    except KeyError:
        raise ValueError(f"unknown level: {name!r}") from None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("0", "false", "no", "off")


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _as_optional_str(value: Any) -> Optional[str]:
    return str(value) if value else None


# TOML keys and their converters; unknown keys are ignored
_ENGINE_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "level": str,
    "use_book": _as_bool,
    "book_path": _as_optional_str,
    "movetime_ms": _as_optional_int,
    "max_nodes": _as_optional_int,
}
_SERVER_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "host": str,
    "port": int,
}


@dataclass
class EngineConfig:
    level: str = DEFAULT_LEVEL
    use_book: bool = True
    book_path: Optional[str] = None  # JSON script; built-in line when unset
    movetime_ms: Optional[int] = None
    max_nodes: Optional[int] = None


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class Settings:
    engine: EngineConfig = field(default_factory=EngineConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = "INFO"

    @property
    def strength(self) -> Strength:
        return level(self.engine.level)

    @staticmethod
    def load_from_toml(path: str = "microchess.toml") -> "Settings":
        """Read settings from a TOML file; a missing file gives the defaults.

        Raises:
            ValueError: If a known key holds a value of the wrong type.
        """
        cfg = Settings()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        sections = (
            ("engine", cfg.engine, _ENGINE_FIELDS),
            ("server", cfg.server, _SERVER_FIELDS),
        )
        for section, target, converters in sections:
            for k, v in raw.get(section, {}).items():
                convert = converters.get(k)
                if convert is None:
                    continue
                try:
                    setattr(target, k, convert(v))
                except (TypeError, ValueError):
                    raise ValueError(f"invalid value for {section}.{k}: {v!r}") from None
        if "log_level" in raw:
            cfg.log_level = str(raw["log_level"]).upper()
        return cfg

    @classmethod
    def load(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Load settings from the TOML file and apply environment overrides.

        Args:
            environ (Optional[Dict[str, str]]): Environment mapping, defaults
                to ``os.environ``.

        Returns:
            Settings: Merged settings.

        Raises:
            ValueError: If an override has an invalid value.
        """
        env = os.environ if environ is None else environ
        cfg = cls.load_from_toml(env.get("MICROCHESS_CONFIG_TOML", "microchess.toml"))
        if "MICROCHESS_LEVEL" in env:
            cfg.engine.level = env["MICROCHESS_LEVEL"]
        if "MICROCHESS_BOOK" in env:
            cfg.engine.book_path = env["MICROCHESS_BOOK"] or None
        if "MICROCHESS_USE_BOOK" in env:
            cfg.engine.use_book = _as_bool(env["MICROCHESS_USE_BOOK"])
        if "MICROCHESS_HOST" in env:
            cfg.server.host = env["MICROCHESS_HOST"]
        if "MICROCHESS_PORT" in env:
            cfg.server.port = int(env["MICROCHESS_PORT"])
        if "MICROCHESS_LOG_LEVEL" in env:
            cfg.log_level = env["MICROCHESS_LOG_LEVEL"].upper()
        # fail early on a bad level name
        level(cfg.engine.level)
        return cfg
