"""
eiftool Configuration Management
=================================

Centralised configuration using Python dataclasses and TOML-based
persistence.  Every key has a default, so the tool runs without any
configuration file at all.

Example ``eiftool.toml``::

    [global]
    log_level = "DEBUG"
    log_file = "logs/eiftool.log"
    log_json = true

    [eif]
    strict_magic = true
    metadata_encoding = "utf-8"

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import codecs
import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "eiftool.toml"


# ========================== Tool-Specific Configs ==========================


@dataclass(frozen=False, slots=True)
class ParserConfig:
    """Settings for EIF decoding and validation.

    ``strict_magic`` promotes a magic other than ``.eif`` from a reported
    finding to a fatal :class:`~eif.core.errors.BadMagicError`.
    """

    strict_magic: bool = False
    metadata_encoding: str = "utf-8"
    max_file_size: int = 4 * 1024 ** 3  # 4 GiB
    compute_digest: bool = True

    def __post_init__(self) -> None:
        try:
            codecs.lookup(self.metadata_encoding)
        except LookupError:
            raise ValueError(
                f"Unknown metadata_encoding: {self.metadata_encoding!r}"
            ) from None


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Logging settings shared by every component."""

    log_level: str = "INFO"
    log_file: str | None = None
    log_json: bool = False


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class EifToolConfig:
    """Master configuration aggregating the global and parser settings.

    Usage:
        >>> config = EifToolConfig.load()                 # from default path
        >>> config = EifToolConfig.load("custom.toml")    # from custom path
        >>> config.eif.strict_magic
        False
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    eif: ParserConfig = field(default_factory=ParserConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> EifToolConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``eiftool.toml`` in the
        project root and falls back to pure defaults when it is absent.

        Raises:
            FileNotFoundError: If *path* was given explicitly and does not exist.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
            ValueError: If ``[eif] metadata_encoding`` names no known codec.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            eif=cls._build_section(ParserConfig, raw.get("eif", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys are ignored so newer config files keep working.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


def get_config(path: str | Path | None = None) -> EifToolConfig:
    """Module-level convenience wrapper around :meth:`EifToolConfig.load`.

    Caches the result so that repeated calls share one instance.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = EifToolConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
