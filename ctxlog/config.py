"""config.py - Logger configuration.

``LoggerSetup`` collects every construction-time option and validates it
eagerly, so a bad configuration fails when the logger is built rather than on
the first log call. ``EnvSettings`` is the environment-variable layer on top
of it.

Typical usage::

    from ctxlog import LoggerSetup, create_logger

    setup = LoggerSetup(level="debug", log_attachments=lambda: {"service": "billing"})
    logger = create_logger(setup)

    # or, from CTXLOG_LEVEL / CTXLOG_ENABLED / CTXLOG_PRETTY
    logger = create_logger(LoggerSetup.from_env())
"""

from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Union

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .levels import Level, parse_level

AttachmentProducer = Callable[[], Mapping[str, str]]


class EnvSettings(BaseSettings):
    """Logger options read from ``CTXLOG_*`` environment variables.

    Attributes:
        LEVEL: Minimum severity name (debug/info/warn/error).
        ENABLED: Master switch; accepts the usual boolean spellings.
        PRETTY: Render through ``rich`` instead of JSON lines.
    """

    LEVEL: str = "info"
    ENABLED: bool = True
    PRETTY: bool = False

    @field_validator("LEVEL")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Reject names that are not one of the four levels."""
        return parse_level(v).label

    model_config = SettingsConfigDict(
        env_prefix="CTXLOG_",
        case_sensitive=False,
        extra="ignore",
    )

    def to_setup(self, **overrides) -> "LoggerSetup":
        values = {"level": self.LEVEL, "is_enabled": self.ENABLED, "pretty_log": self.PRETTY}
        values.update(overrides)
        return LoggerSetup(**values)


@dataclass
class LoggerSetup:
    """Construction options shared by ``SimpleLogger`` and ``ContextLogger``.

    Attributes:
        is_enabled: Master switch. When False nothing reaches the sink.
        level: Minimum severity forwarded to the sink. Accepts a ``Level``,
            a name such as ``"warn"``, or a ``logging`` constant.
        log_attachments: Zero-argument callable whose mapping is merged into
            every record (request ids, service name, ...). Called once per
            record, at call time.
        pretty_log: Render through ``rich`` instead of one JSON object per
            line. Cosmetic only.
        name: Name of the stdlib logger that backs the default sink.
    """

    is_enabled: bool = True
    level: Union[Level, str, int] = Level.INFO
    log_attachments: Optional[AttachmentProducer] = None
    pretty_log: bool = False
    name: str = "ctxlog.sink"

    def __post_init__(self) -> None:
        self.level = parse_level(self.level)
        if not isinstance(self.is_enabled, bool):
            raise ConfigurationError(
                f"is_enabled must be a bool, got {type(self.is_enabled).__name__}"
            )
        if not isinstance(self.pretty_log, bool):
            raise ConfigurationError(
                f"pretty_log must be a bool, got {type(self.pretty_log).__name__}"
            )
        if self.log_attachments is not None and not callable(self.log_attachments):
            raise ConfigurationError("log_attachments must be a zero-argument callable")
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError("name must be a non-empty string")

    @classmethod
    def from_env(cls, prefix: str = "CTXLOG_", **overrides) -> "LoggerSetup":
        """Build a setup from environment variables through ``EnvSettings``.

        Recognised variables (with the default prefix): ``CTXLOG_LEVEL``,
        ``CTXLOG_ENABLED`` and ``CTXLOG_PRETTY``. Unset variables keep the
        defaults; keyword ``overrides`` win over the environment.

        Args:
            prefix: Variable name prefix.
            **overrides: Explicit field values, e.g. ``log_attachments``.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        try:
            settings = EnvSettings(_env_prefix=prefix)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid {prefix}* environment: {exc}") from exc
        return settings.to_setup(**overrides)
