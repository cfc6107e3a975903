"""Application configuration management."""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ESL_PORT = 8021
DEFAULT_ESL_ADDRESS = f"localhost:{DEFAULT_ESL_PORT}"
# FreeSWITCH ships event_socket.conf.xml with this password.
DEFAULT_ESL_PASSWORD = "ClueCon"
DEFAULT_LISTEN_PORT = 9839
DEFAULT_CONNECT_TIMEOUT = 5.0

ENV_PREFIX = "FREESWITCH_EXPORTER_"


def split_address(address: str, *, default_port: int = DEFAULT_ESL_PORT) -> tuple[str, int]:
    """Split ``host[:port]`` (or ``[v6]:port``) into a host and port pair.

    Raises:
        ValueError: when the host is empty or the port is not a valid TCP port.
    """

    value = address.strip()
    if not value:
        raise ValueError("address must not be empty")

    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep:
            raise ValueError(f"invalid address {address!r}: missing ']'")
        if rest and not rest.startswith(":"):
            raise ValueError(f"invalid address {address!r}")
        port_text = rest[1:] if rest else ""
    elif value.count(":") == 1:
        host, _, port_text = value.partition(":")
    else:
        # Bare hostname or an unbracketed IPv6 literal.
        host, port_text = value, ""

    if not host:
        raise ValueError(f"invalid address {address!r}: missing host")
    if not port_text:
        return host, default_port
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port in address {address!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"port out of range in address {address!r}")
    return host, port


class Settings(BaseSettings):
    """Resolved exporter settings used by the CLI and FastAPI dependencies."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    esl_address: str = Field(DEFAULT_ESL_ADDRESS, description="host:port of the FreeSWITCH Event Socket")
    esl_password: str = Field(DEFAULT_ESL_PASSWORD, description="Event Socket shared secret")
    connect_timeout: float = Field(
        DEFAULT_CONNECT_TIMEOUT,
        gt=0,
        description="Seconds allowed for the initial dial and authentication",
    )
    command_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Optional per-command timeout; unset waits for the reply indefinitely",
    )
    host: str = Field("0.0.0.0", description="Application bind address")
    port: int = Field(DEFAULT_LISTEN_PORT, ge=1, le=65535, description="Application bind port")
    log_level: str = Field("INFO", description="Root logging level")
    expose_process_metrics: bool = Field(
        True,
        description="Publish process and platform collectors alongside gateway metrics",
    )

    @field_validator("esl_address")
    @classmethod
    def _validate_esl_address(cls, value: str) -> str:
        split_address(value)
        return value.strip()

    @property
    def esl_host(self) -> str:
        return split_address(self.esl_address)[0]

    @property
    def esl_port(self) -> int:
        return split_address(self.esl_address)[1]

    @property
    def uses_default_password(self) -> bool:
        return self.esl_password == DEFAULT_ESL_PASSWORD


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return a cached Settings instance resolved from the environment."""

    return Settings()
