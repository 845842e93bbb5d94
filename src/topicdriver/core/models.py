from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict

# handler(key, value) -> None
Handler = Callable[[str, Any], None]


class PayloadMode(str, Enum):
    JSON = "json"   # value decoded into Python objects
    RAW = "raw"     # value kept as the JSON text bytes


@dataclass(frozen=True)
class Message:
    key: str
    value: Any


@dataclass(frozen=True)
class RegistrationEntry:
    topic: str
    handler: Handler


@dataclass(frozen=True)
class ConnectorOptions:
    url: str
    period: float = 30.0                                  # seconds between sweeps
    topics: Dict[str, Handler] = field(default_factory=dict)
    payload: PayloadMode = PayloadMode.JSON
    timeout: float = 30.0                                 # per HTTP call
