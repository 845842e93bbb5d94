from __future__ import annotations
from typing import Optional


class DriverError(Exception):
    def __init__(self, status: int = -1, url: str = "", message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message or f"HTTP {status} for {url}")
        self.status = status
        self.url = url
        self.cause = cause

class TransportError(DriverError): pass          # service unreachable / request not sent
class RegistrationFailed(DriverError): pass      # /subscribe not 201
class PublishFailed(DriverError): pass           # /publish not 201
class RetrievalFailed(DriverError): pass         # /pull not 200/204
class AlreadyStarted(DriverError): pass          # start() while running
