"""
In-memory issuer for tests and local development.

Outcomes are scripted: each ``sign`` call pops the next queued exception
(``SignPending``, ``SignDenied``, ``SignTransient``, ...) and signs for
real, with a self-signed certificate, once the queue is empty.
"""

import asyncio
from collections import deque
from dataclasses import replace
from datetime import timedelta

from certsteward.domain.models import CertificateBundle
from certsteward.issuers.base import SigningRequest
from certsteward.issuers.selfsigned import SelfSignedIssuer


class InMemoryIssuer:
    """
    Scriptable issuer backend.

    Args:
        ready: Initial readiness
        duration_override: Issue with this duration instead of the requested one
        delay: Seconds each call sleeps before answering
    """

    def __init__(
        self,
        ready: bool = True,
        duration_override: timedelta | None = None,
        delay: float = 0.0,
    ):
        self.ready = ready
        self.duration_override = duration_override
        self.delay = delay
        self.outcomes: deque[Exception] = deque()
        self.requests: list[SigningRequest] = []
        self.ready_checks = 0
        self._signer = SelfSignedIssuer()

    def fail_next(self, *errors: Exception) -> None:
        """Queue errors returned by the next ``sign`` calls, in order."""
        self.outcomes.extend(errors)

    @property
    def sign_calls(self) -> int:
        return len(self.requests)

    async def is_ready(self) -> bool:
        self.ready_checks += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.ready

    async def sign(self, request: SigningRequest) -> CertificateBundle:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.outcomes:
            raise self.outcomes.popleft()

        if self.duration_override is not None:
            request = replace(request, duration=self.duration_override)
        return await self._signer.sign(request)
