"""
Controller manager.

Owns the work queue, a pool of worker tasks and the reconciler. Change
events (API writes, resyncs) enqueue keys; each worker reconciles one key
at a time and requeues it after the delay the reconciler returned.
"""

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

from loguru import logger

from certsteward.controller.reconciler import Reconciler, ReconcileResult
from certsteward.controller.workqueue import WorkQueue
from certsteward.domain.backoff import BackoffPolicy
from certsteward.domain.duration import DurationPolicy
from certsteward.domain.models import CertificateKey
from certsteward.infrastructure import InfrastructureFactory
from certsteward.issuers.registry import IssuerRegistry

if TYPE_CHECKING:
    from certsteward.config import Settings

# Requeue delay when a worker hits an error outside the reconciler
WORKER_ERROR_DELAY = timedelta(seconds=5)


class ControllerManager:
    """
    Runs reconcile workers over a shared work queue.

    Args:
        reconciler: Reconciler used by every worker
        workers: Number of concurrent worker tasks
        resync_on_start: Enqueue every declared certificate on ``start``
    """

    def __init__(
        self,
        reconciler: Reconciler,
        workers: int = 4,
        resync_on_start: bool = True,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")

        self.reconciler = reconciler
        self.workers = workers
        self.resync_on_start = resync_on_start
        self.queue = WorkQueue()
        self.last_results: dict[CertificateKey, ReconcileResult] = {}
        self._forced: set[CertificateKey] = set()
        self._tasks: list[asyncio.Task] = []

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        factory: InfrastructureFactory | None = None,
        issuers: IssuerRegistry | None = None,
    ) -> "ControllerManager":
        """
        Wire repositories, issuers and policies from settings.

        Args:
            settings: Controller settings
            factory: Infrastructure factory (built from settings when omitted)
            issuers: Issuer registry (built from settings when omitted)

        Returns:
            A manager that has not been started yet
        """
        factory = factory or InfrastructureFactory.from_settings(settings)
        secrets = factory.get_secret_store()

        reconciler = Reconciler(
            certificates=factory.get_certificate_repository(),
            secrets=secrets,
            statuses=factory.get_status_repository(),
            issuers=issuers or IssuerRegistry.from_settings(settings, secrets),
            duration_policy=DurationPolicy.from_settings(settings),
            backoff_policy=BackoffPolicy.from_settings(settings),
            backend_timeout=settings.get_backend_timeout(),
            max_conflict_retries=settings.max_conflict_retries,
        )
        return cls(
            reconciler,
            workers=settings.workers,
            resync_on_start=settings.resync_on_start,
        )

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def enqueue(self, key: CertificateKey, force: bool = False) -> None:
        """
        Request a reconcile of ``key``.

        Args:
            key: Certificate to reconcile
            force: Skip an active backoff window on the next pass
        """
        if force:
            self._forced.add(key)
        self.queue.add(key)

    async def resync(self) -> int:
        """Enqueue every declared certificate. Returns how many were queued."""
        certificates = await self.reconciler.certificates.list_certificates()
        for certificate in certificates:
            self.queue.add(certificate.key)

        logger.info(f"Resync queued {len(certificates)} certificates")
        return len(certificates)

    async def start(self) -> None:
        if self.running:
            return

        if self.resync_on_start:
            await self.resync()

        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"reconcile-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(f"Controller started with {self.workers} workers")

    async def stop(self) -> None:
        if not self.running:
            return

        self.queue.shutdown()
        await asyncio.gather(*self._tasks)
        self._tasks = []
        logger.info("Controller stopped")

    async def _worker(self, index: int) -> None:
        logger.debug(f"Worker {index} started")

        while True:
            key = await self.queue.get()
            if key is None:
                break

            force = key in self._forced
            self._forced.discard(key)
            try:
                result = await self.reconciler.reconcile(key, force=force)
                if result.state is None:
                    self.last_results.pop(key, None)
                else:
                    self.last_results[key] = result
                if result.next_wake_up is not None:
                    self.queue.add_after(key, result.next_wake_up)
            except Exception as e:
                logger.exception(f"Worker {index} failed on {key}: {e}")
                self.queue.add_after(key, WORKER_ERROR_DELAY)
            finally:
                self.queue.done(key)

        logger.debug(f"Worker {index} stopped")
