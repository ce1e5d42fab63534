"""Reconcile loop, work queue and worker pool."""

from certsteward.controller.manager import ControllerManager
from certsteward.controller.reconciler import Reconciler, ReconcileResult
from certsteward.controller.workqueue import WorkQueue

__all__ = ["ControllerManager", "ReconcileResult", "Reconciler", "WorkQueue"]
