# Services module - cluster integration and rebuild orchestration
from .cluster import ClusterClient, ClusterContext, in_cluster_setup
from .orchestrator import Dispatch, RebuildOrchestrator

__all__ = ["ClusterClient", "ClusterContext", "Dispatch", "RebuildOrchestrator", "in_cluster_setup"]
