# Cluster services - Kubernetes API integration
from .client import ClusterClient
from .setup import ClusterContext, in_cluster_setup

__all__ = ["ClusterClient", "ClusterContext", "in_cluster_setup"]
