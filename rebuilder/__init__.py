"""
Rebuild Shipwright builds on push and redeploy the Knative service that runs them.
"""
