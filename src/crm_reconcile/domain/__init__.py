"""crm-reconcile domain layer.

Hosts the reconciliation data contracts, the error hierarchy and the service
that sequences Loader, Index Builder, Matcher and Applier. Stores are injected
by the caller so the service itself never chooses a backend.
"""
