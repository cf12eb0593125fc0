"""Command-line interface for crm-reconcile."""
