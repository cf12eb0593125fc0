"""crm-reconcile: link Fishbowl ERP customers to Copper CRM companies."""

__version__ = "0.1.0"
