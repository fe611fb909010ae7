"""
FastAPI Middleware Application for Shopify to ERP Order Forwarding

This middleware receives Shopify order webhooks, maps them to the ERP order
shape, wraps them in a SOAP envelope and forwards them to Microsoft Dynamics
AX 2012 with bounded retries and a per-request audit trail.
"""

__version__ = "1.0.0"
