"""Integrations that expose the bridge over a transport."""
