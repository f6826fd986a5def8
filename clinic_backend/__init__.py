"""Provisioning service: schema bootstrap and account registration."""
