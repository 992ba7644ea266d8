"""Japavel: schema DSL and multi-tenancy core for SaaS backends."""

__version__ = "0.1.0"
