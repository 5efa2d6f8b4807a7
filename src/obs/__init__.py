"""Observability for buckrefactor runs."""
