"""Prefect flows.

- resolve.py - resolve weather for many locations with one shared pipeline
"""
