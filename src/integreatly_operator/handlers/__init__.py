"""
Handlers package - Contains the Kopf event handlers for Installation resources.

- installation.py: create, resume, update and periodic reconciliation
"""
