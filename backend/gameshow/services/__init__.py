"""Game services: record store, change feed and the game package.

Routes, socket handlers and CLI commands go through these services, keeping
transport concerns separated from the game rules.
"""
