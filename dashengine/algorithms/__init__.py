"""Solver algorithms: shortest path, tours, capacitated routing, min-cost flow."""
