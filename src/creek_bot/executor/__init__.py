"""Simulation, amount search and resilient submission."""
