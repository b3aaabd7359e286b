"""Test package for Drink Master.

Core modules (physics, scoring, engine) are exercised headlessly with a fake
clock and seeded RNG. The pygame smoke tests use SDL's dummy video and audio
drivers so no window is opened. Run ``pytest`` from the project root.
"""
