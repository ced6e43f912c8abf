"""
drop_game Package
=================

A parachute drop mini-game. Droppers fall from the top of the viewport,
deploy their chutes, drift and bounce off the side edges, and land near the
bottom; the dropper landing closest to the center of the target holds it.

- drop_core: the frame-stepped simulation, scoring and command surface
- evaluation: headless seeded batch runs

All tunable parameters are in drop_config.yaml.
"""
