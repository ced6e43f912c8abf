"""
Evaluation Package
==================

Contains the seed bank and the headless harness for batch drop runs.
"""

from drop_game.evaluation.run_drops import run_batch, load_seed_bank

__all__ = ["run_batch", "load_seed_bank"]
