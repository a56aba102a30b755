"""Click processing helpers.

This package centralizes click validation + guess-slot filling so every
click flows through the same ordered rule pipeline.
"""
