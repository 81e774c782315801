"""tokenmarket CLI — Typer-based command-line interface.

A thin shell over the engine: fund wallets, mint, list, buy, inspect the
catalog, manage the listing fee, and verify the event journal.

All output uses Rich for formatted terminal display.
"""
