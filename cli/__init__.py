"""Command-line client for the climate sensor data service.

The Typer application lives in ``cli.app``; tests patch ``cli.app.ApiClient``,
so the package root does not re-export it.
"""
