"""BarQuest assessment session package.

This package holds the headless session engine (`barquest.session`), the
async HTTP client it uses to talk to the question bank and history API,
and a small FastAPI reference implementation of that API. Individual
modules contain the concrete implementations and documentation.
"""
