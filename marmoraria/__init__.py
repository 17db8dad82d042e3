"""
Marmoraria - Project tracking for stone fabrication shops

Clients, per-room line items, commissions and deadlines.

Modules:
    core      - Shared services (db, config, logging, output)
    projects  - Project model, calculations, filters, store
    sheets    - Spreadsheet import/export and published-sheet sync
    summary   - AI-generated project summaries
    api       - Flask JSON API
    cli       - Typer command line
"""

__version__ = "0.1.0"
