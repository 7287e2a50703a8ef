"""
Stock Kernel

An append-only inventory ledger for a small retail shop with:
- Stock movements recorded as header + lines, rolled back by compensation
- Price snapshots frozen on every movement line
- Current stock derived from the movement log (no stored balances)
- Deterministic, bounded per-unit barcode labels
"""

__version__ = "0.1.0"
