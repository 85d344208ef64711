"""
NairaSync - Source Package

Turns an uploaded bank statement into a typed transaction list and a
Nigerian personal income tax estimate.

DESIGN PRINCIPLES:
1. AI extracts → Parser verifies → Engine computes
2. Fail early, fail visibly
3. Never trust raw provider output
4. Financial data never leaves process memory
5. Extraction provider is swappable
"""

__version__ = "1.0.0"
__author__ = "NairaSync Team"
