"""
Test suite for the StockFlow usage analytics engine.

Run tests:
    pytest
"""
