"""
Test suite for the inventory import service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_header_mapper.py -v
"""
