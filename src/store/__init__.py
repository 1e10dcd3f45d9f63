"""Row storage layer.

This module maps the row tree onto one DynamoDB table with
secondary indexes and enforces label and child invariants.
"""
