"""
EPW Insight Processing

Line-oriented parser for EPW documents.
Validates and clamps every hourly record and assembles the processed dataset.
"""
