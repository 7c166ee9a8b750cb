"""
EPW Insight Ingestion

Remote archive download and the local cache of processed datasets.
"""
