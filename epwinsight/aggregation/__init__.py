"""
EPW Insight Aggregation

Daily/monthly/annual statistics, comfort analysis and wind-rose
distributions computed from parsed hourly records.
"""
