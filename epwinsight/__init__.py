"""
EPW Insight

Parses EnergyPlus weather (EPW) files into daily, monthly and annual
aggregates, thermal-comfort metrics and wind-rose distributions, and keeps
a size- and age-bounded local cache of parsed datasets.
"""

__version__ = "0.1.0"
