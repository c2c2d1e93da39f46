"""
Shared infrastructure for the NutriBite ordering service:
configuration, logging, database, security and common utilities.
"""
