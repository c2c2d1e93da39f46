"""
Services package.

- domain: business logic for cart, stock, checkout, orders and catalog reads
- stock_visibility: the rule tying product stock to recipe visibility
"""
