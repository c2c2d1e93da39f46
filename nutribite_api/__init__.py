"""
NutriBite ordering core: catalog, cart, checkout, order lifecycle and
inventory over PostgreSQL.
"""
