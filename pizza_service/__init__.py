"""
                Pizza Service

Pizza ordering backend: diner accounts with role-based access, franchises
and their stores, the menu, and orders fulfilled by the pizza factory.
"""

__version__ = "1.0.0"
