"""
Content service application package.
"""
