"""
Core: domain exceptions and unit conversion shared by clients, calculator and API.
"""
