"""External integrations"""
