"""Pipeline stages and persistence"""
