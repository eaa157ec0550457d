"""Command-line interface for Gaia storage"""
