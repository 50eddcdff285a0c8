"""Points Engine - idempotent vote aggregation and badge awards"""
