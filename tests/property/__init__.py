"""
YAO - Property-Based Testing Suite

Property-based testing using Hypothesis for casting, the King Wen table,
line transformation and stored-entry normalization.
"""
