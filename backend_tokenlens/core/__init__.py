"""
Core utilities: exceptions and concurrency helpers shared by the pipelines.
"""
