"""
Request pipelines: validate, call external APIs, normalize, persist.

Each function takes its collaborators (chain client, explorer client, store)
as arguments; nothing here holds state between requests.
"""
